"""summarize_day 테스트"""

from datetime import date, datetime, timezone
from decimal import Decimal

from core.ledger.entry_builder import LedgerEntry
from core.ledger.snapshot import summarize_day

DAY = date(2026, 2, 21)


def _entry(n: int, source_type: str, amount: str, balance_after: str) -> LedgerEntry:
    ts = datetime(2026, 2, 21, n, 0, tzinfo=timezone.utc)
    return LedgerEntry(
        entry_id=f"e-{n}",
        balance_account_id="acc-1",
        source_type=source_type,
        source_ref_id=f"ref-{n}",
        amount=Decimal(amount),
        balance_after=Decimal(balance_after),
        occurred_at=ts,
        created_at=ts,
        currency="USD",
    )


class TestSummarizeDay:
    """하루치 원장 요약"""

    def test_no_entries(self) -> None:
        """항목이 없으면 closing = opening"""
        snapshot = summarize_day("acc-1", DAY, Decimal("50"), [])

        assert snapshot.opening_balance == Decimal("50")
        assert snapshot.closing_balance == Decimal("50")
        assert snapshot.net_change == Decimal("0")
        assert snapshot.trading_net_result == Decimal("0")

    def test_groups(self) -> None:
        entries = [
            _entry(1, "DEPOSIT", "100", "200"),
            _entry(2, "TRADE_PNL", "97", "297"),
            _entry(3, "COMMISSION", "-2", "295"),
            _entry(4, "WITHDRAW", "-30", "265"),
            _entry(5, "TRANSFER_OUT", "-15", "250"),
            _entry(6, "TRANSFER_IN", "5", "255"),
            _entry(7, "BONUS", "10", "265"),
            _entry(8, "ADJUSTMENT", "-1", "264"),
        ]

        snapshot = summarize_day("acc-1", DAY, Decimal("100"), entries)

        assert snapshot.date == DAY
        assert snapshot.opening_balance == Decimal("100")
        assert snapshot.closing_balance == Decimal("264")
        assert snapshot.net_change == Decimal("164")
        assert snapshot.deposit_amount == Decimal("100")
        assert snapshot.withdraw_amount == Decimal("30")
        assert snapshot.transfer_in_amount == Decimal("5")
        assert snapshot.transfer_out_amount == Decimal("15")
        assert snapshot.trading_net_result == Decimal("95")
        assert snapshot.adjustment_amount == Decimal("9")

    def test_to_dict(self) -> None:
        snapshot = summarize_day("acc-1", DAY, Decimal("0"), [_entry(1, "DEPOSIT", "1.50", "1.50")])
        data = snapshot.to_dict()

        assert data["date"] == "2026-02-21"
        assert data["closing_balance"] == "1.50"
        assert data["withdraw_amount"] == "0"
