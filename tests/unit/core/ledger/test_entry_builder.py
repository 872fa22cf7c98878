"""LedgerEntryBuilder 테스트"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.ledger.entry_builder import (
    LedgerEntry,
    LedgerEntryBuilder,
    TradeSettlement,
    net_amount,
)
from core.ledger.types import LedgerSourceType
from core.storage.order_store import ClosedOrder

FIXED_NOW = datetime(2026, 2, 21, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def builder() -> LedgerEntryBuilder:
    return LedgerEntryBuilder(clock=lambda: FIXED_NOW)


def _order(**overrides) -> ClosedOrder:
    data = dict(
        id="O1",
        user_id="user-1",
        balance_account_id="acc-1",
        symbol="EURUSD",
        pnl_amount=Decimal("100"),
        commission_usd=Decimal("-2"),
        swap_usd=Decimal("-1"),
        open_time=datetime(2026, 2, 20, 9, 0, tzinfo=timezone.utc),
        close_time=datetime(2026, 2, 20, 15, 0, tzinfo=timezone.utc),
    )
    data.update(overrides)
    return ClosedOrder(**data)


class TestNetAmount:
    """net_amount 테스트"""

    def test_sum_signed_components(self) -> None:
        """부호 그대로 합산"""
        assert net_amount({"gross_pnl": 100, "commission": -2, "swap": -1}) == Decimal("97")

    def test_no_rounding(self) -> None:
        """소수점 정밀도 유지"""
        result = net_amount({"a": "0.1", "b": "0.2", "c": "-0.0001"})
        assert result == Decimal("0.2999")

    def test_none_component_is_zero(self) -> None:
        assert net_amount({"gross_pnl": "-50", "commission": "-1", "swap": None}) == Decimal("-51")

    def test_empty_components(self) -> None:
        with pytest.raises(ValueError):
            net_amount({})


class TestTradeSettlement:
    """TradeSettlement 테스트"""

    def test_from_order(self) -> None:
        settlement = TradeSettlement.from_order(_order(), "USD")

        assert settlement.order_id == "O1"
        assert settlement.balance_account_id == "acc-1"
        assert settlement.close_time == datetime(2026, 2, 20, 15, 0, tzinfo=timezone.utc)
        assert settlement.components == {
            "gross_pnl": Decimal("100"),
            "commission": Decimal("-2"),
            "swap": Decimal("-1"),
        }

    def test_close_time_falls_back_to_open_time(self) -> None:
        """close_time 없으면 open_time"""
        settlement = TradeSettlement.from_order(_order(close_time=None), "USD")
        assert settlement.close_time == datetime(2026, 2, 20, 9, 0, tzinfo=timezone.utc)

    def test_blank_currency_defaults(self) -> None:
        settlement = TradeSettlement.from_order(_order(), "")
        assert settlement.currency == "USD"

    def test_order_without_account(self) -> None:
        with pytest.raises(ValueError):
            TradeSettlement.from_order(_order(balance_account_id=None), "USD")


class TestLedgerEntryBuilder:
    """LedgerEntryBuilder 테스트"""

    def test_trade_settlement_draft(self, builder: LedgerEntryBuilder) -> None:
        """청산 주문 → TRADE_PNL 순액"""
        draft = builder.trade_settlement(TradeSettlement.from_order(_order(), "USD"))

        assert draft.source_type == LedgerSourceType.TRADE_PNL.value
        assert draft.source_ref_id == "O1"
        assert draft.amount == Decimal("97")
        assert draft.meta == {"gross_pnl": "100", "commission": "-2", "swap": "-1"}

    def test_settlement_normalizes_occurred_at(self, builder: LedgerEntryBuilder) -> None:
        """ISO 문자열 + 타임존 → UTC"""
        draft = builder.settlement(
            "acc-1", "BONUS", "b-1", "2026-02-21T09:00:00+09:00", "USD", {"amount": 5}
        )
        assert draft.occurred_at == datetime(2026, 2, 21, 0, 0, tzinfo=timezone.utc)

    def test_settlement_default_occurred_at(self, builder: LedgerEntryBuilder) -> None:
        draft = builder.settlement("acc-1", "BONUS", None, None, "USD", {"amount": 5})
        assert draft.occurred_at == FIXED_NOW

    def test_unknown_source_type(self, builder: LedgerEntryBuilder) -> None:
        with pytest.raises(ValueError):
            builder.settlement("acc-1", "UNKNOWN", None, None, "USD", {"amount": 1})

    def test_deposit_withdraw_signs(self, builder: LedgerEntryBuilder) -> None:
        """입금 +, 출금 - (입력 부호 무시)"""
        assert builder.deposit("acc-1", Decimal("-100"), "USD").amount == Decimal("100")
        assert builder.withdraw("acc-1", Decimal("100"), "USD").amount == Decimal("-100")

    @pytest.mark.parametrize(
        "source_type, expected",
        [("BONUS", "5"), ("BONUS_REMOVAL", "-5"), ("TRANSFER_IN", "5"), ("ADJUSTMENT", "-5")],
    )
    def test_settlement_direction_by_source(
        self, builder: LedgerEntryBuilder, source_type: str, expected: str
    ) -> None:
        """방향이 정해진 유형은 부호 강제, 나머지는 그대로"""
        draft = builder.settlement("acc-1", source_type, None, None, "USD", {"amount": "-5"})
        assert draft.amount == Decimal(expected)

    def test_adjustment_keeps_sign(self, builder: LedgerEntryBuilder) -> None:
        draft = builder.adjustment("acc-1", Decimal("-3.5"), "USD", memo="정정")

        assert draft.amount == Decimal("-3.5")
        assert draft.source_ref_id is None
        assert draft.meta == {"memo": "정정"}

    def test_transfer_pair(self, builder: LedgerEntryBuilder) -> None:
        """이체 → (OUT, IN) 같은 시각, 같은 ref"""
        outgoing, incoming = builder.transfer("acc-1", "acc-2", Decimal("30"), "USD", source_ref_id="t-1")

        assert outgoing.source_type == "TRANSFER_OUT"
        assert outgoing.balance_account_id == "acc-1"
        assert outgoing.amount == Decimal("-30")
        assert incoming.source_type == "TRANSFER_IN"
        assert incoming.balance_account_id == "acc-2"
        assert incoming.amount == Decimal("30")
        assert outgoing.occurred_at == incoming.occurred_at
        assert outgoing.source_ref_id == incoming.source_ref_id == "t-1"

    def test_transfer_same_account(self, builder: LedgerEntryBuilder) -> None:
        with pytest.raises(ValueError):
            builder.transfer("acc-1", "acc-1", Decimal("30"), "USD")

    def test_materialize(self, builder: LedgerEntryBuilder) -> None:
        draft = builder.deposit("acc-1", Decimal("10"), "USD")
        entry = builder.materialize(draft, Decimal("10"))

        assert isinstance(entry, LedgerEntry)
        assert entry.entry_id
        assert entry.balance_after == Decimal("10")
        assert entry.created_at == FIXED_NOW


class TestLedgerEntry:
    """LedgerEntry 테스트"""

    def test_from_row(self) -> None:
        row = (
            "e-1", "acc-1", "TRADE_PNL", "O1", "97", "97",
            "2026-02-20T15:00:00.000000+00:00", "2026-02-21T12:00:00.000000+00:00",
            "USD", '{"gross_pnl": "100"}',
        )
        entry = LedgerEntry.from_row(row)

        assert entry.amount == Decimal("97")
        assert entry.occurred_at == datetime(2026, 2, 20, 15, 0, tzinfo=timezone.utc)
        assert entry.meta == {"gross_pnl": "100"}

    def test_canonical_key_order(self, builder: LedgerEntryBuilder) -> None:
        """업무 시각 → 기록 시각 → entry_id"""
        early = builder.materialize(
            builder.deposit("acc-1", 1, "USD", "2026-02-20T00:00:00Z"), Decimal("1")
        )
        late = builder.materialize(
            builder.deposit("acc-1", 1, "USD", "2026-02-21T00:00:00Z"), Decimal("2")
        )
        assert sorted([late, early], key=lambda e: e.canonical_key) == [early, late]

    def test_to_dict_amounts_as_strings(self, builder: LedgerEntryBuilder) -> None:
        entry = builder.materialize(builder.deposit("acc-1", "0.10", "USD"), Decimal("0.10"))
        data = entry.to_dict()

        assert data["amount"] == "0.10"
        assert data["balance_after"] == "0.10"
        assert data["source_type"] == "DEPOSIT"
