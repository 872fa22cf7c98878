"""DailySnapshotBuilder 통합 테스트"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.recompute import RunningBalanceRecomputer
from core.ledger.recorder import SettlementRecorder
from core.ledger.snapshot import DailySnapshotBuilder

DAY = date(2026, 2, 21)


def _at(day: int, hour: int = 12) -> datetime:
    return datetime(2026, 2, day, hour, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def recorder(db: SQLiteAdapter, add_account) -> SettlementRecorder:
    await add_account("acc-1")
    await add_account("acc-2")
    return SettlementRecorder(db)


class TestBuildDailySnapshot:
    """일별 스냅샷"""

    @pytest.mark.asyncio
    async def test_summary_with_opening_from_previous_day(
        self, db: SQLiteAdapter, recorder: SettlementRecorder
    ) -> None:
        await recorder.record_deposit("acc-1", Decimal("1000"), "USD", _at(20))
        await recorder.record_withdraw("acc-1", Decimal("100"), "USD", _at(21, 1))
        await recorder.record_settlement(
            "acc-1", "TRADE_PNL", "O1", _at(21, 2), "USD", {"p": "50", "c": "-2", "s": "-1"}
        )
        await recorder.record_transfer("acc-1", "acc-2", Decimal("30"), "USD", _at(21, 3), "tr-1")
        await recorder.record_adjustment("acc-1", Decimal("5"), "USD", _at(21, 4))
        await recorder.record_deposit("acc-1", Decimal("999"), "USD", _at(22))

        snapshot = await DailySnapshotBuilder(db).build_daily_snapshot("acc-1", DAY)

        assert snapshot.opening_balance == Decimal("1000")
        assert snapshot.withdraw_amount == Decimal("100")
        assert snapshot.trading_net_result == Decimal("47")
        assert snapshot.transfer_out_amount == Decimal("30")
        assert snapshot.adjustment_amount == Decimal("5")
        assert snapshot.deposit_amount == Decimal("0")
        assert snapshot.closing_balance == Decimal("922")
        assert snapshot.net_change == Decimal("-78")

    @pytest.mark.asyncio
    async def test_empty_day_carries_opening(
        self, db: SQLiteAdapter, recorder: SettlementRecorder
    ) -> None:
        await recorder.record_deposit("acc-1", Decimal("10"), "USD", _at(19))

        snapshot = await DailySnapshotBuilder(db).build_daily_snapshot("acc-1", DAY)

        assert snapshot.opening_balance == Decimal("10")
        assert snapshot.closing_balance == Decimal("10")
        assert snapshot.net_change == Decimal("0")

    @pytest.mark.asyncio
    async def test_rebuild_upserts(self, db: SQLiteAdapter, recorder: SettlementRecorder) -> None:
        """같은 날짜 재생성 → 행 1개, 최신 값"""
        builder = DailySnapshotBuilder(db)
        await recorder.record_deposit("acc-1", Decimal("10"), "USD", _at(21))
        await builder.build_daily_snapshot("acc-1", DAY)

        await recorder.record_deposit("acc-1", Decimal("5"), "USD", _at(21, 18))
        await builder.build_daily_snapshot("acc-1", DAY)

        rows = await recorder.ledger_store.get_daily_snapshots("acc-1")
        assert len(rows) == 1
        assert rows[0]["closing_balance"] == "15"
        assert rows[0]["deposit_amount"] == "15"

    @pytest.mark.asyncio
    async def test_after_backfill_recompute(
        self, db: SQLiteAdapter, recorder: SettlementRecorder
    ) -> None:
        """backfill 이후 재계산하면 전날 마감이 반영됨"""
        await recorder.record_deposit("acc-1", Decimal("10"), "USD", _at(21))
        await recorder.record_deposit("acc-1", Decimal("100"), "USD", _at(20))
        await RunningBalanceRecomputer(db).recompute_running_balances("acc-1")

        snapshot = await DailySnapshotBuilder(db).build_daily_snapshot("acc-1", DAY)

        assert snapshot.opening_balance == Decimal("100")
        assert snapshot.closing_balance == Decimal("110")
