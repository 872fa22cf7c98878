"""RunningBalanceRecomputer 통합 테스트"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger.errors import RecomputeFailed
from core.ledger.recompute import RunningBalanceRecomputer
from core.ledger.recorder import SettlementRecorder


def _ts(day: int) -> datetime:
    return datetime(2026, 2, day, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def recorder(db: SQLiteAdapter, add_account) -> SettlementRecorder:
    await add_account("acc-1")
    await add_account("acc-2")
    return SettlementRecorder(db)


class TestRecompute:
    """누적 잔고 재계산"""

    @pytest.mark.asyncio
    async def test_backfill_corrected(self, db: SQLiteAdapter, recorder: SettlementRecorder) -> None:
        """과거 시점 기록 후 canonical order로 보정"""
        o1 = await recorder.record_settlement("acc-1", "TRADE_PNL", "O1", _ts(11), "USD", {"p": 100, "c": -2, "s": -1})
        o2 = await recorder.record_settlement("acc-1", "TRADE_PNL", "O2", _ts(12), "USD", {"p": -50, "c": -1, "s": 0})
        o0 = await recorder.record_settlement("acc-1", "TRADE_PNL", "O0", _ts(10), "USD", {"p": 10, "c": 0, "s": 0})

        result = await RunningBalanceRecomputer(db).recompute_running_balances("acc-1")

        store = recorder.ledger_store
        entries = await store.list_entries_canonical("acc-1")
        assert [e.entry_id for e in entries] == [o0.entry_id, o1.entry_id, o2.entry_id]
        assert [e.balance_after for e in entries] == [Decimal("10"), Decimal("107"), Decimal("56")]

        assert result.final_balance == Decimal("56")
        assert result.updated == 3
        assert result.entry_count == 3

        cursor = await store.get_cursor("acc-1")
        assert cursor.balance == Decimal("56")
        assert cursor.last_entry_id == o2.entry_id

    @pytest.mark.asyncio
    async def test_idempotent(self, db: SQLiteAdapter, recorder: SettlementRecorder) -> None:
        """두 번째 실행은 변경 없음"""
        await recorder.record_deposit("acc-1", Decimal("5"), "USD", _ts(12))
        await recorder.record_deposit("acc-1", Decimal("7"), "USD", _ts(10))
        recomputer = RunningBalanceRecomputer(db)

        first = await recomputer.recompute_running_balances("acc-1")
        second = await recomputer.recompute_running_balances("acc-1")

        assert first.updated > 0
        assert second.updated == 0
        assert second.final_balance == first.final_balance == Decimal("12")

    @pytest.mark.asyncio
    async def test_in_order_needs_no_updates(self, db: SQLiteAdapter, recorder: SettlementRecorder) -> None:
        await recorder.record_deposit("acc-1", Decimal("5"), "USD", _ts(10))
        await recorder.record_withdraw("acc-1", Decimal("2"), "USD", _ts(11))

        result = await RunningBalanceRecomputer(db).recompute_running_balances("acc-1")

        assert result.updated == 0
        assert result.final_balance == Decimal("3")

    @pytest.mark.asyncio
    async def test_other_accounts_untouched(self, db: SQLiteAdapter, recorder: SettlementRecorder) -> None:
        await recorder.record_deposit("acc-2", Decimal("5"), "USD", _ts(12))
        await db.execute("UPDATE balance_ledger SET balance_after = '999' WHERE balance_account_id = 'acc-2'")
        await db.commit()

        await RunningBalanceRecomputer(db).recompute_running_balances("acc-1")

        entries = await recorder.ledger_store.list_entries_canonical("acc-2")
        assert entries[0].balance_after == Decimal("999")

    @pytest.mark.asyncio
    async def test_empty_account(self, db: SQLiteAdapter, recorder: SettlementRecorder) -> None:
        result = await RunningBalanceRecomputer(db).recompute_running_balances("acc-1")

        assert result.updated == 0
        assert result.final_balance == Decimal("0")
        assert (await recorder.ledger_store.get_cursor("acc-1")).entry_count == 0

    @pytest.mark.asyncio
    async def test_storage_error_wrapped(self, db: SQLiteAdapter, recorder: SettlementRecorder) -> None:
        """저장소 오류 → RecomputeFailed (원장 행 불변)"""
        await db.execute("DROP TABLE balance_cursor")
        await db.commit()

        with pytest.raises(RecomputeFailed) as exc_info:
            await RunningBalanceRecomputer(db).recompute_running_balances("acc-1")

        assert exc_info.value.account_id == "acc-1"
