"""
잔고 재계산

canonical order로 전체 원장을 다시 누적하여 balance_after와 커서를 보정.
과거 시점 이벤트가 나중에 기록된 경우(backfill) 사용.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

import aiosqlite

from core.ledger.errors import RecomputeFailed
from core.ledger.store import LedgerStore

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecomputeResult:
    """재계산 결과

    Attributes:
        account_id: 계좌 ID
        updated: balance_after가 바뀐 행 수
        final_balance: 최종 잔고 (커서 값)
        entry_count: 원장 항목 수
    """

    account_id: str
    updated: int
    final_balance: Decimal
    entry_count: int


class RunningBalanceRecomputer:
    """계좌별 누적 잔고 재계산기

    0에서 시작해 canonical order로 amount를 누적한다.
    값이 달라진 행만 UPDATE. 같은 원장에 대해 여러 번 실행해도 결과 동일.

    동시 기록과의 직렬화는 호출자가 계좌 잠금으로 보장하고,
    프로세스 간에는 BEGIN IMMEDIATE가 보장한다.
    """

    def __init__(self, db: SQLiteAdapter, ledger_store: LedgerStore | None = None):
        self.db = db
        self.ledger_store = ledger_store or LedgerStore(db)

    async def recompute_running_balances(self, account_id: str) -> RecomputeResult:
        """계좌 잔고 재계산

        Raises:
            RecomputeFailed: 조회/갱신 실패 (원장 행은 변경되지 않음)
        """
        try:
            async with self.db.transaction(immediate=True):
                entries = await self.ledger_store.list_entries_canonical(account_id)

                running = Decimal("0")
                updated = 0
                for entry in entries:
                    running += entry.amount
                    if entry.balance_after != running:
                        await self.ledger_store.update_balance_after(entry.entry_id, running)
                        updated += 1

                await self.ledger_store.set_cursor(
                    account_id=account_id,
                    balance=running,
                    last_entry_id=entries[-1].entry_id if entries else None,
                    entry_count=len(entries),
                )
        except aiosqlite.Error as e:
            logger.error(
                "잔고 재계산 실패",
                extra={"account_id": account_id, "error": str(e)},
            )
            raise RecomputeFailed(account_id, str(e)) from e

        if updated:
            logger.info(
                f"잔고 재계산: {updated}건 보정, 최종 잔고 {running}",
                extra={"account_id": account_id},
            )
        else:
            logger.debug(f"잔고 재계산: 변경 없음 ({account_id})")

        return RecomputeResult(
            account_id=account_id,
            updated=updated,
            final_balance=running,
            entry_count=len(entries),
        )
