"""
Ledger 서비스

원장 동기화/재계산/조회 및 입출금·이체·조정 기록.
모든 쓰기는 계좌 잠금 구간 안에서 기록 → 재계산 순서로 처리.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import LedgerConfig
from core.constants import Defaults
from core.ledger import (
    AccountLockRegistry,
    DailySnapshotBuilder,
    LedgerStore,
    RunningBalanceRecomputer,
    SettlementReconciler,
    SettlementRecorder,
    SyncResult,
)
from core.storage.account_store import AccountStore, BalanceAccount

logger = logging.getLogger(__name__)


class AccountNotFound(Exception):
    """계좌 없음 또는 호출자 소유 아님 (404)"""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class LedgerService:
    """Ledger 서비스

    Args:
        db: SQLite 어댑터 (쓰기 작업은 쓰기 가능 연결)
        locks: 프로세스 공용 계좌 잠금
        config: Ledger 설정
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        locks: AccountLockRegistry | None = None,
        config: LedgerConfig | None = None,
    ):
        self.db = db
        self.locks = locks or AccountLockRegistry()
        self.config = config or LedgerConfig()
        self.account_store = AccountStore(db, chunk_size=self.config.lookup_chunk_size)
        self.ledger_store = LedgerStore(db, chunk_size=self.config.lookup_chunk_size)

    async def get_owned_account(self, user_id: str, account_id: str) -> BalanceAccount:
        """호출자 소유 계좌 조회

        Raises:
            AccountNotFound: 없거나 다른 사용자 계좌
        """
        account = await self.account_store.get(account_id)
        if account is None or not account.is_owned_by(user_id):
            raise AccountNotFound(account_id)
        return account

    # -------------------------------------------------------------------------
    # 동기화 / 재계산
    # -------------------------------------------------------------------------

    async def sync(self, user_id: str) -> SyncResult:
        """청산 주문 → 원장 동기화"""
        reconciler = SettlementReconciler(self.db, self.locks, self.config)
        return await reconciler.sync_pending_settlements(user_id)

    async def recompute(self, user_id: str, account_id: str) -> dict[str, Any]:
        """계좌 잔고 재계산"""
        await self.get_owned_account(user_id, account_id)

        recomputer = RunningBalanceRecomputer(self.db, self.ledger_store)
        async with self.locks.hold([account_id]):
            result = await recomputer.recompute_running_balances(account_id)

        return {
            "account_id": account_id,
            "updated": result.updated,
            "final_balance": str(result.final_balance),
            "entry_count": result.entry_count,
        }

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def list_entries(
        self,
        user_id: str,
        account_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> dict[str, Any]:
        """원장 목록 (최신순)"""
        await self.get_owned_account(user_id, account_id)

        entries = await self.ledger_store.list_entries(account_id, limit, offset)
        total = await self.ledger_store.count_entries(account_id)

        return {
            "items": [entry.to_dict() for entry in entries],
            "total": total,
            "limit": limit,
            "offset": offset,
        }

    async def get_balance(self, user_id: str, account_id: str) -> dict[str, Any]:
        """계좌 현재 잔고 (커서)"""
        account = await self.get_owned_account(user_id, account_id)
        cursor = await self.ledger_store.get_cursor(account_id)

        return {
            "account_id": account_id,
            "currency": account.currency or Defaults.CURRENCY,
            "balance": str(cursor.balance),
            "entry_count": cursor.entry_count,
            "last_entry_id": cursor.last_entry_id,
        }

    # -------------------------------------------------------------------------
    # 기록
    # -------------------------------------------------------------------------

    async def deposit(
        self,
        user_id: str,
        account_id: str,
        amount: Decimal,
        occurred_at: datetime | None = None,
        source_ref_id: str | None = None,
    ) -> dict[str, Any]:
        account = await self.get_owned_account(user_id, account_id)
        return await self._record_single(
            account,
            lambda recorder, currency: recorder.record_deposit(
                account_id, amount, currency, occurred_at, source_ref_id
            ),
        )

    async def withdraw(
        self,
        user_id: str,
        account_id: str,
        amount: Decimal,
        occurred_at: datetime | None = None,
        source_ref_id: str | None = None,
    ) -> dict[str, Any]:
        account = await self.get_owned_account(user_id, account_id)
        return await self._record_single(
            account,
            lambda recorder, currency: recorder.record_withdraw(
                account_id, amount, currency, occurred_at, source_ref_id
            ),
        )

    async def adjust(
        self,
        user_id: str,
        account_id: str,
        amount: Decimal,
        occurred_at: datetime | None = None,
        memo: str | None = None,
    ) -> dict[str, Any]:
        account = await self.get_owned_account(user_id, account_id)
        return await self._record_single(
            account,
            lambda recorder, currency: recorder.record_adjustment(
                account_id, amount, currency, occurred_at, memo
            ),
        )

    async def transfer(
        self,
        user_id: str,
        from_account_id: str,
        to_account_id: str,
        amount: Decimal,
        occurred_at: datetime | None = None,
        source_ref_id: str | None = None,
        memo: str | None = None,
    ) -> dict[str, Any]:
        """계좌 간 이체 (두 계좌 모두 호출자 소유)"""
        source = await self.get_owned_account(user_id, from_account_id)
        await self.get_owned_account(user_id, to_account_id)

        recorder = SettlementRecorder(self.db, self.ledger_store, self.account_store)
        recomputer = RunningBalanceRecomputer(self.db, self.ledger_store)

        async with self.locks.hold([from_account_id, to_account_id]):
            outgoing, incoming = await recorder.record_transfer(
                from_account_id,
                to_account_id,
                amount,
                source.currency or Defaults.CURRENCY,
                occurred_at,
                source_ref_id,
                {"memo": memo} if memo else None,
            )
            for account_id in sorted([from_account_id, to_account_id]):
                await recomputer.recompute_running_balances(account_id)

            outgoing = await self.ledger_store.get_entry(outgoing.entry_id) or outgoing
            incoming = await self.ledger_store.get_entry(incoming.entry_id) or incoming

        return {"outgoing": outgoing.to_dict(), "incoming": incoming.to_dict()}

    async def build_snapshot(self, user_id: str, account_id: str, day: date) -> dict[str, str]:
        """일별 스냅샷 생성 (재계산 후)"""
        await self.get_owned_account(user_id, account_id)

        recomputer = RunningBalanceRecomputer(self.db, self.ledger_store)
        builder = DailySnapshotBuilder(self.db, self.ledger_store)

        async with self.locks.hold([account_id]):
            await recomputer.recompute_running_balances(account_id)
            snapshot = await builder.build_daily_snapshot(account_id, day)

        return snapshot.to_dict()

    async def _record_single(self, account: BalanceAccount, record) -> dict[str, Any]:
        """잠금 → 기록 → 재계산 → 보정된 항목 반환

        과거 시점 기록(backfill)이면 재계산으로 balance_after가 바뀐다.
        """
        recorder = SettlementRecorder(self.db, self.ledger_store, self.account_store)
        recomputer = RunningBalanceRecomputer(self.db, self.ledger_store)

        async with self.locks.hold([account.id]):
            entry = await record(recorder, account.currency or Defaults.CURRENCY)
            result = await recomputer.recompute_running_balances(account.id)
            stored = await self.ledger_store.get_entry(entry.entry_id) or entry

        logger.info(
            f"{stored.source_type} 기록 완료: {stored.amount}",
            extra={"account_id": account.id, "entry_id": stored.entry_id},
        )
        return {"entry": stored.to_dict(), "balance": str(result.final_balance)}
