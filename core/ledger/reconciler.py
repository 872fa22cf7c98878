"""
정산 동기화

청산 주문 중 아직 원장에 없는 건을 찾아 기록하고,
영향받은 계좌의 누적 잔고를 재계산한다.

흐름:
1. 후보 주문 조회 (closed, 계좌 지정, 업무 시각 오름차순, 페이지 단위로 전체)
2. 기존 원장 ID 조회 (청크 단위 IN 조회)
3. 미기록 주문 선별 (find_pending)
4. 계좌 검증 (소유자/TRADING/활성)
5. 계좌 잠금 → 기존 원장 ID 재확인 → 기록 (fail-fast) → 재계산
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiosqlite

from core.config.loader import LedgerConfig
from core.ledger.entry_builder import TradeSettlement
from core.ledger.errors import LedgerError, LookupFailed, SyncAborted
from core.ledger.locks import AccountLockRegistry
from core.ledger.recompute import RunningBalanceRecomputer
from core.ledger.recorder import SettlementRecorder
from core.ledger.store import LedgerStore
from core.ledger.types import LedgerSourceType
from core.storage.account_store import AccountStore, BalanceAccount
from core.storage.order_store import ClosedOrder, OrderStore

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


MSG_NO_CANDIDATES = "No closed orders to sync"
MSG_ALL_SYNCED = "All closed orders already in ledger"


@dataclass(frozen=True)
class SyncResult:
    """동기화 결과

    Attributes:
        synced: 이번 실행에서 기록된 주문 수
        skipped: 후보 중 기록되지 않은 주문 수 (이미 기록됨 + 계좌 부적합)
        message: 할 일이 없었던 경우의 안내 문구
    """

    synced: int
    skipped: int
    message: str | None = None

    def to_dict(self) -> dict[str, int | str]:
        data: dict[str, int | str] = {"synced": self.synced, "skipped": self.skipped}
        if self.message:
            data["message"] = self.message
        return data


def find_pending(
    candidates: Sequence[ClosedOrder],
    existing_keys: Iterable[tuple[str, str]],
    source_type: str = LedgerSourceType.TRADE_PNL.value,
) -> list[ClosedOrder]:
    """아직 원장에 없는 후보 선별

    키는 (source_type, source_ref_id). 후보 내 중복은 첫 등장만 유지하고
    입력 순서를 보존한다. I/O 없음.

    Example:
        >>> pending = find_pending(orders, {("TRADE_PNL", "o1")})
    """
    seen = set(existing_keys)
    pending: list[ClosedOrder] = []

    for order in candidates:
        key = (source_type, order.id)
        if key in seen:
            continue
        seen.add(key)
        pending.append(order)

    return pending


def is_eligible(account: BalanceAccount | None, user_id: str) -> bool:
    """정산 대상 계좌 여부 (존재 + 소유 + TRADING + 활성)"""
    return (
        account is not None
        and account.is_owned_by(user_id)
        and account.is_trading
        and account.is_active
    )


class SettlementReconciler:
    """청산 주문 → 원장 동기화

    Args:
        db: SQLite 어댑터
        locks: 프로세스 공용 계좌 잠금 레지스트리
        config: 페이지/청크 크기 설정
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        locks: AccountLockRegistry,
        config: LedgerConfig | None = None,
    ):
        self.db = db
        self.locks = locks
        self.config = config or LedgerConfig()

        chunk_size = self.config.lookup_chunk_size
        self.order_store = OrderStore(db)
        self.account_store = AccountStore(db, chunk_size=chunk_size)
        self.ledger_store = LedgerStore(db, chunk_size=chunk_size)
        self.recorder = SettlementRecorder(
            db,
            ledger_store=self.ledger_store,
            account_store=self.account_store,
        )
        self.recomputer = RunningBalanceRecomputer(db, ledger_store=self.ledger_store)

    async def sync_pending_settlements(self, user_id: str) -> SyncResult:
        """미기록 청산 주문 동기화

        Raises:
            LookupFailed: 쓰기 전 조회 실패 (변경 없음)
            SyncAborted: 기록/재계산 중 실패 (synced = 이미 커밋된 수)
        """
        candidates = await self._load_candidates(user_id)
        if not candidates:
            return SyncResult(0, 0, MSG_NO_CANDIDATES)

        existing = await self._load_existing([order.id for order in candidates])
        pending = find_pending(candidates, existing)
        if not pending:
            logger.info(
                f"동기화할 주문 없음 (후보 {len(candidates)}건 모두 기록됨)",
                extra={"user_id": user_id},
            )
            return SyncResult(0, len(candidates), MSG_ALL_SYNCED)

        accounts = await self._load_accounts(pending)
        eligible: list[tuple[ClosedOrder, BalanceAccount]] = []
        for order in pending:
            account = accounts.get(order.balance_account_id or "")
            if not is_eligible(account, user_id):
                logger.warning(
                    f"정산 대상이 아닌 계좌, 건너뜀: {order.balance_account_id}",
                    extra={"user_id": user_id, "order_id": order.id},
                )
                continue
            eligible.append((order, account))

        synced = await self._record_and_recompute(eligible)

        result = SyncResult(synced, len(candidates) - synced)
        logger.info(
            f"동기화 완료: {result.synced}건 기록, {result.skipped}건 건너뜀",
            extra={"user_id": user_id},
        )
        return result

    # -------------------------------------------------------------------------
    # 조회 단계 (실패 시 LookupFailed)
    # -------------------------------------------------------------------------

    async def _load_candidates(self, user_id: str) -> list[ClosedOrder]:
        try:
            return await self.order_store.list_settleable_orders(
                user_id, page_size=self.config.candidate_page_size
            )
        except aiosqlite.Error as e:
            raise LookupFailed("candidates", str(e)) from e

    async def _load_existing(self, order_ids: list[str]) -> set[tuple[str, str]]:
        source_type = LedgerSourceType.TRADE_PNL.value
        try:
            refs = await self.ledger_store.find_existing_source_refs(source_type, order_ids)
        except aiosqlite.Error as e:
            raise LookupFailed("existing_ids", str(e)) from e
        return {(source_type, ref) for ref in refs}

    async def _load_accounts(self, pending: list[ClosedOrder]) -> dict[str, BalanceAccount]:
        account_ids = [o.balance_account_id for o in pending if o.balance_account_id]
        try:
            return await self.account_store.get_many(account_ids)
        except aiosqlite.Error as e:
            raise LookupFailed("accounts", str(e)) from e

    # -------------------------------------------------------------------------
    # 기록 단계
    # -------------------------------------------------------------------------

    async def _record_and_recompute(
        self,
        eligible: list[tuple[ClosedOrder, BalanceAccount]],
    ) -> int:
        """잠금 구간: 기존 원장 ID 재확인 → 기록 (fail-fast) → 재계산

        잠금 전 조회 이후 다른 동기화가 기록한 주문은 건너뛴다.
        기록이 실패해도 이미 기록된 계좌는 재계산한다.
        기록 오류가 있으면 그것이 우선 원인.
        """
        if not eligible:
            return 0

        synced = 0
        touched: list[str] = []
        write_error: LedgerError | None = None

        async with self.locks.hold(account.id for _, account in eligible):
            recorded = await self._load_existing([order.id for order, _ in eligible])
            if recorded:
                logger.info(
                    f"잠금 대기 중 기록된 주문 {len(recorded)}건 건너뜀",
                    extra={"order_ids": sorted(ref for _, ref in recorded)},
                )

            for order, account in eligible:
                if (LedgerSourceType.TRADE_PNL.value, order.id) in recorded:
                    continue
                settlement = TradeSettlement.from_order(order, account.currency)
                try:
                    await self.recorder.record_trade_settlement(settlement)
                except LedgerError as e:
                    write_error = e
                    break
                synced += 1
                if account.id not in touched:
                    touched.append(account.id)

            for account_id in sorted(touched):
                try:
                    await self.recomputer.recompute_running_balances(account_id)
                except LedgerError as e:
                    if write_error is None:
                        raise SyncAborted(e, synced) from e
                    logger.error(
                        f"재계산 실패 (기록 오류 이후): {e}",
                        extra={"account_id": account_id, "synced": synced},
                    )
                    break

        if write_error is not None:
            logger.error(
                f"동기화 중단: {write_error}",
                extra={"synced": synced},
            )
            raise SyncAborted(write_error, synced) from write_error

        return synced
