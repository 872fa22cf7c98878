"""
정산 기록기

정산 이벤트 1건 → 원장 항목 1건 + 계좌 잔고 커서 전진.

balance_after = 현재 커서 + amount
canonical order로 추가되는 경우에만 정확한 값이며, 과거 시점 이벤트
(backfill)의 balance_after는 잠정값이다. RunningBalanceRecomputer가 보정.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import aiosqlite

from core.constants import Defaults
from core.ledger.entry_builder import (
    LedgerEntry,
    LedgerEntryBuilder,
    SettlementDraft,
    TradeSettlement,
)
from core.ledger.errors import LedgerWriteFailed
from core.ledger.store import LedgerStore
from core.ledger.types import LedgerSourceType
from core.storage.account_store import AccountStore

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class SettlementRecorder:
    """정산 기록기

    각 기록은 BEGIN IMMEDIATE 트랜잭션 하나로 원자적 처리:
    커서 조회 → 항목 INSERT → 커서 갱신.
    실패 시 부분 행/커서 변경 없이 LedgerWriteFailed.

    Args:
        db: SQLite 어댑터
        ledger_store: LedgerStore (None이면 생성)
        account_store: AccountStore (None이면 생성)
        entry_builder: LedgerEntryBuilder (None이면 생성)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        ledger_store: LedgerStore | None = None,
        account_store: AccountStore | None = None,
        entry_builder: LedgerEntryBuilder | None = None,
    ):
        self.db = db
        self.ledger_store = ledger_store or LedgerStore(db)
        self.account_store = account_store or AccountStore(db)
        self.entry_builder = entry_builder or LedgerEntryBuilder()

    async def record_settlement(
        self,
        account_id: str,
        source_type: LedgerSourceType | str,
        source_ref_id: str | None,
        occurred_at: datetime | str | None,
        currency: str,
        amount_components: Mapping[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> LedgerEntry:
        """정산 1건 기록

        amount = sum(amount_components), 반올림 없음.

        Returns:
            저장된 LedgerEntry (balance_after는 잠정값일 수 있음)

        Raises:
            LedgerWriteFailed: 입력 오류, 계좌 검증 실패, 저장소 오류
        """
        try:
            draft = self.entry_builder.settlement(
                account_id=account_id,
                source_type=source_type,
                source_ref_id=source_ref_id,
                occurred_at=occurred_at,
                currency=currency,
                amount_components=amount_components,
                meta=meta,
            )
        except ValueError as e:
            raise LedgerWriteFailed(account_id, str(source_type), source_ref_id, str(e)) from e

        entries = await self._append([draft])
        return entries[0]

    async def record_trade_settlement(self, settlement: TradeSettlement) -> LedgerEntry:
        """청산 주문 정산 (TRADE_PNL, 순액 = 손익 + 수수료 + 스왑)"""
        entries = await self._append([self.entry_builder.trade_settlement(settlement)])
        return entries[0]

    async def record_deposit(
        self,
        account_id: str,
        amount: Decimal,
        currency: str,
        occurred_at: datetime | str | None = None,
        source_ref_id: str | None = None,
    ) -> LedgerEntry:
        """입금 (+|amount|)"""
        draft = self._build(
            account_id, LedgerSourceType.DEPOSIT, source_ref_id,
            lambda: self.entry_builder.deposit(
                account_id, amount, currency, occurred_at, source_ref_id
            ),
        )
        return (await self._append([draft]))[0]

    async def record_withdraw(
        self,
        account_id: str,
        amount: Decimal,
        currency: str,
        occurred_at: datetime | str | None = None,
        source_ref_id: str | None = None,
    ) -> LedgerEntry:
        """출금 (-|amount|)"""
        draft = self._build(
            account_id, LedgerSourceType.WITHDRAW, source_ref_id,
            lambda: self.entry_builder.withdraw(
                account_id, amount, currency, occurred_at, source_ref_id
            ),
        )
        return (await self._append([draft]))[0]

    async def record_adjustment(
        self,
        account_id: str,
        amount: Decimal,
        currency: str,
        occurred_at: datetime | str | None = None,
        memo: str | None = None,
    ) -> LedgerEntry:
        """수동 조정 (부호 그대로)"""
        draft = self._build(
            account_id, LedgerSourceType.ADJUSTMENT, None,
            lambda: self.entry_builder.adjustment(
                account_id, amount, currency, occurred_at, memo
            ),
        )
        return (await self._append([draft]))[0]

    async def record_transfer(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: Decimal,
        currency: str,
        occurred_at: datetime | str | None = None,
        source_ref_id: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> tuple[LedgerEntry, LedgerEntry]:
        """계좌 간 이체 (TRANSFER_OUT + TRANSFER_IN, 한 트랜잭션)"""
        try:
            outgoing, incoming = self.entry_builder.transfer(
                from_account_id, to_account_id, amount, currency,
                occurred_at, source_ref_id, meta,
            )
        except ValueError as e:
            raise LedgerWriteFailed(
                from_account_id, LedgerSourceType.TRANSFER_OUT.value, source_ref_id, str(e)
            ) from e

        entries = await self._append([outgoing, incoming])
        return entries[0], entries[1]

    # -------------------------------------------------------------------------
    # 내부 처리
    # -------------------------------------------------------------------------

    def _build(self, account_id, source_type, source_ref_id, factory) -> SettlementDraft:
        try:
            return factory()
        except ValueError as e:
            raise LedgerWriteFailed(account_id, source_type.value, source_ref_id, str(e)) from e

    async def _append(self, drafts: list[SettlementDraft]) -> list[LedgerEntry]:
        """초안 목록을 한 트랜잭션으로 기록"""
        current = drafts[0]
        entries: list[LedgerEntry] = []

        try:
            async with self.db.transaction(immediate=True):
                for draft in drafts:
                    current = draft
                    await self._validate_account(draft)
                    entries.append(await self._append_one(draft))
        except aiosqlite.Error as e:
            logger.error(
                "원장 기록 실패",
                extra={
                    "account_id": current.balance_account_id,
                    "source_type": current.source_type,
                    "source_ref_id": current.source_ref_id,
                    "error": str(e),
                },
            )
            raise LedgerWriteFailed(
                current.balance_account_id,
                current.source_type,
                current.source_ref_id,
                str(e),
            ) from e

        for entry in entries:
            logger.info(
                f"원장 기록: {entry.source_type} {entry.amount} "
                f"→ balance_after={entry.balance_after}",
                extra={
                    "account_id": entry.balance_account_id,
                    "entry_id": entry.entry_id,
                    "source_ref_id": entry.source_ref_id,
                },
            )
        return entries

    async def _append_one(self, draft: SettlementDraft) -> LedgerEntry:
        """커서 read-modify-write (트랜잭션 내부 전용)"""
        cursor = await self.ledger_store.get_cursor(draft.balance_account_id)
        entry = self.entry_builder.materialize(draft, cursor.balance + draft.amount)

        await self.ledger_store.insert_entry(entry)
        await self.ledger_store.set_cursor(
            account_id=draft.balance_account_id,
            balance=entry.balance_after,
            last_entry_id=entry.entry_id,
            entry_count=cursor.entry_count + 1,
        )
        return entry

    async def _validate_account(self, draft: SettlementDraft) -> None:
        """계좌 존재/활성/통화 일치 확인

        Raises:
            LedgerWriteFailed: 검증 실패
        """
        account = await self.account_store.get(draft.balance_account_id)

        reason = None
        if account is None:
            reason = "account not found"
        elif not account.is_active:
            reason = "account is inactive"
        elif (account.currency or Defaults.CURRENCY) != draft.currency:
            reason = f"currency mismatch: account={account.currency}, entry={draft.currency}"

        if reason:
            raise LedgerWriteFailed(
                draft.balance_account_id, draft.source_type, draft.source_ref_id, reason
            )
