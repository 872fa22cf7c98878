"""
원장 항목 생성기

정산 이벤트(청산 주문, 입출금, 이체, 조정)를 원장 항목 초안으로 변환.
balance_after는 SettlementRecorder가 커서 기준으로 채운다.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable
from uuid import uuid4

from core.constants import Defaults
from core.ledger.types import CREDIT_SOURCE_TYPES, DEBIT_SOURCE_TYPES, LedgerSourceType
from core.utils.numeric import to_decimal
from core.utils.timezone import from_db_ts, now_utc, to_db_ts, to_utc

if TYPE_CHECKING:
    from core.storage.order_store import ClosedOrder


def net_amount(amount_components: Mapping[str, Any]) -> Decimal:
    """구성 요소 합계 (순 금액)

    반올림 없이 합산. 부호는 호출자가 결정 (수수료/스왑은 보통 음수).

    Example:
        >>> net_amount({"gross_pnl": 100, "commission": -2, "swap": -1})
        Decimal('97')
    """
    if not amount_components:
        raise ValueError("amount_components가 비어 있습니다")
    return sum((to_decimal(v) for v in amount_components.values()), Decimal("0"))


@dataclass(frozen=True)
class SettlementDraft:
    """원장 항목 초안 (balance_after 계산 전)"""

    balance_account_id: str
    source_type: str
    source_ref_id: str | None
    amount: Decimal
    occurred_at: datetime
    currency: str
    meta: dict[str, Any] | None = None


@dataclass
class LedgerEntry:
    """원장 항목

    append-only. 기록 후에는 balance_after만 재계산으로 변경된다.
    정렬 기준(canonical order): (occurred_at, created_at, entry_id)
    """

    entry_id: str
    balance_account_id: str
    source_type: str
    source_ref_id: str | None
    amount: Decimal
    balance_after: Decimal
    occurred_at: datetime
    created_at: datetime
    currency: str
    meta: dict[str, Any] | None = None

    @property
    def canonical_key(self) -> tuple[str, str, str]:
        """정렬 키 (DB ORDER BY와 동일한 문자열 비교)"""
        return (to_db_ts(self.occurred_at), to_db_ts(self.created_at), self.entry_id)

    @classmethod
    def from_row(cls, row: Mapping[str, Any] | tuple[Any, ...]) -> LedgerEntry:
        """DB 행에서 생성

        행 순서: entry_id, balance_account_id, source_type, source_ref_id,
        amount, balance_after, occurred_at, created_at, currency, meta
        """
        meta = row[9]
        return cls(
            entry_id=row[0],
            balance_account_id=row[1],
            source_type=row[2],
            source_ref_id=row[3],
            amount=Decimal(row[4]),
            balance_after=Decimal(row[5]),
            occurred_at=from_db_ts(row[6]),
            created_at=from_db_ts(row[7]),
            currency=row[8],
            meta=json.loads(meta) if meta else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """API 응답용 dict (금액은 문자열로 정밀도 유지)"""
        return {
            "entry_id": self.entry_id,
            "balance_account_id": self.balance_account_id,
            "source_type": self.source_type,
            "source_ref_id": self.source_ref_id,
            "amount": str(self.amount),
            "balance_after": str(self.balance_after),
            "occurred_at": to_db_ts(self.occurred_at),
            "created_at": to_db_ts(self.created_at),
            "currency": self.currency,
            "meta": self.meta,
        }


@dataclass(frozen=True)
class TradeSettlement:
    """청산 주문 정산 입력

    순손익 = gross_pnl + commission + swap
    """

    balance_account_id: str
    order_id: str
    gross_pnl: Decimal
    commission: Decimal
    swap: Decimal
    close_time: datetime
    currency: str

    @property
    def components(self) -> dict[str, Decimal]:
        return {
            "gross_pnl": self.gross_pnl,
            "commission": self.commission,
            "swap": self.swap,
        }

    @classmethod
    def from_order(cls, order: ClosedOrder, currency: str | None) -> TradeSettlement:
        """청산 주문에서 생성

        close_time이 없으면 open_time 사용. 통화 미지정 시 기본 통화.
        """
        if order.balance_account_id is None:
            raise ValueError(f"주문에 대상 계좌가 없습니다: {order.id}")

        return cls(
            balance_account_id=order.balance_account_id,
            order_id=order.id,
            gross_pnl=order.pnl_amount,
            commission=order.commission_usd,
            swap=order.swap_usd,
            close_time=order.settled_at,
            currency=currency or Defaults.CURRENCY,
        )


@dataclass
class LedgerEntryBuilder:
    """정산 이벤트를 원장 항목 초안으로 변환

    입출금/이체처럼 방향이 정해진 유형은 금액 부호를 강제한다.
    """

    clock: Callable[[], datetime] = field(default=now_utc)

    def settlement(
        self,
        account_id: str,
        source_type: LedgerSourceType | str,
        source_ref_id: str | None,
        occurred_at: datetime | str | None,
        currency: str,
        amount_components: Mapping[str, Any],
        meta: dict[str, Any] | None = None,
    ) -> SettlementDraft:
        """범용 정산 초안

        Raises:
            ValueError: 알 수 없는 source_type, 빈 구성 요소
        """
        source = LedgerSourceType(source_type)
        amount = net_amount(amount_components)
        if source in CREDIT_SOURCE_TYPES:
            amount = abs(amount)
        elif source in DEBIT_SOURCE_TYPES:
            amount = -abs(amount)

        return SettlementDraft(
            balance_account_id=account_id,
            source_type=source.value,
            source_ref_id=source_ref_id,
            amount=amount,
            occurred_at=to_utc(occurred_at) if occurred_at is not None else self.clock(),
            currency=currency,
            meta=meta,
        )

    def trade_settlement(self, settlement: TradeSettlement) -> SettlementDraft:
        """청산 주문 → TRADE_PNL 1건 (수수료/스왑 포함 순액)"""
        return self.settlement(
            account_id=settlement.balance_account_id,
            source_type=LedgerSourceType.TRADE_PNL,
            source_ref_id=settlement.order_id,
            occurred_at=settlement.close_time,
            currency=settlement.currency,
            amount_components=settlement.components,
            meta={k: str(v) for k, v in settlement.components.items()},
        )

    def deposit(
        self,
        account_id: str,
        amount: Decimal,
        currency: str,
        occurred_at: datetime | str | None = None,
        source_ref_id: str | None = None,
    ) -> SettlementDraft:
        return self.settlement(
            account_id, LedgerSourceType.DEPOSIT, source_ref_id, occurred_at,
            currency, {"amount": amount},
        )

    def withdraw(
        self,
        account_id: str,
        amount: Decimal,
        currency: str,
        occurred_at: datetime | str | None = None,
        source_ref_id: str | None = None,
    ) -> SettlementDraft:
        return self.settlement(
            account_id, LedgerSourceType.WITHDRAW, source_ref_id, occurred_at,
            currency, {"amount": amount},
        )

    def adjustment(
        self,
        account_id: str,
        amount: Decimal,
        currency: str,
        occurred_at: datetime | str | None = None,
        memo: str | None = None,
    ) -> SettlementDraft:
        """수동 조정 (부호 그대로, source_ref_id 없음)"""
        return self.settlement(
            account_id, LedgerSourceType.ADJUSTMENT, None, occurred_at,
            currency, {"amount": to_decimal(amount)},
            meta={"memo": memo} if memo else None,
        )

    def transfer(
        self,
        from_account_id: str,
        to_account_id: str,
        amount: Decimal,
        currency: str,
        occurred_at: datetime | str | None = None,
        source_ref_id: str | None = None,
        meta: dict[str, Any] | None = None,
    ) -> tuple[SettlementDraft, SettlementDraft]:
        """계좌 간 이체 → (TRANSFER_OUT, TRANSFER_IN)

        두 항목은 같은 occurred_at, 같은 source_ref_id를 공유.
        """
        if from_account_id == to_account_id:
            raise ValueError("같은 계좌로 이체할 수 없습니다")

        value = to_decimal(amount)
        ts = to_utc(occurred_at) if occurred_at is not None else self.clock()
        transfer_meta = {"from": from_account_id, "to": to_account_id, **(meta or {})}

        outgoing = self.settlement(
            from_account_id, LedgerSourceType.TRANSFER_OUT, source_ref_id, ts,
            currency, {"amount": value}, meta=transfer_meta,
        )
        incoming = self.settlement(
            to_account_id, LedgerSourceType.TRANSFER_IN, source_ref_id, ts,
            currency, {"amount": value}, meta=transfer_meta,
        )
        return outgoing, incoming

    def materialize(
        self,
        draft: SettlementDraft,
        balance_after: Decimal,
    ) -> LedgerEntry:
        """초안 + 잠정 balance_after → 저장할 LedgerEntry"""
        return LedgerEntry(
            entry_id=str(uuid4()),
            balance_account_id=draft.balance_account_id,
            source_type=draft.source_type,
            source_ref_id=draft.source_ref_id,
            amount=draft.amount,
            balance_after=balance_after,
            occurred_at=draft.occurred_at,
            created_at=self.clock(),
            currency=draft.currency,
            meta=draft.meta,
        )
