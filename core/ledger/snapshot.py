"""
일별 잔고 스냅샷

UTC 하루 구간 [00:00, 다음날 00:00)의 원장을 요약하여 저장.
재계산 이후 실행해야 balance_after 기반 값이 정확하다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from core.ledger.entry_builder import LedgerEntry
from core.ledger.store import LedgerStore
from core.ledger.types import (
    ADJUSTMENT_SOURCE_TYPES,
    TRADING_SOURCE_TYPES,
    LedgerSourceType,
)
from core.utils.timezone import utc_day_bounds

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailyBalanceSnapshot:
    """일별 잔고 요약

    withdraw_amount, transfer_out_amount는 양수 크기로 저장.
    """

    balance_account_id: str
    date: date
    opening_balance: Decimal
    closing_balance: Decimal
    net_change: Decimal
    deposit_amount: Decimal
    withdraw_amount: Decimal
    transfer_in_amount: Decimal
    transfer_out_amount: Decimal
    trading_net_result: Decimal
    adjustment_amount: Decimal

    def to_dict(self) -> dict[str, str]:
        return {
            "balance_account_id": self.balance_account_id,
            "date": self.date.isoformat(),
            "opening_balance": str(self.opening_balance),
            "closing_balance": str(self.closing_balance),
            "net_change": str(self.net_change),
            "deposit_amount": str(self.deposit_amount),
            "withdraw_amount": str(self.withdraw_amount),
            "transfer_in_amount": str(self.transfer_in_amount),
            "transfer_out_amount": str(self.transfer_out_amount),
            "trading_net_result": str(self.trading_net_result),
            "adjustment_amount": str(self.adjustment_amount),
        }


def summarize_day(
    account_id: str,
    day: date,
    opening_balance: Decimal,
    entries: list[LedgerEntry],
) -> DailyBalanceSnapshot:
    """하루치 원장 요약 (entries는 canonical order)"""
    totals = {source: Decimal("0") for source in LedgerSourceType}
    for entry in entries:
        totals[LedgerSourceType(entry.source_type)] += entry.amount

    closing = entries[-1].balance_after if entries else opening_balance

    return DailyBalanceSnapshot(
        balance_account_id=account_id,
        date=day,
        opening_balance=opening_balance,
        closing_balance=closing,
        net_change=closing - opening_balance,
        deposit_amount=totals[LedgerSourceType.DEPOSIT],
        withdraw_amount=abs(totals[LedgerSourceType.WITHDRAW]),
        transfer_in_amount=totals[LedgerSourceType.TRANSFER_IN],
        transfer_out_amount=abs(totals[LedgerSourceType.TRANSFER_OUT]),
        trading_net_result=sum(
            (totals[s] for s in TRADING_SOURCE_TYPES), Decimal("0")
        ),
        adjustment_amount=sum(
            (totals[s] for s in ADJUSTMENT_SOURCE_TYPES), Decimal("0")
        ),
    )


class DailySnapshotBuilder:
    """일별 스냅샷 생성기"""

    def __init__(self, db: SQLiteAdapter, ledger_store: LedgerStore | None = None):
        self.db = db
        self.ledger_store = ledger_store or LedgerStore(db)

    async def build_daily_snapshot(self, account_id: str, day: date) -> DailyBalanceSnapshot:
        """스냅샷 계산 후 (account, date) 기준 Upsert"""
        start, end = utc_day_bounds(day)

        async with self.db.transaction():
            opening = await self.ledger_store.get_balance_before(account_id, start)
            entries = await self.ledger_store.list_entries_between(account_id, start, end)
            snapshot = summarize_day(account_id, day, opening, entries)
            await self.ledger_store.upsert_daily_snapshot(snapshot)

        logger.info(
            f"일별 스냅샷 저장: {day.isoformat()} "
            f"{snapshot.opening_balance} → {snapshot.closing_balance}",
            extra={"account_id": account_id, "entries": len(entries)},
        )
        return snapshot
