"""
OrderStore - 청산 주문 조회 (정산 이벤트 원천)

trading_orders는 주문 입력/가져오기 화면이 소유. Ledger는 읽기만 한다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import LedgerLimits
from core.types import OrderStatus
from core.utils.numeric import to_decimal
from core.utils.timezone import from_db_ts

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClosedOrder:
    """청산 주문

    금액 필드가 NULL이면 0으로 취급.
    """

    id: str
    user_id: str
    balance_account_id: str | None
    symbol: str
    pnl_amount: Decimal
    commission_usd: Decimal
    swap_usd: Decimal
    open_time: datetime
    close_time: datetime | None

    @property
    def settled_at(self) -> datetime:
        """업무 시각 (close_time, 없으면 open_time)"""
        return self.close_time or self.open_time


class OrderStore:
    """청산 주문 조회

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def list_settleable_orders(
        self,
        user_id: str,
        page_size: int = LedgerLimits.CANDIDATE_PAGE_SIZE,
    ) -> list[ClosedOrder]:
        """정산 대상 주문 전체 조회

        조건: status = closed, balance_account_id IS NOT NULL
        정렬: 업무 시각 오름차순 (오래된 것 먼저), 동률은 id

        page_size 단위 keyset 페이지를 끝까지 순회한다.

        Args:
            user_id: 사용자 ID
            page_size: 페이지당 조회 수

        Returns:
            ClosedOrder 목록
        """
        orders: list[ClosedOrder] = []
        after: tuple[str, str] | None = None
        pages = 0

        while True:
            rows = await self._fetch_page(user_id, page_size, after)
            pages += 1
            orders.extend(self._row_to_order(row) for row in rows)
            if len(rows) < page_size:
                break
            last = rows[-1]
            after = (last[9], last[0])

        # 문자열 정렬이 시간 정렬과 다를 수 있는 입력(타임존 혼재) 대비
        orders.sort(key=lambda o: (o.settled_at, o.id))

        logger.debug(
            f"정산 대상 주문 {len(orders)}건 조회",
            extra={"user_id": user_id, "pages": pages},
        )
        return orders

    async def _fetch_page(
        self,
        user_id: str,
        page_size: int,
        after: tuple[str, str] | None,
    ) -> list[tuple[Any, ...]]:
        """(정렬 키, id) 이후 한 페이지"""
        cursor_clause = ""
        params: list[Any] = [user_id, OrderStatus.CLOSED.value]
        if after is not None:
            cursor_clause = (
                "AND (COALESCE(close_time, open_time) > ? "
                "OR (COALESCE(close_time, open_time) = ? AND id > ?))"
            )
            params.extend([after[0], after[0], after[1]])
        params.append(page_size)

        return await self.db.fetchall(
            f"""
            SELECT
                id, user_id, balance_account_id, symbol,
                pnl_amount, commission_usd, swap_usd,
                open_time, close_time,
                COALESCE(close_time, open_time) AS settled_key
            FROM trading_orders
            WHERE user_id = ?
              AND status = ?
              AND balance_account_id IS NOT NULL
              {cursor_clause}
            ORDER BY settled_key ASC, id ASC
            LIMIT ?
            """,
            tuple(params),
        )

    @staticmethod
    def _row_to_order(row: tuple[Any, ...]) -> ClosedOrder:
        return ClosedOrder(
            id=row[0],
            user_id=row[1],
            balance_account_id=row[2],
            symbol=row[3],
            pnl_amount=to_decimal(row[4]),
            commission_usd=to_decimal(row[5]),
            swap_usd=to_decimal(row[6]),
            open_time=from_db_ts(row[7]),
            close_time=from_db_ts(row[8]) if row[8] else None,
        )
