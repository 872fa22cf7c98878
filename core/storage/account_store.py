"""
AccountStore - 잔고 계좌 디렉토리 (조회 전용)

계좌 CRUD는 계좌 관리 화면이 담당. Ledger는 소유권/유형/통화 확인만 수행.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.types import BalanceAccountType
from core.utils.dedup import chunked, unique_preserving_order

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BalanceAccount:
    """잔고 계좌"""

    id: str
    user_id: str
    account_type: str
    name: str
    currency: str
    is_active: bool

    @property
    def is_trading(self) -> bool:
        return self.account_type == BalanceAccountType.TRADING.value

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id


_SELECT_COLUMNS = "id, user_id, account_type, name, currency, is_active"


def _row_to_account(row: tuple) -> BalanceAccount:
    return BalanceAccount(
        id=row[0],
        user_id=row[1],
        account_type=row[2],
        name=row[3],
        currency=row[4],
        is_active=bool(row[5]),
    )


class AccountStore:
    """잔고 계좌 조회

    Args:
        db: SQLiteAdapter 인스턴스
        chunk_size: IN (...) 조회 1회당 최대 ID 수
    """

    def __init__(self, db: SQLiteAdapter, chunk_size: int = 80):
        self.db = db
        self.chunk_size = chunk_size

    async def get(self, account_id: str) -> BalanceAccount | None:
        """계좌 단건 조회"""
        row = await self.db.fetchone(
            f"SELECT {_SELECT_COLUMNS} FROM balance_accounts WHERE id = ?",
            (account_id,),
        )
        return _row_to_account(row) if row else None

    async def get_many(self, account_ids: list[str]) -> dict[str, BalanceAccount]:
        """여러 계좌 조회 (청크 단위)

        Returns:
            account_id -> BalanceAccount (존재하지 않는 ID는 제외)
        """
        ids = unique_preserving_order(account_ids)
        accounts: dict[str, BalanceAccount] = {}

        for id_chunk in chunked(ids, self.chunk_size):
            placeholders = ", ".join("?" for _ in id_chunk)
            rows = await self.db.fetchall(
                f"SELECT {_SELECT_COLUMNS} FROM balance_accounts WHERE id IN ({placeholders})",
                tuple(id_chunk),
            )
            for row in rows:
                account = _row_to_account(row)
                accounts[account.id] = account

        return accounts
