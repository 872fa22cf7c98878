"""
Ledger 저장소

잔고 원장 항목 저장/조회 및 계좌별 잔고 커서(Projection) 관리.
비즈니스 로직 없음 - 기록 규칙은 SettlementRecorder, 정합성은
RunningBalanceRecomputer가 담당.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import LedgerLimits
from core.ledger.entry_builder import LedgerEntry
from core.utils.dedup import chunked, unique_preserving_order
from core.utils.timezone import to_db_ts

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter
    from core.ledger.snapshot import DailyBalanceSnapshot

logger = logging.getLogger(__name__)


_ENTRY_COLUMNS = """
    entry_id, balance_account_id, source_type, source_ref_id,
    amount, balance_after, occurred_at, created_at, currency, meta
"""

# canonical order: 업무 시각 → 기록 시각 → entry_id
_CANONICAL_ORDER = "occurred_at ASC, created_at ASC, entry_id ASC"


@dataclass(frozen=True)
class BalanceCursor:
    """계좌별 현재 잔고"""

    balance_account_id: str
    balance: Decimal
    last_entry_id: str | None
    entry_count: int


class LedgerStore:
    """Ledger 저장소

    원장 항목은 append-only. balance_after 갱신은 재계산 전용.

    Args:
        db: SQLite 어댑터
        chunk_size: IN (...) 조회 1회당 최대 ID 수
    """

    def __init__(self, db: SQLiteAdapter, chunk_size: int = LedgerLimits.LOOKUP_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size는 양수여야 합니다: {chunk_size}")
        self.db = db
        self.chunk_size = chunk_size

    # -------------------------------------------------------------------------
    # 원장 항목
    # -------------------------------------------------------------------------

    async def insert_entry(self, entry: LedgerEntry) -> str:
        """원장 항목 저장

        트랜잭션 경계는 호출자가 관리.
        (source_type, source_ref_id) 중복 시 sqlite3.IntegrityError.

        Returns:
            저장된 entry_id
        """
        await self.db.execute(
            f"""
            INSERT INTO balance_ledger ({_ENTRY_COLUMNS})
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entry.entry_id,
                entry.balance_account_id,
                entry.source_type,
                entry.source_ref_id,
                str(entry.amount),
                str(entry.balance_after),
                to_db_ts(entry.occurred_at),
                to_db_ts(entry.created_at),
                entry.currency,
                json.dumps(entry.meta, ensure_ascii=False) if entry.meta else None,
            ),
        )
        logger.debug(f"Saved ledger entry: {entry.entry_id}")
        return entry.entry_id

    async def get_entry(self, entry_id: str) -> LedgerEntry | None:
        """원장 항목 단건 조회"""
        row = await self.db.fetchone(
            f"SELECT {_ENTRY_COLUMNS} FROM balance_ledger WHERE entry_id = ?",
            (entry_id,),
        )
        return LedgerEntry.from_row(row) if row else None

    async def find_existing_source_refs(
        self,
        source_type: str,
        source_ref_ids: list[str],
    ) -> set[str]:
        """이미 원장에 있는 source_ref_id 조회

        IN (...) 조회는 chunk_size 단위로 분할 (파라미터 한도).

        Args:
            source_type: 출처 유형 (예: TRADE_PNL)
            source_ref_ids: 확인할 외부 이벤트 ID 목록

        Returns:
            원장에 존재하는 source_ref_id 집합
        """
        existing: set[str] = set()
        ids = unique_preserving_order(ref for ref in source_ref_ids if ref)

        for id_chunk in chunked(ids, self.chunk_size):
            placeholders = ", ".join("?" for _ in id_chunk)
            rows = await self.db.fetchall(
                f"""
                SELECT source_ref_id FROM balance_ledger
                WHERE source_type = ? AND source_ref_id IN ({placeholders})
                """,
                (source_type, *id_chunk),
            )
            existing.update(row[0] for row in rows if row[0])

        return existing

    async def list_entries_canonical(self, account_id: str) -> list[LedgerEntry]:
        """계좌의 전체 원장 (canonical order)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {_ENTRY_COLUMNS} FROM balance_ledger
            WHERE balance_account_id = ?
            ORDER BY {_CANONICAL_ORDER}
            """,
            (account_id,),
        )
        return [LedgerEntry.from_row(row) for row in rows]

    async def update_balance_after(self, entry_id: str, balance_after: Decimal) -> None:
        """balance_after 갱신 (재계산 전용)"""
        await self.db.execute(
            "UPDATE balance_ledger SET balance_after = ? WHERE entry_id = ?",
            (str(balance_after), entry_id),
        )

    async def list_entries(
        self,
        account_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        """계좌별 원장 조회 (최신순, 화면용)

        Args:
            account_id: 계좌 ID
            limit: 조회 개수 제한
            offset: 시작 위치
        """
        rows = await self.db.fetchall(
            f"""
            SELECT {_ENTRY_COLUMNS} FROM balance_ledger
            WHERE balance_account_id = ?
            ORDER BY occurred_at DESC, created_at DESC, entry_id DESC
            LIMIT ? OFFSET ?
            """,
            (account_id, limit, offset),
        )
        return [LedgerEntry.from_row(row) for row in rows]

    async def count_entries(self, account_id: str) -> int:
        """계좌별 원장 항목 수"""
        row = await self.db.fetchone(
            "SELECT COUNT(*) FROM balance_ledger WHERE balance_account_id = ?",
            (account_id,),
        )
        return row[0] if row else 0

    async def list_entries_between(
        self,
        account_id: str,
        start: datetime,
        end: datetime,
    ) -> list[LedgerEntry]:
        """구간 [start, end) 원장 (canonical order)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {_ENTRY_COLUMNS} FROM balance_ledger
            WHERE balance_account_id = ?
              AND occurred_at >= ? AND occurred_at < ?
            ORDER BY {_CANONICAL_ORDER}
            """,
            (account_id, to_db_ts(start), to_db_ts(end)),
        )
        return [LedgerEntry.from_row(row) for row in rows]

    async def get_balance_before(self, account_id: str, ts: datetime) -> Decimal:
        """ts 직전 마지막 항목의 balance_after (없으면 0)"""
        row = await self.db.fetchone(
            """
            SELECT balance_after FROM balance_ledger
            WHERE balance_account_id = ? AND occurred_at < ?
            ORDER BY occurred_at DESC, created_at DESC, entry_id DESC
            LIMIT 1
            """,
            (account_id, to_db_ts(ts)),
        )
        return Decimal(row[0]) if row else Decimal("0")

    # -------------------------------------------------------------------------
    # 잔고 커서
    # -------------------------------------------------------------------------

    async def get_cursor(self, account_id: str) -> BalanceCursor:
        """계좌 잔고 커서 조회 (없으면 0)"""
        row = await self.db.fetchone(
            """
            SELECT balance, last_entry_id, entry_count FROM balance_cursor
            WHERE balance_account_id = ?
            """,
            (account_id,),
        )
        if not row:
            return BalanceCursor(account_id, Decimal("0"), None, 0)

        return BalanceCursor(
            balance_account_id=account_id,
            balance=Decimal(row[0]),
            last_entry_id=row[1],
            entry_count=row[2],
        )

    async def set_cursor(
        self,
        account_id: str,
        balance: Decimal,
        last_entry_id: str | None,
        entry_count: int,
    ) -> None:
        """계좌 잔고 커서 Upsert"""
        await self.db.execute(
            """
            INSERT INTO balance_cursor (balance_account_id, balance, last_entry_id, entry_count)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(balance_account_id) DO UPDATE SET
                balance = excluded.balance,
                last_entry_id = excluded.last_entry_id,
                entry_count = excluded.entry_count,
                updated_at = datetime('now')
            """,
            (account_id, str(balance), last_entry_id, entry_count),
        )

    # -------------------------------------------------------------------------
    # 일별 스냅샷
    # -------------------------------------------------------------------------

    async def upsert_daily_snapshot(self, snapshot: DailyBalanceSnapshot) -> None:
        """일별 스냅샷 Upsert ((account, date) 유일)"""
        await self.db.execute(
            """
            INSERT INTO daily_balance_snapshots (
                balance_account_id, date,
                opening_balance, closing_balance, net_change,
                deposit_amount, withdraw_amount,
                transfer_in_amount, transfer_out_amount,
                trading_net_result, adjustment_amount
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(balance_account_id, date) DO UPDATE SET
                opening_balance = excluded.opening_balance,
                closing_balance = excluded.closing_balance,
                net_change = excluded.net_change,
                deposit_amount = excluded.deposit_amount,
                withdraw_amount = excluded.withdraw_amount,
                transfer_in_amount = excluded.transfer_in_amount,
                transfer_out_amount = excluded.transfer_out_amount,
                trading_net_result = excluded.trading_net_result,
                adjustment_amount = excluded.adjustment_amount,
                created_at = datetime('now')
            """,
            (
                snapshot.balance_account_id,
                snapshot.date.isoformat(),
                str(snapshot.opening_balance),
                str(snapshot.closing_balance),
                str(snapshot.net_change),
                str(snapshot.deposit_amount),
                str(snapshot.withdraw_amount),
                str(snapshot.transfer_in_amount),
                str(snapshot.transfer_out_amount),
                str(snapshot.trading_net_result),
                str(snapshot.adjustment_amount),
            ),
        )

    async def get_daily_snapshots(
        self,
        account_id: str,
        limit: int = 30,
    ) -> list[dict[str, Any]]:
        """일별 스냅샷 조회 (최신순)"""
        rows = await self.db.fetchall(
            """
            SELECT
                date, opening_balance, closing_balance, net_change,
                deposit_amount, withdraw_amount,
                transfer_in_amount, transfer_out_amount,
                trading_net_result, adjustment_amount
            FROM daily_balance_snapshots
            WHERE balance_account_id = ?
            ORDER BY date DESC
            LIMIT ?
            """,
            (account_id, limit),
        )

        return [
            {
                "date": row[0],
                "opening_balance": row[1],
                "closing_balance": row[2],
                "net_change": row[3],
                "deposit_amount": row[4],
                "withdraw_amount": row[5],
                "transfer_in_amount": row[6],
                "transfer_out_amount": row[7],
                "trading_net_result": row[8],
                "adjustment_amount": row[9],
            }
            for row in rows
        ]
