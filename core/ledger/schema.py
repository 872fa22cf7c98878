"""
잔고 원장 스키마 초기화

Web/CLI 시작 시 자동으로 Ledger 테이블과 인덱스 생성.
CREATE IF NOT EXISTS 패턴으로 안전하게 동작.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화 (테이블 + 인덱스)

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).
    balance_accounts 테이블이 먼저 존재해야 함 (외래 키).

    Args:
        db: SQLiteAdapter 인스턴스
    """
    await _create_ledger_tables(db)
    await _create_ledger_indexes(db)
    await db.commit()
    logger.info("Ledger 스키마 초기화 완료")


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """Ledger 테이블 생성"""

    # balance_ledger: append-only 원장
    # 금액은 Decimal 정밀도 유지를 위해 TEXT로 저장
    await db.execute("""
        CREATE TABLE IF NOT EXISTS balance_ledger (
            entry_id            TEXT PRIMARY KEY,
            balance_account_id  TEXT NOT NULL,
            source_type         TEXT NOT NULL,
            source_ref_id       TEXT,
            amount              TEXT NOT NULL,
            balance_after       TEXT NOT NULL,
            occurred_at         TEXT NOT NULL,
            created_at          TEXT NOT NULL,
            currency            TEXT NOT NULL,
            meta                TEXT,
            FOREIGN KEY (balance_account_id) REFERENCES balance_accounts(id)
        )
    """)

    # balance_cursor: 계좌별 현재 잔고 Projection
    await db.execute("""
        CREATE TABLE IF NOT EXISTS balance_cursor (
            balance_account_id  TEXT PRIMARY KEY,
            balance             TEXT NOT NULL DEFAULT '0',
            last_entry_id       TEXT,
            entry_count         INTEGER NOT NULL DEFAULT 0,
            updated_at          TEXT NOT NULL DEFAULT (datetime('now')),
            FOREIGN KEY (balance_account_id) REFERENCES balance_accounts(id)
        )
    """)

    # daily_balance_snapshots: 일별 잔고 요약
    await db.execute("""
        CREATE TABLE IF NOT EXISTS daily_balance_snapshots (
            id                   INTEGER PRIMARY KEY AUTOINCREMENT,
            balance_account_id   TEXT NOT NULL,
            date                 TEXT NOT NULL,
            opening_balance      TEXT NOT NULL DEFAULT '0',
            closing_balance      TEXT NOT NULL DEFAULT '0',
            net_change           TEXT NOT NULL DEFAULT '0',
            deposit_amount       TEXT NOT NULL DEFAULT '0',
            withdraw_amount      TEXT NOT NULL DEFAULT '0',
            transfer_in_amount   TEXT NOT NULL DEFAULT '0',
            transfer_out_amount  TEXT NOT NULL DEFAULT '0',
            trading_net_result   TEXT NOT NULL DEFAULT '0',
            adjustment_amount    TEXT NOT NULL DEFAULT '0',
            created_at           TEXT NOT NULL DEFAULT (datetime('now')),
            UNIQUE(balance_account_id, date),
            FOREIGN KEY (balance_account_id) REFERENCES balance_accounts(id)
        )
    """)


async def _create_ledger_indexes(db: "SQLiteAdapter") -> None:
    """Ledger 인덱스 생성"""

    # canonical order 조회 (계좌별 재계산)
    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_balance_ledger_canonical
        ON balance_ledger(balance_account_id, occurred_at, created_at, entry_id)
    """)

    # 멱등성 키: source_ref_id가 있는 항목만 유일
    await db.execute("""
        CREATE UNIQUE INDEX IF NOT EXISTS ux_balance_ledger_source
        ON balance_ledger(source_type, source_ref_id)
        WHERE source_ref_id IS NOT NULL
    """)
