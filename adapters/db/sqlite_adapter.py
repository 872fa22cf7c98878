"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
Web 요청과 동기화 스크립트가 동시에 접근 가능하도록 설정.

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.ledger.schema import init_ledger_schema

logger = logging.getLogger(__name__)


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드)

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부

    Returns:
        aiosqlite 연결 객체
    """
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    if readonly:
        conn = await aiosqlite.connect(f"file:{db_path_str}?mode=ro", uri=True)
    else:
        conn = await aiosqlite.connect(db_path_str)

    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute("PRAGMA busy_timeout=30000")  # 30초 대기

    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")

    logger.info(
        "SQLite 연결 생성",
        extra={"db_path": db_path_str, "readonly": readonly},
    )

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    트랜잭션 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로
        readonly: 읽기 전용 여부 (조회 API용)

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction(immediate=True):
        await adapter.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path = Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """트랜잭션 진행 중 여부"""
        return self._conn is not None and self._conn.in_transaction

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        """커밋"""
        if self._conn is not None:
            await self._conn.commit()

    async def rollback(self) -> None:
        """롤백"""
        if self._conn is not None:
            await self._conn.rollback()

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """트랜잭션 컨텍스트 매니저

        성공 시 자동 커밋, 예외 시 자동 롤백.

        immediate=True면 BEGIN IMMEDIATE로 시작하여 첫 조회 시점부터
        쓰기 잠금을 획득한다 (read-modify-write 직렬화).
        이미 진행 중인 트랜잭션이 있으면 그 트랜잭션에 합류한다.

        사용 예시:
        ```python
        async with adapter.transaction(immediate=True):
            row = await adapter.fetchone("SELECT balance ...")
            await adapter.execute("UPDATE ...")
            # 성공 시 자동 커밋
        ```
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if immediate and not self._conn.in_transaction:
            await self._conn.execute("BEGIN IMMEDIATE")

        try:
            yield self._conn
            await self._conn.commit()
        except BaseException:
            await self._conn.rollback()
            raise

    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    balance_accounts / trading_orders는 계좌·주문 관리 화면이 소유하는
    테이블이지만 로컬 실행과 테스트를 위해 동일한 구조로 생성한다.

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    # balance_accounts (계좌 디렉토리)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS balance_accounts (
            id               TEXT PRIMARY KEY,
            user_id          TEXT NOT NULL,
            account_type     TEXT NOT NULL,
            name             TEXT NOT NULL,
            currency         TEXT NOT NULL,
            is_active        INTEGER NOT NULL DEFAULT 1,
            broker           TEXT,
            is_demo          INTEGER NOT NULL DEFAULT 0,
            created_at       TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    # trading_orders (정산 이벤트 원천)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS trading_orders (
            id                  TEXT PRIMARY KEY,
            user_id             TEXT NOT NULL,
            balance_account_id  TEXT,
            symbol              TEXT NOT NULL DEFAULT '',
            side                TEXT NOT NULL DEFAULT 'buy',
            status              TEXT NOT NULL DEFAULT 'open',
            volume              TEXT NOT NULL DEFAULT '0',
            pnl_amount          TEXT,
            commission_usd      TEXT,
            swap_usd            TEXT,
            open_time           TEXT NOT NULL,
            close_time          TEXT,
            created_at          TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_balance_accounts_user
        ON balance_accounts(user_id)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_trading_orders_user_status
        ON trading_orders(user_id, status)
    """)

    await adapter.commit()

    # Ledger 테이블 (balance_ledger, balance_cursor, daily_balance_snapshots)
    await init_ledger_schema(adapter)

    logger.info("스키마 초기화 완료")
