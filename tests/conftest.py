"""
pytest 공통 fixture 정의

임시 secrets.yaml, 스키마가 초기화된 임시 DB, 계좌/주문 시드 헬퍼
"""

import tempfile
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_secrets_file(temp_dir: Path) -> Path:
    """테스트용 secrets.yaml 파일 생성"""
    secrets_content = f"""# 테스트용 secrets.yaml
environment: development

web:
  secret_key: "test_jwt_secret_key_xyz"

database:
  path: "{(temp_dir / 'ledger.db').as_posix()}"
"""
    secrets_path = temp_dir / "secrets.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def temp_secrets_file_production(temp_dir: Path) -> Path:
    """테스트용 secrets.yaml 파일 생성 (production 환경, ledger 설정 포함)"""
    secrets_content = """environment: production

web:
  secret_key: "prod_jwt_secret_key_xyz"
  jwt_algorithm: HS512

ledger:
  candidate_page_size: 200
  lookup_chunk_size: 50
"""
    secrets_path = temp_dir / "secrets_prod.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest.fixture
def temp_secrets_file_invalid_env(temp_dir: Path) -> Path:
    """잘못된 환경의 secrets.yaml 파일 생성"""
    secrets_content = """environment: invalid_env

web:
  secret_key: "jwt_secret"
"""
    secrets_path = temp_dir / "secrets_invalid.yaml"
    secrets_path.write_text(secrets_content, encoding="utf-8")
    return secrets_path


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> SQLiteAdapter:
    """스키마가 초기화된 임시 DB"""
    adapter = SQLiteAdapter(tmp_path / "test_ledger.db")
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


@pytest.fixture
def add_account(db: SQLiteAdapter) -> Callable[..., Awaitable[str]]:
    """balance_accounts 행 추가 헬퍼"""

    async def _add(
        account_id: str,
        user_id: str = USER_ID,
        account_type: str = "TRADING",
        currency: str = "USD",
        is_active: bool = True,
        name: str | None = None,
    ) -> str:
        await db.execute(
            """
            INSERT INTO balance_accounts (id, user_id, account_type, name, currency, is_active)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (account_id, user_id, account_type, name or account_id, currency, int(is_active)),
        )
        await db.commit()
        return account_id

    return _add


@pytest.fixture
def add_order(db: SQLiteAdapter) -> Callable[..., Awaitable[str]]:
    """trading_orders 행 추가 헬퍼 (기본: closed)"""

    async def _add(
        order_id: str,
        account_id: str | None,
        close_time: str | None,
        pnl: str | None = "0",
        commission: str | None = "0",
        swap: str | None = "0",
        user_id: str = USER_ID,
        status: str = "closed",
        open_time: str = "2026-01-01T00:00:00+00:00",
    ) -> str:
        await db.execute(
            """
            INSERT INTO trading_orders (
                id, user_id, balance_account_id, symbol, status,
                pnl_amount, commission_usd, swap_usd, open_time, close_time
            ) VALUES (?, ?, ?, 'EURUSD', ?, ?, ?, ?, ?, ?)
            """,
            (order_id, user_id, account_id, status, pnl, commission, swap, open_time, close_time),
        )
        await db.commit()
        return order_id

    return _add
