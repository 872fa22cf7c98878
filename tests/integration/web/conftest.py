"""
Web API 테스트 fixture

임시 secrets.yaml의 database.path를 앱과 테스트가 공유한다.
"""

from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import Settings, get_settings
from core.ledger.locks import AccountLockRegistry
from web.app import app
from web.dependencies import get_lock_registry


@pytest.fixture
def settings(temp_secrets_file: Path) -> Settings:
    """임시 secrets.yaml 기반 Settings (테스트마다 초기화)"""
    Settings.reset()
    yield get_settings(temp_secrets_file)
    Settings.reset()


@pytest_asyncio.fixture
async def db(settings: Settings) -> SQLiteAdapter:
    """앱과 같은 파일을 쓰는 DB (루트 conftest의 db 대체)"""
    adapter = SQLiteAdapter(settings.db_path)
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()


@pytest_asyncio.fixture
async def client(db: SQLiteAdapter) -> AsyncClient:
    """테스트 클라이언트 (계좌 잠금은 테스트마다 새로)"""
    locks = AccountLockRegistry()
    app.dependency_overrides[get_lock_registry] = lambda: locks

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
