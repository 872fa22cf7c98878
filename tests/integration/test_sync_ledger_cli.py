"""sync_ledger 스크립트 테스트"""

import json
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import SecretsLoadError
from core.ledger.store import LedgerStore
from scripts import sync_ledger
from tests.conftest import USER_ID


@pytest.fixture
def no_secrets(monkeypatch) -> None:
    """secrets.yaml 없는 환경"""

    def _missing():
        raise SecretsLoadError("secrets.yaml 파일을 찾을 수 없습니다")

    monkeypatch.setattr(sync_ledger, "get_settings", _missing)


class TestSyncLedgerScript:
    @pytest.mark.asyncio
    async def test_sync_with_db_arg(
        self, db: SQLiteAdapter, add_account, add_order, no_secrets, capsys
    ) -> None:
        await add_account("acc-A")
        await add_order("O1", "acc-A", "2026-02-20T10:00:00+00:00", pnl="12.5")

        code = await sync_ledger.main(USER_ID, str(db.db_path))

        assert code == 0
        assert json.loads(capsys.readouterr().out) == {"synced": 1, "skipped": 0}
        assert (await LedgerStore(db).get_cursor("acc-A")).balance == Decimal("12.5")

    @pytest.mark.asyncio
    async def test_nothing_to_sync(self, db: SQLiteAdapter, no_secrets, capsys) -> None:
        code = await sync_ledger.main(USER_ID, str(db.db_path))

        assert code == 0
        assert json.loads(capsys.readouterr().out)["message"] == "No closed orders to sync"

    @pytest.mark.asyncio
    async def test_missing_secrets_without_db(self, no_secrets) -> None:
        with pytest.raises(SecretsLoadError):
            await sync_ledger.main(USER_ID, None)
