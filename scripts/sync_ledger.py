"""
정산 동기화 스크립트

청산 주문 중 원장에 없는 건을 기록하고 잔고를 재계산한다.
Web의 POST /api/ledger/sync 와 동일한 동작.

사용법:
    python -m scripts.sync_ledger --user-id user-1
    python -m scripts.sync_ledger --user-id user-1 --db data/ledger_test.db
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import LedgerConfig, SecretsLoadError, get_settings
from core.ledger import AccountLockRegistry, LookupFailed, SettlementReconciler, SyncAborted
from core.logging import setup_logging

logger = logging.getLogger(__name__)


def _resolve(db_arg: str | None) -> tuple[Path, LedgerConfig]:
    """DB 경로와 Ledger 설정 결정

    --db가 있으면 secrets.yaml 없이도 실행 가능 (기본 설정 사용).
    """
    try:
        settings = get_settings()
    except SecretsLoadError:
        if db_arg is None:
            raise
        logger.warning("secrets.yaml 없음, 기본 Ledger 설정 사용")
        return Path(db_arg), LedgerConfig()

    db_path = Path(db_arg) if db_arg else settings.db_path
    return db_path, settings.ledger


async def main(user_id: str, db_arg: str | None) -> int:
    """동기화 실행

    Returns:
        종료 코드 (0: 성공, 1: 실패)
    """
    db_path, config = _resolve(db_arg)
    logger.info(f"정산 동기화 시작: user={user_id}, db={db_path}")

    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        reconciler = SettlementReconciler(db, AccountLockRegistry(), config)

        try:
            result = await reconciler.sync_pending_settlements(user_id)
        except SyncAborted as e:
            logger.error(f"동기화 중단: {e} (기록 {e.synced}건)")
            print(json.dumps({"error": str(e), "synced": e.synced}, ensure_ascii=False))
            return 1
        except LookupFailed as e:
            logger.error(f"조회 실패: {e}")
            print(json.dumps({"error": str(e), "synced": 0}, ensure_ascii=False))
            return 1

    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="청산 주문 → 잔고 원장 동기화")
    parser.add_argument("--user-id", required=True, help="동기화할 사용자 ID")
    parser.add_argument("--db", default=None, help="DB 파일 경로 (기본: secrets.yaml 설정)")
    args = parser.parse_args()

    setup_logging("cli")
    sys.exit(asyncio.run(main(args.user_id, args.db)))
