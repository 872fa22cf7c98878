"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

from typing import AsyncGenerator

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings, get_settings
from core.ledger.locks import AccountLockRegistry

UNAUTHORIZED = "Unauthorized"

_bearer = HTTPBearer(auto_error=False)


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (읽기 전용)

    원장/잔고 조회 화면용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=True) as db:
        yield db


async def get_db_write() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (쓰기 가능)

    동기화, 재계산, 입출금 기록 시 사용. 요청마다 연결 1개.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=False) as db:
        yield db


# =========================================================================
# 계좌 잠금 (프로세스 공용)
# =========================================================================

_lock_registry = AccountLockRegistry()


def get_lock_registry() -> AccountLockRegistry:
    """프로세스 공용 계좌 잠금 레지스트리 반환"""
    return _lock_registry


# =========================================================================
# 인증
# =========================================================================


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Bearer 토큰에서 사용자 ID(sub) 추출

    Raises:
        HTTPException: 토큰 없음/검증 실패/sub 누락 시 401
    """
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED)

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.web_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED)

    user_id = payload.get("sub")
    if not user_id or not isinstance(user_id, str):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED)

    return user_id
