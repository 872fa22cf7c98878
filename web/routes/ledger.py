"""
잔고 원장 API 라우트

동기화, 재계산, 원장/잔고 조회, 입출금·이체·조정 기록, 일별 스냅샷.
모든 엔드포인트는 Bearer 토큰의 사용자(sub) 기준으로 동작하며,
다른 사용자의 계좌는 404로 응답한다.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings
from core.constants import LedgerLimits
from core.ledger import AccountLockRegistry, LedgerWriteFailed, LookupFailed, SyncAborted
from core.ledger.errors import LedgerError
from web.dependencies import (
    get_app_settings,
    get_current_user_id,
    get_db,
    get_db_write,
    get_lock_registry,
)
from web.models.requests import AdjustmentRequest, CashMovementRequest, TransferRequest
from web.models.responses import (
    AccountBalanceResponse,
    DailySnapshotResponse,
    LedgerEntryListResponse,
    RecomputeResponse,
    RecordResponse,
    SyncErrorResponse,
    SyncResponse,
    TransferResponse,
)
from web.services.ledger_service import AccountNotFound, LedgerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ledger", tags=["Ledger"])


def _service(db, locks, settings: Settings) -> LedgerService:
    return LedgerService(db, locks, settings.ledger)


def _raise_for(e: Exception) -> None:
    """서비스 예외 → HTTP 오류"""
    if isinstance(e, AccountNotFound):
        raise HTTPException(status_code=404, detail=str(e)) from e
    if isinstance(e, LedgerWriteFailed):
        raise HTTPException(status_code=400, detail=str(e)) from e
    raise HTTPException(status_code=500, detail=str(e)) from e


@router.post(
    "/sync",
    response_model=SyncResponse,
    response_model_exclude_none=True,
    responses={500: {"model": SyncErrorResponse}},
)
async def sync_settlements(
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db_write),
    locks: AccountLockRegistry = Depends(get_lock_registry),
    settings: Settings = Depends(get_app_settings),
):
    """청산 주문 → 원장 동기화

    다시 호출해도 안전 (이미 기록된 주문은 건너뜀).
    실패 시 500과 함께 이미 기록된 건수(synced) 반환.
    """
    service = _service(db, locks, settings)

    try:
        result = await service.sync(user_id)
    except SyncAborted as e:
        logger.error(f"동기화 중단: {e}", extra={"user_id": user_id, "synced": e.synced})
        return JSONResponse(status_code=500, content={"error": str(e), "synced": e.synced})
    except LookupFailed as e:
        logger.error(f"동기화 조회 실패: {e}", extra={"user_id": user_id})
        return JSONResponse(status_code=500, content={"error": str(e), "synced": 0})

    return SyncResponse(**result.to_dict())


@router.post("/accounts/{account_id}/recompute", response_model=RecomputeResponse)
async def recompute_account(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db_write),
    locks: AccountLockRegistry = Depends(get_lock_registry),
    settings: Settings = Depends(get_app_settings),
) -> RecomputeResponse:
    """계좌 누적 잔고 재계산"""
    try:
        data = await _service(db, locks, settings).recompute(user_id, account_id)
    except (AccountNotFound, LedgerError) as e:
        _raise_for(e)
    return RecomputeResponse(**data)


@router.get("/accounts/{account_id}/entries", response_model=LedgerEntryListResponse)
async def list_entries(
    account_id: str,
    limit: int = Query(default=100, ge=1, le=LedgerLimits.MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
    locks: AccountLockRegistry = Depends(get_lock_registry),
    settings: Settings = Depends(get_app_settings),
) -> LedgerEntryListResponse:
    """원장 목록 (최신순)"""
    try:
        data = await _service(db, locks, settings).list_entries(
            user_id, account_id, limit, offset
        )
    except AccountNotFound as e:
        _raise_for(e)
    return LedgerEntryListResponse(**data)


@router.get("/accounts/{account_id}/balance", response_model=AccountBalanceResponse)
async def get_balance(
    account_id: str,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db),
    locks: AccountLockRegistry = Depends(get_lock_registry),
    settings: Settings = Depends(get_app_settings),
) -> AccountBalanceResponse:
    """계좌 현재 잔고"""
    try:
        data = await _service(db, locks, settings).get_balance(user_id, account_id)
    except AccountNotFound as e:
        _raise_for(e)
    return AccountBalanceResponse(**data)


@router.post("/accounts/{account_id}/deposit", response_model=RecordResponse)
async def record_deposit(
    account_id: str,
    request: CashMovementRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db_write),
    locks: AccountLockRegistry = Depends(get_lock_registry),
    settings: Settings = Depends(get_app_settings),
) -> RecordResponse:
    """입금 기록"""
    try:
        data = await _service(db, locks, settings).deposit(
            user_id, account_id, request.amount, request.occurred_at, request.source_ref_id
        )
    except (AccountNotFound, LedgerError) as e:
        _raise_for(e)
    return RecordResponse(**data)


@router.post("/accounts/{account_id}/withdraw", response_model=RecordResponse)
async def record_withdraw(
    account_id: str,
    request: CashMovementRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db_write),
    locks: AccountLockRegistry = Depends(get_lock_registry),
    settings: Settings = Depends(get_app_settings),
) -> RecordResponse:
    """출금 기록"""
    try:
        data = await _service(db, locks, settings).withdraw(
            user_id, account_id, request.amount, request.occurred_at, request.source_ref_id
        )
    except (AccountNotFound, LedgerError) as e:
        _raise_for(e)
    return RecordResponse(**data)


@router.post("/accounts/{account_id}/adjustment", response_model=RecordResponse)
async def record_adjustment(
    account_id: str,
    request: AdjustmentRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db_write),
    locks: AccountLockRegistry = Depends(get_lock_registry),
    settings: Settings = Depends(get_app_settings),
) -> RecordResponse:
    """수동 조정 기록"""
    try:
        data = await _service(db, locks, settings).adjust(
            user_id, account_id, request.amount, request.occurred_at, request.memo
        )
    except (AccountNotFound, LedgerError) as e:
        _raise_for(e)
    return RecordResponse(**data)


@router.post("/transfers", response_model=TransferResponse)
async def record_transfer(
    request: TransferRequest,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db_write),
    locks: AccountLockRegistry = Depends(get_lock_registry),
    settings: Settings = Depends(get_app_settings),
) -> TransferResponse:
    """계좌 간 이체 기록"""
    try:
        data = await _service(db, locks, settings).transfer(
            user_id,
            request.from_account_id,
            request.to_account_id,
            request.amount,
            request.occurred_at,
            request.source_ref_id,
            request.memo,
        )
    except (AccountNotFound, LedgerError) as e:
        _raise_for(e)
    return TransferResponse(**data)


@router.post("/accounts/{account_id}/snapshots/{day}", response_model=DailySnapshotResponse)
async def build_snapshot(
    account_id: str,
    day: date,
    user_id: str = Depends(get_current_user_id),
    db: SQLiteAdapter = Depends(get_db_write),
    locks: AccountLockRegistry = Depends(get_lock_registry),
    settings: Settings = Depends(get_app_settings),
) -> DailySnapshotResponse:
    """일별 잔고 스냅샷 생성 (UTC 기준)"""
    try:
        data = await _service(db, locks, settings).build_snapshot(user_id, account_id, day)
    except (AccountNotFound, LedgerError) as e:
        _raise_for(e)
    return DailySnapshotResponse(**data)
