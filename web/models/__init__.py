"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AdjustmentRequest,
    CashMovementRequest,
    TransferRequest,
)
from web.models.responses import (
    AccountBalanceResponse,
    DailySnapshotResponse,
    HealthResponse,
    LedgerEntryListResponse,
    LedgerEntryResponse,
    RecomputeResponse,
    RecordResponse,
    SyncErrorResponse,
    SyncResponse,
    TransferResponse,
)

__all__ = [
    # Requests
    "AdjustmentRequest",
    "CashMovementRequest",
    "TransferRequest",
    # Responses
    "AccountBalanceResponse",
    "DailySnapshotResponse",
    "HealthResponse",
    "LedgerEntryListResponse",
    "LedgerEntryResponse",
    "RecomputeResponse",
    "RecordResponse",
    "SyncErrorResponse",
    "SyncResponse",
    "TransferResponse",
]
