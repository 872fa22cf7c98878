"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화. 금액은 정밀도 유지를 위해 문자열.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    environment: str = Field(..., description="실행 환경 (development/production)")
    version: str = Field(..., description="API 버전")


class SyncResponse(BaseModel):
    """동기화 응답"""

    synced: int = Field(..., description="기록된 주문 수")
    skipped: int = Field(..., description="건너뛴 주문 수")
    message: str | None = Field(default=None, description="할 일이 없었던 경우 안내")


class SyncErrorResponse(BaseModel):
    """동기화 실패 응답 (부분 기록 포함)"""

    error: str
    synced: int


class RecomputeResponse(BaseModel):
    """잔고 재계산 응답"""

    account_id: str
    updated: int = Field(..., description="balance_after가 보정된 행 수")
    final_balance: str
    entry_count: int


class LedgerEntryResponse(BaseModel):
    """원장 항목 응답"""

    entry_id: str
    balance_account_id: str
    source_type: str
    source_ref_id: str | None = None
    amount: str
    balance_after: str
    occurred_at: str
    created_at: str
    currency: str
    meta: dict[str, Any] | None = None


class LedgerEntryListResponse(BaseModel):
    """원장 목록 응답 (최신순)"""

    items: list[LedgerEntryResponse]
    total: int
    limit: int
    offset: int


class AccountBalanceResponse(BaseModel):
    """계좌 잔고 응답"""

    account_id: str
    currency: str
    balance: str
    entry_count: int
    last_entry_id: str | None = None


class RecordResponse(BaseModel):
    """단건 기록 응답 (기록 + 재계산 후 잔고)"""

    entry: LedgerEntryResponse
    balance: str


class TransferResponse(BaseModel):
    """이체 응답"""

    outgoing: LedgerEntryResponse
    incoming: LedgerEntryResponse


class DailySnapshotResponse(BaseModel):
    """일별 스냅샷 응답"""

    balance_account_id: str
    date: str
    opening_balance: str
    closing_balance: str
    net_change: str
    deposit_amount: str
    withdraw_amount: str
    transfer_in_amount: str
    transfer_out_amount: str
    trading_net_result: str
    adjustment_amount: str
