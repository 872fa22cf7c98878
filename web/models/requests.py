"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class CashMovementRequest(BaseModel):
    """입금/출금 요청

    금액은 크기만 받고 부호는 유형이 결정.
    """

    amount: Decimal = Field(..., gt=0, description="금액 (양수)")
    occurred_at: datetime | None = Field(default=None, description="업무 시각 (없으면 현재)")
    source_ref_id: str | None = Field(default=None, description="외부 이벤트 ID (중복 방지)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "amount": "1000",
                    "occurred_at": "2026-02-21T09:00:00Z",
                    "source_ref_id": "dep-20260221-01",
                },
            ]
        }
    }


class AdjustmentRequest(BaseModel):
    """수동 조정 요청 (부호 그대로 반영)"""

    amount: Decimal = Field(..., description="조정 금액 (음수 허용)")
    occurred_at: datetime | None = Field(default=None, description="업무 시각")
    memo: str | None = Field(default=None, max_length=500, description="조정 사유")

    @field_validator("amount")
    @classmethod
    def _non_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("amount는 0일 수 없습니다")
        return v


class TransferRequest(BaseModel):
    """계좌 간 이체 요청"""

    from_account_id: str = Field(..., description="출금 계좌")
    to_account_id: str = Field(..., description="입금 계좌")
    amount: Decimal = Field(..., gt=0, description="금액 (양수)")
    occurred_at: datetime | None = Field(default=None, description="업무 시각")
    source_ref_id: str | None = Field(default=None, description="외부 이체 ID")
    memo: str | None = Field(default=None, max_length=500, description="메모")
