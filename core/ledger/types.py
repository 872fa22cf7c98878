"""
Ledger 타입 정의

LedgerSourceType 등 잔고 원장에서 사용하는 Enum 및 분류 상수
"""

from enum import Enum


class LedgerSourceType(str, Enum):
    """원장 항목 출처 유형

    잔고에 영향을 주는 모든 이벤트의 생산자 태그.
    str을 상속하여 JSON 직렬화 가능.
    """

    # 입출금
    DEPOSIT = "DEPOSIT"  # 외부 입금
    WITHDRAW = "WITHDRAW"  # 외부 출금

    # 계좌 간 이체
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"

    # 매매 정산
    TRADE_PNL = "TRADE_PNL"  # 청산 주문 순손익 (수수료/스왑 포함)
    COMMISSION = "COMMISSION"
    SWAP = "SWAP"

    # 보너스/조정
    BONUS = "BONUS"
    BONUS_REMOVAL = "BONUS_REMOVAL"
    ADJUSTMENT = "ADJUSTMENT"  # 수동 조정 (source_ref_id 없음 허용)


# 일별 스냅샷 집계용 분류
TRADING_SOURCE_TYPES: frozenset[LedgerSourceType] = frozenset({
    LedgerSourceType.TRADE_PNL,
    LedgerSourceType.COMMISSION,
    LedgerSourceType.SWAP,
})

ADJUSTMENT_SOURCE_TYPES: frozenset[LedgerSourceType] = frozenset({
    LedgerSourceType.ADJUSTMENT,
    LedgerSourceType.BONUS,
    LedgerSourceType.BONUS_REMOVAL,
})

# 금액 부호가 출처에 의해 고정되는 유형 (양수 = 입금 방향)
CREDIT_SOURCE_TYPES: frozenset[LedgerSourceType] = frozenset({
    LedgerSourceType.DEPOSIT,
    LedgerSourceType.TRANSFER_IN,
    LedgerSourceType.BONUS,
})

DEBIT_SOURCE_TYPES: frozenset[LedgerSourceType] = frozenset({
    LedgerSourceType.WITHDRAW,
    LedgerSourceType.TRANSFER_OUT,
    LedgerSourceType.BONUS_REMOVAL,
})
