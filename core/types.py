"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class Environment(str, Enum):
    """실행 환경 (기본 DB 경로 선택)"""

    PRODUCTION = "production"
    DEVELOPMENT = "development"


class BalanceAccountType(str, Enum):
    """잔고 계좌 유형"""

    TRADING = "TRADING"  # 매매 계좌 (주문 손익 정산 대상)
    FUNDING = "FUNDING"  # 자금 계좌 (입출금 전용)


class OrderStatus(str, Enum):
    """주문 상태 (trading_orders.status)"""

    OPEN = "open"
    CLOSED = "closed"
    CANCELLED = "cancelled"
