"""
스토리지 모듈

Ledger 외부 협력자(계좌 디렉토리, 청산 주문 원천)의 조회 인터페이스 제공
"""

from core.storage.account_store import AccountStore, BalanceAccount
from core.storage.order_store import ClosedOrder, OrderStore

__all__ = [
    "AccountStore",
    "BalanceAccount",
    "ClosedOrder",
    "OrderStore",
]
