"""
잔고 원장 (Balance Ledger)

계좌별 append-only 원장과 누적 잔고(balance_after) 관리.
청산 주문 정산, 입출금, 이체, 조정을 기록하고 canonical order
(occurred_at, created_at, entry_id) 기준으로 잔고를 재계산한다.

사용 예시:
```python
from core.ledger import AccountLockRegistry, SettlementReconciler

locks = AccountLockRegistry()
reconciler = SettlementReconciler(db, locks)

result = await reconciler.sync_pending_settlements(user_id)
print(result.synced, result.skipped)
```
"""

from core.ledger.entry_builder import (
    LedgerEntry,
    LedgerEntryBuilder,
    SettlementDraft,
    TradeSettlement,
    net_amount,
)
from core.ledger.errors import (
    LedgerError,
    LedgerWriteFailed,
    LookupFailed,
    RecomputeFailed,
    SyncAborted,
)
from core.ledger.locks import AccountLockRegistry
from core.ledger.reconciler import SettlementReconciler, SyncResult, find_pending
from core.ledger.recompute import RecomputeResult, RunningBalanceRecomputer
from core.ledger.recorder import SettlementRecorder
from core.ledger.snapshot import DailyBalanceSnapshot, DailySnapshotBuilder
from core.ledger.store import BalanceCursor, LedgerStore
from core.ledger.types import LedgerSourceType

__all__ = [
    # 핵심 클래스
    "LedgerStore",
    "SettlementRecorder",
    "SettlementReconciler",
    "RunningBalanceRecomputer",
    "DailySnapshotBuilder",
    "AccountLockRegistry",
    "LedgerEntryBuilder",
    # 데이터
    "LedgerEntry",
    "SettlementDraft",
    "TradeSettlement",
    "BalanceCursor",
    "SyncResult",
    "RecomputeResult",
    "DailyBalanceSnapshot",
    "LedgerSourceType",
    # 함수
    "find_pending",
    "net_amount",
    # 예외
    "LedgerError",
    "LookupFailed",
    "LedgerWriteFailed",
    "RecomputeFailed",
    "SyncAborted",
]
