"""
Ledger 예외 정의

저장소 오류는 아래 예외로 감싸서 호출자에게 전파.
소유권/계좌 유형 위반은 예외가 아니라 skip으로 처리 (SettlementReconciler).
"""


class LedgerError(Exception):
    """Ledger 예외 기본 클래스"""

    pass


class LookupFailed(LedgerError):
    """조회 실패 (후보 주문 / 기존 원장 ID / 계좌 조회)

    쓰기 전에 발생하므로 부분 동기화 없음.
    """

    def __init__(self, stage: str, reason: str = ""):
        self.stage = stage
        self.reason = reason
        super().__init__(f"Lookup failed at {stage}: {reason}" if reason else f"Lookup failed at {stage}")


class LedgerWriteFailed(LedgerError):
    """원장 항목 기록 실패

    원자적으로 실패하므로 부분 행/커서 변경 없음.
    재시도 판단을 위해 계좌 및 출처 식별자 포함.
    """

    def __init__(
        self,
        account_id: str,
        source_type: str,
        source_ref_id: str | None,
        reason: str = "",
    ):
        self.account_id = account_id
        self.source_type = source_type
        self.source_ref_id = source_ref_id
        self.reason = reason
        super().__init__(
            f"Ledger write failed for account={account_id} "
            f"source={source_type}:{source_ref_id}: {reason}"
        )


class RecomputeFailed(LedgerError):
    """잔고 재계산 실패

    원장 행은 유효하나 해당 계좌의 balance_after가 오래된 값일 수 있음.
    """

    def __init__(self, account_id: str, reason: str = ""):
        self.account_id = account_id
        self.reason = reason
        super().__init__(f"Recompute failed for account={account_id}: {reason}")


class SyncAborted(LedgerError):
    """동기화 중단 (fail-fast)

    이미 커밋된 항목 수(synced)를 함께 전달하여 안전한 재호출 가능.
    """

    def __init__(self, cause: LedgerError, synced: int):
        self.cause = cause
        self.synced = synced
        super().__init__(str(cause))
