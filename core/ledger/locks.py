"""
계좌별 잠금

경합 단위는 계좌 하나(원장 + 잔고 커서).
같은 계좌를 건드리는 실행만 직렬화하고, 서로 다른 계좌는 독립 진행.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager

logger = logging.getLogger(__name__)


class AccountLockRegistry:
    """계좌 ID별 asyncio.Lock 레지스트리

    프로세스 내 직렬화 담당. 프로세스 간 직렬화는
    SQLite BEGIN IMMEDIATE 트랜잭션이 담당한다.

    사용 예시:
    ```python
    locks = AccountLockRegistry()

    async with locks.hold(["acc-1", "acc-2"]):
        ...  # acc-1, acc-2 기록 + 재계산
    ```
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, account_id: str) -> asyncio.Lock:
        """계좌 잠금 반환 (없으면 생성)"""
        lock = self._locks.get(account_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[account_id] = lock
        return lock

    def is_locked(self, account_id: str) -> bool:
        lock = self._locks.get(account_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, account_ids: Iterable[str]) -> AsyncIterator[list[str]]:
        """여러 계좌 잠금 획득

        정렬된 순서로 획득하여 교착 상태 방지.

        Yields:
            잠금을 획득한 계좌 ID 목록 (정렬됨)
        """
        ordered = sorted(set(account_ids))

        async with AsyncExitStack() as stack:
            for account_id in ordered:
                await stack.enter_async_context(self.get(account_id))
            logger.debug(f"계좌 잠금 획득: {ordered}")
            yield ordered

    def __len__(self) -> int:
        return len(self._locks)
