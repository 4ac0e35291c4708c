"""
지갑별 상호 배제

같은 지갑에 대한 변경(추가/수정/삭제/복원 + 재계산)은 직렬화하고,
다른 지갑 간 변경은 서로 막지 않음.
여러 지갑을 잡을 때는 지갑 ID 오름차순으로 획득 (데드락 방지).
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

logger = logging.getLogger(__name__)


class WalletLockRegistry:
    """지갑 ID별 asyncio.Lock 저장소

    락은 처음 요청될 때 생성되며 프로세스 수명 동안 유지.

    사용 예시:
    ```python
    locks = WalletLockRegistry()

    async with locks.hold("w-1"):
        ...  # w-1 단독 변경

    async with locks.hold("w-2", "w-1"):
        ...  # w-1 → w-2 순서로 획득
    ```
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, wallet_id: str) -> asyncio.Lock:
        """지갑 락 반환 (없으면 생성)"""
        lock = self._locks.get(wallet_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[wallet_id] = lock
        return lock

    def is_locked(self, wallet_id: str) -> bool:
        """지갑 락 점유 여부"""
        lock = self._locks.get(wallet_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, *wallet_ids: str) -> AsyncIterator[None]:
        """여러 지갑 락을 고정 순서로 획득

        중복 ID는 한 번만 획득. 해제는 역순.
        """
        ordered = sorted(set(wallet_ids))
        acquired: list[asyncio.Lock] = []
        try:
            for wallet_id in ordered:
                lock = self.get(wallet_id)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()


# 프로세스 전역 레지스트리 (요청마다 DB 연결이 달라도 같은 락 공유)
_default_registry = WalletLockRegistry()


def get_lock_registry() -> WalletLockRegistry:
    """전역 WalletLockRegistry 반환"""
    return _default_registry
