"""
core/ledger/locks.py 테스트

같은 지갑은 직렬화, 다른 지갑은 독립, 여러 지갑은 고정 순서로 획득
"""

import asyncio

import pytest

from core.ledger.locks import WalletLockRegistry, get_lock_registry


class TestWalletLockRegistry:
    """WalletLockRegistry 테스트"""

    def test_same_id_same_lock(self) -> None:
        locks = WalletLockRegistry()

        assert locks.get("w-1") is locks.get("w-1")
        assert locks.get("w-1") is not locks.get("w-2")

    @pytest.mark.asyncio
    async def test_hold_and_release(self) -> None:
        """획득 중에는 잠김, 종료 후 해제"""
        locks = WalletLockRegistry()

        async with locks.hold("w-1", "w-2"):
            assert locks.is_locked("w-1")
            assert locks.is_locked("w-2")

        assert not locks.is_locked("w-1")
        assert not locks.is_locked("w-2")

    @pytest.mark.asyncio
    async def test_release_on_exception(self) -> None:
        """예외 발생 시에도 락 해제"""
        locks = WalletLockRegistry()

        with pytest.raises(RuntimeError):
            async with locks.hold("w-1"):
                raise RuntimeError("boom")

        assert not locks.is_locked("w-1")

    @pytest.mark.asyncio
    async def test_duplicate_ids_acquired_once(self) -> None:
        """같은 ID 중복 지정 시 데드락 없음"""
        locks = WalletLockRegistry()

        async with locks.hold("w-1", "w-1"):
            assert locks.is_locked("w-1")

    @pytest.mark.asyncio
    async def test_same_wallet_serialized(self) -> None:
        """같은 지갑 작업은 겹치지 않음"""
        locks = WalletLockRegistry()
        events: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("w-1"):
                events.append(f"{name}:start")
                await asyncio.sleep(0.01)
                events.append(f"{name}:end")

        await asyncio.gather(worker("a"), worker("b"))

        assert events in (
            ["a:start", "a:end", "b:start", "b:end"],
            ["b:start", "b:end", "a:start", "a:end"],
        )

    @pytest.mark.asyncio
    async def test_different_wallets_not_blocked(self) -> None:
        """다른 지갑 락은 서로 막지 않음"""
        locks = WalletLockRegistry()

        async with locks.hold("w-1"):
            await asyncio.wait_for(self._touch(locks, "w-2"), timeout=1)

    @pytest.mark.asyncio
    async def test_opposite_order_no_deadlock(self) -> None:
        """반대 순서로 요청해도 정렬 획득으로 데드락 없음"""
        locks = WalletLockRegistry()

        async def worker(first: str, second: str) -> None:
            for _ in range(20):
                async with locks.hold(first, second):
                    await asyncio.sleep(0)

        await asyncio.wait_for(
            asyncio.gather(worker("w-1", "w-2"), worker("w-2", "w-1")),
            timeout=5,
        )

    @staticmethod
    async def _touch(locks: WalletLockRegistry, wallet_id: str) -> None:
        async with locks.hold(wallet_id):
            pass


def test_global_registry_is_shared() -> None:
    """프로세스 전역 레지스트리"""
    assert get_lock_registry() is get_lock_registry()
