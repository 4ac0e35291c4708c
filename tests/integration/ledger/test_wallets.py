"""WalletRegistry 통합 테스트

지갑 생성(기초 잔액), 조회, 삭제/복원, 주문/가공 작업 등록.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.constants import Notes
from core.ledger import (
    AlreadyActiveError,
    ConflictError,
    DebtReconciler,
    NotFoundError,
    PostingLinks,
    ValidationError,
    WalletLedger,
    WalletRegistry,
)
from core.types import Actor, PostingKind, WalletType

D1 = datetime(2025, 3, 1, 3, 0, tzinfo=timezone.utc)


class TestCreateWallet:
    """지갑 생성 테스트"""

    @pytest.mark.asyncio
    async def test_sequential_codes(self, registry: WalletRegistry) -> None:
        first = await registry.create_wallet("Quỹ tiền mặt")
        second = await registry.create_wallet("Vietcombank", wallet_type=WalletType.BANK)

        assert first.code == "W0001"
        assert second.code == "W0002"
        assert second.wallet_type == WalletType.BANK
        assert first.balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_code_after_manual_renumber(self, registry: WalletRegistry) -> None:
        """새 번호는 기존 번호 최대값 + 1"""
        first = await registry.create_wallet("Quỹ tiền mặt")
        await registry.db.execute(
            "UPDATE wallet SET code = 'W0107' WHERE wallet_id = ?", (first.wallet_id,)
        )

        second = await registry.create_wallet("Vietcombank")

        assert second.code == "W0108"

    @pytest.mark.asyncio
    async def test_opening_balance_adjustment(
        self, ledger: WalletLedger, registry: WalletRegistry
    ) -> None:
        """기초 잔액은 ADJUSTMENT 전표로 기록"""
        wallet = await registry.create_wallet("Quỹ tiền mặt", opening_balance=5_000_000)

        postings = await ledger.list_postings(wallet.wallet_id)

        assert wallet.balance == Decimal("5000000")
        assert len(postings) == 1
        assert postings[0].kind == PostingKind.ADJUSTMENT
        assert postings[0].note == Notes.OPENING_BALANCE
        assert postings[0].code.startswith("DC")
        assert not postings[0].is_transfer_leg

    @pytest.mark.asyncio
    async def test_zero_opening_balance_no_posting(
        self, ledger: WalletLedger, registry: WalletRegistry
    ) -> None:
        wallet = await registry.create_wallet("MoMo", opening_balance=0)

        assert await ledger.list_postings(wallet.wallet_id) == []

    @pytest.mark.asyncio
    async def test_invalid_input(self, registry: WalletRegistry) -> None:
        with pytest.raises(ValidationError):
            await registry.create_wallet("   ")
        with pytest.raises(ValidationError):
            await registry.create_wallet("Ví", wallet_type="CRYPTO")

    @pytest.mark.asyncio
    async def test_audit_actor(self, ledger: WalletLedger, registry: WalletRegistry) -> None:
        wallet = await registry.create_wallet("Quỹ", actor=Actor.user("7"))

        rows = await ledger.audit.list(entity="Wallet", entity_id=wallet.wallet_id)

        assert rows[0]["action"] == "CREATE"
        assert rows[0]["actor_id"] == "user:7"


class TestListWallets:
    @pytest.mark.asyncio
    async def test_search_and_deleted(self, registry: WalletRegistry) -> None:
        cash = await registry.create_wallet("Quỹ tiền mặt")
        await registry.create_wallet("Vietcombank")
        await registry.delete_wallet(cash.wallet_id)

        assert [w.name for w in await registry.list_wallets()] == ["Vietcombank"]
        assert len(await registry.list_wallets(include_deleted=True)) == 2
        assert [w.code for w in await registry.list_wallets(search="Vietcom")] == ["W0002"]


class TestDeleteRestoreWallet:
    """지갑 삭제 / 복원 테스트"""

    @pytest.mark.asyncio
    async def test_delete_with_active_postings_conflict(
        self, registry: WalletRegistry
    ) -> None:
        wallet = await registry.create_wallet("Quỹ", opening_balance=100)

        with pytest.raises(ConflictError):
            await registry.delete_wallet(wallet.wallet_id)

        assert (await registry.get_wallet(wallet.wallet_id)).is_active

    @pytest.mark.asyncio
    async def test_delete_after_postings_removed(
        self, ledger: WalletLedger, registry: WalletRegistry
    ) -> None:
        wallet = await registry.create_wallet("Quỹ")
        posting = await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        await ledger.delete_posting(posting.posting_id)

        deleted = await registry.delete_wallet(wallet.wallet_id)

        assert not deleted.is_active
        with pytest.raises(NotFoundError):
            await registry.get_wallet(wallet.wallet_id)

    @pytest.mark.asyncio
    async def test_delete_idempotent(self, registry: WalletRegistry) -> None:
        wallet = await registry.create_wallet("Quỹ")

        first = await registry.delete_wallet(wallet.wallet_id)
        second = await registry.delete_wallet(wallet.wallet_id)

        assert first.to_dict()["deleted_at"] == second.to_dict()["deleted_at"]

    @pytest.mark.asyncio
    async def test_deleted_wallet_rejects_postings(
        self, ledger: WalletLedger, registry: WalletRegistry
    ) -> None:
        wallet = await registry.create_wallet("Quỹ")
        await registry.delete_wallet(wallet.wallet_id)

        with pytest.raises(NotFoundError):
            await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)

    @pytest.mark.asyncio
    async def test_restore(self, registry: WalletRegistry) -> None:
        wallet = await registry.create_wallet("Quỹ")
        await registry.delete_wallet(wallet.wallet_id)

        restored = await registry.restore_wallet(wallet.wallet_id)

        assert restored.is_active
        with pytest.raises(AlreadyActiveError):
            await registry.restore_wallet(wallet.wallet_id)

    @pytest.mark.asyncio
    async def test_unknown_wallet(self, registry: WalletRegistry) -> None:
        with pytest.raises(NotFoundError):
            await registry.delete_wallet("missing")
        with pytest.raises(NotFoundError):
            await registry.restore_wallet("missing")


class TestOrdersAndJobs:
    """주문 / 가공 작업 등록 테스트"""

    @pytest.mark.asyncio
    async def test_create_order(self, registry: WalletRegistry) -> None:
        order = await registry.create_order("Đơn hàng rèm", 2_000_000, customer_id="kh-01")

        assert order.code == "DH0001"
        assert order.total_amount == Decimal("2000000")
        assert (await registry.get_order(order.order_id)).customer_id == "kh-01"

    @pytest.mark.asyncio
    async def test_order_negative_total(self, registry: WalletRegistry) -> None:
        with pytest.raises(ValidationError):
            await registry.create_order("Đơn", -1)

    @pytest.mark.asyncio
    async def test_create_job_linked_to_order(self, registry: WalletRegistry) -> None:
        order = await registry.create_order("Đơn", 1000)

        job = await registry.create_workshop_job(
            "xuong-may-a", 800, discount_amount=50, order_id=order.order_id
        )

        assert job.code == "GC0001"
        assert job.order_id == order.order_id
        assert job.net_amount == Decimal("750")

    @pytest.mark.asyncio
    async def test_job_invalid_input(self, registry: WalletRegistry) -> None:
        with pytest.raises(ValidationError):
            await registry.create_workshop_job("xuong", 100, discount_amount=101)
        with pytest.raises(NotFoundError):
            await registry.create_workshop_job("xuong", 100, order_id="missing")
        with pytest.raises(ValidationError):
            await registry.create_workshop_job("", 100)


class TestDeleteRestoreOrdersAndJobs:
    """주문 / 가공 작업 삭제·복원 테스트"""

    @pytest.mark.asyncio
    async def test_delete_order_hides_and_rejects_links(
        self, ledger: WalletLedger, registry: WalletRegistry, make_wallet
    ) -> None:
        wallet = await make_wallet()
        order = await registry.create_order("Đơn hàng rèm", 1000)

        deleted = await registry.delete_order(order.order_id)

        assert not deleted.is_active
        assert deleted.to_dict()["deleted_at"] is not None
        with pytest.raises(NotFoundError):
            await registry.get_order(order.order_id)
        assert (await registry.get_order(order.order_id, include_deleted=True)).code == "DH0001"
        with pytest.raises(NotFoundError):
            await ledger.append_posting(
                wallet.wallet_id,
                PostingKind.INCOME,
                D1,
                100,
                links=PostingLinks(order_id=order.order_id),
            )

    @pytest.mark.asyncio
    async def test_order_delete_idempotent_and_restore(
        self, ledger: WalletLedger, registry: WalletRegistry
    ) -> None:
        order = await registry.create_order("Đơn", 1000)
        first = await registry.delete_order(order.order_id)
        second = await registry.delete_order(order.order_id)

        restored = await registry.restore_order(order.order_id)

        assert first.to_dict()["deleted_at"] == second.to_dict()["deleted_at"]
        assert restored.is_active
        with pytest.raises(AlreadyActiveError):
            await registry.restore_order(order.order_id)
        rows = await ledger.audit.list(entity="Order", entity_id=order.order_id)
        assert [r["action"] for r in rows] == ["RESTORE", "DELETE", "CREATE"]

    @pytest.mark.asyncio
    async def test_delete_job_keeps_payments(
        self,
        ledger: WalletLedger,
        registry: WalletRegistry,
        debts: DebtReconciler,
        make_wallet,
    ) -> None:
        """삭제된 작업의 지급 전표는 남고 잔액도 그대로"""
        wallet = await make_wallet(opening_balance=1000)
        job = await registry.create_workshop_job("xuong-may-a", 500)
        payment = await debts.pay_workshop_job(job.job_id, wallet.wallet_id, 200, date=D1)

        deleted = await registry.delete_workshop_job(job.job_id, actor=Actor(id="u-1"))

        assert not deleted.is_active
        assert (await ledger.get_posting(payment.posting_id)).is_active
        assert await ledger.get_balance(wallet.wallet_id) == Decimal("800")
        with pytest.raises(NotFoundError):
            await registry.get_workshop_job(job.job_id)
        with pytest.raises(NotFoundError):
            await debts.pay_workshop_job(job.job_id, wallet.wallet_id, 100, date=D1)
        rows = await ledger.audit.list(entity="WorkshopJob", entity_id=job.job_id)
        assert rows[0]["action"] == "DELETE"
        assert rows[0]["actor_id"] == "u-1"

    @pytest.mark.asyncio
    async def test_job_restore(self, registry: WalletRegistry) -> None:
        job = await registry.create_workshop_job("xuong-may-a", 500)
        await registry.delete_workshop_job(job.job_id)
        again = await registry.delete_workshop_job(job.job_id)

        restored = await registry.restore_workshop_job(job.job_id)

        assert not again.is_active
        assert restored.is_active
        assert restored.to_dict()["deleted_at"] is None
        assert (await registry.get_workshop_job(job.job_id)).code == "GC0001"
        with pytest.raises(AlreadyActiveError):
            await registry.restore_workshop_job(job.job_id)

    @pytest.mark.asyncio
    async def test_unknown_order_and_job(self, registry: WalletRegistry) -> None:
        with pytest.raises(NotFoundError):
            await registry.delete_order("missing")
        with pytest.raises(NotFoundError):
            await registry.restore_order("missing")
        with pytest.raises(NotFoundError):
            await registry.delete_workshop_job("missing")
        with pytest.raises(NotFoundError):
            await registry.restore_workshop_job("missing")
