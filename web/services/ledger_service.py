"""
Ledger 서비스

요청 단위 DB 연결 위에 WalletLedger / WalletRegistry /
TransferCoordinator / DebtReconciler를 묶어서 제공.

API 표현(유형 + 양수 금액)과 Ledger 표현(부호 포함 금액) 간 변환 담당.
"""

from decimal import Decimal
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.ledger import (
    DebtReconciler,
    NotFoundError,
    Posting,
    PostingLinks,
    TransferCoordinator,
    ValidationError,
    WalletLedger,
    WalletLockRegistry,
    WalletRegistry,
)
from core.ledger.store import to_amount
from core.types import Actor, PostingKind


def signed_amount(kind: PostingKind, amount: Any) -> Decimal:
    """입금/출금 양수 금액 → 부호 포함 금액

    Raises:
        ValidationError: 금액이 0 이하
    """
    value = to_amount(amount)
    if value <= 0:
        raise ValidationError("amount must be positive", amount=value)
    return value if kind == PostingKind.INCOME else -value


class LedgerService:
    """Ledger 서비스

    Args:
        db: 요청 단위 SQLiteAdapter
        locks: 프로세스 전역 지갑 락 저장소
    """

    def __init__(self, db: SQLiteAdapter, locks: WalletLockRegistry):
        self.db = db
        self.ledger = WalletLedger(db, locks=locks)
        self.wallets = WalletRegistry(self.ledger)
        self.transfers = TransferCoordinator(self.ledger)
        self.debts = DebtReconciler(self.ledger)

    # -------------------------------------------------------------------------
    # 입금/출금 (Phiếu thu / Phiếu chi)
    # -------------------------------------------------------------------------

    async def get_transaction(self, posting_id: str) -> Posting:
        """입금/출금 전표 조회

        Raises:
            NotFoundError: 없거나 입금/출금 전표가 아닌 경우
        """
        posting = await self.ledger.get_posting(posting_id)
        if posting.kind == PostingKind.ADJUSTMENT:
            raise NotFoundError("Transaction", posting_id)
        return posting

    async def create_transaction(
        self,
        kind: PostingKind,
        wallet_id: str,
        date: Any,
        amount: Any,
        order_id: str | None = None,
        workshop_job_id: str | None = None,
        category_id: str | None = None,
        note: str | None = None,
        actor: Actor | None = None,
    ) -> Posting:
        """입금/출금 전표 생성 (amount는 양수)"""
        if kind == PostingKind.ADJUSTMENT:
            raise ValidationError("type must be INCOME or EXPENSE", type=kind.value)

        return await self.ledger.append_posting(
            wallet_id,
            kind,
            date=date,
            amount=signed_amount(kind, amount),
            links=PostingLinks(order_id=order_id, workshop_job_id=workshop_job_id),
            note=note,
            category_id=category_id,
            actor=actor,
        )

    async def update_transaction(
        self,
        posting_id: str,
        changes: dict[str, Any],
        actor: Actor | None = None,
    ) -> Posting:
        """입금/출금 전표 수정

        Args:
            posting_id: 전표 ID
            changes: 요청에 포함된 필드만 (amount는 양수)
            actor: 행위자
        """
        current = await self.get_transaction(posting_id)

        amount = changes.get("amount")
        links = None
        if "order_id" in changes or "workshop_job_id" in changes:
            links = PostingLinks(
                order_id=changes.get("order_id", current.links.order_id),
                workshop_job_id=changes.get(
                    "workshop_job_id", current.links.workshop_job_id
                ),
            )

        return await self.ledger.edit_posting(
            posting_id,
            amount=signed_amount(current.kind, amount) if amount is not None else None,
            date=changes.get("date"),
            note=changes.get("note"),
            links=links,
            category_id=changes.get("category_id"),
            actor=actor,
        )

    # -------------------------------------------------------------------------
    # 수동 조정 (Điều chỉnh)
    # -------------------------------------------------------------------------

    async def get_adjustment(self, posting_id: str) -> Posting:
        """수동 조정 전표 조회

        Raises:
            NotFoundError: 없거나 수동 조정이 아닌 경우 (이체 다리 제외)
        """
        posting = await self.ledger.get_posting(posting_id)
        if posting.kind != PostingKind.ADJUSTMENT or posting.is_transfer_leg:
            raise NotFoundError("Adjustment", posting_id)
        return posting
