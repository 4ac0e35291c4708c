"""
지갑 / 주문 / 가공 작업 등록부

지갑 생성(기초 잔액 포함), 조회, 삭제/복원과
전표 연결 대상인 주문/가공 작업의 생성, 조회, 삭제/복원.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import CodePrefix, Notes
from core.ledger.debt import DebtReconciler, fetch_order, fetch_workshop_job
from core.ledger.errors import ConflictError, NotFoundError, ValidationError
from core.ledger.store import WalletLedger, next_table_code, to_amount
from core.ledger.tombstone import lifecycle_to_column, restore, tombstone
from core.ledger.types import Order, PostingLinks, Wallet, WorkshopJob
from core.types import Actor, AuditAction, AuditEntity, PostingKind, WalletType
from core.utils.timezone import now_utc, to_db

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

ENTITY = AuditEntity.WALLET.value


def _require_name(name: str | None, field: str = "name") -> str:
    value = (name or "").strip()
    if not value:
        raise ValidationError(f"{field} is required")
    return value


class WalletRegistry:
    """지갑 등록부

    Args:
        ledger: WalletLedger (DB, 락 저장소, 감사 로그 공유)
    """

    def __init__(self, ledger: WalletLedger):
        self.ledger = ledger

    @property
    def db(self) -> SQLiteAdapter:
        return self.ledger.db

    # =========================================================================
    # 지갑
    # =========================================================================

    async def create_wallet(
        self,
        name: str,
        wallet_type: WalletType | str = WalletType.CASH,
        opening_balance: Decimal | int | str = 0,
        note: str | None = None,
        actor: Actor | None = None,
    ) -> Wallet:
        """지갑 생성

        기초 잔액이 0이 아니면 "Số dư ban đầu" ADJUSTMENT 전표로 기록.

        Args:
            name: 지갑 이름
            wallet_type: CASH / BANK / OTHER
            opening_balance: 기초 잔액
            note: 메모
            actor: 행위자

        Raises:
            ValidationError: 이름이 비어 있거나 유형/금액이 잘못된 경우
        """
        name = _require_name(name)
        try:
            wallet_type = WalletType(wallet_type)
        except ValueError as e:
            raise ValidationError(
                f"Invalid wallet_type: {wallet_type}", wallet_type=wallet_type
            ) from e
        opening = to_amount(opening_balance, "opening_balance")

        wallet_id = str(uuid.uuid4())
        async with self.ledger.locks.hold(wallet_id):
            async with self.db.transaction():
                code = await next_table_code(self.db, "wallet", CodePrefix.WALLET)
                now_str = to_db(now_utc())

                await self.db.execute(
                    """
                    INSERT INTO wallet (
                        wallet_id, code, name, wallet_type, note, balance,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, '0', ?, ?)
                    """,
                    (wallet_id, code, name, wallet_type.value, note, now_str, now_str),
                )

                if opening != 0:
                    await self.ledger._insert_posting(
                        wallet_id=wallet_id,
                        kind=PostingKind.ADJUSTMENT,
                        date=now_utc(),
                        amount=opening,
                        code=await self.ledger._next_posting_code(CodePrefix.ADJUSTMENT),
                        links=PostingLinks(),
                        note=Notes.OPENING_BALANCE,
                    )

                wallet = await self.ledger._require_wallet(wallet_id)
                await self.ledger.audit.record(
                    AuditEntity.WALLET,
                    wallet_id,
                    AuditAction.CREATE,
                    after=wallet.to_dict(),
                    actor=actor,
                )

        logger.info(
            f"지갑 생성: {wallet.code} {wallet.name}",
            extra={"wallet_id": wallet_id, "opening_balance": str(opening)},
        )
        return wallet

    async def get_wallet(self, wallet_id: str) -> Wallet:
        """활성 지갑 조회

        Raises:
            NotFoundError: 없거나 삭제된 지갑
        """
        return await self.ledger._require_wallet(wallet_id)

    async def list_wallets(
        self,
        search: str | None = None,
        include_deleted: bool = False,
    ) -> list[Wallet]:
        """지갑 목록 (번호순)

        Args:
            search: 이름/번호 부분 일치
            include_deleted: 삭제된 지갑 포함 여부
        """
        conditions: list[str] = []
        params: list[Any] = []

        if search:
            conditions.append("(name LIKE ? OR code LIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])
        if not include_deleted:
            conditions.append("deleted_at IS NULL")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = await self.db.fetchall(
            f"SELECT * FROM wallet {where} ORDER BY code",
            tuple(params),
        )
        return [Wallet.from_row(dict(row)) for row in rows]

    async def delete_wallet(self, wallet_id: str, actor: Actor | None = None) -> Wallet:
        """지갑 삭제 (Soft Delete, 멱등)

        Raises:
            NotFoundError: 지갑이 없는 경우
            ConflictError: 활성 전표가 남아있는 경우
        """
        async with self.ledger.locks.hold(wallet_id):
            async with self.db.transaction():
                before = await self.ledger._fetch_wallet(wallet_id)
                if before is None:
                    raise NotFoundError(ENTITY, wallet_id)

                state, changed = tombstone(before.lifecycle, now_utc())
                if not changed:
                    return before

                row = await self.db.fetchone(
                    """
                    SELECT COUNT(*) AS cnt FROM posting
                    WHERE wallet_id = ? AND deleted_at IS NULL
                    """,
                    (wallet_id,),
                )
                if row["cnt"] > 0:
                    raise ConflictError(
                        "Wallet has active postings and cannot be deleted",
                        wallet_id=wallet_id,
                        posting_count=row["cnt"],
                    )

                await self._write_lifecycle(wallet_id, lifecycle_to_column(state))
                after = await self.ledger._fetch_wallet(wallet_id)
                assert after is not None
                await self.ledger.audit.record(
                    AuditEntity.WALLET,
                    wallet_id,
                    AuditAction.DELETE,
                    before=before.to_dict(),
                    after=after.to_dict(),
                    actor=actor,
                )

        logger.info(f"지갑 삭제: {after.code}", extra={"wallet_id": wallet_id})
        return after

    async def restore_wallet(self, wallet_id: str, actor: Actor | None = None) -> Wallet:
        """삭제된 지갑 복원

        Raises:
            NotFoundError: 지갑이 없는 경우
            AlreadyActiveError: 삭제되지 않은 지갑
        """
        async with self.ledger.locks.hold(wallet_id):
            async with self.db.transaction():
                before = await self.ledger._fetch_wallet(wallet_id)
                if before is None:
                    raise NotFoundError(ENTITY, wallet_id)

                state = restore(before.lifecycle, ENTITY, wallet_id)
                await self._write_lifecycle(wallet_id, lifecycle_to_column(state))
                after = await self.ledger._require_wallet(wallet_id)
                await self.ledger.audit.record(
                    AuditEntity.WALLET,
                    wallet_id,
                    AuditAction.RESTORE,
                    before=before.to_dict(),
                    after=after.to_dict(),
                    actor=actor,
                )

        logger.info(f"지갑 복원: {after.code}", extra={"wallet_id": wallet_id})
        return after

    async def _write_lifecycle(self, wallet_id: str, deleted_at: str | None) -> None:
        await self.db.execute(
            "UPDATE wallet SET deleted_at = ?, updated_at = ? WHERE wallet_id = ?",
            (deleted_at, to_db(now_utc()), wallet_id),
        )

    # =========================================================================
    # 주문 / 가공 작업
    # =========================================================================

    async def create_order(
        self,
        name: str,
        total_amount: Decimal | int | str,
        customer_id: str | None = None,
        actor: Actor | None = None,
    ) -> Order:
        """주문 생성

        Raises:
            ValidationError: 이름이 비어 있거나 총액이 음수
        """
        name = _require_name(name)
        total = to_amount(total_amount, "total_amount")
        if total < 0:
            raise ValidationError("total_amount must not be negative", total_amount=total)

        order_id = str(uuid.uuid4())
        async with self.db.transaction():
            code = await next_table_code(self.db, "sales_order", CodePrefix.ORDER)
            await self.db.execute(
                """
                INSERT INTO sales_order (
                    order_id, code, name, customer_id, total_amount, created_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (order_id, code, name, customer_id, str(total), to_db(now_utc())),
            )
            order = await fetch_order(self.db, order_id)
            await self.ledger.audit.record(
                AuditEntity.ORDER,
                order_id,
                AuditAction.CREATE,
                after=order.to_dict(),
                actor=actor,
            )

        logger.info(f"주문 생성: {order.code}", extra={"order_id": order_id})
        return order

    async def create_workshop_job(
        self,
        workshop_id: str,
        amount: Decimal | int | str,
        discount_amount: Decimal | int | str = 0,
        order_id: str | None = None,
        actor: Actor | None = None,
    ) -> WorkshopJob:
        """가공 작업 생성

        Raises:
            ValidationError: 금액이 음수이거나 할인액이 범위를 벗어난 경우
            NotFoundError: 연결 주문이 없는 경우
        """
        workshop_id = _require_name(workshop_id, "workshop_id")
        job_amount = to_amount(amount)
        discount = to_amount(discount_amount, "discount_amount")
        if job_amount < 0:
            raise ValidationError("amount must not be negative", amount=job_amount)
        if discount < 0 or discount > job_amount:
            raise ValidationError(
                "discount_amount must be between 0 and amount",
                discount_amount=discount,
                amount=job_amount,
            )

        job_id = str(uuid.uuid4())
        async with self.db.transaction():
            if order_id is not None:
                await fetch_order(self.db, order_id)

            code = await next_table_code(self.db, "workshop_job", CodePrefix.WORKSHOP_JOB)
            now_str = to_db(now_utc())
            await self.db.execute(
                """
                INSERT INTO workshop_job (
                    job_id, code, order_id, workshop_id, amount, discount_amount,
                    created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    job_id,
                    code,
                    order_id,
                    workshop_id,
                    str(job_amount),
                    str(discount),
                    now_str,
                    now_str,
                ),
            )
            job = await fetch_workshop_job(self.db, job_id)
            await self.ledger.audit.record(
                AuditEntity.WORKSHOP_JOB,
                job_id,
                AuditAction.CREATE,
                after=job.to_dict(),
                actor=actor,
            )

        logger.info(f"가공 작업 생성: {job.code}", extra={"workshop_job_id": job_id})
        return job

    async def get_order(self, order_id: str, include_deleted: bool = False) -> Order:
        """주문 조회

        Raises:
            NotFoundError: 없는 주문 (include_deleted가 아니면 삭제된 주문 포함)
        """
        return await fetch_order(self.db, order_id, include_deleted)

    async def get_workshop_job(
        self, job_id: str, include_deleted: bool = False
    ) -> WorkshopJob:
        """가공 작업 조회

        Raises:
            NotFoundError: 없는 작업 (include_deleted가 아니면 삭제된 작업 포함)
        """
        return await fetch_workshop_job(self.db, job_id, include_deleted)

    async def delete_order(self, order_id: str, actor: Actor | None = None) -> Order:
        """주문 삭제 (Soft Delete, 멱등)

        연결된 INCOME 전표는 그대로 남음. 삭제된 주문에는 새 전표를 연결할 수 없음.

        Raises:
            NotFoundError: 주문이 없는 경우
        """
        async with self.db.transaction():
            before = await fetch_order(self.db, order_id, include_deleted=True)
            state, changed = tombstone(before.lifecycle, now_utc())
            if not changed:
                return before

            await self.db.execute(
                "UPDATE sales_order SET deleted_at = ? WHERE order_id = ?",
                (lifecycle_to_column(state), order_id),
            )
            after = await fetch_order(self.db, order_id, include_deleted=True)
            await self.ledger.audit.record(
                AuditEntity.ORDER,
                order_id,
                AuditAction.DELETE,
                before=before.to_dict(),
                after=after.to_dict(),
                actor=actor,
            )

        logger.info(f"주문 삭제: {after.code}", extra={"order_id": order_id})
        return after

    async def restore_order(self, order_id: str, actor: Actor | None = None) -> Order:
        """삭제된 주문 복원

        Raises:
            NotFoundError: 주문이 없는 경우
            AlreadyActiveError: 삭제되지 않은 주문
        """
        async with self.db.transaction():
            before = await fetch_order(self.db, order_id, include_deleted=True)
            state = restore(before.lifecycle, AuditEntity.ORDER.value, order_id)
            await self.db.execute(
                "UPDATE sales_order SET deleted_at = ? WHERE order_id = ?",
                (lifecycle_to_column(state), order_id),
            )
            after = await fetch_order(self.db, order_id)
            await self.ledger.audit.record(
                AuditEntity.ORDER,
                order_id,
                AuditAction.RESTORE,
                before=before.to_dict(),
                after=after.to_dict(),
                actor=actor,
            )

        logger.info(f"주문 복원: {after.code}", extra={"order_id": order_id})
        return after

    async def delete_workshop_job(
        self, job_id: str, actor: Actor | None = None
    ) -> WorkshopJob:
        """가공 작업 삭제 (Soft Delete, 멱등)

        지급 전표는 그대로 남고 작업은 목록/합계/가공처별 미지급금에서 빠짐.
        같은 작업의 지급과 겹치지 않도록 작업 락을 잡음.

        Raises:
            NotFoundError: 작업이 없는 경우
        """
        async with self.ledger.locks.hold(f"{DebtReconciler.JOB_LOCK_PREFIX}{job_id}"):
            async with self.db.transaction():
                before = await fetch_workshop_job(self.db, job_id, include_deleted=True)
                state, changed = tombstone(before.lifecycle, now_utc())
                if not changed:
                    return before

                await self._write_job_lifecycle(job_id, lifecycle_to_column(state))
                after = await fetch_workshop_job(self.db, job_id, include_deleted=True)
                await self.ledger.audit.record(
                    AuditEntity.WORKSHOP_JOB,
                    job_id,
                    AuditAction.DELETE,
                    before=before.to_dict(),
                    after=after.to_dict(),
                    actor=actor,
                )

        logger.info(f"가공 작업 삭제: {after.code}", extra={"workshop_job_id": job_id})
        return after

    async def restore_workshop_job(
        self, job_id: str, actor: Actor | None = None
    ) -> WorkshopJob:
        """삭제된 가공 작업 복원

        Raises:
            NotFoundError: 작업이 없는 경우
            AlreadyActiveError: 삭제되지 않은 작업
        """
        async with self.ledger.locks.hold(f"{DebtReconciler.JOB_LOCK_PREFIX}{job_id}"):
            async with self.db.transaction():
                before = await fetch_workshop_job(self.db, job_id, include_deleted=True)
                state = restore(before.lifecycle, AuditEntity.WORKSHOP_JOB.value, job_id)
                await self._write_job_lifecycle(job_id, lifecycle_to_column(state))
                after = await fetch_workshop_job(self.db, job_id)
                await self.ledger.audit.record(
                    AuditEntity.WORKSHOP_JOB,
                    job_id,
                    AuditAction.RESTORE,
                    before=before.to_dict(),
                    after=after.to_dict(),
                    actor=actor,
                )

        logger.info(f"가공 작업 복원: {after.code}", extra={"workshop_job_id": job_id})
        return after

    async def _write_job_lifecycle(self, job_id: str, deleted_at: str | None) -> None:
        await self.db.execute(
            "UPDATE workshop_job SET deleted_at = ?, updated_at = ? WHERE job_id = ?",
            (deleted_at, to_db(now_utc()), job_id),
        )
