"""
채무 정산 (Công nợ)

주문 미수금과 외주 가공 작업 미지급금을 조회 시점에 계산.
저장된 상태 없음: 연결된 활성 전표를 매번 다시 합산.

- 주문: paid = Σ 활성 INCOME 전표 amount (order_id 연결)
        debt = max(0, total - paid)
- 작업: net  = max(0, amount - discount)
        paid = Σ |활성 EXPENSE 전표 amount| (workshop_job_id 연결)
        debt = max(0, net - paid)

초과 지급분은 채무 0으로 잘리고 크레딧으로 이월하지 않음 (overpaid로만 노출).
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import CodePrefix, Notes
from core.ledger.errors import NotFoundError, ValidationError
from core.ledger.store import WalletLedger, to_amount
from core.ledger.types import (
    ZERO,
    JobDebt,
    Order,
    OrderDebt,
    Posting,
    PostingLinks,
    WorkshopJob,
    WorkshopJobsSummary,
)
from core.types import Actor, AuditAction, AuditEntity, PaymentStatus, PostingKind
from core.utils.timezone import now_utc, to_db

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def fetch_order(
    db: SQLiteAdapter, order_id: str, include_deleted: bool = False
) -> Order:
    """주문 조회 (기본은 활성 주문만)

    Raises:
        NotFoundError: 없거나 삭제된 주문
    """
    active = "" if include_deleted else " AND deleted_at IS NULL"
    row = await db.fetchone(
        f"SELECT * FROM sales_order WHERE order_id = ?{active}",
        (order_id,),
    )
    if row is None:
        raise NotFoundError(AuditEntity.ORDER.value, order_id)
    return Order.from_row(dict(row))


async def fetch_workshop_job(
    db: SQLiteAdapter, job_id: str, include_deleted: bool = False
) -> WorkshopJob:
    """가공 작업 조회 (기본은 활성 작업만)

    Raises:
        NotFoundError: 없거나 삭제된 작업
    """
    active = "" if include_deleted else " AND deleted_at IS NULL"
    row = await db.fetchone(
        f"SELECT * FROM workshop_job WHERE job_id = ?{active}",
        (job_id,),
    )
    if row is None:
        raise NotFoundError(AuditEntity.WORKSHOP_JOB.value, job_id)
    return WorkshopJob.from_row(dict(row))


def payment_status(paid: Decimal, net: Decimal) -> PaymentStatus:
    """결제 상태 판정

    - paid >= net: FULLY_PAID (net이 0이면 결제 없이도 완납)
    - paid == 0: UNPAID
    - 그 외: PARTIALLY_PAID
    """
    if paid >= net:
        return PaymentStatus.FULLY_PAID
    if paid <= 0:
        return PaymentStatus.UNPAID
    return PaymentStatus.PARTIALLY_PAID


def _job_debt(job: WorkshopJob, paid: Decimal) -> JobDebt:
    net = job.net_amount
    return JobDebt(
        job_id=job.job_id,
        amount=job.amount,
        discount=job.discount_amount,
        net=net,
        paid=paid,
        debt=max(ZERO, net - paid),
        status=payment_status(paid, net),
    )


class DebtReconciler:
    """채무 정산기

    조회는 락 없이 스냅샷으로 수행.
    지급(pay_workshop_job)만 지갑 락 + 작업 락을 잡고 전표 추가.

    Args:
        ledger: WalletLedger

    사용 예시:
    ```python
    debts = DebtReconciler(ledger)

    order_debt = await debts.order_debt(order_id)
    job_debt = await debts.workshop_job_debt(job_id)

    await debts.update_discount(job_id, Decimal("600000"))
    await debts.pay_workshop_job(job_id, wallet_id, Decimal("1000000"))
    ```
    """

    # 같은 작업에 대한 동시 지급을 직렬화하는 락 키 접두사
    JOB_LOCK_PREFIX = "workshop_job:"

    def __init__(self, ledger: WalletLedger):
        self.ledger = ledger

    @property
    def db(self) -> SQLiteAdapter:
        return self.ledger.db

    payment_status = staticmethod(payment_status)

    async def order_debt(self, order_id: str) -> OrderDebt:
        """주문 미수금

        Raises:
            NotFoundError: 주문이 없는 경우
        """
        order = await fetch_order(self.db, order_id)
        payments = await self.ledger.list_postings(
            kind=PostingKind.INCOME, order_id=order_id
        )
        paid = sum((p.amount for p in payments), ZERO)

        return OrderDebt(
            order_id=order_id,
            total=order.total_amount,
            paid=paid,
            debt=max(ZERO, order.total_amount - paid),
            status=payment_status(paid, order.total_amount),
        )

    async def workshop_job_debt(self, job_id: str) -> JobDebt:
        """가공 작업 미지급금

        Raises:
            NotFoundError: 작업이 없는 경우
        """
        job = await fetch_workshop_job(self.db, job_id)
        return _job_debt(job, await self._job_paid(job_id))

    async def update_discount(
        self,
        job_id: str,
        new_discount: Decimal | int | str,
        actor: Actor | None = None,
    ) -> WorkshopJob:
        """할인액 변경

        기존 지급 전표는 건드리지 않음. 다음 조회부터 net/debt만 달라짐.

        Raises:
            NotFoundError: 작업이 없는 경우
            ValidationError: 할인액이 음수이거나 작업 금액 초과
        """
        discount = to_amount(new_discount, "discount_amount")

        async with self.db.transaction():
            before = await fetch_workshop_job(self.db, job_id)
            if discount < 0:
                raise ValidationError(
                    "discount_amount must not be negative", discount_amount=discount
                )
            if discount > before.amount:
                raise ValidationError(
                    "discount_amount must not exceed job amount",
                    discount_amount=discount,
                    amount=before.amount,
                )

            await self.db.execute(
                "UPDATE workshop_job SET discount_amount = ?, updated_at = ? WHERE job_id = ?",
                (str(discount), to_db(now_utc()), job_id),
            )
            after = await fetch_workshop_job(self.db, job_id)
            await self.ledger.audit.record(
                AuditEntity.WORKSHOP_JOB,
                job_id,
                AuditAction.UPDATE_DISCOUNT,
                before=before.to_dict(),
                after=after.to_dict(),
                actor=actor,
            )

        logger.info(
            f"가공 작업 할인 변경: {after.code} {before.discount_amount} → {discount}",
            extra={"workshop_job_id": job_id},
        )
        return after

    async def job_payments(self, job_id: str) -> dict[str, Any]:
        """가공 작업 지급 내역

        Returns:
            {"job": WorkshopJob, "debt": JobDebt, "payments": [Posting, ...]}
            payments는 최신순

        Raises:
            NotFoundError: 작업이 없는 경우
        """
        job = await fetch_workshop_job(self.db, job_id)
        payments = await self.ledger.list_postings(
            kind=PostingKind.EXPENSE,
            workshop_job_id=job_id,
            newest_first=True,
        )
        paid = sum((abs(p.amount) for p in payments), ZERO)

        return {
            "job": job,
            "debt": _job_debt(job, paid),
            "payments": payments,
        }

    async def workshop_debts(self) -> list[dict[str, Any]]:
        """가공처별 미지급금 합계

        미지급금이 있는 가공처만, 금액 내림차순.

        Returns:
            [{"workshop_id", "debt", "job_count"}, ...]
        """
        job_rows = await self.db.fetchall(
            "SELECT * FROM workshop_job WHERE deleted_at IS NULL"
        )
        paid_by_job = await self._paid_by_job()

        totals: dict[str, dict[str, Any]] = {}
        for row in job_rows:
            job = WorkshopJob.from_row(dict(row))
            debt = _job_debt(job, paid_by_job.get(job.job_id, ZERO)).debt
            if debt <= 0:
                continue
            entry = totals.setdefault(
                job.workshop_id,
                {"workshop_id": job.workshop_id, "debt": ZERO, "job_count": 0},
            )
            entry["debt"] += debt
            entry["job_count"] += 1

        return sorted(totals.values(), key=lambda e: e["debt"], reverse=True)

    async def list_workshop_jobs(
        self,
        workshop_id: str | None = None,
        order_id: str | None = None,
        search: str | None = None,
        include_deleted: bool = False,
    ) -> list[dict[str, Any]]:
        """가공 작업 목록 (최신순, 작업별 지급/미지급 포함)

        Args:
            workshop_id: 가공처 필터
            order_id: 주문 필터
            search: 작업 번호 부분 일치
            include_deleted: 삭제된 작업 포함 여부

        Returns:
            [{"job": WorkshopJob, "debt": JobDebt}, ...]
        """
        job_rows = await self._job_rows(workshop_id, order_id, search, include_deleted)
        paid_by_job = await self._paid_by_job()

        result = []
        for row in job_rows:
            job = WorkshopJob.from_row(dict(row))
            result.append(
                {"job": job, "debt": _job_debt(job, paid_by_job.get(job.job_id, ZERO))}
            )
        return result

    async def workshop_jobs_summary(
        self,
        workshop_id: str | None = None,
        order_id: str | None = None,
    ) -> WorkshopJobsSummary:
        """활성 가공 작업 합계

        total_job_amount = Σ net, total_paid_amount = Σ paid,
        total_debt_amount = Σ 작업별 debt
        """
        job_rows = await self._job_rows(workshop_id, order_id)
        paid_by_job = await self._paid_by_job()

        total_job = total_paid = total_debt = ZERO
        for row in job_rows:
            job = WorkshopJob.from_row(dict(row))
            debt = _job_debt(job, paid_by_job.get(job.job_id, ZERO))
            total_job += debt.net
            total_paid += debt.paid
            total_debt += debt.debt

        return WorkshopJobsSummary(
            job_count=len(job_rows),
            total_job_amount=total_job,
            total_paid_amount=total_paid,
            total_debt_amount=total_debt,
        )

    async def pay_workshop_job(
        self,
        job_id: str,
        wallet_id: str,
        amount: Decimal | int | str,
        date: datetime | None = None,
        note: str | None = None,
        category_id: str | None = None,
        actor: Actor | None = None,
    ) -> Posting:
        """가공 작업 지급 (EXPENSE 전표 추가)

        Args:
            job_id: 가공 작업 ID
            wallet_id: 출금 지갑
            amount: 지급액 (양수, 현재 미지급금 이하)
            date: 지급일 (None이면 현재)
            note: 추가 메모
            category_id: 분류 ID
            actor: 행위자

        Returns:
            생성된 EXPENSE 전표 (amount = -지급액)

        Raises:
            ValidationError: 지급액이 0 이하이거나 미지급금 초과
            NotFoundError: 작업/지갑이 없는 경우
        """
        pay_amount = to_amount(amount)
        if pay_amount <= 0:
            raise ValidationError("Payment amount must be positive", amount=pay_amount)

        async with self.ledger.locks.hold(wallet_id, f"{self.JOB_LOCK_PREFIX}{job_id}"):
            async with self.db.transaction():
                job = await fetch_workshop_job(self.db, job_id)
                current = _job_debt(job, await self._job_paid(job_id))
                if pay_amount > current.debt:
                    raise ValidationError(
                        "Payment amount exceeds remaining debt",
                        amount=pay_amount,
                        debt=current.debt,
                    )

                await self.ledger._require_wallet(wallet_id)
                payment_note = f"{Notes.WORKSHOP_PAYMENT} - {job.code}"
                if note:
                    payment_note = f"{payment_note} {note}"

                posting = await self.ledger._insert_posting(
                    posting_id=str(uuid.uuid4()),
                    wallet_id=wallet_id,
                    kind=PostingKind.EXPENSE,
                    date=date or now_utc(),
                    amount=-pay_amount,
                    code=await self.ledger._next_posting_code(CodePrefix.EXPENSE),
                    links=PostingLinks(workshop_job_id=job_id),
                    note=payment_note,
                    category_id=category_id,
                )
                await self.ledger.audit.record(
                    AuditEntity.POSTING,
                    posting.posting_id,
                    AuditAction.CREATE,
                    after=posting.to_dict(),
                    actor=actor,
                )

        logger.info(
            f"가공 작업 지급: {job.code} {pay_amount}",
            extra={
                "wallet_id": wallet_id,
                "posting_id": posting.posting_id,
                "workshop_job_id": job_id,
            },
        )
        return posting

    async def _job_rows(
        self,
        workshop_id: str | None = None,
        order_id: str | None = None,
        search: str | None = None,
        include_deleted: bool = False,
    ) -> list[Any]:
        conditions: list[str] = []
        params: list[Any] = []

        if workshop_id:
            conditions.append("workshop_id = ?")
            params.append(workshop_id)
        if order_id:
            conditions.append("order_id = ?")
            params.append(order_id)
        if search:
            conditions.append("code LIKE ?")
            params.append(f"%{search}%")
        if not include_deleted:
            conditions.append("deleted_at IS NULL")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return await self.db.fetchall(
            f"SELECT * FROM workshop_job {where} ORDER BY created_at DESC, code DESC",
            tuple(params),
        )

    async def _paid_by_job(self) -> dict[str, Decimal]:
        """작업별 지급 합계 (활성 EXPENSE 전표)"""
        rows = await self.db.fetchall(
            """
            SELECT workshop_job_id, amount FROM posting
            WHERE kind = ? AND deleted_at IS NULL AND workshop_job_id IS NOT NULL
            """,
            (PostingKind.EXPENSE.value,),
        )
        paid_by_job: dict[str, Decimal] = {}
        for row in rows:
            job_id = row["workshop_job_id"]
            paid_by_job[job_id] = paid_by_job.get(job_id, ZERO) + abs(Decimal(row["amount"]))
        return paid_by_job

    async def _job_paid(self, job_id: str) -> Decimal:
        payments = await self.ledger.list_postings(
            kind=PostingKind.EXPENSE, workshop_job_id=job_id
        )
        return sum((abs(p.amount) for p in payments), ZERO)
