"""
Ledger 저장소

지갑별 전표(Posting) 저장, 잔액(balance_after) 체인 유지 및 조회.

잔액 규칙:
- 전표 정렬: (date, seq). seq는 삽입 순서
- balance_after = 직전 활성 전표 balance_after + amount
- 삭제된(Tombstoned) 전표는 합계와 체인에서 제외
- 금액/날짜 변경, 삭제, 복원, 과거 날짜 추가 시 지갑 전체 재계산
"""

from __future__ import annotations

import logging
import uuid
from datetime import date as date_type
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from core.constants import CodePrefix
from core.ledger.errors import NotFoundError, ValidationError
from core.ledger.locks import WalletLockRegistry, get_lock_registry
from core.ledger.tombstone import (
    Active,
    lifecycle_to_column,
    require_active,
    restore,
    tombstone,
)
from core.ledger.types import (
    ZERO,
    BalanceMismatch,
    Posting,
    PostingLinks,
    ReconciliationReport,
    TransferLink,
    UsageSummary,
    Wallet,
)
from core.storage.audit_store import AuditStore
from core.types import Actor, AuditAction, AuditEntity, PostingKind
from core.utils.codes import next_code
from core.utils.timezone import ensure_utc, month_start_ict, now_utc, to_db

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

UNCATEGORIZED = "uncategorized"

_POSTING_CODE_PREFIX: dict[PostingKind, str] = {
    PostingKind.INCOME: CodePrefix.INCOME,
    PostingKind.EXPENSE: CodePrefix.EXPENSE,
    PostingKind.ADJUSTMENT: CodePrefix.ADJUSTMENT,
}


def to_amount(value: Any, field: str = "amount") -> Decimal:
    """입력값 → Decimal 금액

    float는 str 경유로 변환 (이진 오차 방지).

    Raises:
        ValidationError: 숫자가 아니거나 유한하지 않은 경우
    """
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValidationError(f"{field} must be a number", **{field: value}) from e

    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite", **{field: value})
    return amount


def validate_signed_amount(kind: PostingKind, amount: Decimal) -> None:
    """전표 유형별 부호 검증

    - 0은 모든 유형에서 거부
    - INCOME > 0, EXPENSE < 0, ADJUSTMENT ≠ 0

    Raises:
        ValidationError: 규칙 위반
    """
    if amount == 0:
        raise ValidationError("amount must be non-zero", kind=kind.value)
    if kind == PostingKind.INCOME and amount < 0:
        raise ValidationError("INCOME amount must be positive", amount=amount)
    if kind == PostingKind.EXPENSE and amount > 0:
        raise ValidationError("EXPENSE amount must be negative", amount=amount)


def _as_of_bound(as_of: datetime | date_type) -> tuple[str, str]:
    """as_of → (비교 연산자, DB 문자열)

    날짜만 주어지면 ICT 기준 그 날 전체 포함 (다음 날 0시 미만).
    """
    if not isinstance(as_of, datetime):
        return "<", to_db(as_of + timedelta(days=1))
    return "<=", to_db(as_of)


async def next_table_code(db: SQLiteAdapter, table: str, prefix: str) -> str:
    """테이블의 prefix 번호 중 최대값 + 1

    최대 번호 한 행만 읽음. 자리수가 늘어난 번호(PT10000)도
    길이 우선 정렬로 최대값이 됨. 접두사 뒤에 숫자가 아닌 문자가 있는 번호는 무시.

    Args:
        db: DB 어댑터
        table: code 컬럼을 가진 테이블 (내부 상수)
        prefix: 접두사
    """
    row = await db.fetchone(
        f"""
        SELECT code FROM {table}
        WHERE code GLOB ? AND code NOT GLOB ?
        ORDER BY LENGTH(code) DESC, code DESC
        LIMIT 1
        """,
        (f"{prefix}[0-9]*", f"{prefix}*[^0-9]*"),
    )
    return next_code(prefix, [row["code"]] if row is not None else [])


class WalletLedger:
    """지갑 Ledger

    전표 추가/수정/삭제/복원 시 지갑 락 → DB 트랜잭션 → 기록 →
    잔액 재계산 → 감사 로그 → 커밋 순서로 처리.
    어떤 단계에서 예외가 나도 트랜잭션 전체가 롤백됨.

    Args:
        db: SQLite 어댑터
        locks: 지갑 락 저장소 (None이면 프로세스 전역)
        audit: 감사 로그 저장소 (None이면 같은 DB에 생성)

    사용 예시:
    ```python
    ledger = WalletLedger(db)

    posting = await ledger.append_posting(
        wallet_id, PostingKind.INCOME, date=now_utc(), amount=Decimal("500000"),
    )
    await ledger.delete_posting(posting.posting_id)

    balance = await ledger.get_balance(wallet_id)
    ```
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        locks: WalletLockRegistry | None = None,
        audit: AuditStore | None = None,
    ):
        self.db = db
        self.locks = locks or get_lock_registry()
        self.audit = audit or AuditStore(db)

    # =========================================================================
    # 변경 API (지갑 락 획득)
    # =========================================================================

    async def append_posting(
        self,
        wallet_id: str,
        kind: PostingKind | str,
        date: datetime,
        amount: Decimal | int | str,
        links: PostingLinks | None = None,
        note: str | None = None,
        category_id: str | None = None,
        actor: Actor | None = None,
    ) -> Posting:
        """전표 추가

        Args:
            wallet_id: 지갑 ID
            kind: INCOME / EXPENSE / ADJUSTMENT
            date: 거래일
            amount: 부호 포함 금액
            links: 주문/가공 작업 연결
            note: 메모
            category_id: 분류 ID
            actor: 행위자

        Returns:
            저장된 전표 (balance_after 포함)

        Raises:
            ValidationError: 금액이 0이거나 부호가 유형과 맞지 않는 경우
            NotFoundError: 지갑/주문/작업이 없거나 삭제된 경우
        """
        kind = PostingKind(kind)
        amount = to_amount(amount)
        validate_signed_amount(kind, amount)
        links = links or PostingLinks()

        async with self.locks.hold(wallet_id):
            async with self.db.transaction():
                await self._require_wallet(wallet_id)
                await self._validate_links(links)
                code = await self._next_posting_code(_POSTING_CODE_PREFIX[kind])
                posting = await self._insert_posting(
                    wallet_id=wallet_id,
                    kind=kind,
                    date=date,
                    amount=amount,
                    code=code,
                    links=links,
                    note=note,
                    category_id=category_id,
                )
                await self.audit.record(
                    AuditEntity.POSTING,
                    posting.posting_id,
                    AuditAction.CREATE,
                    after=posting.to_dict(),
                    actor=actor,
                )

        logger.info(
            f"전표 추가: {posting.code} {posting.amount}",
            extra={"wallet_id": wallet_id, "posting_id": posting.posting_id},
        )
        return posting

    async def edit_posting(
        self,
        posting_id: str,
        amount: Decimal | int | str | None = None,
        date: datetime | None = None,
        note: str | None = None,
        links: PostingLinks | None = None,
        category_id: str | None = None,
        actor: Actor | None = None,
    ) -> Posting:
        """전표 수정

        None 인자는 변경하지 않음. 금액 또는 날짜가 바뀌면 재계산.

        Raises:
            NotFoundError: 전표가 없거나 삭제된 경우
            ValidationError: 금액 규칙 위반, 이체 다리 직접 수정,
                이미 연결된 주문 변경 시도
        """
        wallet_id = await self._wallet_of(posting_id)

        async with self.locks.hold(wallet_id):
            async with self.db.transaction():
                before = await self._require_posting(posting_id)
                self._reject_transfer_leg(before)
                require_active(before.lifecycle, AuditEntity.POSTING.value, posting_id)

                after = await self._apply_edit(
                    before,
                    amount=amount,
                    date=date,
                    note=note,
                    links=links,
                    category_id=category_id,
                )
                await self.audit.record(
                    AuditEntity.POSTING,
                    posting_id,
                    AuditAction.UPDATE,
                    before=before.to_dict(),
                    after=after.to_dict(),
                    actor=actor,
                )

        logger.info(
            f"전표 수정: {after.code}",
            extra={"wallet_id": wallet_id, "posting_id": posting_id},
        )
        return after

    async def delete_posting(self, posting_id: str, actor: Actor | None = None) -> Posting:
        """전표 삭제 (Soft Delete, 멱등)

        이미 삭제된 전표는 변경 없이 그대로 반환.

        Raises:
            NotFoundError: 전표가 없는 경우
            ValidationError: 이체 다리 (이체 삭제로 처리해야 함)
        """
        wallet_id = await self._wallet_of(posting_id)

        async with self.locks.hold(wallet_id):
            async with self.db.transaction():
                before = await self._require_posting(posting_id)
                self._reject_transfer_leg(before)

                after, changed = await self._tombstone_posting(before)
                if changed:
                    await self.audit.record(
                        AuditEntity.POSTING,
                        posting_id,
                        AuditAction.DELETE,
                        before=before.to_dict(),
                        after=after.to_dict(),
                        actor=actor,
                    )

        if changed:
            logger.info(
                f"전표 삭제: {after.code}",
                extra={"wallet_id": wallet_id, "posting_id": posting_id},
            )
        return after

    async def restore_posting(self, posting_id: str, actor: Actor | None = None) -> Posting:
        """삭제된 전표 복원

        Raises:
            NotFoundError: 전표 또는 지갑이 없는 경우
            AlreadyActiveError: 삭제되지 않은 전표
            ValidationError: 이체 다리 (이체 복원으로 처리해야 함)
        """
        wallet_id = await self._wallet_of(posting_id)

        async with self.locks.hold(wallet_id):
            async with self.db.transaction():
                before = await self._require_posting(posting_id)
                self._reject_transfer_leg(before)

                after = await self._restore_posting(before)
                await self.audit.record(
                    AuditEntity.POSTING,
                    posting_id,
                    AuditAction.RESTORE,
                    before=before.to_dict(),
                    after=after.to_dict(),
                    actor=actor,
                )

        logger.info(
            f"전표 복원: {after.code}",
            extra={"wallet_id": wallet_id, "posting_id": posting_id},
        )
        return after

    async def recompute(self, wallet_id: str) -> Decimal:
        """지갑 잔액 체인 재계산 (멱등)

        Returns:
            재계산된 현재 잔액

        Raises:
            NotFoundError: 지갑이 없는 경우
        """
        async with self.locks.hold(wallet_id):
            async with self.db.transaction():
                if await self._fetch_wallet(wallet_id) is None:
                    raise NotFoundError(AuditEntity.WALLET.value, wallet_id)
                return await self._recompute(wallet_id)

    # =========================================================================
    # 조회 API (락 없음)
    # =========================================================================

    async def get_balance(
        self,
        wallet_id: str,
        as_of: datetime | date_type | None = None,
    ) -> Decimal:
        """as_of 시점 지갑 잔액

        as_of 이하 마지막 활성 전표의 balance_after. 없으면 0.
        as_of가 없으면 미래 날짜 전표까지 포함한 전체 잔액 (wallet.balance와 동일).

        Args:
            wallet_id: 지갑 ID
            as_of: 기준 시각 (None이면 전체, date면 그 날 끝까지)

        Raises:
            NotFoundError: 지갑이 없는 경우
        """
        if await self._fetch_wallet(wallet_id) is None:
            raise NotFoundError(AuditEntity.WALLET.value, wallet_id)

        date_filter = ""
        params: tuple[Any, ...] = (wallet_id,)
        if as_of is not None:
            op, bound = _as_of_bound(as_of)
            date_filter = f"AND date {op} ?"
            params = (wallet_id, bound)

        row = await self.db.fetchone(
            f"""
            SELECT balance_after FROM posting
            WHERE wallet_id = ? AND deleted_at IS NULL {date_filter}
            ORDER BY date DESC, seq DESC
            LIMIT 1
            """,
            params,
        )
        return Decimal(row["balance_after"]) if row else ZERO

    async def get_posting(self, posting_id: str) -> Posting:
        """전표 조회 (삭제된 전표 포함)

        Raises:
            NotFoundError: 전표가 없는 경우
        """
        return await self._require_posting(posting_id)

    async def list_postings(
        self,
        wallet_id: str | None = None,
        kind: PostingKind | str | None = None,
        include_deleted: bool = False,
        transfers_only: bool = False,
        manual_adjustments_only: bool = False,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        order_id: str | None = None,
        workshop_job_id: str | None = None,
        newest_first: bool = False,
        limit: int | None = None,
    ) -> list[Posting]:
        """전표 목록 조회 ((date, seq) 순)

        Args:
            wallet_id: 지갑 필터
            kind: 유형 필터
            include_deleted: 삭제된 전표 포함 여부
            transfers_only: 이체 다리만
            manual_adjustments_only: 이체가 아닌 ADJUSTMENT만
            date_from: 시작 (포함)
            date_to: 끝 (포함)
            order_id: 주문 연결 필터
            workshop_job_id: 가공 작업 연결 필터
            newest_first: 최신순 정렬
            limit: 최대 건수
        """
        conditions: list[str] = []
        params: list[Any] = []

        if wallet_id is not None:
            conditions.append("wallet_id = ?")
            params.append(wallet_id)
        if kind is not None:
            conditions.append("kind = ?")
            params.append(PostingKind(kind).value)
        if not include_deleted:
            conditions.append("deleted_at IS NULL")
        if transfers_only:
            conditions.append("transfer_id IS NOT NULL")
        if manual_adjustments_only:
            conditions.append("kind = ? AND transfer_id IS NULL")
            params.append(PostingKind.ADJUSTMENT.value)
        if date_from is not None:
            conditions.append("date >= ?")
            params.append(to_db(date_from))
        if date_to is not None:
            conditions.append("date <= ?")
            params.append(to_db(date_to))
        if order_id is not None:
            conditions.append("order_id = ?")
            params.append(order_id)
        if workshop_job_id is not None:
            conditions.append("workshop_job_id = ?")
            params.append(workshop_job_id)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        order = "date DESC, seq DESC" if newest_first else "date, seq"
        sql = f"SELECT * FROM posting {where} ORDER BY {order}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        rows = await self.db.fetchall(sql, tuple(params))
        return [Posting.from_row(dict(row)) for row in rows]

    async def usage_summary(
        self,
        wallet_id: str,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
    ) -> UsageSummary:
        """기간별 지갑 사용 현황

        기본 기간: ICT 기준 이번 달 1일 ~ 현재.
        expense_total은 절대값(양수)으로 집계.

        Raises:
            NotFoundError: 지갑이 없는 경우
            ValidationError: 시작이 끝보다 늦은 경우
        """
        if await self._fetch_wallet(wallet_id) is None:
            raise NotFoundError(AuditEntity.WALLET.value, wallet_id)

        start = ensure_utc(date_from) if date_from is not None else month_start_ict()
        end = ensure_utc(date_to) if date_to is not None else now_utc()
        if start > end:
            raise ValidationError("from must not be after to", date_from=start, date_to=end)

        postings = await self.list_postings(wallet_id, date_from=start, date_to=end)

        income = expense = adjustments = transfers = ZERO
        income_by_category: dict[str, Decimal] = {}
        expense_by_category: dict[str, Decimal] = {}

        for posting in postings:
            category = posting.category_id or UNCATEGORIZED
            if posting.kind == PostingKind.INCOME:
                income += posting.amount
                income_by_category[category] = (
                    income_by_category.get(category, ZERO) + posting.amount
                )
            elif posting.kind == PostingKind.EXPENSE:
                expense += -posting.amount
                expense_by_category[category] = (
                    expense_by_category.get(category, ZERO) - posting.amount
                )
            elif posting.is_transfer_leg:
                transfers += posting.amount
            else:
                adjustments += posting.amount

        return UsageSummary(
            wallet_id=wallet_id,
            date_from=start,
            date_to=end,
            income_total=income,
            expense_total=expense,
            adjustments_total=adjustments,
            transfers_total=transfers,
            net=income - expense + adjustments + transfers,
            income_by_category=income_by_category,
            expense_by_category=expense_by_category,
        )

    async def verify_wallet(self, wallet_id: str) -> ReconciliationReport:
        """잔액 정합성 검사 (쓰기 없음)

        활성 전표를 (date, seq) 순으로 누적하여
        저장된 balance_after 및 wallet.balance 캐시와 비교.

        Raises:
            NotFoundError: 지갑이 없는 경우
        """
        wallet = await self._fetch_wallet(wallet_id)
        if wallet is None:
            raise NotFoundError(AuditEntity.WALLET.value, wallet_id)

        postings = await self.list_postings(wallet_id)
        running = ZERO
        mismatches: list[BalanceMismatch] = []
        for posting in postings:
            running += posting.amount
            if posting.balance_after != running:
                mismatches.append(
                    BalanceMismatch(
                        posting_id=posting.posting_id,
                        stored=posting.balance_after,
                        expected=running,
                    )
                )

        return ReconciliationReport(
            wallet_id=wallet_id,
            cached_balance=wallet.balance,
            computed_balance=running,
            posting_count=len(postings),
            mismatches=mismatches,
        )

    # =========================================================================
    # 내부 API
    #
    # 호출자가 지갑 락과 DB 트랜잭션을 이미 보유한 상태에서 사용.
    # TransferCoordinator, DebtReconciler, WalletRegistry가 공유.
    # =========================================================================

    async def _fetch_wallet(self, wallet_id: str) -> Wallet | None:
        row = await self.db.fetchone(
            "SELECT * FROM wallet WHERE wallet_id = ?",
            (wallet_id,),
        )
        return Wallet.from_row(dict(row)) if row else None

    async def _require_wallet(self, wallet_id: str) -> Wallet:
        """활성 지갑 조회

        Raises:
            NotFoundError: 없거나 삭제된 지갑
        """
        wallet = await self._fetch_wallet(wallet_id)
        if wallet is None or not wallet.is_active:
            raise NotFoundError(AuditEntity.WALLET.value, wallet_id)
        return wallet

    async def _fetch_posting(self, posting_id: str) -> Posting | None:
        row = await self.db.fetchone(
            "SELECT * FROM posting WHERE posting_id = ?",
            (posting_id,),
        )
        return Posting.from_row(dict(row)) if row else None

    async def _require_posting(self, posting_id: str) -> Posting:
        posting = await self._fetch_posting(posting_id)
        if posting is None:
            raise NotFoundError(AuditEntity.POSTING.value, posting_id)
        return posting

    async def _wallet_of(self, posting_id: str) -> str:
        """전표의 지갑 ID (락 대상 결정용, 지갑은 변경되지 않음)"""
        row = await self.db.fetchone(
            "SELECT wallet_id FROM posting WHERE posting_id = ?",
            (posting_id,),
        )
        if row is None:
            raise NotFoundError(AuditEntity.POSTING.value, posting_id)
        return row["wallet_id"]

    @staticmethod
    def _reject_transfer_leg(posting: Posting) -> None:
        if posting.is_transfer_leg:
            raise ValidationError(
                "Posting belongs to a transfer; modify it through the transfer",
                posting_id=posting.posting_id,
                transfer_id=posting.transfer.transfer_id if posting.transfer else None,
            )

    async def _validate_links(self, links: PostingLinks) -> None:
        """연결 대상 존재 확인

        Raises:
            NotFoundError: 주문/작업이 없거나 삭제된 경우
        """
        if links.order_id is not None:
            row = await self.db.fetchone(
                "SELECT 1 FROM sales_order WHERE order_id = ? AND deleted_at IS NULL",
                (links.order_id,),
            )
            if row is None:
                raise NotFoundError(AuditEntity.ORDER.value, links.order_id)

        if links.workshop_job_id is not None:
            row = await self.db.fetchone(
                "SELECT 1 FROM workshop_job WHERE job_id = ? AND deleted_at IS NULL",
                (links.workshop_job_id,),
            )
            if row is None:
                raise NotFoundError(AuditEntity.WORKSHOP_JOB.value, links.workshop_job_id)

    async def _next_posting_code(self, prefix: str) -> str:
        return await next_table_code(self.db, "posting", prefix)

    async def _insert_posting(
        self,
        *,
        wallet_id: str,
        kind: PostingKind,
        date: datetime,
        amount: Decimal,
        code: str,
        links: PostingLinks,
        note: str | None = None,
        category_id: str | None = None,
        transfer: TransferLink | None = None,
        posting_id: str | None = None,
    ) -> Posting:
        """전표 INSERT + 잔액 반영

        새 전표는 같은 날짜 안에서 가장 뒤에 위치 (seq 최대).
        더 늦은 날짜의 활성 전표가 있으면(과거 날짜 추가) 재계산.
        """
        posting_id = posting_id or str(uuid.uuid4())
        date_str = to_db(date)
        now_str = to_db(now_utc())

        prev = await self.db.fetchone(
            """
            SELECT balance_after FROM posting
            WHERE wallet_id = ? AND deleted_at IS NULL AND date <= ?
            ORDER BY date DESC, seq DESC
            LIMIT 1
            """,
            (wallet_id, date_str),
        )
        balance_after = (Decimal(prev["balance_after"]) if prev else ZERO) + amount

        await self.db.execute(
            """
            INSERT INTO posting (
                posting_id, code, wallet_id, kind, date, amount, balance_after,
                category_id, order_id, workshop_job_id,
                transfer_id, counterpart_posting_id, counterpart_wallet_id,
                note, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                posting_id,
                code,
                wallet_id,
                kind.value,
                date_str,
                str(amount),
                str(balance_after),
                category_id,
                links.order_id,
                links.workshop_job_id,
                transfer.transfer_id if transfer else None,
                transfer.counterpart_posting_id if transfer else None,
                transfer.counterpart_wallet_id if transfer else None,
                note,
                now_str,
                now_str,
            ),
        )

        later = await self.db.fetchone(
            """
            SELECT 1 FROM posting
            WHERE wallet_id = ? AND deleted_at IS NULL AND date > ?
            LIMIT 1
            """,
            (wallet_id, date_str),
        )
        if later is not None:
            await self._recompute(wallet_id)
        else:
            await self._set_wallet_balance(wallet_id, balance_after)

        return await self._require_posting(posting_id)

    async def _apply_edit(
        self,
        posting: Posting,
        *,
        amount: Decimal | int | str | None = None,
        date: datetime | None = None,
        note: str | None = None,
        links: PostingLinks | None = None,
        category_id: str | None = None,
    ) -> Posting:
        """활성 전표 필드 변경 (이체 다리 허용)

        Raises:
            ValidationError: 금액 규칙 위반, 연결된 주문 변경 시도
            NotFoundError: 새 연결 대상이 없는 경우
        """
        new_amount = posting.amount
        if amount is not None:
            new_amount = to_amount(amount)
            validate_signed_amount(posting.kind, new_amount)

        new_date = ensure_utc(date) if date is not None else posting.date

        new_links = posting.links
        if links is not None:
            current_order = posting.links.order_id
            if current_order is not None and links.order_id != current_order:
                raise ValidationError(
                    "Order link cannot be changed once set",
                    posting_id=posting.posting_id,
                    order_id=current_order,
                )
            await self._validate_links(links)
            new_links = links

        await self.db.execute(
            """
            UPDATE posting
            SET amount = ?, date = ?, note = ?, category_id = ?,
                order_id = ?, workshop_job_id = ?, updated_at = ?
            WHERE posting_id = ?
            """,
            (
                str(new_amount),
                to_db(new_date),
                note if note is not None else posting.note,
                category_id if category_id is not None else posting.category_id,
                new_links.order_id,
                new_links.workshop_job_id,
                to_db(now_utc()),
                posting.posting_id,
            ),
        )

        if new_amount != posting.amount or new_date != posting.date:
            await self._recompute(posting.wallet_id)

        return await self._require_posting(posting.posting_id)

    async def _tombstone_posting(self, posting: Posting) -> tuple[Posting, bool]:
        """삭제 표시 + 재계산

        Returns:
            (전표, 변경 여부). 이미 삭제된 경우 변경 없음
        """
        state, changed = tombstone(posting.lifecycle, now_utc())
        if not changed:
            return posting, False

        await self._write_lifecycle(posting.posting_id, lifecycle_to_column(state))
        await self._recompute(posting.wallet_id)
        return await self._require_posting(posting.posting_id), True

    async def _restore_posting(self, posting: Posting) -> Posting:
        """삭제 표시 해제 + 재계산

        Raises:
            AlreadyActiveError: 삭제되지 않은 전표
            NotFoundError: 지갑이 삭제된 경우
        """
        state: Active = restore(
            posting.lifecycle, AuditEntity.POSTING.value, posting.posting_id
        )
        await self._require_wallet(posting.wallet_id)

        await self._write_lifecycle(posting.posting_id, lifecycle_to_column(state))
        await self._recompute(posting.wallet_id)
        return await self._require_posting(posting.posting_id)

    async def _write_lifecycle(self, posting_id: str, deleted_at: str | None) -> None:
        await self.db.execute(
            "UPDATE posting SET deleted_at = ?, updated_at = ? WHERE posting_id = ?",
            (deleted_at, to_db(now_utc()), posting_id),
        )

    async def _set_wallet_balance(self, wallet_id: str, balance: Decimal) -> None:
        await self.db.execute(
            "UPDATE wallet SET balance = ? WHERE wallet_id = ?",
            (str(balance), wallet_id),
        )

    async def _recompute(self, wallet_id: str) -> Decimal:
        """잔액 체인 재계산

        메모리에서 전체를 계산한 뒤 달라진 행만 한 번에 갱신.
        트랜잭션 안에서 실행되므로 중간 상태는 노출되지 않음.

        Returns:
            최종 잔액
        """
        rows = await self.db.fetchall(
            """
            SELECT posting_id, amount, balance_after FROM posting
            WHERE wallet_id = ? AND deleted_at IS NULL
            ORDER BY date, seq
            """,
            (wallet_id,),
        )

        running = ZERO
        updates: list[tuple[str, str]] = []
        for row in rows:
            running += Decimal(row["amount"])
            if Decimal(row["balance_after"]) != running:
                updates.append((str(running), row["posting_id"]))

        if updates:
            await self.db.executemany(
                "UPDATE posting SET balance_after = ? WHERE posting_id = ?",
                updates,
            )
        await self._set_wallet_balance(wallet_id, running)

        logger.debug(
            f"잔액 재계산: {len(updates)}/{len(rows)}건 갱신",
            extra={"wallet_id": wallet_id, "balance": str(running)},
        )
        return running
