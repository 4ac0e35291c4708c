"""
Ledger 타입 정의

지갑, 전표(Posting), 이체, 주문/가공 작업 레코드와
조회 결과(채무, 사용 현황, 정합성 보고서) 데이터 구조.

DB 행 ↔ 객체 변환은 각 클래스의 from_row()에서 처리.
금액은 모두 Decimal, 날짜는 UTC aware datetime.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from core.ledger.tombstone import ACTIVE, Lifecycle, Tombstoned, lifecycle_from_column
from core.types import PaymentStatus, PostingKind, WalletType
from core.utils.timezone import from_db

ZERO = Decimal("0")


def _opt_datetime(value: str | None) -> datetime | None:
    return from_db(value) if value else None


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _deleted_at(state: Lifecycle) -> str | None:
    if isinstance(state, Tombstoned):
        return state.deleted_at.isoformat()
    return None


@dataclass(frozen=True)
class PostingLinks:
    """전표의 채무 연결 (주문 입금 / 가공 작업 지급)

    Attributes:
        order_id: 주문(Đơn hàng) ID. INCOME이면 주문 입금액에 합산
        workshop_job_id: 가공 작업 ID. EXPENSE면 작업 지급액에 합산
    """

    order_id: str | None = None
    workshop_job_id: str | None = None


@dataclass(frozen=True)
class TransferLink:
    """이체 다리 연결 정보

    Attributes:
        transfer_id: 이체 ID
        counterpart_posting_id: 반대편 다리 전표 ID
        counterpart_wallet_id: 반대편 지갑 ID
    """

    transfer_id: str
    counterpart_posting_id: str
    counterpart_wallet_id: str


@dataclass
class Wallet:
    """지갑 (Sổ quỹ)

    balance는 마지막 활성 전표 balance_after의 캐시.
    """

    wallet_id: str
    code: str
    name: str
    wallet_type: WalletType
    balance: Decimal = ZERO
    note: str | None = None
    lifecycle: Lifecycle = ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.lifecycle.is_active

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Wallet":
        """DB 행에서 생성"""
        return cls(
            wallet_id=row["wallet_id"],
            code=row["code"],
            name=row["name"],
            wallet_type=WalletType(row["wallet_type"]),
            balance=Decimal(str(row["balance"])),
            note=row.get("note"),
            lifecycle=lifecycle_from_column(row.get("deleted_at")),
            created_at=_opt_datetime(row.get("created_at")),
            updated_at=_opt_datetime(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet_id": self.wallet_id,
            "code": self.code,
            "name": self.name,
            "wallet_type": self.wallet_type.value,
            "balance": str(self.balance),
            "note": self.note,
            "deleted_at": _deleted_at(self.lifecycle),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class Posting:
    """전표 (Phiếu thu / Phiếu chi / Điều chỉnh)

    Attributes:
        posting_id: 전표 ID
        seq: 삽입 순서 (같은 날짜 정렬 기준)
        code: 전표 번호 (PT0001, PC0001, DC0001, CK0001)
        wallet_id: 지갑 ID
        kind: 전표 유형
        date: 거래일 (UTC)
        amount: 부호 포함 금액
        balance_after: 이 전표 반영 직후 지갑 잔액 (활성 전표만 의미 있음)
        links: 주문/가공 작업 연결
        transfer: 이체 다리인 경우 이체 연결
        category_id: 분류 ID
        note: 메모
        lifecycle: Active | Tombstoned
    """

    posting_id: str
    seq: int
    code: str
    wallet_id: str
    kind: PostingKind
    date: datetime
    amount: Decimal
    balance_after: Decimal = ZERO
    links: PostingLinks = field(default_factory=PostingLinks)
    transfer: TransferLink | None = None
    category_id: str | None = None
    note: str | None = None
    lifecycle: Lifecycle = ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.lifecycle.is_active

    @property
    def is_transfer_leg(self) -> bool:
        return self.transfer is not None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Posting":
        """DB 행에서 생성"""
        transfer = None
        if row.get("transfer_id"):
            transfer = TransferLink(
                transfer_id=row["transfer_id"],
                counterpart_posting_id=row["counterpart_posting_id"],
                counterpart_wallet_id=row["counterpart_wallet_id"],
            )

        return cls(
            posting_id=row["posting_id"],
            seq=row["seq"],
            code=row["code"],
            wallet_id=row["wallet_id"],
            kind=PostingKind(row["kind"]),
            date=from_db(row["date"]),
            amount=Decimal(str(row["amount"])),
            balance_after=Decimal(str(row["balance_after"])),
            links=PostingLinks(
                order_id=row.get("order_id"),
                workshop_job_id=row.get("workshop_job_id"),
            ),
            transfer=transfer,
            category_id=row.get("category_id"),
            note=row.get("note"),
            lifecycle=lifecycle_from_column(row.get("deleted_at")),
            created_at=_opt_datetime(row.get("created_at")),
            updated_at=_opt_datetime(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "posting_id": self.posting_id,
            "code": self.code,
            "wallet_id": self.wallet_id,
            "kind": self.kind.value,
            "date": self.date.isoformat(),
            "amount": str(self.amount),
            "balance_after": str(self.balance_after),
            "order_id": self.links.order_id,
            "workshop_job_id": self.links.workshop_job_id,
            "transfer_id": self.transfer.transfer_id if self.transfer else None,
            "counterpart_wallet_id": (
                self.transfer.counterpart_wallet_id if self.transfer else None
            ),
            "category_id": self.category_id,
            "note": self.note,
            "deleted_at": _deleted_at(self.lifecycle),
        }


@dataclass
class Transfer:
    """지갑 간 이체 (Chuyển khoản)

    source 다리는 -amount, destination 다리는 +amount.
    lifecycle은 두 다리가 모두 삭제되었을 때만 Tombstoned.
    """

    transfer_id: str
    code: str
    date: datetime
    amount: Decimal
    source_wallet_id: str
    destination_wallet_id: str
    source_posting_id: str
    destination_posting_id: str
    note: str | None = None
    lifecycle: Lifecycle = ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.lifecycle.is_active

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Transfer":
        """DB 행에서 생성"""
        return cls(
            transfer_id=row["transfer_id"],
            code=row["code"],
            date=from_db(row["date"]),
            amount=Decimal(str(row["amount"])),
            source_wallet_id=row["source_wallet_id"],
            destination_wallet_id=row["destination_wallet_id"],
            source_posting_id=row["source_posting_id"],
            destination_posting_id=row["destination_posting_id"],
            note=row.get("note"),
            lifecycle=lifecycle_from_column(row.get("deleted_at")),
            created_at=_opt_datetime(row.get("created_at")),
            updated_at=_opt_datetime(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "transfer_id": self.transfer_id,
            "code": self.code,
            "date": self.date.isoformat(),
            "amount": str(self.amount),
            "source_wallet_id": self.source_wallet_id,
            "destination_wallet_id": self.destination_wallet_id,
            "source_posting_id": self.source_posting_id,
            "destination_posting_id": self.destination_posting_id,
            "note": self.note,
            "deleted_at": _deleted_at(self.lifecycle),
        }


@dataclass
class Order:
    """주문 (Đơn hàng / Dự án)"""

    order_id: str
    code: str
    name: str
    total_amount: Decimal
    customer_id: str | None = None
    lifecycle: Lifecycle = ACTIVE
    created_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.lifecycle.is_active

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Order":
        """DB 행에서 생성"""
        return cls(
            order_id=row["order_id"],
            code=row["code"],
            name=row["name"],
            total_amount=Decimal(str(row["total_amount"])),
            customer_id=row.get("customer_id"),
            lifecycle=lifecycle_from_column(row.get("deleted_at")),
            created_at=_opt_datetime(row.get("created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "code": self.code,
            "name": self.name,
            "total_amount": str(self.total_amount),
            "customer_id": self.customer_id,
            "deleted_at": _deleted_at(self.lifecycle),
        }


@dataclass
class WorkshopJob:
    """외주 가공 작업 (Phiếu gia công)

    net = max(0, amount - discount_amount)
    """

    job_id: str
    code: str
    workshop_id: str
    amount: Decimal
    discount_amount: Decimal = ZERO
    order_id: str | None = None
    lifecycle: Lifecycle = ACTIVE
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def net_amount(self) -> Decimal:
        return max(ZERO, self.amount - self.discount_amount)

    @property
    def is_active(self) -> bool:
        return self.lifecycle.is_active

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "WorkshopJob":
        """DB 행에서 생성"""
        return cls(
            job_id=row["job_id"],
            code=row["code"],
            workshop_id=row["workshop_id"],
            amount=Decimal(str(row["amount"])),
            discount_amount=Decimal(str(row["discount_amount"])),
            order_id=row.get("order_id"),
            lifecycle=lifecycle_from_column(row.get("deleted_at")),
            created_at=_opt_datetime(row.get("created_at")),
            updated_at=_opt_datetime(row.get("updated_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "code": self.code,
            "workshop_id": self.workshop_id,
            "order_id": self.order_id,
            "amount": str(self.amount),
            "discount_amount": str(self.discount_amount),
            "net_amount": str(self.net_amount),
            "deleted_at": _deleted_at(self.lifecycle),
        }


# =========================================================================
# 조회 결과
# =========================================================================


@dataclass(frozen=True)
class OrderDebt:
    """주문 미수금"""

    order_id: str
    total: Decimal
    paid: Decimal
    debt: Decimal
    status: PaymentStatus

    @property
    def fully_paid(self) -> bool:
        return self.paid >= self.total

    @property
    def overpaid(self) -> Decimal:
        """총액을 넘는 입금액 (채무에서 차감되지 않고 버려짐, 정보용)"""
        return max(ZERO, self.paid - self.total)

    def to_dict(self) -> dict[str, Any]:
        return {
            "order_id": self.order_id,
            "total": str(self.total),
            "paid": str(self.paid),
            "debt": str(self.debt),
            "status": self.status.value,
            "fully_paid": self.fully_paid,
            "overpaid": str(self.overpaid),
        }


@dataclass(frozen=True)
class JobDebt:
    """가공 작업 미지급금"""

    job_id: str
    amount: Decimal
    discount: Decimal
    net: Decimal
    paid: Decimal
    debt: Decimal
    status: PaymentStatus

    @property
    def overpaid(self) -> Decimal:
        return max(ZERO, self.paid - self.net)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "amount": str(self.amount),
            "discount": str(self.discount),
            "net": str(self.net),
            "paid": str(self.paid),
            "debt": str(self.debt),
            "status": self.status.value,
            "overpaid": str(self.overpaid),
        }


@dataclass(frozen=True)
class WorkshopJobsSummary:
    """가공 작업 합계

    total_debt_amount는 작업별 미지급금(0 하한) 합계라서
    초과 지급된 작업이 다른 작업의 미지급금을 상쇄하지 않음.
    """

    job_count: int
    total_job_amount: Decimal
    total_paid_amount: Decimal
    total_debt_amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_count": self.job_count,
            "total_job_amount": str(self.total_job_amount),
            "total_paid_amount": str(self.total_paid_amount),
            "total_debt_amount": str(self.total_debt_amount),
        }


@dataclass(frozen=True)
class UsageSummary:
    """지갑 사용 현황 요약 (기간별)

    adjustments_total은 수동 조정만, transfers_total은 이체 다리 합계.
    net = 모든 활성 전표 금액 합계.
    """

    wallet_id: str
    date_from: datetime
    date_to: datetime
    income_total: Decimal
    expense_total: Decimal
    adjustments_total: Decimal
    transfers_total: Decimal
    net: Decimal
    income_by_category: dict[str, Decimal] = field(default_factory=dict)
    expense_by_category: dict[str, Decimal] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet_id": self.wallet_id,
            "from": self.date_from.isoformat(),
            "to": self.date_to.isoformat(),
            "income_total": str(self.income_total),
            "expense_total": str(self.expense_total),
            "adjustments_total": str(self.adjustments_total),
            "transfers_total": str(self.transfers_total),
            "net": str(self.net),
            "income_by_category": {k: str(v) for k, v in self.income_by_category.items()},
            "expense_by_category": {k: str(v) for k, v in self.expense_by_category.items()},
        }


@dataclass(frozen=True)
class BalanceMismatch:
    """balance_after 불일치 전표"""

    posting_id: str
    stored: Decimal
    expected: Decimal


@dataclass(frozen=True)
class ReconciliationReport:
    """지갑 정합성 검사 결과

    cached_balance: wallet.balance 캐시
    computed_balance: 활성 전표 금액 합계
    """

    wallet_id: str
    cached_balance: Decimal
    computed_balance: Decimal
    posting_count: int
    mismatches: list[BalanceMismatch] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.mismatches and self.cached_balance == self.computed_balance

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet_id": self.wallet_id,
            "cached_balance": str(self.cached_balance),
            "computed_balance": str(self.computed_balance),
            "posting_count": self.posting_count,
            "is_consistent": self.is_consistent,
            "mismatches": [
                {
                    "posting_id": m.posting_id,
                    "stored": str(m.stored),
                    "expected": str(m.expected),
                }
                for m in self.mismatches
            ],
        }
