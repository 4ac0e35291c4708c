"""
타입 정의 모듈

Enum, Dataclass 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from dataclasses import dataclass
from enum import Enum


class Environment(str, Enum):
    """실행 환경"""

    PRODUCTION = "production"
    DEVELOPMENT = "development"


class WalletType(str, Enum):
    """지갑(Sổ quỹ) 유형"""

    CASH = "CASH"
    BANK = "BANK"
    OTHER = "OTHER"


class PostingKind(str, Enum):
    """전표 유형

    금액은 부호 포함:
    - INCOME: 항상 양수 (지갑 잔액 증가)
    - EXPENSE: 항상 음수 (지갑 잔액 감소)
    - ADJUSTMENT: 0이 아닌 값 (수동 조정, 이체 다리)
    """

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    ADJUSTMENT = "ADJUSTMENT"


class PaymentStatus(str, Enum):
    """결제 상태 (저장하지 않고 조회 시 계산)

    전이 규칙:
    - UNPAID → PARTIALLY_PAID: 일부 결제 전표 추가
    - PARTIALLY_PAID → FULLY_PAID: 잔여 금액 결제
    - FULLY_PAID → PARTIALLY_PAID: 결제 전표 삭제 (오입력 정정)
    """

    UNPAID = "UNPAID"
    PARTIALLY_PAID = "PARTIALLY_PAID"
    FULLY_PAID = "FULLY_PAID"


class AuditAction(str, Enum):
    """감사 로그 동작"""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RESTORE = "RESTORE"
    UPDATE_DISCOUNT = "UPDATE_DISCOUNT"


class AuditEntity(str, Enum):
    """감사 로그 대상"""

    WALLET = "Wallet"
    POSTING = "Posting"
    TRANSFER = "Transfer"
    ORDER = "Order"
    WORKSHOP_JOB = "WorkshopJob"


@dataclass(frozen=True)
class Actor:
    """행위자 (불변)

    변경 요청자를 식별. 인증은 외부에서 처리하고 ID만 전달받음.
    """

    id: str
    email: str | None = None

    @classmethod
    def user(cls, user_id: str, email: str | None = None) -> "Actor":
        """사용자 Actor 생성"""
        return cls(id=f"user:{user_id}", email=email)

    @classmethod
    def system(cls, name: str = "system") -> "Actor":
        """시스템 Actor 생성"""
        return cls(id=f"system:{name}")
