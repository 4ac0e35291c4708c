"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화

금액은 Decimal 정밀도 보존을 위해 문자열.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    environment: str = Field(..., description="실행 환경 (development/production)")
    version: str = Field(..., description="API 버전")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")


class ErrorResponse(BaseModel):
    """에러 응답"""

    error: str = Field(..., description="에러 코드 (VALIDATION_ERROR, NOT_FOUND ...)")
    message: str = Field(..., description="에러 메시지")
    details: dict[str, Any] = Field(default_factory=dict, description="상세 정보")


class WalletResponse(BaseModel):
    """지갑 응답"""

    wallet_id: str = Field(..., description="지갑 ID")
    code: str = Field(..., description="지갑 번호 (W0001)")
    name: str = Field(..., description="지갑 이름")
    wallet_type: str = Field(..., description="지갑 유형")
    balance: str = Field(..., description="현재 잔액 (마지막 전표 기준)")
    note: str | None = Field(default=None, description="메모")
    deleted_at: str | None = Field(default=None, description="삭제 시각")
    created_at: str | None = Field(default=None, description="생성 시각")
    updated_at: str | None = Field(default=None, description="수정 시각")


class PostingResponse(BaseModel):
    """전표 응답"""

    posting_id: str = Field(..., description="전표 ID")
    code: str = Field(..., description="전표 번호 (PT/PC/DC/CK)")
    wallet_id: str = Field(..., description="지갑 ID")
    kind: str = Field(..., description="INCOME / EXPENSE / ADJUSTMENT")
    date: str = Field(..., description="거래일 (UTC)")
    amount: str = Field(..., description="부호 포함 금액")
    balance_after: str = Field(..., description="전표 반영 후 잔액")
    order_id: str | None = Field(default=None, description="주문 ID")
    workshop_job_id: str | None = Field(default=None, description="가공 작업 ID")
    transfer_id: str | None = Field(default=None, description="이체 ID")
    counterpart_wallet_id: str | None = Field(default=None, description="이체 상대 지갑")
    category_id: str | None = Field(default=None, description="분류 ID")
    note: str | None = Field(default=None, description="메모")
    deleted_at: str | None = Field(default=None, description="삭제 시각")


class TransferResponse(BaseModel):
    """이체 응답"""

    transfer_id: str = Field(..., description="이체 ID")
    code: str = Field(..., description="이체 번호 (CK0001)")
    date: str = Field(..., description="이체일")
    amount: str = Field(..., description="이체 금액")
    source_wallet_id: str = Field(..., description="출금 지갑")
    destination_wallet_id: str = Field(..., description="입금 지갑")
    source_posting_id: str = Field(..., description="출금 다리 전표")
    destination_posting_id: str = Field(..., description="입금 다리 전표")
    note: str | None = Field(default=None, description="메모")
    deleted_at: str | None = Field(default=None, description="삭제 시각")


class BalanceResponse(BaseModel):
    """시점 잔액 응답"""

    wallet_id: str = Field(..., description="지갑 ID")
    as_of: str | None = Field(default=None, description="기준 시점 (없으면 현재)")
    balance: str = Field(..., description="잔액")


class UsageSummaryResponse(BaseModel):
    """지갑 사용 현황 응답"""

    wallet_id: str
    date_from: str = Field(..., alias="from", description="조회 시작")
    date_to: str = Field(..., alias="to", description="조회 끝")
    income_total: str = Field(..., description="입금 합계")
    expense_total: str = Field(..., description="출금 합계 (양수)")
    adjustments_total: str = Field(..., description="수동 조정 합계")
    transfers_total: str = Field(..., description="이체 순액")
    net: str = Field(..., description="기간 순증감")
    income_by_category: dict[str, str] = Field(default_factory=dict)
    expense_by_category: dict[str, str] = Field(default_factory=dict)


class BalanceMismatchResponse(BaseModel):
    """balance_after 불일치 항목"""

    posting_id: str
    stored: str
    expected: str


class ReconciliationResponse(BaseModel):
    """지갑 정합성 검사 응답"""

    wallet_id: str
    cached_balance: str
    computed_balance: str
    posting_count: int
    is_consistent: bool
    mismatches: list[BalanceMismatchResponse] = Field(default_factory=list)


class OrderResponse(BaseModel):
    """주문 응답"""

    order_id: str
    code: str
    name: str
    total_amount: str
    customer_id: str | None = None
    deleted_at: str | None = None


class OrderDebtResponse(BaseModel):
    """주문 미수금 응답"""

    order_id: str
    total: str = Field(..., description="주문 총액")
    paid: str = Field(..., description="입금 합계")
    debt: str = Field(..., description="미수금 (0 이상)")
    status: str = Field(..., description="UNPAID / PARTIALLY_PAID / FULLY_PAID")
    fully_paid: bool
    overpaid: str = Field(..., description="총액 초과 입금액")


class WorkshopJobResponse(BaseModel):
    """가공 작업 응답"""

    job_id: str
    code: str
    workshop_id: str
    order_id: str | None = None
    amount: str
    discount_amount: str
    net_amount: str
    deleted_at: str | None = None


class WorkshopJobListItemResponse(WorkshopJobResponse):
    """가공 작업 목록 항목 (지급/미지급 포함)"""

    paid_amount: str = Field(..., description="지급 합계")
    debt_amount: str = Field(..., description="미지급금")
    status: str


class WorkshopJobsSummaryResponse(BaseModel):
    """가공 작업 합계 응답"""

    job_count: int
    total_job_amount: str = Field(..., description="작업 금액 합계 (할인 후)")
    total_paid_amount: str = Field(..., description="지급 합계")
    total_debt_amount: str = Field(..., description="작업별 미지급금 합계")


class JobDebtResponse(BaseModel):
    """가공 작업 미지급금 응답"""

    job_id: str
    amount: str
    discount: str
    net: str
    paid: str
    debt: str
    status: str
    overpaid: str


class JobPaymentsResponse(BaseModel):
    """가공 작업 지급 내역 응답"""

    job: WorkshopJobResponse
    paid_amount: str = Field(..., description="지급 합계")
    debt_amount: str = Field(..., description="미지급금")
    status: str
    payments: list[PostingResponse] = Field(default_factory=list, description="지급 전표 (최신순)")


class WorkshopDebtResponse(BaseModel):
    """가공처별 미지급금 응답"""

    workshop_id: str
    debt: str
    job_count: int


class AuditLogResponse(BaseModel):
    """감사 로그 응답"""

    seq: int
    entity: str
    entity_id: str
    action: str
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    actor_id: str
    actor_email: str | None = None
    ts: str
