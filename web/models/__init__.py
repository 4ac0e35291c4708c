"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    AdjustmentCreateRequest,
    AdjustmentUpdateRequest,
    DiscountUpdateRequest,
    OrderCreateRequest,
    TransactionCreateRequest,
    TransactionUpdateRequest,
    TransferCreateRequest,
    TransferUpdateRequest,
    WalletCreateRequest,
    WorkshopJobCreateRequest,
    WorkshopPaymentRequest,
)
from web.models.responses import (
    AuditLogResponse,
    BalanceResponse,
    ErrorResponse,
    HealthResponse,
    JobDebtResponse,
    JobPaymentsResponse,
    OrderDebtResponse,
    OrderResponse,
    PostingResponse,
    ReconciliationResponse,
    TransferResponse,
    UsageSummaryResponse,
    WalletResponse,
    WorkshopDebtResponse,
    WorkshopJobListItemResponse,
    WorkshopJobResponse,
    WorkshopJobsSummaryResponse,
)

__all__ = [
    # Requests
    "AdjustmentCreateRequest",
    "AdjustmentUpdateRequest",
    "DiscountUpdateRequest",
    "OrderCreateRequest",
    "TransactionCreateRequest",
    "TransactionUpdateRequest",
    "TransferCreateRequest",
    "TransferUpdateRequest",
    "WalletCreateRequest",
    "WorkshopJobCreateRequest",
    "WorkshopPaymentRequest",
    # Responses
    "AuditLogResponse",
    "BalanceResponse",
    "ErrorResponse",
    "HealthResponse",
    "JobDebtResponse",
    "JobPaymentsResponse",
    "OrderDebtResponse",
    "OrderResponse",
    "PostingResponse",
    "ReconciliationResponse",
    "TransferResponse",
    "UsageSummaryResponse",
    "WalletResponse",
    "WorkshopDebtResponse",
    "WorkshopJobListItemResponse",
    "WorkshopJobResponse",
    "WorkshopJobsSummaryResponse",
]
