"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증

금액은 Decimal (JSON 숫자 또는 문자열 모두 허용).
금액 부호/범위 규칙은 Ledger에서 검증 (ValidationError → 400).
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import AliasChoices, BaseModel, Field

from core.types import WalletType


class WalletCreateRequest(BaseModel):
    """지갑 생성 요청"""

    name: str = Field(..., description="지갑 이름")
    wallet_type: WalletType = Field(default=WalletType.CASH, description="지갑 유형")
    opening_balance: Decimal = Field(default=Decimal("0"), description="기초 잔액")
    note: str | None = Field(default=None, description="메모")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Quỹ tiền mặt",
                    "wallet_type": "CASH",
                    "opening_balance": "5000000",
                },
            ]
        }
    }


class TransferCreateRequest(BaseModel):
    """이체 생성 요청"""

    date: datetime = Field(..., description="이체일")
    amount: Decimal = Field(..., description="이체 금액 (양수)")
    source_wallet_id: str = Field(
        ...,
        validation_alias=AliasChoices("source_wallet_id", "walletId"),
        description="출금 지갑 ID (walletId도 허용)",
    )
    destination_wallet_id: str = Field(
        ...,
        validation_alias=AliasChoices("destination_wallet_id", "walletToId"),
        description="입금 지갑 ID (walletToId도 허용)",
    )
    note: str | None = Field(default=None, description="메모")


class TransferUpdateRequest(BaseModel):
    """이체 수정 요청 (지갑 변경 불가)"""

    amount: Decimal | None = Field(default=None, description="이체 금액 (양수)")
    date: datetime | None = Field(default=None, description="이체일")
    note: str | None = Field(default=None, description="메모")


class AdjustmentCreateRequest(BaseModel):
    """수동 조정 요청"""

    wallet_id: str = Field(..., description="지갑 ID")
    date: datetime = Field(..., description="조정일")
    amount: Decimal = Field(..., description="부호 포함 조정 금액 (0 불가)")
    note: str | None = Field(default=None, description="메모")
    category_id: str | None = Field(default=None, description="분류 ID")


class AdjustmentUpdateRequest(BaseModel):
    """수동 조정 수정 요청"""

    amount: Decimal | None = Field(default=None, description="부호 포함 조정 금액")
    date: datetime | None = Field(default=None, description="조정일")
    note: str | None = Field(default=None, description="메모")


class TransactionCreateRequest(BaseModel):
    """입금/출금 전표 생성 요청"""

    type: Literal["INCOME", "EXPENSE"] = Field(..., description="전표 유형")
    wallet_id: str = Field(..., description="지갑 ID")
    date: datetime = Field(..., description="거래일")
    amount: Decimal = Field(..., description="금액 (양수)")
    order_id: str | None = Field(default=None, description="주문 ID (입금 연결)")
    workshop_job_id: str | None = Field(default=None, description="가공 작업 ID (지급 연결)")
    category_id: str | None = Field(default=None, description="분류 ID")
    note: str | None = Field(default=None, description="메모")


class TransactionUpdateRequest(BaseModel):
    """입금/출금 전표 수정 요청

    보낸 필드만 변경. 이미 연결된 주문은 변경 불가.
    """

    amount: Decimal | None = Field(default=None, description="금액 (양수)")
    date: datetime | None = Field(default=None, description="거래일")
    order_id: str | None = Field(default=None, description="주문 ID")
    workshop_job_id: str | None = Field(default=None, description="가공 작업 ID")
    category_id: str | None = Field(default=None, description="분류 ID")
    note: str | None = Field(default=None, description="메모")


class OrderCreateRequest(BaseModel):
    """주문 생성 요청"""

    name: str = Field(..., description="주문 이름")
    total_amount: Decimal = Field(..., description="주문 총액")
    customer_id: str | None = Field(default=None, description="고객 ID")


class WorkshopJobCreateRequest(BaseModel):
    """가공 작업 생성 요청"""

    workshop_id: str = Field(..., description="가공처 ID")
    amount: Decimal = Field(..., description="작업 금액")
    discount_amount: Decimal = Field(default=Decimal("0"), description="할인액")
    order_id: str | None = Field(default=None, description="주문 ID")


class DiscountUpdateRequest(BaseModel):
    """가공 작업 할인액 변경 요청"""

    discount_amount: Decimal = Field(..., description="새 할인액 (0 ~ 작업 금액)")


class WorkshopPaymentRequest(BaseModel):
    """가공 작업 지급 요청"""

    wallet_id: str = Field(..., description="출금 지갑 ID")
    amount: Decimal = Field(..., description="지급액 (양수, 미지급금 이하)")
    date: datetime | None = Field(default=None, description="지급일 (기본: 현재)")
    note: str | None = Field(default=None, description="추가 메모")
    category_id: str | None = Field(default=None, description="분류 ID")
