"""
외주 가공 작업 API 라우터

가공 작업(Phiếu gia công) 목록/합계, 생성, 조회, 삭제/복원, 할인 변경,
지급, 미지급금 조회.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from core.types import Actor
from web.dependencies import get_actor, get_read_service, get_service
from web.models.requests import (
    DiscountUpdateRequest,
    WorkshopJobCreateRequest,
    WorkshopPaymentRequest,
)
from web.models.responses import (
    JobDebtResponse,
    JobPaymentsResponse,
    PostingResponse,
    WorkshopDebtResponse,
    WorkshopJobListItemResponse,
    WorkshopJobResponse,
    WorkshopJobsSummaryResponse,
)
from web.services.ledger_service import LedgerService

router = APIRouter(prefix="/api/workshop-jobs", tags=["Workshop Jobs"])


@router.get("", response_model=list[WorkshopJobListItemResponse])
async def list_workshop_jobs(
    workshop_id: str | None = Query(default=None, description="가공처 필터"),
    order_id: str | None = Query(default=None, description="주문 필터"),
    search: str | None = Query(default=None, description="작업 번호 검색"),
    include_deleted: bool = Query(default=False, description="삭제된 작업 포함"),
    service: LedgerService = Depends(get_read_service),
) -> list[dict[str, Any]]:
    """가공 작업 목록 (최신순, 작업별 지급/미지급 포함)"""
    items = await service.debts.list_workshop_jobs(
        workshop_id=workshop_id,
        order_id=order_id,
        search=search,
        include_deleted=include_deleted,
    )
    return [
        {
            **item["job"].to_dict(),
            "paid_amount": str(item["debt"].paid),
            "debt_amount": str(item["debt"].debt),
            "status": item["debt"].status.value,
        }
        for item in items
    ]


@router.get("/summary", response_model=WorkshopJobsSummaryResponse)
async def workshop_jobs_summary(
    workshop_id: str | None = Query(default=None, description="가공처 필터"),
    order_id: str | None = Query(default=None, description="주문 필터"),
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """활성 가공 작업 합계 (작업 금액, 지급, 미지급)"""
    summary = await service.debts.workshop_jobs_summary(
        workshop_id=workshop_id, order_id=order_id
    )
    return summary.to_dict()


@router.get("/debts", response_model=list[WorkshopDebtResponse])
async def list_workshop_debts(
    service: LedgerService = Depends(get_read_service),
) -> list[dict[str, Any]]:
    """가공처별 미지급금 (금액 내림차순, 0 제외)"""
    debts = await service.debts.workshop_debts()
    return [
        {
            "workshop_id": d["workshop_id"],
            "debt": str(d["debt"]),
            "job_count": d["job_count"],
        }
        for d in debts
    ]


@router.post("", response_model=WorkshopJobResponse, status_code=201)
async def create_workshop_job(
    request: WorkshopJobCreateRequest,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """가공 작업 생성"""
    job = await service.wallets.create_workshop_job(
        workshop_id=request.workshop_id,
        amount=request.amount,
        discount_amount=request.discount_amount,
        order_id=request.order_id,
        actor=actor,
    )
    return job.to_dict()


@router.get("/{job_id}", response_model=WorkshopJobResponse)
async def get_workshop_job(
    job_id: str,
    include_deleted: bool = Query(default=False, description="삭제된 작업도 조회"),
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """가공 작업 조회"""
    job = await service.wallets.get_workshop_job(job_id, include_deleted=include_deleted)
    return job.to_dict()


@router.delete("/{job_id}", response_model=WorkshopJobResponse)
async def delete_workshop_job(
    job_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """가공 작업 삭제 (Soft Delete, 지급 전표는 유지)"""
    job = await service.wallets.delete_workshop_job(job_id, actor=actor)
    return job.to_dict()


@router.post("/{job_id}/restore", response_model=WorkshopJobResponse)
async def restore_workshop_job(
    job_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """삭제된 가공 작업 복원"""
    job = await service.wallets.restore_workshop_job(job_id, actor=actor)
    return job.to_dict()


@router.put("/{job_id}", response_model=WorkshopJobResponse)
async def update_discount(
    job_id: str,
    request: DiscountUpdateRequest,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """할인액 변경 (기존 지급 전표는 그대로)"""
    job = await service.debts.update_discount(job_id, request.discount_amount, actor=actor)
    return job.to_dict()


@router.get("/{job_id}/debt", response_model=JobDebtResponse)
async def get_job_debt(
    job_id: str,
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """가공 작업 미지급금"""
    debt = await service.debts.workshop_job_debt(job_id)
    return debt.to_dict()


@router.get("/{job_id}/payments", response_model=JobPaymentsResponse)
async def get_job_payments(
    job_id: str,
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """가공 작업 지급 내역 (최신순)"""
    result = await service.debts.job_payments(job_id)
    debt = result["debt"]
    return {
        "job": result["job"].to_dict(),
        "paid_amount": str(debt.paid),
        "debt_amount": str(debt.debt),
        "status": debt.status.value,
        "payments": [p.to_dict() for p in result["payments"]],
    }


@router.post("/{job_id}/pay", response_model=PostingResponse, status_code=201)
async def pay_workshop_job(
    job_id: str,
    request: WorkshopPaymentRequest,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """가공 작업 지급 (출금 전표 생성, 미지급금 초과 불가)"""
    posting = await service.debts.pay_workshop_job(
        job_id,
        wallet_id=request.wallet_id,
        amount=request.amount,
        date=request.date,
        note=request.note,
        category_id=request.category_id,
        actor=actor,
    )
    return posting.to_dict()
