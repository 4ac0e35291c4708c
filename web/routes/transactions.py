"""
입금/출금 API 라우터

Phiếu thu(INCOME) / Phiếu chi(EXPENSE) 전표.
요청 금액은 항상 양수이며 유형에 따라 부호가 결정됨.
"""

from typing import Any

from fastapi import APIRouter, Depends

from core.types import Actor, PostingKind
from web.dependencies import get_actor, get_read_service, get_service
from web.models.requests import TransactionCreateRequest, TransactionUpdateRequest
from web.models.responses import PostingResponse
from web.services.ledger_service import LedgerService

router = APIRouter(prefix="/api/transactions", tags=["Transactions"])


@router.post("", response_model=PostingResponse, status_code=201)
async def create_transaction(
    request: TransactionCreateRequest,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """입금/출금 전표 생성"""
    posting = await service.create_transaction(
        PostingKind(request.type),
        wallet_id=request.wallet_id,
        date=request.date,
        amount=request.amount,
        order_id=request.order_id,
        workshop_job_id=request.workshop_job_id,
        category_id=request.category_id,
        note=request.note,
        actor=actor,
    )
    return posting.to_dict()


@router.get("/{posting_id}", response_model=PostingResponse)
async def get_transaction(
    posting_id: str,
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """입금/출금 전표 조회 (삭제된 전표 포함)"""
    posting = await service.get_transaction(posting_id)
    return posting.to_dict()


@router.patch("/{posting_id}", response_model=PostingResponse)
async def update_transaction(
    posting_id: str,
    request: TransactionUpdateRequest,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """입금/출금 전표 수정 (보낸 필드만 반영)"""
    changes = request.model_dump(exclude_unset=True)
    posting = await service.update_transaction(posting_id, changes, actor=actor)
    return posting.to_dict()


@router.delete("/{posting_id}", response_model=PostingResponse)
async def delete_transaction(
    posting_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """입금/출금 전표 삭제 (멱등)"""
    await service.get_transaction(posting_id)
    posting = await service.ledger.delete_posting(posting_id, actor=actor)
    return posting.to_dict()


@router.post("/{posting_id}/restore", response_model=PostingResponse)
async def restore_transaction(
    posting_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """삭제된 입금/출금 전표 복원"""
    await service.get_transaction(posting_id)
    posting = await service.ledger.restore_posting(posting_id, actor=actor)
    return posting.to_dict()
