"""
수동 조정 API 라우터

잔액 조정(Điều chỉnh) 전표 생성/수정/삭제/복원.
이체 다리는 /api/transfers에서만 변경 가능.
"""

from typing import Any

from fastapi import APIRouter, Depends

from core.types import Actor, PostingKind
from web.dependencies import get_actor, get_service
from web.models.requests import AdjustmentCreateRequest, AdjustmentUpdateRequest
from web.models.responses import PostingResponse
from web.services.ledger_service import LedgerService

router = APIRouter(prefix="/api/adjustments", tags=["Adjustments"])


@router.post("", response_model=PostingResponse, status_code=201)
async def create_adjustment(
    request: AdjustmentCreateRequest,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """수동 조정 생성 (amount는 부호 포함, 0 불가)"""
    posting = await service.ledger.append_posting(
        request.wallet_id,
        PostingKind.ADJUSTMENT,
        date=request.date,
        amount=request.amount,
        note=request.note,
        category_id=request.category_id,
        actor=actor,
    )
    return posting.to_dict()


@router.patch("/{posting_id}", response_model=PostingResponse)
async def update_adjustment(
    posting_id: str,
    request: AdjustmentUpdateRequest,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """수동 조정 수정 (금액/날짜 변경 시 잔액 재계산)"""
    await service.get_adjustment(posting_id)
    posting = await service.ledger.edit_posting(
        posting_id,
        amount=request.amount,
        date=request.date,
        note=request.note,
        actor=actor,
    )
    return posting.to_dict()


@router.delete("/{posting_id}", response_model=PostingResponse)
async def delete_adjustment(
    posting_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """수동 조정 삭제 (멱등)"""
    await service.get_adjustment(posting_id)
    posting = await service.ledger.delete_posting(posting_id, actor=actor)
    return posting.to_dict()


@router.post("/{posting_id}/restore", response_model=PostingResponse)
async def restore_adjustment(
    posting_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """삭제된 수동 조정 복원"""
    await service.get_adjustment(posting_id)
    posting = await service.ledger.restore_posting(posting_id, actor=actor)
    return posting.to_dict()
