"""
이체 API 라우터

지갑 간 이체 생성/조회/수정/삭제/복원.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from core.types import Actor
from web.dependencies import get_actor, get_read_service, get_service
from web.models.requests import TransferCreateRequest, TransferUpdateRequest
from web.models.responses import TransferResponse
from web.services.ledger_service import LedgerService

router = APIRouter(prefix="/api/transfers", tags=["Transfers"])


@router.get("", response_model=list[TransferResponse])
async def list_transfers(
    wallet_id: str | None = Query(default=None, description="지갑 필터 (출금/입금)"),
    include_deleted: bool = Query(default=False, description="삭제된 이체 포함"),
    service: LedgerService = Depends(get_read_service),
) -> list[dict[str, Any]]:
    """이체 목록 (최신순)"""
    transfers = await service.transfers.list_transfers(
        wallet_id=wallet_id, include_deleted=include_deleted
    )
    return [t.to_dict() for t in transfers]


@router.post("", response_model=TransferResponse, status_code=201)
async def create_transfer(
    request: TransferCreateRequest,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """이체 생성

    출금 지갑에 -amount, 입금 지갑에 +amount 조정 전표를 한 트랜잭션으로 기록합니다.
    """
    transfer = await service.transfers.create_transfer(
        date=request.date,
        amount=request.amount,
        source_wallet_id=request.source_wallet_id,
        destination_wallet_id=request.destination_wallet_id,
        note=request.note,
        actor=actor,
    )
    return transfer.to_dict()


@router.get("/{transfer_id}", response_model=TransferResponse)
async def get_transfer(
    transfer_id: str,
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """이체 조회"""
    transfer = await service.transfers.get_transfer(transfer_id)
    return transfer.to_dict()


@router.patch("/{transfer_id}", response_model=TransferResponse)
async def update_transfer(
    transfer_id: str,
    request: TransferUpdateRequest,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """이체 수정 (금액/날짜/메모, 두 다리 동시 반영)"""
    transfer = await service.transfers.edit_transfer(
        transfer_id,
        amount=request.amount,
        date=request.date,
        note=request.note,
        actor=actor,
    )
    return transfer.to_dict()


@router.delete("/{transfer_id}", response_model=TransferResponse)
async def delete_transfer(
    transfer_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """이체 삭제 (멱등)"""
    transfer = await service.transfers.delete_transfer(transfer_id, actor=actor)
    return transfer.to_dict()


@router.post("/{transfer_id}/restore", response_model=TransferResponse)
async def restore_transfer(
    transfer_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """삭제된 이체 복원"""
    transfer = await service.transfers.restore_transfer(transfer_id, actor=actor)
    return transfer.to_dict()
