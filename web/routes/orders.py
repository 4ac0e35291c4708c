"""
주문 API 라우터

주문(Đơn hàng) 생성/조회, 삭제/복원과 미수금 조회.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from core.types import Actor
from web.dependencies import get_actor, get_read_service, get_service
from web.models.requests import OrderCreateRequest
from web.models.responses import OrderDebtResponse, OrderResponse
from web.services.ledger_service import LedgerService

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post("", response_model=OrderResponse, status_code=201)
async def create_order(
    request: OrderCreateRequest,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """주문 생성"""
    order = await service.wallets.create_order(
        name=request.name,
        total_amount=request.total_amount,
        customer_id=request.customer_id,
        actor=actor,
    )
    return order.to_dict()


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    include_deleted: bool = Query(default=False, description="삭제된 주문도 조회"),
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """주문 조회"""
    order = await service.wallets.get_order(order_id, include_deleted=include_deleted)
    return order.to_dict()


@router.delete("/{order_id}", response_model=OrderResponse)
async def delete_order(
    order_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """주문 삭제 (Soft Delete, 입금 전표는 유지)"""
    order = await service.wallets.delete_order(order_id, actor=actor)
    return order.to_dict()


@router.post("/{order_id}/restore", response_model=OrderResponse)
async def restore_order(
    order_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """삭제된 주문 복원"""
    order = await service.wallets.restore_order(order_id, actor=actor)
    return order.to_dict()


@router.get("/{order_id}/debt", response_model=OrderDebtResponse)
async def get_order_debt(
    order_id: str,
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """주문 미수금 (연결된 활성 입금 전표 기준)"""
    debt = await service.debts.order_debt(order_id)
    return debt.to_dict()
