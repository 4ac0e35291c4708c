"""
지갑 API 라우터

지갑 생성/조회/삭제/복원, 시점 잔액, 사용 현황, 조정/이체 내역, 정합성 검사.
"""

import logging
from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends, Query

from core.ledger import ValidationError
from core.types import Actor
from web.dependencies import get_actor, get_read_service, get_service
from web.models.requests import WalletCreateRequest
from web.models.responses import (
    BalanceResponse,
    PostingResponse,
    ReconciliationResponse,
    UsageSummaryResponse,
    WalletResponse,
)
from web.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wallets", tags=["Wallets"])


def _parse_as_of(value: str | None) -> datetime | date | None:
    """as_of 쿼리 파싱 (날짜 또는 ISO 시각)"""
    if value is None:
        return None
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid as_of: {value}", as_of=value) from e


@router.get("", response_model=list[WalletResponse])
async def list_wallets(
    search: str | None = Query(default=None, description="이름/번호 검색"),
    include_deleted: bool = Query(default=False, description="삭제된 지갑 포함"),
    service: LedgerService = Depends(get_read_service),
) -> list[dict[str, Any]]:
    """지갑 목록"""
    wallets = await service.wallets.list_wallets(search=search, include_deleted=include_deleted)
    return [w.to_dict() for w in wallets]


@router.post("", response_model=WalletResponse, status_code=201)
async def create_wallet(
    request: WalletCreateRequest,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """지갑 생성

    opening_balance가 0이 아니면 기초 잔액 조정 전표가 함께 생성됩니다.
    """
    wallet = await service.wallets.create_wallet(
        name=request.name,
        wallet_type=request.wallet_type,
        opening_balance=request.opening_balance,
        note=request.note,
        actor=actor,
    )
    return wallet.to_dict()


@router.get("/{wallet_id}", response_model=WalletResponse)
async def get_wallet(
    wallet_id: str,
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """지갑 조회 (현재 잔액 포함)"""
    wallet = await service.wallets.get_wallet(wallet_id)
    return wallet.to_dict()


@router.delete("/{wallet_id}", response_model=WalletResponse)
async def delete_wallet(
    wallet_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """지갑 삭제 (활성 전표가 있으면 409)"""
    wallet = await service.wallets.delete_wallet(wallet_id, actor=actor)
    return wallet.to_dict()


@router.post("/{wallet_id}/restore", response_model=WalletResponse)
async def restore_wallet(
    wallet_id: str,
    service: LedgerService = Depends(get_service),
    actor: Actor = Depends(get_actor),
) -> dict[str, Any]:
    """삭제된 지갑 복원"""
    wallet = await service.wallets.restore_wallet(wallet_id, actor=actor)
    return wallet.to_dict()


@router.get("/{wallet_id}/balance", response_model=BalanceResponse)
async def get_balance(
    wallet_id: str,
    as_of: str | None = Query(default=None, description="기준 시점 (YYYY-MM-DD면 그 날 끝까지, 없으면 전체)"),
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """시점 잔액"""
    balance = await service.ledger.get_balance(wallet_id, as_of=_parse_as_of(as_of))
    return {
        "wallet_id": wallet_id,
        "as_of": as_of,
        "balance": str(balance),
    }


@router.get("/{wallet_id}/usage/summary", response_model=UsageSummaryResponse)
async def get_usage_summary(
    wallet_id: str,
    date_from: datetime | None = Query(default=None, alias="from", description="시작 (기본: 이번 달 1일)"),
    date_to: datetime | None = Query(default=None, alias="to", description="끝 (기본: 현재)"),
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """기간별 사용 현황"""
    summary = await service.ledger.usage_summary(wallet_id, date_from=date_from, date_to=date_to)
    return summary.to_dict()


@router.get("/{wallet_id}/adjustments", response_model=list[PostingResponse])
async def list_adjustments(
    wallet_id: str,
    service: LedgerService = Depends(get_read_service),
) -> list[dict[str, Any]]:
    """수동 조정 내역 (balance_after 포함, 최신순)"""
    await service.wallets.get_wallet(wallet_id)
    postings = await service.ledger.list_postings(
        wallet_id, manual_adjustments_only=True, newest_first=True
    )
    return [p.to_dict() for p in postings]


@router.get("/{wallet_id}/transfers", response_model=list[PostingResponse])
async def list_transfer_legs(
    wallet_id: str,
    service: LedgerService = Depends(get_read_service),
) -> list[dict[str, Any]]:
    """이체 다리 내역 (balance_after 포함, 최신순)"""
    await service.wallets.get_wallet(wallet_id)
    postings = await service.ledger.list_postings(
        wallet_id, transfers_only=True, newest_first=True
    )
    return [p.to_dict() for p in postings]


@router.get("/{wallet_id}/reconcile", response_model=ReconciliationResponse)
async def reconcile_wallet(
    wallet_id: str,
    service: LedgerService = Depends(get_read_service),
) -> dict[str, Any]:
    """잔액 정합성 검사 (쓰기 없음)"""
    report = await service.ledger.verify_wallet(wallet_id)
    if not report.is_consistent:
        logger.warning(
            f"지갑 잔액 불일치: {len(report.mismatches)}건",
            extra={"wallet_id": wallet_id},
        )
    return report.to_dict()
