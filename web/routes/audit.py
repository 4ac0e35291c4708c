"""
감사 로그 API 라우터

GET /api/audit - 변경 이력 조회 (최신순)
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.storage.audit_store import AuditStore
from web.dependencies import get_db
from web.models.responses import AuditLogResponse

router = APIRouter(prefix="/api/audit", tags=["Audit"])


@router.get("", response_model=list[AuditLogResponse])
async def list_audit_logs(
    entity: str | None = Query(default=None, description="대상 (Wallet, Posting, Transfer ...)"),
    entity_id: str | None = Query(default=None, description="대상 ID"),
    limit: int = Query(default=Defaults.LIST_LIMIT, ge=1, le=1000, description="최대 건수"),
    db: SQLiteAdapter = Depends(get_db),
) -> list[dict[str, Any]]:
    """변경 이력 조회"""
    return await AuditStore(db).list(entity=entity, entity_id=entity_id, limit=limit)
