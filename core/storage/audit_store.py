"""
AuditStore - 변경 이력 저장소

지갑/전표/이체/가공 작업의 생성, 수정, 삭제, 복원을
before/after JSON으로 append-only 기록.

record()는 커밋하지 않음. 호출자의 트랜잭션 안에서 실행되어
변경과 이력이 함께 커밋되거나 함께 롤백됨.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from core.constants import Defaults
from core.types import Actor, AuditAction, AuditEntity
from core.utils.timezone import now_utc, to_db

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class AuditStore:
    """감사 로그 저장소

    Args:
        db: SQLiteAdapter 인스턴스

    사용 예시:
    ```python
    audit = AuditStore(db)

    async with db.transaction():
        ...  # 변경
        await audit.record(
            AuditEntity.POSTING, posting_id, AuditAction.UPDATE,
            before=old.to_dict(), after=new.to_dict(), actor=actor,
        )

    rows = await audit.list(entity=AuditEntity.POSTING, entity_id=posting_id)
    ```
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def record(
        self,
        entity: AuditEntity,
        entity_id: str,
        action: AuditAction,
        before: dict[str, Any] | None = None,
        after: dict[str, Any] | None = None,
        actor: Actor | None = None,
    ) -> None:
        """이력 1건 추가 (커밋하지 않음)

        Args:
            entity: 대상 종류
            entity_id: 대상 ID
            action: 동작
            before: 변경 전 스냅샷
            after: 변경 후 스냅샷
            actor: 행위자 (None이면 system)
        """
        actor = actor or Actor.system()

        await self.db.execute(
            """
            INSERT INTO audit_log (
                entity, entity_id, action, before_json, after_json,
                actor_id, actor_email, ts
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                entity.value,
                entity_id,
                action.value,
                json.dumps(before, ensure_ascii=False) if before is not None else None,
                json.dumps(after, ensure_ascii=False) if after is not None else None,
                actor.id,
                actor.email,
                to_db(now_utc()),
            ),
        )

        logger.debug(
            "감사 로그 기록",
            extra={"entity": entity.value, "entity_id": entity_id, "action": action.value},
        )

    async def list(
        self,
        entity: AuditEntity | str | None = None,
        entity_id: str | None = None,
        limit: int = Defaults.LIST_LIMIT,
    ) -> list[dict[str, Any]]:
        """이력 조회 (최신순)

        Args:
            entity: 대상 종류 필터
            entity_id: 대상 ID 필터
            limit: 최대 건수

        Returns:
            이력 목록 (before/after는 dict로 복원)
        """
        conditions: list[str] = []
        params: list[Any] = []

        if entity is not None:
            conditions.append("entity = ?")
            params.append(entity.value if isinstance(entity, AuditEntity) else entity)
        if entity_id is not None:
            conditions.append("entity_id = ?")
            params.append(entity_id)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(limit)

        rows = await self.db.fetchall(
            f"""
            SELECT seq, entity, entity_id, action, before_json, after_json,
                   actor_id, actor_email, ts
            FROM audit_log
            {where}
            ORDER BY seq DESC
            LIMIT ?
            """,
            tuple(params),
        )

        return [
            {
                "seq": row["seq"],
                "entity": row["entity"],
                "entity_id": row["entity_id"],
                "action": row["action"],
                "before": json.loads(row["before_json"]) if row["before_json"] else None,
                "after": json.loads(row["after_json"]) if row["after_json"] else None,
                "actor_id": row["actor_id"],
                "actor_email": row["actor_email"],
                "ts": row["ts"],
            }
            for row in rows
        ]
