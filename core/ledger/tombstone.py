"""
Soft Delete (Tombstone) 정책

지갑, 전표, 이체가 공유하는 삭제/복원 규칙.
수명 상태는 nullable 타임스탬프가 아니라 Active | Tombstoned 변형으로 표현.

규칙:
- 삭제: Active → Tombstoned, 이미 Tombstoned면 변경 없이 성공 (멱등)
- 복원: Tombstoned → Active, Active면 AlreadyActiveError
- 수정: Tombstoned면 NotFoundError
"""

from dataclasses import dataclass
from datetime import datetime

from core.ledger.errors import AlreadyActiveError, NotFoundError


@dataclass(frozen=True)
class Active:
    """활성 상태"""

    @property
    def is_active(self) -> bool:
        return True


@dataclass(frozen=True)
class Tombstoned:
    """삭제 표시 상태 (레코드는 보존, 집계에서 제외)"""

    deleted_at: datetime

    @property
    def is_active(self) -> bool:
        return False


Lifecycle = Active | Tombstoned

ACTIVE = Active()


def tombstone(state: Lifecycle, now: datetime) -> tuple[Lifecycle, bool]:
    """삭제 표시

    Args:
        state: 현재 상태
        now: 삭제 시각

    Returns:
        (새 상태, 변경 여부). 이미 삭제된 경우 (기존 상태, False)
    """
    if isinstance(state, Tombstoned):
        return state, False
    return Tombstoned(deleted_at=now), True


def restore(state: Lifecycle, entity: str, entity_id: str) -> Active:
    """삭제 표시 해제

    Raises:
        AlreadyActiveError: 삭제되지 않은 상태인 경우
    """
    if isinstance(state, Active):
        raise AlreadyActiveError(entity, entity_id)
    return ACTIVE


def require_active(state: Lifecycle, entity: str, entity_id: str) -> None:
    """활성 상태 확인 (수정 전 검증)

    Raises:
        NotFoundError: 삭제된 레코드인 경우
    """
    if isinstance(state, Tombstoned):
        raise NotFoundError(entity, entity_id, f"{entity} is deleted: {entity_id}")


def lifecycle_from_column(deleted_at: str | None) -> Lifecycle:
    """deleted_at 컬럼 → 상태"""
    if deleted_at is None:
        return ACTIVE
    return Tombstoned(deleted_at=datetime.fromisoformat(deleted_at))


def lifecycle_to_column(state: Lifecycle) -> str | None:
    """상태 → deleted_at 컬럼"""
    if isinstance(state, Tombstoned):
        return state.deleted_at.isoformat()
    return None
