"""
Ledger 예외 정의

모든 예외는 LedgerError를 상속하며 기계 판독용 code와 HTTP 상태를 가짐.
Web 계층은 예외 핸들러 하나로 응답 변환.

    LedgerError
    ├── ValidationError         (400)
    ├── NotFoundError           (404)
    ├── AlreadyActiveError      (409)
    ├── ConflictError           (409)
    └── PartialTransferFailure  (500, 내부 전용)
"""

from typing import Any


class LedgerError(Exception):
    """Ledger 예외 기본 클래스"""

    code: str = "LEDGER_ERROR"
    http_status: int = 500

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """응답용 딕셔너리 변환"""
        return {
            "error": self.code,
            "message": self.message,
            "details": {k: str(v) if v is not None else None for k, v in self.details.items()},
        }


class ValidationError(LedgerError):
    """입력 검증 실패 (부분 반영 없음)"""

    code = "VALIDATION_ERROR"
    http_status = 400


class NotFoundError(LedgerError):
    """대상 없음 또는 삭제된 레코드 수정 시도"""

    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, entity: str, entity_id: str, message: str | None = None):
        super().__init__(
            message or f"{entity} not found: {entity_id}",
            entity=entity,
            entity_id=entity_id,
        )
        self.entity = entity
        self.entity_id = entity_id


class AlreadyActiveError(LedgerError):
    """삭제되지 않은 레코드 복원 시도"""

    code = "ALREADY_ACTIVE"
    http_status = 409

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f"{entity} is not deleted: {entity_id}",
            entity=entity,
            entity_id=entity_id,
        )
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(LedgerError):
    """현재 상태와 충돌 (예: 전표가 남아있는 지갑 삭제)"""

    code = "CONFLICT"
    http_status = 409


class PartialTransferFailure(LedgerError):
    """이체 한쪽 다리만 반영된 상태

    TransferCoordinator 내부에서만 발생하며, 트랜잭션 롤백 후
    원인 예외(cause)를 호출자에게 다시 던짐.
    """

    code = "PARTIAL_TRANSFER"
    http_status = 500

    def __init__(self, transfer_id: str, completed_leg: str, cause: BaseException):
        super().__init__(
            f"Transfer {transfer_id}: leg '{completed_leg}' applied, other leg failed: {cause}",
            transfer_id=transfer_id,
            completed_leg=completed_leg,
        )
        self.transfer_id = transfer_id
        self.completed_leg = completed_leg
        self.cause = cause
