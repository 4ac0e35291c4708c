"""
스토리지 모듈

변경 이력(Audit Log) 저장소
"""

from core.storage.audit_store import AuditStore

__all__ = [
    "AuditStore",
]
