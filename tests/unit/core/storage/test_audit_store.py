"""
core/storage/audit_store.py 테스트
"""

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.storage.audit_store import AuditStore
from core.types import Actor, AuditAction, AuditEntity


class TestAuditStore:
    """AuditStore 테스트"""

    @pytest.mark.asyncio
    async def test_record_and_list(self, db: SQLiteAdapter) -> None:
        audit = AuditStore(db)

        async with db.transaction():
            await audit.record(
                AuditEntity.POSTING,
                "p-1",
                AuditAction.UPDATE,
                before={"amount": "100"},
                after={"amount": "150"},
                actor=Actor.user("7", "thu.quy@example.vn"),
            )

        rows = await audit.list(entity=AuditEntity.POSTING, entity_id="p-1")

        assert len(rows) == 1
        assert rows[0]["action"] == "UPDATE"
        assert rows[0]["before"] == {"amount": "100"}
        assert rows[0]["after"] == {"amount": "150"}
        assert rows[0]["actor_id"] == "user:7"
        assert rows[0]["actor_email"] == "thu.quy@example.vn"

    @pytest.mark.asyncio
    async def test_default_actor_is_system(self, db: SQLiteAdapter) -> None:
        audit = AuditStore(db)

        async with db.transaction():
            await audit.record(AuditEntity.WALLET, "w-1", AuditAction.CREATE, after={})

        rows = await audit.list()
        assert rows[0]["actor_id"] == "system:system"
        assert rows[0]["before"] is None

    @pytest.mark.asyncio
    async def test_rolled_back_with_transaction(self, db: SQLiteAdapter) -> None:
        """호출자 트랜잭션과 함께 롤백"""
        audit = AuditStore(db)

        with pytest.raises(RuntimeError):
            async with db.transaction():
                await audit.record(AuditEntity.WALLET, "w-1", AuditAction.CREATE)
                raise RuntimeError("boom")

        assert await audit.list() == []

    @pytest.mark.asyncio
    async def test_newest_first_and_limit(self, db: SQLiteAdapter) -> None:
        audit = AuditStore(db)

        async with db.transaction():
            for action in (AuditAction.CREATE, AuditAction.DELETE, AuditAction.RESTORE):
                await audit.record(AuditEntity.WALLET, "w-1", action)

        rows = await audit.list(entity="Wallet", limit=2)

        assert [r["action"] for r in rows] == ["RESTORE", "DELETE"]
