"""
지갑 간 이체 조정

이체 = 두 지갑에 걸친 크기가 같고 부호가 반대인 ADJUSTMENT 전표 한 쌍.
생성/수정/삭제/복원은 항상 두 다리를 한 단위로 처리.

처리 순서:
1. 두 지갑 락을 지갑 ID 오름차순으로 획득
2. 하나의 DB 트랜잭션 안에서 source → destination 다리 반영
3. 두 번째 다리 실패 시 PartialTransferFailure → 트랜잭션 롤백 (첫 다리 원복)
   → 원인 예외를 호출자에게 다시 던짐
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from core.constants import CodePrefix
from core.ledger.errors import (
    AlreadyActiveError,
    NotFoundError,
    PartialTransferFailure,
    ValidationError,
)
from core.ledger.store import WalletLedger, next_table_code, to_amount
from core.ledger.tombstone import lifecycle_to_column, require_active, tombstone
from core.ledger.types import PostingLinks, Transfer, TransferLink
from core.types import Actor, AuditAction, AuditEntity, PostingKind
from core.utils.timezone import ensure_utc, now_utc, to_db

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)

ENTITY = AuditEntity.TRANSFER.value


def _positive_amount(value: Any) -> Decimal:
    amount = to_amount(value)
    if amount <= 0:
        raise ValidationError("Transfer amount must be positive", amount=amount)
    return amount


class TransferCoordinator:
    """이체 조정자

    WalletLedger의 내부 API(락/트랜잭션 없는 버전)를 사용하여
    두 다리를 같은 트랜잭션 안에서 반영.

    Args:
        ledger: WalletLedger (DB, 락 저장소, 감사 로그 공유)

    사용 예시:
    ```python
    transfers = TransferCoordinator(ledger)

    transfer = await transfers.create_transfer(
        date=now_utc(),
        amount=Decimal("1000000"),
        source_wallet_id=cash_id,
        destination_wallet_id=bank_id,
    )
    await transfers.edit_transfer(transfer.transfer_id, amount=Decimal("1200000"))
    await transfers.delete_transfer(transfer.transfer_id)
    ```
    """

    def __init__(self, ledger: WalletLedger):
        self.ledger = ledger

    @property
    def db(self) -> SQLiteAdapter:
        return self.ledger.db

    async def create_transfer(
        self,
        date: datetime,
        amount: Decimal | int | str,
        source_wallet_id: str,
        destination_wallet_id: str,
        note: str | None = None,
        actor: Actor | None = None,
    ) -> Transfer:
        """이체 생성

        Args:
            date: 이체일
            amount: 이체 금액 (양수)
            source_wallet_id: 출금 지갑
            destination_wallet_id: 입금 지갑
            note: 메모 (두 다리에 동일하게 기록)
            actor: 행위자

        Returns:
            생성된 Transfer

        Raises:
            ValidationError: 같은 지갑이거나 금액이 0 이하
            NotFoundError: 지갑이 없거나 삭제된 경우
        """
        if source_wallet_id == destination_wallet_id:
            raise ValidationError(
                "Source and destination wallets must differ",
                wallet_id=source_wallet_id,
            )
        amount = _positive_amount(amount)

        transfer_id = str(uuid.uuid4())
        source_posting_id = str(uuid.uuid4())
        destination_posting_id = str(uuid.uuid4())

        async with self.ledger.locks.hold(source_wallet_id, destination_wallet_id):
            async with self.db.transaction():
                await self.ledger._require_wallet(source_wallet_id)
                await self.ledger._require_wallet(destination_wallet_id)

                code = await self._next_transfer_code()

                await self.ledger._insert_posting(
                    posting_id=source_posting_id,
                    wallet_id=source_wallet_id,
                    kind=PostingKind.ADJUSTMENT,
                    date=date,
                    amount=-amount,
                    code=code,
                    links=PostingLinks(),
                    note=note,
                    transfer=TransferLink(
                        transfer_id=transfer_id,
                        counterpart_posting_id=destination_posting_id,
                        counterpart_wallet_id=destination_wallet_id,
                    ),
                )
                await self.ledger._insert_posting(
                    posting_id=destination_posting_id,
                    wallet_id=destination_wallet_id,
                    kind=PostingKind.ADJUSTMENT,
                    date=date,
                    amount=amount,
                    code=code,
                    links=PostingLinks(),
                    note=note,
                    transfer=TransferLink(
                        transfer_id=transfer_id,
                        counterpart_posting_id=source_posting_id,
                        counterpart_wallet_id=source_wallet_id,
                    ),
                )

                now_str = to_db(now_utc())
                await self.db.execute(
                    """
                    INSERT INTO transfer (
                        transfer_id, code, date, amount,
                        source_wallet_id, destination_wallet_id,
                        source_posting_id, destination_posting_id,
                        note, created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        transfer_id,
                        code,
                        to_db(date),
                        str(amount),
                        source_wallet_id,
                        destination_wallet_id,
                        source_posting_id,
                        destination_posting_id,
                        note,
                        now_str,
                        now_str,
                    ),
                )

                transfer = await self._require_transfer(transfer_id)
                await self.ledger.audit.record(
                    AuditEntity.TRANSFER,
                    transfer_id,
                    AuditAction.CREATE,
                    after=transfer.to_dict(),
                    actor=actor,
                )

        logger.info(
            f"이체 생성: {transfer.code} {amount}",
            extra={
                "transfer_id": transfer_id,
                "source_wallet_id": source_wallet_id,
                "destination_wallet_id": destination_wallet_id,
            },
        )
        return transfer

    async def edit_transfer(
        self,
        transfer_id: str,
        amount: Decimal | int | str | None = None,
        date: datetime | None = None,
        note: str | None = None,
        actor: Actor | None = None,
    ) -> Transfer:
        """이체 수정 (금액/날짜/메모)

        두 다리를 크기가 같고 부호가 반대인 상태로 함께 갱신.
        지갑 변경은 지원하지 않음.

        Raises:
            NotFoundError: 이체가 없거나 삭제된 경우 (한쪽 다리만 삭제된 경우 포함)
            ValidationError: 금액이 0 이하
        """
        current = await self._require_transfer(transfer_id)
        new_amount = _positive_amount(amount) if amount is not None else None

        async with self.ledger.locks.hold(
            current.source_wallet_id, current.destination_wallet_id
        ):
            try:
                async with self.db.transaction():
                    before = await self._require_transfer(transfer_id)
                    require_active(before.lifecycle, ENTITY, transfer_id)

                    source = await self.ledger._require_posting(before.source_posting_id)
                    destination = await self.ledger._require_posting(
                        before.destination_posting_id
                    )
                    require_active(source.lifecycle, ENTITY, transfer_id)
                    require_active(destination.lifecycle, ENTITY, transfer_id)

                    await self.ledger._apply_edit(
                        source,
                        amount=-new_amount if new_amount is not None else None,
                        date=date,
                        note=note,
                    )
                    try:
                        await self.ledger._apply_edit(
                            destination,
                            amount=new_amount,
                            date=date,
                            note=note,
                        )
                    except Exception as e:
                        raise PartialTransferFailure(transfer_id, "source", e) from e

                    await self.db.execute(
                        """
                        UPDATE transfer
                        SET amount = ?, date = ?, note = ?, updated_at = ?
                        WHERE transfer_id = ?
                        """,
                        (
                            str(new_amount if new_amount is not None else before.amount),
                            to_db(ensure_utc(date) if date is not None else before.date),
                            note if note is not None else before.note,
                            to_db(now_utc()),
                            transfer_id,
                        ),
                    )

                    after = await self._require_transfer(transfer_id)
                    await self.ledger.audit.record(
                        AuditEntity.TRANSFER,
                        transfer_id,
                        AuditAction.UPDATE,
                        before=before.to_dict(),
                        after=after.to_dict(),
                        actor=actor,
                    )
            except PartialTransferFailure as e:
                logger.error(
                    f"이체 수정 실패 (첫 다리 롤백됨): {e.cause}",
                    extra={
                        "transfer_id": transfer_id,
                        "completed_leg": e.completed_leg,
                    },
                )
                raise e.cause from e

        logger.info(
            f"이체 수정: {after.code}",
            extra={"transfer_id": transfer_id},
        )
        return after

    async def delete_transfer(self, transfer_id: str, actor: Actor | None = None) -> Transfer:
        """이체 삭제 (Soft Delete, 멱등)

        남아있는 활성 다리를 모두 삭제 표시.
        이전 실패로 한쪽 다리만 삭제된 경우도 여기서 완결됨.

        Raises:
            NotFoundError: 이체가 없는 경우
        """
        current = await self._require_transfer(transfer_id)

        async with self.ledger.locks.hold(
            current.source_wallet_id, current.destination_wallet_id
        ):
            async with self.db.transaction():
                before = await self._require_transfer(transfer_id)

                legs_changed = False
                for posting_id in (before.source_posting_id, before.destination_posting_id):
                    leg = await self.ledger._require_posting(posting_id)
                    _, changed = await self.ledger._tombstone_posting(leg)
                    legs_changed = legs_changed or changed

                state, changed = tombstone(before.lifecycle, now_utc())
                if changed:
                    await self._write_lifecycle(transfer_id, lifecycle_to_column(state))

                after = await self._require_transfer(transfer_id)
                if changed or legs_changed:
                    await self.ledger.audit.record(
                        AuditEntity.TRANSFER,
                        transfer_id,
                        AuditAction.DELETE,
                        before=before.to_dict(),
                        after=after.to_dict(),
                        actor=actor,
                    )

        if changed or legs_changed:
            logger.info(
                f"이체 삭제: {after.code}",
                extra={"transfer_id": transfer_id},
            )
        return after

    async def restore_transfer(self, transfer_id: str, actor: Actor | None = None) -> Transfer:
        """삭제된 이체 복원

        삭제된 다리만 복원. 두 지갑 모두 활성 상태여야 함.

        Raises:
            NotFoundError: 이체 또는 지갑이 없는 경우
            AlreadyActiveError: 이체와 두 다리 모두 활성 상태
        """
        current = await self._require_transfer(transfer_id)

        async with self.ledger.locks.hold(
            current.source_wallet_id, current.destination_wallet_id
        ):
            async with self.db.transaction():
                before = await self._require_transfer(transfer_id)
                legs = [
                    await self.ledger._require_posting(before.source_posting_id),
                    await self.ledger._require_posting(before.destination_posting_id),
                ]

                if before.is_active and all(leg.is_active for leg in legs):
                    raise AlreadyActiveError(ENTITY, transfer_id)

                for leg in legs:
                    if not leg.is_active:
                        await self.ledger._restore_posting(leg)
                if not before.is_active:
                    await self._write_lifecycle(transfer_id, None)

                after = await self._require_transfer(transfer_id)
                await self.ledger.audit.record(
                    AuditEntity.TRANSFER,
                    transfer_id,
                    AuditAction.RESTORE,
                    before=before.to_dict(),
                    after=after.to_dict(),
                    actor=actor,
                )

        logger.info(
            f"이체 복원: {after.code}",
            extra={"transfer_id": transfer_id},
        )
        return after

    async def get_transfer(self, transfer_id: str) -> Transfer:
        """이체 조회 (삭제된 이체 포함)

        Raises:
            NotFoundError: 이체가 없는 경우
        """
        return await self._require_transfer(transfer_id)

    async def list_transfers(
        self,
        wallet_id: str | None = None,
        include_deleted: bool = False,
    ) -> list[Transfer]:
        """이체 목록 (최신순)

        Args:
            wallet_id: 출금 또는 입금 지갑 필터
            include_deleted: 삭제된 이체 포함 여부
        """
        conditions: list[str] = []
        params: list[Any] = []

        if wallet_id is not None:
            conditions.append("(source_wallet_id = ? OR destination_wallet_id = ?)")
            params.extend([wallet_id, wallet_id])
        if not include_deleted:
            conditions.append("deleted_at IS NULL")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = await self.db.fetchall(
            f"SELECT * FROM transfer {where} ORDER BY date DESC, created_at DESC",
            tuple(params),
        )
        return [Transfer.from_row(dict(row)) for row in rows]

    # -------------------------------------------------------------------------
    # 내부 헬퍼
    # -------------------------------------------------------------------------

    async def _require_transfer(self, transfer_id: str) -> Transfer:
        row = await self.db.fetchone(
            "SELECT * FROM transfer WHERE transfer_id = ?",
            (transfer_id,),
        )
        if row is None:
            raise NotFoundError(ENTITY, transfer_id)
        return Transfer.from_row(dict(row))

    async def _next_transfer_code(self) -> str:
        return await next_table_code(self.db, "transfer", CodePrefix.TRANSFER)

    async def _write_lifecycle(self, transfer_id: str, deleted_at: str | None) -> None:
        await self.db.execute(
            "UPDATE transfer SET deleted_at = ?, updated_at = ? WHERE transfer_id = ?",
            (deleted_at, to_db(now_utc()), transfer_id),
        )
