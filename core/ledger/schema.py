"""
Ledger 스키마 초기화

Web 시작 시 자동으로 지갑/전표/이체/채무 테이블 생성.
CREATE IF NOT EXISTS 패턴으로 안전하게 동작.

금액 컬럼은 모두 TEXT (Decimal 문자열).
날짜 컬럼은 UTC ISO 문자열 (마이크로초 고정) → 문자열 정렬 = 시간 정렬.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


async def init_ledger_schema(db: "SQLiteAdapter") -> None:
    """Ledger 스키마 초기화

    이미 존재하는 경우 안전하게 건너뜀 (IF NOT EXISTS).

    Args:
        db: SQLiteAdapter 인스턴스
    """
    await _create_ledger_tables(db)
    await _create_ledger_indexes(db)
    logger.debug("Ledger 스키마 초기화 완료")


async def _create_ledger_tables(db: "SQLiteAdapter") -> None:
    """Ledger 테이블 생성"""

    # wallet 테이블 (balance는 마지막 전표 balance_after의 캐시)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS wallet (
            wallet_id        TEXT PRIMARY KEY,
            code             TEXT NOT NULL UNIQUE,
            name             TEXT NOT NULL,
            wallet_type      TEXT NOT NULL DEFAULT 'CASH',
            note             TEXT,
            balance          TEXT NOT NULL DEFAULT '0',
            deleted_at       TEXT,
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL
        )
    """)

    # sales_order 테이블 (Đơn hàng / Dự án)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS sales_order (
            order_id         TEXT PRIMARY KEY,
            code             TEXT NOT NULL UNIQUE,
            name             TEXT NOT NULL,
            customer_id      TEXT,
            total_amount     TEXT NOT NULL,
            deleted_at       TEXT,
            created_at       TEXT NOT NULL
        )
    """)

    # workshop_job 테이블 (Phiếu gia công)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS workshop_job (
            job_id           TEXT PRIMARY KEY,
            code             TEXT NOT NULL UNIQUE,
            order_id         TEXT,
            workshop_id      TEXT NOT NULL,
            amount           TEXT NOT NULL,
            discount_amount  TEXT NOT NULL DEFAULT '0',
            deleted_at       TEXT,
            created_at       TEXT NOT NULL,
            updated_at       TEXT NOT NULL,
            FOREIGN KEY (order_id) REFERENCES sales_order(order_id)
        )
    """)

    # posting 테이블 (seq = 삽입 순서, 같은 날짜 정렬 기준)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS posting (
            seq                    INTEGER PRIMARY KEY AUTOINCREMENT,
            posting_id             TEXT NOT NULL UNIQUE,
            code                   TEXT NOT NULL,
            wallet_id              TEXT NOT NULL,
            kind                   TEXT NOT NULL,
            date                   TEXT NOT NULL,
            amount                 TEXT NOT NULL,
            balance_after          TEXT NOT NULL DEFAULT '0',
            category_id            TEXT,
            order_id               TEXT,
            workshop_job_id        TEXT,
            transfer_id            TEXT,
            counterpart_posting_id TEXT,
            counterpart_wallet_id  TEXT,
            note                   TEXT,
            deleted_at             TEXT,
            created_at             TEXT NOT NULL,
            updated_at             TEXT NOT NULL,
            FOREIGN KEY (wallet_id) REFERENCES wallet(wallet_id),
            FOREIGN KEY (order_id) REFERENCES sales_order(order_id),
            FOREIGN KEY (workshop_job_id) REFERENCES workshop_job(job_id)
        )
    """)

    # transfer 테이블 (두 다리 posting의 묶음)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS transfer (
            transfer_id            TEXT PRIMARY KEY,
            code                   TEXT NOT NULL UNIQUE,
            date                   TEXT NOT NULL,
            amount                 TEXT NOT NULL,
            source_wallet_id       TEXT NOT NULL,
            destination_wallet_id  TEXT NOT NULL,
            source_posting_id      TEXT NOT NULL,
            destination_posting_id TEXT NOT NULL,
            note                   TEXT,
            deleted_at             TEXT,
            created_at             TEXT NOT NULL,
            updated_at             TEXT NOT NULL,
            FOREIGN KEY (source_wallet_id) REFERENCES wallet(wallet_id),
            FOREIGN KEY (destination_wallet_id) REFERENCES wallet(wallet_id)
        )
    """)


async def _create_ledger_indexes(db: "SQLiteAdapter") -> None:
    """인덱스 생성"""
    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_posting_wallet_chrono
        ON posting(wallet_id, date, seq)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_posting_order
        ON posting(order_id)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_posting_workshop_job
        ON posting(workshop_job_id)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_posting_transfer
        ON posting(transfer_id)
    """)

    await db.execute("""
        CREATE INDEX IF NOT EXISTS ix_workshop_job_workshop
        ON workshop_job(workshop_id)
    """)
