"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

from typing import AsyncGenerator

from fastapi import Depends, Header

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings, get_settings
from core.ledger import WalletLockRegistry, get_lock_registry
from core.types import Actor
from web.services.ledger_service import LedgerService


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


async def get_db() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (읽기 전용)

    잔액/채무/목록 조회용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=True) as db:
        yield db


async def get_db_write() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (쓰기 가능)

    전표/이체/지갑 변경 시 사용.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=False) as db:
        yield db


def get_locks() -> WalletLockRegistry:
    """프로세스 전역 지갑 락 저장소

    요청마다 DB 연결은 달라도 같은 지갑은 같은 락을 공유.
    """
    return get_lock_registry()


def get_actor(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> Actor:
    """요청자 식별

    인증은 앞단 프록시에서 처리하고 헤더로 전달받음.
    헤더가 없으면 system:web.
    """
    if x_user_id:
        return Actor.user(x_user_id, x_user_email)
    return Actor.system("web")


def get_service(
    db: SQLiteAdapter = Depends(get_db_write),
    locks: WalletLockRegistry = Depends(get_locks),
) -> LedgerService:
    """쓰기용 LedgerService"""
    return LedgerService(db, locks)


def get_read_service(
    db: SQLiteAdapter = Depends(get_db),
    locks: WalletLockRegistry = Depends(get_locks),
) -> LedgerService:
    """조회용 LedgerService"""
    return LedgerService(db, locks)
