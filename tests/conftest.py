"""
pytest 공통 fixture 정의

- 설정 파일: 임시 settings.yaml
- DB: 스키마가 초기화된 in-memory SQLite
- Ledger 구성 요소: 테스트마다 새 락 저장소 사용 (이벤트 루프별 asyncio.Lock)
"""

import tempfile
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator, Awaitable, Callable

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import Settings
from core.ledger import (
    DebtReconciler,
    TransferCoordinator,
    Wallet,
    WalletLedger,
    WalletLockRegistry,
    WalletRegistry,
)
from core.types import WalletType


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_settings_file(temp_dir: Path) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    content = """# 테스트용 settings.yaml
environment: production

database:
  path: data/test_cashbook.db

web:
  host: 0.0.0.0
  port: 9000

logging:
  level: debug

timezone_offset_hours: 7
"""
    path = temp_dir / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """Settings 싱글턴 초기화 (테스트 간 격리)"""
    Settings.reset()
    yield
    Settings.reset()


# -------------------------------------------------------------------------
# DB / Ledger
# -------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마가 초기화된 in-memory DB"""
    adapter = SQLiteAdapter(":memory:")
    await adapter.connect()
    await init_schema(adapter)

    yield adapter

    await adapter.close()


@pytest.fixture
def locks() -> WalletLockRegistry:
    """테스트 전용 지갑 락 저장소"""
    return WalletLockRegistry()


@pytest.fixture
def ledger(db: SQLiteAdapter, locks: WalletLockRegistry) -> WalletLedger:
    return WalletLedger(db, locks=locks)


@pytest.fixture
def registry(ledger: WalletLedger) -> WalletRegistry:
    return WalletRegistry(ledger)


@pytest.fixture
def transfers(ledger: WalletLedger) -> TransferCoordinator:
    return TransferCoordinator(ledger)


@pytest.fixture
def debts(ledger: WalletLedger) -> DebtReconciler:
    return DebtReconciler(ledger)


@pytest.fixture
def make_wallet(
    registry: WalletRegistry,
) -> Callable[..., Awaitable[Wallet]]:
    """지갑 생성 헬퍼 (기본: 기초 잔액 0)"""

    async def _make(
        name: str = "Quỹ tiền mặt",
        wallet_type: WalletType = WalletType.CASH,
        opening_balance: Decimal | int = 0,
    ) -> Wallet:
        return await registry.create_wallet(
            name, wallet_type=wallet_type, opening_balance=opening_balance
        )

    return _make
