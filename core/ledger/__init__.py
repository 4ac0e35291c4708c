"""
지갑 Ledger 시스템

지갑별 전표(입금/출금/조정) 기록, 잔액 체인(balance_after) 유지,
지갑 간 이체, 주문/가공 작업 채무 정산.

사용 예시:
```python
from core.ledger import DebtReconciler, TransferCoordinator, WalletLedger, WalletRegistry

ledger = WalletLedger(db)
wallets = WalletRegistry(ledger)
transfers = TransferCoordinator(ledger)
debts = DebtReconciler(ledger)

cash = await wallets.create_wallet("Quỹ tiền mặt", opening_balance=Decimal("1000000"))
bank = await wallets.create_wallet("Vietcombank", wallet_type=WalletType.BANK)

await transfers.create_transfer(now_utc(), Decimal("300000"), cash.wallet_id, bank.wallet_id)

balance = await ledger.get_balance(cash.wallet_id)
```
"""

from core.ledger.debt import DebtReconciler, payment_status
from core.ledger.errors import (
    AlreadyActiveError,
    ConflictError,
    LedgerError,
    NotFoundError,
    PartialTransferFailure,
    ValidationError,
)
from core.ledger.locks import WalletLockRegistry, get_lock_registry
from core.ledger.store import WalletLedger
from core.ledger.transfers import TransferCoordinator
from core.ledger.types import (
    JobDebt,
    Order,
    OrderDebt,
    Posting,
    PostingLinks,
    ReconciliationReport,
    Transfer,
    TransferLink,
    UsageSummary,
    Wallet,
    WorkshopJob,
    WorkshopJobsSummary,
)
from core.ledger.wallets import WalletRegistry

__all__ = [
    # 핵심 클래스
    "WalletLedger",
    "TransferCoordinator",
    "DebtReconciler",
    "WalletRegistry",
    "WalletLockRegistry",
    "get_lock_registry",
    "payment_status",
    # 데이터 구조
    "Wallet",
    "Posting",
    "PostingLinks",
    "TransferLink",
    "Transfer",
    "Order",
    "WorkshopJob",
    "WorkshopJobsSummary",
    "OrderDebt",
    "JobDebt",
    "UsageSummary",
    "ReconciliationReport",
    # 예외
    "LedgerError",
    "ValidationError",
    "NotFoundError",
    "AlreadyActiveError",
    "ConflictError",
    "PartialTransferFailure",
]
