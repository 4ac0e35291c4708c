"""
지갑 잔액 정합성 검사

활성 전표의 누적 합계와 저장된 balance_after / wallet.balance 캐시를 비교.
--fix 지정 시 불일치 지갑의 잔액 체인을 재계산한다.

사용법:
    python -m scripts.reconcile_wallet
    python -m scripts.reconcile_wallet --wallet-id <wallet_id> --fix
"""

import argparse
import asyncio
import logging
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import get_settings
from core.ledger import WalletLedger, WalletRegistry
from core.ledger.types import ReconciliationReport
from core.logging import setup_logging

logger = logging.getLogger(__name__)


def print_report(report: ReconciliationReport, code: str) -> None:
    """검사 결과 출력"""
    status = "OK" if report.is_consistent else "MISMATCH"
    print(
        f"[{status:8}] {code:8} | cached={report.cached_balance} "
        f"computed={report.computed_balance} postings={report.posting_count}"
    )
    for m in report.mismatches:
        print(f"    - {m.posting_id}: stored={m.stored} expected={m.expected}")


async def main(wallet_id: str | None, fix: bool, db_path: Path | None) -> int:
    settings = get_settings()
    path = db_path or settings.db_path

    async with SQLiteAdapter(path) as db:
        await init_schema(db)
        ledger = WalletLedger(db)
        registry = WalletRegistry(ledger)

        if wallet_id:
            wallets = [await registry.get_wallet(wallet_id)]
        else:
            wallets = await registry.list_wallets()

        inconsistent = 0
        for wallet in wallets:
            report = await ledger.verify_wallet(wallet.wallet_id)
            print_report(report, wallet.code)
            if report.is_consistent:
                continue

            inconsistent += 1
            if fix:
                balance = await ledger.recompute(wallet.wallet_id)
                logger.warning(
                    f"잔액 체인 재계산: {wallet.code} → {balance}",
                    extra={"wallet_id": wallet.wallet_id},
                )

        print(f"\n검사 {len(wallets)}개 / 불일치 {inconsistent}개")
        if inconsistent and not fix:
            print("--fix 옵션으로 재계산할 수 있습니다.")
        return 1 if inconsistent and not fix else 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="지갑 잔액 정합성 검사"
    )
    parser.add_argument(
        "--wallet-id",
        default=None,
        help="검사할 지갑 ID (기본: 전체 활성 지갑)"
    )
    parser.add_argument(
        "--fix",
        action="store_true",
        help="불일치 지갑의 잔액 체인 재계산"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="DB 경로 (기본: settings.yaml)"
    )
    args = parser.parse_args()

    setup_logging("scripts")
    sys.exit(asyncio.run(main(args.wallet_id, args.fix, args.db)))
