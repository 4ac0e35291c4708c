"""WalletLedger 통합 테스트

잔액 체인(balance_after) 유지, 과거 날짜 추가, 수정/삭제/복원,
시점 잔액, 사용 현황, 정합성 검사.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.ledger import (
    AlreadyActiveError,
    NotFoundError,
    PostingLinks,
    ValidationError,
    WalletLedger,
    WalletRegistry,
)
from core.types import PostingKind
from core.utils.timezone import now_utc, to_ict

D1 = datetime(2025, 3, 1, 3, 0, tzinfo=timezone.utc)
D2 = datetime(2025, 3, 2, 3, 0, tzinfo=timezone.utc)
D3 = datetime(2025, 3, 3, 3, 0, tzinfo=timezone.utc)
D4 = datetime(2025, 3, 4, 3, 0, tzinfo=timezone.utc)


async def _chain(ledger: WalletLedger, wallet_id: str) -> list[tuple[Decimal, Decimal]]:
    """(amount, balance_after) 목록 ((date, seq) 순)"""
    postings = await ledger.list_postings(wallet_id)
    return [(p.amount, p.balance_after) for p in postings]


async def _assert_consistent(ledger: WalletLedger, wallet_id: str) -> None:
    """잔액 = 활성 전표 합계, 체인 일치"""
    report = await ledger.verify_wallet(wallet_id)
    assert report.is_consistent, report.to_dict()


class TestAppendPosting:
    """전표 추가 테스트"""

    @pytest.mark.asyncio
    async def test_running_balance(self, ledger: WalletLedger, make_wallet) -> None:
        """입금 100, 출금 30 → 잔액 70"""
        wallet = await make_wallet()

        first = await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        second = await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D2, -30)

        assert first.balance_after == Decimal("100")
        assert second.balance_after == Decimal("70")
        assert await ledger.get_balance(wallet.wallet_id) == Decimal("70")
        await _assert_consistent(ledger, wallet.wallet_id)

    @pytest.mark.asyncio
    async def test_codes_by_kind(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()

        income = await ledger.append_posting(wallet.wallet_id, "INCOME", D1, 100)
        expense = await ledger.append_posting(wallet.wallet_id, "EXPENSE", D1, -10)
        adjustment = await ledger.append_posting(wallet.wallet_id, "ADJUSTMENT", D1, 5)
        income2 = await ledger.append_posting(wallet.wallet_id, "INCOME", D2, 1)

        assert income.code == "PT0001"
        assert expense.code == "PC0001"
        assert adjustment.code == "DC0001"
        assert income2.code == "PT0002"

    @pytest.mark.asyncio
    async def test_code_follows_highest_number(self, ledger: WalletLedger, make_wallet) -> None:
        """삽입 순서가 아니라 번호 최대값 + 1, 형식이 다른 번호는 무시"""
        wallet = await make_wallet()
        first = await ledger.append_posting(wallet.wallet_id, "INCOME", D1, 100)
        second = await ledger.append_posting(wallet.wallet_id, "INCOME", D1, 100)
        await ledger.db.execute(
            "UPDATE posting SET code = 'PT0042' WHERE posting_id = ?", (first.posting_id,)
        )
        await ledger.db.execute(
            "UPDATE posting SET code = 'PT99-legacy' WHERE posting_id = ?",
            (second.posting_id,),
        )

        third = await ledger.append_posting(wallet.wallet_id, "INCOME", D2, 1)
        await ledger.db.execute(
            "UPDATE posting SET code = 'PT10000' WHERE posting_id = ?", (third.posting_id,)
        )
        fourth = await ledger.append_posting(wallet.wallet_id, "INCOME", D2, 1)

        assert third.code == "PT0043"
        assert fourth.code == "PT10001"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kind,amount",
        [
            (PostingKind.INCOME, 0),
            (PostingKind.INCOME, -100),
            (PostingKind.EXPENSE, 100),
            (PostingKind.ADJUSTMENT, 0),
        ],
    )
    async def test_invalid_sign_rejected(
        self, ledger: WalletLedger, make_wallet, kind: PostingKind, amount: int
    ) -> None:
        """부호 위반 시 아무것도 기록되지 않음"""
        wallet = await make_wallet()

        with pytest.raises(ValidationError):
            await ledger.append_posting(wallet.wallet_id, kind, D1, amount)

        assert await ledger.list_postings(wallet.wallet_id) == []

    @pytest.mark.asyncio
    async def test_unknown_wallet(self, ledger: WalletLedger) -> None:
        with pytest.raises(NotFoundError):
            await ledger.append_posting("missing", PostingKind.INCOME, D1, 100)

    @pytest.mark.asyncio
    async def test_unknown_order_link(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()

        with pytest.raises(NotFoundError):
            await ledger.append_posting(
                wallet.wallet_id,
                PostingKind.INCOME,
                D1,
                100,
                links=PostingLinks(order_id="missing"),
            )

    @pytest.mark.asyncio
    async def test_backdated_posting_recomputes(
        self, ledger: WalletLedger, make_wallet
    ) -> None:
        """과거 날짜 추가 시 이후 전표 체인 재계산"""
        wallet = await make_wallet()
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D3, -30)

        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D2, 50)

        assert await _chain(ledger, wallet.wallet_id) == [
            (Decimal("100"), Decimal("100")),
            (Decimal("50"), Decimal("150")),
            (Decimal("-30"), Decimal("120")),
        ]
        await _assert_consistent(ledger, wallet.wallet_id)

    @pytest.mark.asyncio
    async def test_same_date_insertion_order(
        self, ledger: WalletLedger, make_wallet
    ) -> None:
        """같은 날짜는 삽입 순서(seq)"""
        wallet = await make_wallet()
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D1, -40)
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 5)

        assert [b for _, b in await _chain(ledger, wallet.wallet_id)] == [
            Decimal("100"),
            Decimal("60"),
            Decimal("65"),
        ]

    @pytest.mark.asyncio
    async def test_writes_audit(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()

        posting = await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)

        rows = await ledger.audit.list(entity="Posting", entity_id=posting.posting_id)
        assert [r["action"] for r in rows] == ["CREATE"]
        assert rows[0]["after"]["amount"] == "100"


class TestEditPosting:
    """전표 수정 테스트"""

    @pytest.mark.asyncio
    async def test_amount_edit_recomputes(self, ledger: WalletLedger, make_wallet) -> None:
        """시나리오: 100, -30, +50 → 첫 전표 120으로 수정"""
        wallet = await make_wallet()
        first = await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D2, -30)
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D3, 50)

        await ledger.edit_posting(first.posting_id, amount=120)

        assert [b for _, b in await _chain(ledger, wallet.wallet_id)] == [
            Decimal("120"),
            Decimal("90"),
            Decimal("140"),
        ]
        assert await ledger.get_balance(wallet.wallet_id) == Decimal("140")
        await _assert_consistent(ledger, wallet.wallet_id)

    @pytest.mark.asyncio
    async def test_date_edit_reorders(self, ledger: WalletLedger, make_wallet) -> None:
        """날짜 변경 시 위치 이동 + 재계산"""
        wallet = await make_wallet()
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        expense = await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D2, -30)
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D3, 50)

        await ledger.edit_posting(expense.posting_id, date=D4)

        assert await _chain(ledger, wallet.wallet_id) == [
            (Decimal("100"), Decimal("100")),
            (Decimal("50"), Decimal("150")),
            (Decimal("-30"), Decimal("120")),
        ]

    @pytest.mark.asyncio
    async def test_note_edit_keeps_balance(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()
        posting = await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)

        edited = await ledger.edit_posting(posting.posting_id, note="tiền cọc")

        assert edited.note == "tiền cọc"
        assert edited.amount == Decimal("100")
        assert edited.balance_after == Decimal("100")

    @pytest.mark.asyncio
    async def test_sign_rule_on_edit(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()
        posting = await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D1, -30)

        with pytest.raises(ValidationError):
            await ledger.edit_posting(posting.posting_id, amount=30)

        assert (await ledger.get_posting(posting.posting_id)).amount == Decimal("-30")

    @pytest.mark.asyncio
    async def test_deleted_posting_not_editable(
        self, ledger: WalletLedger, make_wallet
    ) -> None:
        wallet = await make_wallet()
        posting = await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        await ledger.delete_posting(posting.posting_id)

        with pytest.raises(NotFoundError):
            await ledger.edit_posting(posting.posting_id, amount=200)

    @pytest.mark.asyncio
    async def test_order_link_immutable(
        self, ledger: WalletLedger, registry: WalletRegistry, make_wallet
    ) -> None:
        """연결된 주문은 변경 불가"""
        wallet = await make_wallet()
        order_a = await registry.create_order("Đơn A", 1000)
        order_b = await registry.create_order("Đơn B", 1000)
        posting = await ledger.append_posting(
            wallet.wallet_id,
            PostingKind.INCOME,
            D1,
            100,
            links=PostingLinks(order_id=order_a.order_id),
        )

        with pytest.raises(ValidationError, match="Order link"):
            await ledger.edit_posting(
                posting.posting_id, links=PostingLinks(order_id=order_b.order_id)
            )

    @pytest.mark.asyncio
    async def test_order_link_can_be_set_once(
        self, ledger: WalletLedger, registry: WalletRegistry, make_wallet
    ) -> None:
        wallet = await make_wallet()
        order = await registry.create_order("Đơn A", 1000)
        posting = await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)

        edited = await ledger.edit_posting(
            posting.posting_id, links=PostingLinks(order_id=order.order_id)
        )

        assert edited.links.order_id == order.order_id

    @pytest.mark.asyncio
    async def test_unknown_posting(self, ledger: WalletLedger) -> None:
        with pytest.raises(NotFoundError):
            await ledger.edit_posting("missing", amount=1)


class TestDeleteRestore:
    """삭제 / 복원 테스트"""

    @pytest.mark.asyncio
    async def test_delete_recomputes(self, ledger: WalletLedger, make_wallet) -> None:
        """시나리오: 100, -30, +50 → 두 번째 삭제 → 100, 150"""
        wallet = await make_wallet()
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        expense = await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D2, -30)
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D3, 50)

        deleted = await ledger.delete_posting(expense.posting_id)

        assert not deleted.is_active
        assert [b for _, b in await _chain(ledger, wallet.wallet_id)] == [
            Decimal("100"),
            Decimal("150"),
        ]
        assert await ledger.get_balance(wallet.wallet_id) == Decimal("150")
        await _assert_consistent(ledger, wallet.wallet_id)

    @pytest.mark.asyncio
    async def test_delete_idempotent(self, ledger: WalletLedger, make_wallet) -> None:
        """두 번째 삭제는 변경 없이 성공, 감사 로그 1건"""
        wallet = await make_wallet()
        posting = await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)

        first = await ledger.delete_posting(posting.posting_id)
        second = await ledger.delete_posting(posting.posting_id)

        assert first.to_dict()["deleted_at"] == second.to_dict()["deleted_at"]
        rows = await ledger.audit.list(entity="Posting", entity_id=posting.posting_id)
        assert [r["action"] for r in rows] == ["DELETE", "CREATE"]

    @pytest.mark.asyncio
    async def test_restore_roundtrip(self, ledger: WalletLedger, make_wallet) -> None:
        """삭제 → 복원 시 원래 체인으로 돌아옴"""
        wallet = await make_wallet()
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        expense = await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D2, -30)
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D3, 50)
        original = await _chain(ledger, wallet.wallet_id)

        await ledger.delete_posting(expense.posting_id)
        restored = await ledger.restore_posting(expense.posting_id)

        assert restored.is_active
        assert await _chain(ledger, wallet.wallet_id) == original
        await _assert_consistent(ledger, wallet.wallet_id)

    @pytest.mark.asyncio
    async def test_restore_active_raises(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()
        posting = await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)

        with pytest.raises(AlreadyActiveError):
            await ledger.restore_posting(posting.posting_id)

    @pytest.mark.asyncio
    async def test_deleted_excluded_from_list(
        self, ledger: WalletLedger, make_wallet
    ) -> None:
        wallet = await make_wallet()
        posting = await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        await ledger.delete_posting(posting.posting_id)

        assert await ledger.list_postings(wallet.wallet_id) == []
        assert len(await ledger.list_postings(wallet.wallet_id, include_deleted=True)) == 1
        assert (await ledger.get_posting(posting.posting_id)).posting_id == posting.posting_id


class TestGetBalance:
    """시점 잔액 테스트"""

    @pytest.mark.asyncio
    async def test_as_of(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D3, -30)

        assert await ledger.get_balance(wallet.wallet_id, as_of=D2) == Decimal("100")
        assert await ledger.get_balance(wallet.wallet_id, as_of=D3) == Decimal("70")

    @pytest.mark.asyncio
    async def test_as_of_before_first_posting(
        self, ledger: WalletLedger, make_wallet
    ) -> None:
        wallet = await make_wallet()
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D2, 100)

        assert await ledger.get_balance(wallet.wallet_id, as_of=D1) == Decimal("0")

    @pytest.mark.asyncio
    async def test_as_of_date_includes_whole_day(
        self, ledger: WalletLedger, make_wallet
    ) -> None:
        """날짜만 주면 ICT 기준 그 날 끝까지 포함"""
        wallet = await make_wallet()
        # 2025-03-01 20:00 ICT
        await ledger.append_posting(
            wallet.wallet_id,
            PostingKind.INCOME,
            datetime(2025, 3, 1, 13, 0, tzinfo=timezone.utc),
            100,
        )

        assert await ledger.get_balance(wallet.wallet_id, as_of=date(2025, 3, 1)) == Decimal("100")
        assert await ledger.get_balance(wallet.wallet_id, as_of=date(2025, 2, 28)) == Decimal("0")

    @pytest.mark.asyncio
    async def test_future_dated_posting_in_current_balance(
        self, ledger: WalletLedger, registry: WalletRegistry, make_wallet
    ) -> None:
        """as_of 없으면 미래 날짜 전표 포함, 지갑 캐시 잔액과 동일"""
        wallet = await make_wallet()
        now = now_utc()
        await ledger.append_posting(
            wallet.wallet_id, PostingKind.INCOME, now - timedelta(days=1), 500_000
        )
        await ledger.append_posting(
            wallet.wallet_id, PostingKind.EXPENSE, now + timedelta(days=2), -200_000
        )

        balance = await ledger.get_balance(wallet.wallet_id)
        cached = (await registry.get_wallet(wallet.wallet_id)).balance
        total = sum(
            (p.amount for p in await ledger.list_postings(wallet.wallet_id)), Decimal("0")
        )

        assert balance == cached == total == Decimal("300000")
        assert await ledger.get_balance(wallet.wallet_id, as_of=now) == Decimal("500000")

    @pytest.mark.asyncio
    async def test_empty_wallet(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()

        assert await ledger.get_balance(wallet.wallet_id) == Decimal("0")

    @pytest.mark.asyncio
    async def test_unknown_wallet(self, ledger: WalletLedger) -> None:
        with pytest.raises(NotFoundError):
            await ledger.get_balance("missing")


class TestListPostings:
    """전표 목록 필터 테스트"""

    @pytest.mark.asyncio
    async def test_filters(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D2, -30)
        await ledger.append_posting(wallet.wallet_id, PostingKind.ADJUSTMENT, D3, 7)

        incomes = await ledger.list_postings(wallet.wallet_id, kind=PostingKind.INCOME)
        manual = await ledger.list_postings(wallet.wallet_id, manual_adjustments_only=True)
        ranged = await ledger.list_postings(wallet.wallet_id, date_from=D2, date_to=D2)
        newest = await ledger.list_postings(wallet.wallet_id, newest_first=True, limit=1)

        assert [p.amount for p in incomes] == [Decimal("100")]
        assert [p.amount for p in manual] == [Decimal("7")]
        assert [p.amount for p in ranged] == [Decimal("-30")]
        assert [p.amount for p in newest] == [Decimal("7")]


class TestUsageSummary:
    """사용 현황 요약 테스트"""

    @pytest.mark.asyncio
    async def test_totals_and_categories(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()
        await ledger.append_posting(
            wallet.wallet_id, PostingKind.INCOME, D1, 500, category_id="ban-hang"
        )
        await ledger.append_posting(
            wallet.wallet_id, PostingKind.EXPENSE, D2, -120, category_id="van-chuyen"
        )
        await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D2, -80)
        await ledger.append_posting(wallet.wallet_id, PostingKind.ADJUSTMENT, D3, -5)
        # 기간 밖
        await ledger.append_posting(
            wallet.wallet_id,
            PostingKind.INCOME,
            datetime(2025, 4, 1, tzinfo=timezone.utc),
            999,
        )

        summary = await ledger.usage_summary(
            wallet.wallet_id,
            date_from=datetime(2025, 3, 1, tzinfo=timezone.utc),
            date_to=datetime(2025, 3, 31, tzinfo=timezone.utc),
        )

        assert summary.income_total == Decimal("500")
        assert summary.expense_total == Decimal("200")
        assert summary.adjustments_total == Decimal("-5")
        assert summary.transfers_total == Decimal("0")
        assert summary.net == Decimal("295")
        assert summary.income_by_category == {"ban-hang": Decimal("500")}
        assert summary.expense_by_category == {
            "van-chuyen": Decimal("120"),
            "uncategorized": Decimal("80"),
        }

    @pytest.mark.asyncio
    async def test_inverted_range(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()

        with pytest.raises(ValidationError):
            await ledger.usage_summary(wallet.wallet_id, date_from=D3, date_to=D1)

    @pytest.mark.asyncio
    async def test_default_range_is_current_month(
        self, ledger: WalletLedger, make_wallet
    ) -> None:
        wallet = await make_wallet()

        summary = await ledger.usage_summary(wallet.wallet_id)

        start = to_ict(summary.date_from)
        assert (start.day, start.hour, start.minute) == (1, 0, 0)
        assert summary.date_from <= summary.date_to


class TestVerifyAndRecompute:
    """정합성 검사 / 재계산 테스트"""

    @pytest.mark.asyncio
    async def test_detects_and_fixes_corruption(
        self, ledger: WalletLedger, make_wallet
    ) -> None:
        wallet = await make_wallet()
        first = await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)
        await ledger.append_posting(wallet.wallet_id, PostingKind.EXPENSE, D2, -30)

        # 체인 손상
        await ledger.db.execute(
            "UPDATE posting SET balance_after = '999' WHERE posting_id = ?",
            (first.posting_id,),
        )
        await ledger.db.commit()

        report = await ledger.verify_wallet(wallet.wallet_id)
        assert not report.is_consistent
        assert report.mismatches[0].posting_id == first.posting_id
        assert report.mismatches[0].expected == Decimal("100")

        balance = await ledger.recompute(wallet.wallet_id)

        assert balance == Decimal("70")
        await _assert_consistent(ledger, wallet.wallet_id)

    @pytest.mark.asyncio
    async def test_recompute_idempotent(self, ledger: WalletLedger, make_wallet) -> None:
        wallet = await make_wallet()
        await ledger.append_posting(wallet.wallet_id, PostingKind.INCOME, D1, 100)

        assert await ledger.recompute(wallet.wallet_id) == Decimal("100")
        assert await ledger.recompute(wallet.wallet_id) == Decimal("100")

    @pytest.mark.asyncio
    async def test_recompute_unknown_wallet(self, ledger: WalletLedger) -> None:
        with pytest.raises(NotFoundError):
            await ledger.recompute("missing")
