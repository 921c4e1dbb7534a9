"""Scenario tests for CheckoutWorkflow and ReturnWorkflow over in-memory stores."""

from datetime import timedelta

import pytest

from src.bs_account.domain.models import CartItem
from src.bs_common.enums import BorrowStatus, ItemType, TransactionStatus
from src.bs_common.errors import (
    AccountConflictError,
    AccountNotFoundError,
    BookAlreadyReturnedError,
    BookNotFoundError,
    BookUnavailableError,
    BorrowNotFoundError,
    EmptyCartError,
    IdempotencyKeyReusedError,
    StockConflictError,
)
from src.bs_ledger.application.checkout import CheckoutWorkflow
from src.bs_ledger.application.returns import ReturnWorkflow
from src.bs_ledger.application.schemas import CheckoutItem
from tests.fakes import (
    NOW,
    FakeAccountRepository,
    FakeCatalogRepository,
    FakeLedgerRepository,
    FakeSession,
    fixed_clock,
    make_account,
    make_book,
)


def _item(book_id: str, item_type: ItemType) -> CheckoutItem:
    return CheckoutItem(book_id=book_id, type=item_type)


class Store:
    """Bundles the three fakes with a session and both workflows."""

    def __init__(self, *books, accounts: FakeAccountRepository | None = None) -> None:  # type: ignore[no-untyped-def]
        self.catalog = FakeCatalogRepository(*books)
        self.ledger = FakeLedgerRepository()
        self.accounts = accounts or FakeAccountRepository(make_account("user_1"))
        self.db = FakeSession(self.catalog, self.ledger, self.accounts)
        self.checkout = CheckoutWorkflow(
            catalog=self.catalog,
            ledger=self.ledger,
            accounts=self.accounts,
            clock=fixed_clock,
            borrow_days=14,
        )
        self.returns = ReturnWorkflow(
            catalog=self.catalog, accounts=self.accounts, clock=fixed_clock
        )

    def book(self, book_id: str):  # type: ignore[no-untyped-def]
        return self.catalog.rows[book_id]

    def account(self, user_id: str = "user_1"):  # type: ignore[no-untyped-def]
        return self.accounts.rows[user_id]


class TestBuy:
    async def test_buy_records_transaction_and_owned_book(self) -> None:
        s = Store(make_book("b1", price_cents=1999, available_copies=2, total_copies=2))

        result = await s.checkout.checkout(s.db, "user_1", [_item("b1", ItemType.BUY)])

        assert result.replayed is False
        assert result.total_amount_cents == 1999
        assert result.transaction.status == TransactionStatus.COMPLETED
        assert result.reference.startswith("ORDER_")
        assert result.reference.endswith("_user_1")
        assert s.db.commits == 1

        owned = s.account().brought_books
        assert len(owned) == 1
        assert owned[0].transaction_ref == result.reference
        assert owned[0].pdf_url == s.book("b1").pdf_url
        # Buying never touches lendable copies
        assert s.book("b1").available_copies == 2

    async def test_history_entry_matches_ledger_row(self) -> None:
        s = Store(make_book("b1"))

        result = await s.checkout.checkout(s.db, "user_1", [_item("b1", ItemType.BUY)])

        stored = s.ledger.rows[result.transaction.id]
        history = s.account().transaction_history
        assert len(history) == 1
        assert history[0].reference == stored.reference
        assert history[0].total_amount_cents == stored.total_amount_cents

    async def test_total_is_exact_sum_of_items(self) -> None:
        s = Store(
            make_book("b1", price_cents=1999, rent_cents=499),
            make_book("b2", price_cents=1050, rent_cents=301),
        )

        result = await s.checkout.checkout(
            s.db,
            "user_1",
            [_item("b1", ItemType.BUY), _item("b2", ItemType.BORROW)],
        )

        assert result.total_amount_cents == 1999 + 301
        assert sum(i.price_cents for i in result.transaction.items) == result.total_amount_cents


class TestBorrowAndReturn:
    async def test_borrow_takes_a_copy_and_sets_due_date(self) -> None:
        s = Store(make_book("b1", available_copies=1, total_copies=1))

        result = await s.checkout.checkout(s.db, "user_1", [_item("b1", ItemType.BORROW)])

        assert s.book("b1").available_copies == 0
        borrowed = s.account().borrowed_books
        assert len(borrowed) == 1
        assert borrowed[0].status == BorrowStatus.ACTIVE
        assert borrowed[0].transaction_ref == result.reference
        assert borrowed[0].return_date == NOW + timedelta(days=14)

    async def test_return_gives_the_copy_back(self) -> None:
        s = Store(make_book("b1", available_copies=1, total_copies=1))
        await s.checkout.checkout(s.db, "user_1", [_item("b1", ItemType.BORROW)])

        result = await s.returns.return_book(s.db, "user_1", "b1")

        assert result.book_id == "b1"
        assert result.return_date == NOW
        assert s.book("b1").available_copies == 1
        entry = s.account().borrowed_books[0]
        assert entry.status == BorrowStatus.RETURNED
        assert entry.actual_return_date == NOW

    async def test_second_return_is_rejected(self) -> None:
        s = Store(make_book("b1", available_copies=1, total_copies=1))
        await s.checkout.checkout(s.db, "user_1", [_item("b1", ItemType.BORROW)])
        await s.returns.return_book(s.db, "user_1", "b1")

        with pytest.raises(BookAlreadyReturnedError):
            await s.returns.return_book(s.db, "user_1", "b1")
        assert s.book("b1").available_copies == 1

    async def test_return_of_never_borrowed_book(self) -> None:
        s = Store(make_book("b1"))
        with pytest.raises(BorrowNotFoundError):
            await s.returns.return_book(s.db, "user_1", "b1")
        assert s.db.rollbacks == 1

    async def test_return_never_exceeds_total_copies(self) -> None:
        s = Store(make_book("b1", available_copies=1, total_copies=1))
        await s.checkout.checkout(s.db, "user_1", [_item("b1", ItemType.BORROW)])
        # An admin restocks before the copy comes back
        s.book("b1").available_copies = 1
        await s.db.commit()

        await s.returns.return_book(s.db, "user_1", "b1")

        assert s.book("b1").available_copies == 1

    async def test_return_after_book_deleted_still_closes_borrow(self) -> None:
        s = Store(make_book("b1"))
        await s.checkout.checkout(s.db, "user_1", [_item("b1", ItemType.BORROW)])
        del s.catalog.rows["b1"]
        await s.db.commit()

        await s.returns.return_book(s.db, "user_1", "b1")

        assert s.account().borrowed_books[0].status == BorrowStatus.RETURNED


class TestAllOrNothing:
    async def test_exhausted_stock_writes_nothing(self) -> None:
        s = Store(make_book("b1", available_copies=0, total_copies=1))

        with pytest.raises(BookUnavailableError):
            await s.checkout.checkout(s.db, "user_1", [_item("b1", ItemType.BORROW)])

        assert s.ledger.rows == {}
        assert s.account().borrowed_books == []
        assert s.db.rollbacks == 1

    async def test_borrow_depends_on_copies_not_display_flag(self) -> None:
        s = Store(make_book("b1", is_available=False, available_copies=1, total_copies=1))

        await s.checkout.checkout(s.db, "user_1", [_item("b1", ItemType.BORROW)])

        assert s.book("b1").available_copies == 0
        assert s.db.commits == 1

    async def test_demand_is_counted_across_lines(self) -> None:
        s = Store(make_book("b1", available_copies=1, total_copies=2))

        with pytest.raises(BookUnavailableError):
            await s.checkout.checkout(
                s.db,
                "user_1",
                [_item("b1", ItemType.BORROW), _item("b1", ItemType.BORROW)],
            )
        assert s.book("b1").available_copies == 1

    async def test_unknown_book_aborts_whole_checkout(self) -> None:
        s = Store(make_book("b1"))

        with pytest.raises(BookNotFoundError):
            await s.checkout.checkout(
                s.db,
                "user_1",
                [_item("b1", ItemType.BORROW), _item("missing", ItemType.BUY)],
            )

        assert s.ledger.rows == {}
        assert s.book("b1").available_copies == 3
        assert s.account().borrowed_books == []

    async def test_stock_race_rolls_back_transaction_row(self) -> None:
        s = Store(make_book("b1", available_copies=1, total_copies=1))
        s.catalog.steal_on_decrement.add("b1")

        with pytest.raises(StockConflictError):
            await s.checkout.checkout(s.db, "user_1", [_item("b1", ItemType.BORROW)])

        assert s.ledger.rows == {}
        assert s.account().transaction_history == []

    async def test_concurrent_account_write_rolls_back_everything(self) -> None:
        class RacingAccounts(FakeAccountRepository):
            async def replace(self, db, account):  # type: ignore[no-untyped-def]
                self.bump_version(account.id)
                return await super().replace(db, account)

        s = Store(
            make_book("b1", available_copies=2, total_copies=2),
            accounts=RacingAccounts(make_account("user_1")),
        )

        with pytest.raises(AccountConflictError):
            await s.checkout.checkout(s.db, "user_1", [_item("b1", ItemType.BORROW)])

        assert s.ledger.rows == {}
        assert s.book("b1").available_copies == 2

    async def test_missing_account(self) -> None:
        s = Store(make_book("b1"))
        with pytest.raises(AccountNotFoundError):
            await s.checkout.checkout(s.db, "ghost", [_item("b1", ItemType.BUY)])


class TestCart:
    def _cart_item(self, book_id: str, item_type: str, price_cents: int = 1) -> CartItem:
        return CartItem(
            book_id=book_id,
            title="t",
            author="a",
            image="",
            type=item_type,
            price_cents=price_cents,
            added_at=NOW,
        )

    async def test_empty_cart_is_rejected(self) -> None:
        s = Store(make_book("b1"))
        with pytest.raises(EmptyCartError):
            await s.checkout.checkout(s.db, "user_1")

    async def test_checkout_from_cart_clears_it_and_reprices(self) -> None:
        account = make_account("user_1")
        account.cart = [
            self._cart_item("b1", "buy", price_cents=100),
            self._cart_item("b2", "borrow", price_cents=100),
        ]
        s = Store(
            make_book("b1", price_cents=2500),
            make_book("b2", rent_cents=350),
            accounts=FakeAccountRepository(account),
        )

        result = await s.checkout.checkout(s.db, "user_1")

        assert result.total_amount_cents == 2500 + 350
        assert s.account().cart == []
        assert len(s.account().brought_books) == 1
        assert len(s.account().borrowed_books) == 1

    async def test_failed_checkout_keeps_cart(self) -> None:
        account = make_account("user_1")
        account.cart = [self._cart_item("b1", "borrow")]
        s = Store(
            make_book("b1", available_copies=0, total_copies=1),
            accounts=FakeAccountRepository(account),
        )

        with pytest.raises(BookUnavailableError):
            await s.checkout.checkout(s.db, "user_1")

        assert len(s.account().cart) == 1


class TestIdempotency:
    async def test_same_key_replays_first_result(self) -> None:
        s = Store(make_book("b1", available_copies=2, total_copies=2))
        items = [_item("b1", ItemType.BORROW)]

        first = await s.checkout.checkout(s.db, "user_1", items, idempotency_key="k-1")
        second = await s.checkout.checkout(s.db, "user_1", items, idempotency_key="k-1")

        assert second.replayed is True
        assert second.reference == first.reference
        assert len(s.ledger.rows) == 1
        assert s.book("b1").available_copies == 1
        assert len(s.account().borrowed_books) == 1

    async def test_replay_without_items_after_cart_was_consumed(self) -> None:
        account = make_account("user_1")
        account.cart = [
            CartItem(book_id="b1", title="t", author="a", image="", type="buy", price_cents=1)
        ]
        s = Store(make_book("b1"), accounts=FakeAccountRepository(account))

        first = await s.checkout.checkout(s.db, "user_1", idempotency_key="k-2")
        second = await s.checkout.checkout(s.db, "user_1", idempotency_key="k-2")

        assert second.replayed is True
        assert second.reference == first.reference

    async def test_key_reused_for_different_items(self) -> None:
        s = Store(make_book("b1"), make_book("b2"))
        await s.checkout.checkout(
            s.db, "user_1", [_item("b1", ItemType.BUY)], idempotency_key="k-3"
        )

        with pytest.raises(IdempotencyKeyReusedError):
            await s.checkout.checkout(
                s.db, "user_1", [_item("b2", ItemType.BUY)], idempotency_key="k-3"
            )
        assert len(s.ledger.rows) == 1

    async def test_concurrent_duplicate_key_is_replayed(self) -> None:
        s = Store(make_book("b1"))
        first = await s.checkout.checkout(
            s.db, "user_1", [_item("b1", ItemType.BUY)], idempotency_key="k-4"
        )

        # The second request's lookup runs before the first one committed
        original_lookup = s.ledger.get_by_idempotency_key
        calls = {"n": 0}

        async def late_lookup(db, user_id, key):  # type: ignore[no-untyped-def]
            calls["n"] += 1
            if calls["n"] == 1:
                return None
            return await original_lookup(db, user_id, key)

        s.ledger.get_by_idempotency_key = late_lookup  # type: ignore[method-assign]

        second = await s.checkout.checkout(
            s.db, "user_1", [_item("b1", ItemType.BUY)], idempotency_key="k-4"
        )

        assert second.replayed is True
        assert second.reference == first.reference
        assert len(s.ledger.rows) == 1
        assert len(s.account().brought_books) == 1
