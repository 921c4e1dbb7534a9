"""Unit tests for AccountApplicationService over in-memory repositories."""

import pytest

from src.bs_account.application.schemas import AddToCartRequest, UpdateProfileRequest
from src.bs_account.application.service import AccountApplicationService
from src.bs_common.errors import (
    AccountConflictError,
    AccountNotFoundError,
    BookNotFoundError,
    CartItemExistsError,
    ForbiddenError,
    UserNotFoundError,
)
from tests.fakes import (
    FakeAccountRepository,
    FakeCatalogRepository,
    FakeSession,
    fixed_clock,
    make_account,
    make_book,
)


@pytest.fixture
def accounts() -> FakeAccountRepository:
    return FakeAccountRepository(make_account("user_1"), make_account("user_2"))


@pytest.fixture
def catalog() -> FakeCatalogRepository:
    return FakeCatalogRepository(
        make_book("b1", price_cents=2000, rent_cents=500),
        make_book("b2", price_cents=1000, rent_cents=250),
    )


@pytest.fixture
def db(accounts, catalog) -> FakeSession:  # type: ignore[no-untyped-def]
    return FakeSession(accounts, catalog)


@pytest.fixture
def svc(accounts, catalog) -> AccountApplicationService:  # type: ignore[no-untyped-def]
    return AccountApplicationService(repo=accounts, catalog=catalog, clock=fixed_clock)


class TestCart:
    async def test_add_prices_by_type(self, svc, db, accounts) -> None:  # type: ignore[no-untyped-def]
        item = await svc.add_to_cart(db, "user_1", AddToCartRequest(book_id="b1", type="borrow"))
        assert item.price_cents == 500
        assert item.price_display == "$5.00"
        assert accounts.rows["user_1"].cart[0].type == "borrow"
        assert accounts.rows["user_1"].version == 1

    async def test_add_unknown_book(self, svc, db) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(BookNotFoundError):
            await svc.add_to_cart(db, "user_1", AddToCartRequest(book_id="nope", type="buy"))

    async def test_add_duplicate_line(self, svc, db) -> None:  # type: ignore[no-untyped-def]
        req = AddToCartRequest(book_id="b1", type="buy")
        await svc.add_to_cart(db, "user_1", req)
        with pytest.raises(CartItemExistsError):
            await svc.add_to_cart(db, "user_1", req)
        assert db.rollbacks == 0  # rejected before any write

    async def test_get_cart_totals_at_live_prices(self, svc, db, catalog) -> None:  # type: ignore[no-untyped-def]
        await svc.add_to_cart(db, "user_1", AddToCartRequest(book_id="b1", type="buy"))
        await svc.add_to_cart(db, "user_1", AddToCartRequest(book_id="b2", type="borrow"))
        catalog.rows["b1"].price_cents = 2500

        cart = await svc.get_cart(db, "user_1")

        assert cart.item_count == 2
        assert cart.total_cents == 2500 + 250
        assert cart.total_display == "$27.50"

    async def test_remove_is_idempotent(self, svc, db, accounts) -> None:  # type: ignore[no-untyped-def]
        await svc.add_to_cart(db, "user_1", AddToCartRequest(book_id="b1", type="buy"))
        assert await svc.remove_from_cart(db, "user_1", "b1", "buy") is True
        assert await svc.remove_from_cart(db, "user_1", "b1", "buy") is False
        assert accounts.rows["user_1"].cart == []

    async def test_clear_cart(self, svc, db, accounts) -> None:  # type: ignore[no-untyped-def]
        await svc.add_to_cart(db, "user_1", AddToCartRequest(book_id="b1", type="buy"))
        await svc.clear_cart(db, "user_1")
        assert accounts.rows["user_1"].cart == []
        # clearing an empty cart writes nothing
        version = accounts.rows["user_1"].version
        await svc.clear_cart(db, "user_1")
        assert accounts.rows["user_1"].version == version

    async def test_concurrent_replace_is_a_conflict(self, svc, db, accounts) -> None:  # type: ignore[no-untyped-def]
        class RacingAccounts(FakeAccountRepository):
            async def replace(self, db, account):  # type: ignore[no-untyped-def]
                self.bump_version(account.id)
                return await super().replace(db, account)

        racing = RacingAccounts(make_account("user_1"))
        svc = AccountApplicationService(repo=racing, catalog=svc._catalog, clock=fixed_clock)
        with pytest.raises(AccountConflictError):
            await svc.add_to_cart(
                FakeSession(racing), "user_1", AddToCartRequest(book_id="b1", type="buy")
            )

    async def test_unknown_account(self, svc, db) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(AccountNotFoundError):
            await svc.get_cart(db, "ghost")


class TestProfile:
    async def test_profile_has_no_password_hash(self, svc, db) -> None:  # type: ignore[no-untyped-def]
        resp = await svc.get_profile(db, "user_1")
        assert "password_hash" not in resp.model_dump()
        assert resp.email == "user_1@example.com"

    async def test_update_profile_only_sent_fields(self, svc, db, accounts) -> None:  # type: ignore[no-untyped-def]
        resp = await svc.update_profile(db, "user_1", UpdateProfileRequest(first_name="  Grace "))
        assert resp.first_name == "Grace"
        assert resp.last_name == "Lovelace"
        assert accounts.rows["user_1"].first_name == "Grace"


class TestUsers:
    async def test_self_lookup(self, svc, db) -> None:  # type: ignore[no-untyped-def]
        resp = await svc.get_user(db, "user_1", "user_1", is_admin=False)
        assert resp.id == "user_1"

    async def test_other_user_forbidden(self, svc, db) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(ForbiddenError):
            await svc.get_user(db, "user_2", "user_1", is_admin=False)

    async def test_admin_missing_user(self, svc, db) -> None:  # type: ignore[no-untyped-def]
        with pytest.raises(UserNotFoundError):
            await svc.get_user(db, "ghost", "admin", is_admin=True)

    async def test_list_users(self, svc, db) -> None:  # type: ignore[no-untyped-def]
        users = await svc.list_users(db)
        assert {u.id for u in users} == {"user_1", "user_2"}


class TestLibrary:
    async def test_library_lists_owned_and_borrowed(self, svc, db, accounts) -> None:  # type: ignore[no-untyped-def]
        resp = await svc.get_library(db, "user_1")
        assert resp.brought_books == []
        assert resp.borrowed_books == []
