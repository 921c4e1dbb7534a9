"""Unit tests for LedgerApplicationService over in-memory repositories."""

import pytest

from src.bs_common.errors import (
    ForbiddenError,
    InvalidTransactionStatusError,
    TransactionNotFoundError,
)
from src.bs_ledger.application.checkout import CheckoutWorkflow
from src.bs_ledger.application.returns import ReturnWorkflow
from src.bs_ledger.application.schemas import CheckoutItem, CheckoutRequest
from src.bs_ledger.application.service import LedgerApplicationService
from tests.fakes import (
    FakeAccountRepository,
    FakeCatalogRepository,
    FakeLedgerRepository,
    FakeSession,
    fixed_clock,
    make_account,
    make_book,
)


@pytest.fixture
def env():  # type: ignore[no-untyped-def]
    catalog = FakeCatalogRepository(make_book("b1", price_cents=1500, rent_cents=400))
    ledger = FakeLedgerRepository()
    accounts = FakeAccountRepository(make_account("user_1"), make_account("user_2"))
    svc = LedgerApplicationService(
        ledger=ledger,
        accounts=accounts,
        checkout_workflow=CheckoutWorkflow(
            catalog=catalog, ledger=ledger, accounts=accounts, clock=fixed_clock, borrow_days=14
        ),
        return_workflow=ReturnWorkflow(catalog=catalog, accounts=accounts, clock=fixed_clock),
    )
    db = FakeSession(catalog, ledger, accounts)
    return svc, db, ledger, accounts


def _buy_request(key: str | None = None) -> CheckoutRequest:
    return CheckoutRequest(items=[CheckoutItem(book_id="b1", type="buy")], idempotency_key=key)


class TestCheckout:
    async def test_returns_reference_and_total(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        resp = await svc.checkout(db, "user_1", _buy_request())
        assert resp.total_amount_cents == 1500
        assert resp.transaction.total_amount_display == "$15.00"
        assert resp.reference == resp.transaction.reference
        assert resp.replayed is False

    async def test_header_key_wins_over_body_key(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, ledger, _ = env
        await svc.checkout(db, "user_1", _buy_request("body-key"), idempotency_key="header-key")
        stored = next(iter(ledger.rows.values()))
        assert stored.idempotency_key == "header-key"

    async def test_body_key_used_without_header(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        await svc.checkout(db, "user_1", _buy_request("k"))
        again = await svc.checkout(db, "user_1", _buy_request("k"))
        assert again.replayed is True


class TestReturn:
    async def test_return_date_is_iso(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        await svc.checkout(
            db, "user_1", CheckoutRequest(items=[CheckoutItem(book_id="b1", type="borrow")])
        )
        resp = await svc.return_book(db, "user_1", "b1")
        assert resp.book_id == "b1"
        assert resp.return_date.startswith("2026-03-01")


class TestViews:
    async def test_owner_can_read_transaction(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        created = await svc.checkout(db, "user_1", _buy_request())
        resp = await svc.get_transaction(db, created.transaction.id, "user_1", is_admin=False)
        assert resp.reference == created.reference

    async def test_other_user_is_forbidden(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        created = await svc.checkout(db, "user_1", _buy_request())
        with pytest.raises(ForbiddenError):
            await svc.get_transaction(db, created.transaction.id, "user_2", is_admin=False)

    async def test_admin_can_read_any(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        created = await svc.checkout(db, "user_1", _buy_request())
        resp = await svc.get_transaction(db, created.transaction.id, "admin_1", is_admin=True)
        assert resp.user_id == "user_1"

    async def test_unknown_transaction(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        with pytest.raises(TransactionNotFoundError):
            await svc.get_transaction(db, "tx_missing", "user_1", is_admin=True)

    async def test_list_filters_by_user(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        await svc.checkout(db, "user_1", _buy_request())
        await svc.checkout(db, "user_2", _buy_request())
        resp = await svc.list_transactions(db, None, "user_2", page=1, limit=10)
        assert resp.pagination.total == 1
        assert resp.transactions[0].user_id == "user_2"

    async def test_stats(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        await svc.checkout(db, "user_1", _buy_request())
        await svc.checkout(db, "user_2", _buy_request())
        resp = await svc.stats(db)
        assert resp.total_transactions == 2
        assert resp.completed_transactions == 2
        assert resp.total_revenue_cents == 3000
        assert resp.total_revenue_display == "$30.00"
        assert len(resp.recent_transactions) == 2


class TestUpdateStatus:
    async def test_updates_ledger_and_embedded_history(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, ledger, accounts = env
        created = await svc.checkout(db, "user_1", _buy_request())

        resp = await svc.update_status(db, created.transaction.id, "failed")

        assert resp.status == "failed"
        assert ledger.rows[created.transaction.id].status == "failed"
        assert accounts.rows["user_1"].transaction_history[0].status == "failed"

    async def test_rejects_unknown_status(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        with pytest.raises(InvalidTransactionStatusError):
            await svc.update_status(db, "tx_1", "shipped")

    async def test_unknown_transaction_rolls_back(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        with pytest.raises(TransactionNotFoundError):
            await svc.update_status(db, "tx_missing", "completed")
        assert db.rollbacks == 1
