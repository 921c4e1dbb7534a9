"""CheckoutWorkflow — turns a cart (or an explicit item list) into a committed
Transaction plus the matching Account and Catalog updates.

Order of operations (all inside the caller's DB session, one transaction):
  1. load account, idempotency replay check
  2. resolve lines (explicit items or the stored cart)
  3. validate every line (book exists, borrow stock) and price it
  4. insert the Transaction (status=completed)
  5. atomic conditional decrement per borrow line
  6. project onto the account and replace it (version-checked)
  7. commit

Nothing is written before step 4, and any failure after it rolls back all
three tables together.
"""

import logging
from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bs_account.domain.models import Account
from src.bs_account.domain.repository import AccountRepositoryProtocol
from src.bs_account.infrastructure.persistence import AccountRepository
from src.bs_catalog.domain.models import Book
from src.bs_catalog.domain.repository import CatalogRepositoryProtocol
from src.bs_catalog.infrastructure.persistence import CatalogRepository
from src.bs_common.datetime_utils import utc_now
from src.bs_common.enums import ItemType, TransactionStatus
from src.bs_common.errors import (
    AccountNotFoundError,
    AppError,
    BookNotFoundError,
    BookUnavailableError,
    EmptyCartError,
    IdempotencyKeyReusedError,
    StockConflictError,
    StoreFailureError,
)
from src.bs_common.id_generator import (
    generate_transaction_id,
    generate_transaction_reference,
)
from src.bs_ledger.domain.models import Transaction, TransactionItem
from src.bs_ledger.domain.pricing import CartLine, price_item, total_price
from src.bs_ledger.domain.repository import LedgerRepositoryProtocol
from src.bs_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger("bs.ledger")


@dataclass
class CheckoutResult:
    transaction: Transaction
    replayed: bool = False

    @property
    def reference(self) -> str:
        return self.transaction.reference

    @property
    def total_amount_cents(self) -> int:
        return self.transaction.total_amount_cents


def _line_signature(lines: Sequence[CartLine]) -> Counter[tuple[str, str]]:
    return Counter((line.book_id, str(ItemType(line.type).value)) for line in lines)


class CheckoutWorkflow:
    def __init__(
        self,
        catalog: CatalogRepositoryProtocol | None = None,
        ledger: LedgerRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
        borrow_days: int | None = None,
    ) -> None:
        self._catalog: CatalogRepositoryProtocol = catalog or CatalogRepository()
        self._ledger: LedgerRepositoryProtocol = ledger or LedgerRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._clock = clock
        self._borrow_days = borrow_days if borrow_days is not None else settings.BORROW_PERIOD_DAYS

    async def checkout(
        self,
        db: AsyncSession,
        user_id: str,
        items: Sequence[CartLine] | None = None,
        payment_method: str = "card",
        idempotency_key: str | None = None,
    ) -> CheckoutResult:
        try:
            result = await self._checkout_inner(
                db, user_id, items, payment_method, idempotency_key
            )
            if not result.replayed:
                await db.commit()
        except IntegrityError:
            await db.rollback()
            if idempotency_key is None:
                logger.exception("Checkout for %s hit a constraint violation", user_id)
                raise StoreFailureError("Checkout could not be recorded")
            # A concurrent request with the same key committed first.
            return await self._replay_after_race(db, user_id, items, idempotency_key)
        except AppError as e:
            await db.rollback()
            logger.warning("Checkout for %s aborted: [%d] %s", user_id, e.code, e.message)
            raise
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Checkout for %s failed in the store", user_id)
            raise StoreFailureError("Checkout could not be recorded")

        if not result.replayed:
            logger.info(
                "Checkout %s committed for %s: %d item(s), total=%d",
                result.reference,
                user_id,
                len(result.transaction.items),
                result.total_amount_cents,
            )
        return result

    async def _checkout_inner(
        self,
        db: AsyncSession,
        user_id: str,
        items: Sequence[CartLine] | None,
        payment_method: str,
        idempotency_key: str | None,
    ) -> CheckoutResult:
        account = await self._accounts.get_account(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)

        if idempotency_key is not None:
            existing = await self._ledger.get_by_idempotency_key(db, user_id, idempotency_key)
            if existing is not None:
                return self._replay(existing, items, idempotency_key)

        lines: Sequence[CartLine] = list(items) if items is not None else list(account.cart)
        if not lines:
            raise EmptyCartError()

        books, priced = await self._validate_and_price(db, lines)
        now = self._clock()

        transaction = Transaction(
            id=generate_transaction_id(),
            user_id=user_id,
            total_amount_cents=total_price(priced),
            items=priced,
            reference=generate_transaction_reference(user_id),
            status=TransactionStatus.COMPLETED.value,
            payment_method=payment_method,
            idempotency_key=idempotency_key,
            date=now,
        )
        transaction = await self._ledger.insert(db, transaction)

        for item in priced:
            if item.type == ItemType.BORROW:
                if await self._catalog.decrement_available(db, item.book_id) is None:
                    raise StockConflictError(item.book_id)

        await self._apply_to_account(db, account, transaction, books, now)
        return CheckoutResult(transaction=transaction)

    async def _validate_and_price(
        self, db: AsyncSession, lines: Sequence[CartLine]
    ) -> tuple[dict[str, Book], list[TransactionItem]]:
        """Steps 1-3: every line resolves and prices, or nothing is written."""
        books: dict[str, Book] = {}
        borrow_demand: Counter[str] = Counter()
        priced: list[TransactionItem] = []
        for line in lines:
            book = books.get(line.book_id)
            if book is None:
                book = await self._catalog.get_book(db, line.book_id)
                if book is None:
                    raise BookNotFoundError(line.book_id)
                books[book.id] = book
            if line.type == ItemType.BORROW:
                borrow_demand[book.id] += 1
                if book.available_copies < borrow_demand[book.id]:
                    raise BookUnavailableError(book.title)
            priced.append(price_item(book, line.type))
        return books, priced

    async def _apply_to_account(
        self,
        db: AsyncSession,
        account: Account,
        transaction: Transaction,
        books: dict[str, Book],
        now: datetime,
    ) -> Account:
        pdf_urls = {book_id: book.pdf_url for book_id, book in books.items()}
        account.record_checkout(transaction, pdf_urls, now, self._borrow_days)
        return await self._accounts.replace(db, account)

    def _replay(
        self,
        existing: Transaction,
        lines: Sequence[CartLine] | None,
        idempotency_key: str,
    ) -> CheckoutResult:
        # Without explicit items the cart was already consumed by the first call.
        if lines is not None and _line_signature(existing.items) != _line_signature(lines):
            raise IdempotencyKeyReusedError(idempotency_key)
        logger.info("Checkout %s replayed for key %s", existing.reference, idempotency_key)
        return CheckoutResult(transaction=existing, replayed=True)

    async def _replay_after_race(
        self,
        db: AsyncSession,
        user_id: str,
        items: Sequence[CartLine] | None,
        idempotency_key: str,
    ) -> CheckoutResult:
        existing = await self._ledger.get_by_idempotency_key(db, user_id, idempotency_key)
        if existing is None:
            raise StoreFailureError("Checkout could not be recorded")
        return self._replay(existing, items, idempotency_key)
