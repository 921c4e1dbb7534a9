"""AccountApplicationService — profile, cart and library views over one account document.

Every write is read-modify-replace of the whole account, guarded by its
version column. The caller's session is committed on success and rolled back
on any error.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_account.application.schemas import (
    AccountResponse,
    AccountSummary,
    AddToCartRequest,
    CartItemOut,
    CartResponse,
    BorrowedBookOut,
    LibraryResponse,
    OwnedBookOut,
    UpdateProfileRequest,
)
from src.bs_account.domain.models import Account, CartItem
from src.bs_account.domain.repository import AccountRepositoryProtocol
from src.bs_account.infrastructure.persistence import AccountRepository
from src.bs_catalog.domain.models import Book
from src.bs_catalog.domain.repository import CatalogRepositoryProtocol
from src.bs_catalog.infrastructure.persistence import CatalogRepository
from src.bs_common.cents import cents_to_display
from src.bs_common.datetime_utils import utc_now
from src.bs_common.errors import (
    AccountNotFoundError,
    BookNotFoundError,
    ForbiddenError,
    UserNotFoundError,
)
from src.bs_ledger.domain.pricing import calculate_cart_total, price_for

logger = logging.getLogger("bs.account")


class AccountApplicationService:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        catalog: CatalogRepositoryProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._catalog: CatalogRepositoryProtocol = catalog or CatalogRepository()
        self._clock = clock

    async def _load(self, db: AsyncSession, user_id: str) -> Account:
        account = await self._repo.get_account(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account

    async def _save(self, db: AsyncSession, account: Account) -> Account:
        try:
            saved = await self._repo.replace(db, account)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return saved

    # -- profile ------------------------------------------------------------

    async def get_profile(self, db: AsyncSession, user_id: str) -> AccountResponse:
        account = await self._load(db, user_id)
        return AccountResponse.from_account(account, self._clock())

    async def update_profile(
        self, db: AsyncSession, user_id: str, req: UpdateProfileRequest
    ) -> AccountResponse:
        account = await self._load(db, user_id)
        for name, value in req.model_dump(exclude_none=True).items():
            setattr(account, name, value.strip())
        saved = await self._save(db, account)
        logger.info("Profile of %s updated", user_id)
        return AccountResponse.from_account(saved, self._clock())

    async def list_users(self, db: AsyncSession) -> list[AccountSummary]:
        accounts = await self._repo.list_accounts(db)
        return [AccountSummary.from_domain(a) for a in accounts]

    async def get_user(
        self, db: AsyncSession, user_id: str, requester_id: str, is_admin: bool
    ) -> AccountResponse:
        if not is_admin and requester_id != user_id:
            raise ForbiddenError()
        account = await self._repo.get_account(db, user_id)
        if account is None:
            raise UserNotFoundError(user_id)
        return AccountResponse.from_account(account, self._clock())

    # -- cart ---------------------------------------------------------------

    async def add_to_cart(
        self, db: AsyncSession, user_id: str, req: AddToCartRequest
    ) -> CartItemOut:
        book = await self._catalog.get_book(db, req.book_id)
        if book is None:
            raise BookNotFoundError(req.book_id)
        account = await self._load(db, user_id)
        item = CartItem(
            book_id=book.id,
            title=book.title,
            author=book.author,
            image=book.image,
            type=req.type.value,
            price_cents=price_for(book, req.type),
            added_at=self._clock(),
        )
        account.add_to_cart(item)
        await self._save(db, account)
        logger.debug("Cart of %s: added %s (%s)", user_id, item.book_id, item.type)
        return CartItemOut.from_domain(item)

    async def remove_from_cart(
        self, db: AsyncSession, user_id: str, book_id: str, item_type: str
    ) -> bool:
        """Idempotent: removing a line that is not in the cart is not an error."""
        account = await self._load(db, user_id)
        if not account.remove_from_cart(book_id, item_type):
            return False
        await self._save(db, account)
        return True

    async def get_cart(self, db: AsyncSession, user_id: str) -> CartResponse:
        account = await self._load(db, user_id)
        books: dict[str, Book] = {}
        for line in account.cart:
            if line.book_id not in books:
                book = await self._catalog.get_book(db, line.book_id)
                if book is not None:
                    books[book.id] = book
        total = calculate_cart_total(account.cart, books)
        return CartResponse(
            items=[CartItemOut.from_domain(c) for c in account.cart],
            total_cents=total,
            total_display=cents_to_display(total),
            item_count=len(account.cart),
        )

    async def clear_cart(self, db: AsyncSession, user_id: str) -> None:
        account = await self._load(db, user_id)
        if not account.cart:
            return
        account.clear_cart()
        await self._save(db, account)

    # -- library ------------------------------------------------------------

    async def get_library(self, db: AsyncSession, user_id: str) -> LibraryResponse:
        account = await self._load(db, user_id)
        now = self._clock()
        return LibraryResponse(
            brought_books=[OwnedBookOut.from_domain(o) for o in account.brought_books],
            borrowed_books=[BorrowedBookOut.from_domain(b, now) for b in account.borrowed_books],
        )
