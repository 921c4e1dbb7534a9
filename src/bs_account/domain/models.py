"""Domain models for bs_account — pure dataclasses, no SQLAlchemy dependency.

An Account is the user's full document: identity fields plus embedded,
denormalized copies of catalog and ledger data (cart, owned and borrowed
books, transaction history, comments, appointments). The account is the only
writer of these lists; the ledger and the catalog stay the systems of record.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from src.bs_common.datetime_utils import days_after
from src.bs_common.enums import BorrowStatus, ItemType, OwnedBookStatus, UserRole
from src.bs_common.errors import (
    BookAlreadyReturnedError,
    BorrowNotFoundError,
    CartItemExistsError,
)
from src.bs_ledger.domain.models import Transaction


@dataclass
class CartItem:
    book_id: str
    title: str
    author: str
    image: str
    type: str              # ItemType value
    price_cents: int       # price at the time it was added; checkout re-prices
    added_at: datetime | None = None


@dataclass
class OwnedBookEntry:
    id: str                # book id
    title: str
    author: str
    image: str
    price_cents: int
    pdf_url: str
    transaction_ref: str
    purchase_date: datetime
    status: str = OwnedBookStatus.PURCHASED.value


@dataclass
class BorrowedBookEntry:
    id: str                # book id
    title: str
    author: str
    image: str
    price_cents: int
    pdf_url: str
    transaction_ref: str
    borrow_date: datetime
    return_date: datetime                     # expected
    actual_return_date: datetime | None = None
    status: str = BorrowStatus.ACTIVE.value

    def is_overdue(self, now: datetime) -> bool:
        if self.status == BorrowStatus.OVERDUE:
            return True
        return self.status == BorrowStatus.ACTIVE and self.return_date < now


@dataclass
class AccountComment:
    id: str
    user_id: str
    content: str
    book_id: str | None = None
    rating: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class AccountAppointment:
    id: str
    user_id: str
    subject: str
    details: str
    date: datetime
    status: str
    created_at: datetime | None = None


@dataclass
class Account:
    id: str
    first_name: str
    last_name: str
    email: str
    phone_number: str
    password_hash: str
    role: str = UserRole.USER.value
    is_active: bool = True
    version: int = 0
    cart: list[CartItem] = field(default_factory=list)
    brought_books: list[OwnedBookEntry] = field(default_factory=list)
    borrowed_books: list[BorrowedBookEntry] = field(default_factory=list)
    transaction_history: list[Transaction] = field(default_factory=list)
    comments: list[AccountComment] = field(default_factory=list)
    appointments: list[AccountAppointment] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    # -- cart ---------------------------------------------------------------

    def add_to_cart(self, item: CartItem) -> None:
        """At most one line per (book_id, type)."""
        for existing in self.cart:
            if existing.book_id == item.book_id and existing.type == item.type:
                raise CartItemExistsError(item.book_id, item.type)
        self.cart.append(item)

    def remove_from_cart(self, book_id: str, item_type: str) -> bool:
        before = len(self.cart)
        self.cart = [
            c for c in self.cart if not (c.book_id == book_id and c.type == item_type)
        ]
        return len(self.cart) != before

    def clear_cart(self) -> None:
        self.cart = []

    # -- checkout / return --------------------------------------------------

    def record_checkout(
        self,
        transaction: Transaction,
        pdf_urls: Mapping[str, str],
        now: datetime,
        borrow_days: int,
    ) -> None:
        """Project a committed transaction onto the embedded lists and empty the cart."""
        self.transaction_history.append(transaction.copy())
        for item in transaction.items:
            if item.type == ItemType.BUY:
                self.brought_books.append(
                    OwnedBookEntry(
                        id=item.book_id,
                        title=item.title,
                        author=item.author,
                        image=item.image,
                        price_cents=item.price_cents,
                        pdf_url=pdf_urls.get(item.book_id, ""),
                        transaction_ref=transaction.reference,
                        purchase_date=now,
                    )
                )
            else:
                self.borrowed_books.append(
                    BorrowedBookEntry(
                        id=item.book_id,
                        title=item.title,
                        author=item.author,
                        image=item.image,
                        price_cents=item.price_cents,
                        pdf_url=pdf_urls.get(item.book_id, ""),
                        transaction_ref=transaction.reference,
                        borrow_date=now,
                        return_date=days_after(now, borrow_days),
                    )
                )
        self.clear_cart()

    def mark_returned(self, book_id: str, now: datetime) -> BorrowedBookEntry:
        """Move the active borrow of `book_id` to returned.

        Raises BookAlreadyReturnedError when the book was borrowed but every
        entry is already returned, BorrowNotFoundError when it never was.
        """
        seen = False
        for entry in self.borrowed_books:
            if entry.id != book_id:
                continue
            seen = True
            if entry.status == BorrowStatus.ACTIVE:
                entry.status = BorrowStatus.RETURNED.value
                entry.actual_return_date = now
                return entry
        if seen:
            raise BookAlreadyReturnedError(book_id)
        raise BorrowNotFoundError(book_id)

    def set_history_status(self, transaction_id: str, status: str) -> bool:
        for entry in self.transaction_history:
            if entry.id == transaction_id:
                entry.status = status
                return True
        return False

    # -- mirrors ------------------------------------------------------------

    def upsert_appointment(self, appointment: AccountAppointment) -> None:
        for i, existing in enumerate(self.appointments):
            if existing.id == appointment.id:
                self.appointments[i] = appointment
                return
        self.appointments.append(appointment)

    def remove_appointment(self, appointment_id: str) -> None:
        self.appointments = [a for a in self.appointments if a.id != appointment_id]

    def upsert_comment(self, comment: AccountComment) -> None:
        for i, existing in enumerate(self.comments):
            if existing.id == comment.id:
                self.comments[i] = comment
                return
        self.comments.append(comment)

    def remove_comment(self, comment_id: str) -> None:
        self.comments = [c for c in self.comments if c.id != comment_id]
