"""Pydantic schemas for bs_account API: profile, cart, library."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.bs_account.domain.models import (
    Account,
    AccountAppointment,
    AccountComment,
    BorrowedBookEntry,
    CartItem,
    OwnedBookEntry,
)
from src.bs_common.cents import cents_to_display
from src.bs_common.enums import ItemType
from src.bs_ledger.application.schemas import TransactionResponse


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class AddToCartRequest(BaseModel):
    book_id: str = Field(..., min_length=1)
    type: ItemType


class UpdateProfileRequest(BaseModel):
    first_name: str | None = Field(None, min_length=2, max_length=50)
    last_name: str | None = Field(None, min_length=2, max_length=50)
    phone_number: str | None = Field(None, min_length=5, max_length=32)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CartItemOut(BaseModel):
    book_id: str
    title: str
    author: str
    image: str
    type: str
    price_cents: int
    price_display: str
    added_at: str | None

    @classmethod
    def from_domain(cls, c: CartItem) -> "CartItemOut":
        return cls(
            book_id=c.book_id,
            title=c.title,
            author=c.author,
            image=c.image,
            type=c.type,
            price_cents=c.price_cents,
            price_display=cents_to_display(c.price_cents),
            added_at=_iso(c.added_at),
        )


class CartResponse(BaseModel):
    items: list[CartItemOut]
    total_cents: int
    total_display: str
    item_count: int


class OwnedBookOut(BaseModel):
    id: str
    title: str
    author: str
    image: str
    price_cents: int
    pdf_url: str
    transaction_ref: str
    purchase_date: str | None
    status: str

    @classmethod
    def from_domain(cls, o: OwnedBookEntry) -> "OwnedBookOut":
        return cls(
            id=o.id,
            title=o.title,
            author=o.author,
            image=o.image,
            price_cents=o.price_cents,
            pdf_url=o.pdf_url,
            transaction_ref=o.transaction_ref,
            purchase_date=_iso(o.purchase_date),
            status=o.status,
        )


class BorrowedBookOut(BaseModel):
    id: str
    title: str
    author: str
    image: str
    price_cents: int
    pdf_url: str
    transaction_ref: str
    borrow_date: str | None
    return_date: str | None
    actual_return_date: str | None
    status: str
    is_overdue: bool

    @classmethod
    def from_domain(cls, b: BorrowedBookEntry, now: datetime) -> "BorrowedBookOut":
        return cls(
            id=b.id,
            title=b.title,
            author=b.author,
            image=b.image,
            price_cents=b.price_cents,
            pdf_url=b.pdf_url,
            transaction_ref=b.transaction_ref,
            borrow_date=_iso(b.borrow_date),
            return_date=_iso(b.return_date),
            actual_return_date=_iso(b.actual_return_date),
            status=b.status,
            is_overdue=b.is_overdue(now),
        )


class LibraryResponse(BaseModel):
    brought_books: list[OwnedBookOut]
    borrowed_books: list[BorrowedBookOut]


class AccountCommentOut(BaseModel):
    id: str
    book_id: str | None
    content: str
    rating: int | None
    created_at: str | None

    @classmethod
    def from_domain(cls, c: AccountComment) -> "AccountCommentOut":
        return cls(
            id=c.id,
            book_id=c.book_id,
            content=c.content,
            rating=c.rating,
            created_at=_iso(c.created_at),
        )


class AccountAppointmentOut(BaseModel):
    id: str
    subject: str
    details: str
    date: str | None
    status: str

    @classmethod
    def from_domain(cls, a: AccountAppointment) -> "AccountAppointmentOut":
        return cls(id=a.id, subject=a.subject, details=a.details, date=_iso(a.date), status=a.status)


class AccountSummary(BaseModel):
    """Identity only — used by the admin user list."""

    id: str
    first_name: str
    last_name: str
    email: str
    phone_number: str
    role: str
    is_active: bool
    created_at: str | None

    @classmethod
    def from_domain(cls, a: Account) -> "AccountSummary":
        return cls(
            id=a.id,
            first_name=a.first_name,
            last_name=a.last_name,
            email=a.email,
            phone_number=a.phone_number,
            role=a.role,
            is_active=a.is_active,
            created_at=_iso(a.created_at),
        )


class AccountResponse(AccountSummary):
    """Full sanitized account document (never includes the password hash)."""

    cart: list[CartItemOut]
    brought_books: list[OwnedBookOut]
    borrowed_books: list[BorrowedBookOut]
    transaction_history: list[TransactionResponse]
    comments: list[AccountCommentOut]
    appointments: list[AccountAppointmentOut]

    @classmethod
    def from_account(cls, a: Account, now: datetime) -> "AccountResponse":
        return cls(
            **AccountSummary.from_domain(a).model_dump(),
            cart=[CartItemOut.from_domain(c) for c in a.cart],
            brought_books=[OwnedBookOut.from_domain(o) for o in a.brought_books],
            borrowed_books=[BorrowedBookOut.from_domain(b, now) for b in a.borrowed_books],
            transaction_history=[TransactionResponse.from_domain(t) for t in a.transaction_history],
            comments=[AccountCommentOut.from_domain(c) for c in a.comments],
            appointments=[AccountAppointmentOut.from_domain(x) for x in a.appointments],
        )
