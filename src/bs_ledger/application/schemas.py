"""Pydantic schemas for bs_ledger API (checkout, return, transaction views)."""

from pydantic import BaseModel, Field

from src.bs_common.cents import cents_to_display
from src.bs_common.enums import ItemType
from src.bs_common.pagination import Pagination
from src.bs_ledger.domain.models import Transaction, TransactionItem

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CheckoutItem(BaseModel):
    book_id: str = Field(..., min_length=1)
    type: ItemType


class CheckoutRequest(BaseModel):
    # Omitted -> check out the stored cart
    items: list[CheckoutItem] | None = Field(None, min_length=1)
    payment_method: str = Field("card", min_length=1, max_length=32)
    idempotency_key: str | None = Field(None, min_length=1, max_length=64)


class ReturnBookRequest(BaseModel):
    book_id: str = Field(..., min_length=1)


class UpdateStatusRequest(BaseModel):
    # Checked against TransactionStatus in the service so the error carries code 4002
    status: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TransactionItemOut(BaseModel):
    book_id: str
    title: str
    author: str
    type: str
    price_cents: int
    price_display: str
    image: str

    @classmethod
    def from_domain(cls, item: TransactionItem) -> "TransactionItemOut":
        return cls(
            book_id=item.book_id,
            title=item.title,
            author=item.author,
            type=item.type,
            price_cents=item.price_cents,
            price_display=cents_to_display(item.price_cents),
            image=item.image,
        )


class TransactionResponse(BaseModel):
    id: str
    user_id: str
    total_amount_cents: int
    total_amount_display: str
    items: list[TransactionItemOut]
    reference: str
    status: str
    payment_method: str
    date: str | None

    @classmethod
    def from_domain(cls, t: Transaction) -> "TransactionResponse":
        return cls(
            id=t.id,
            user_id=t.user_id,
            total_amount_cents=t.total_amount_cents,
            total_amount_display=cents_to_display(t.total_amount_cents),
            items=[TransactionItemOut.from_domain(i) for i in t.items],
            reference=t.reference,
            status=t.status,
            payment_method=t.payment_method,
            date=t.date.isoformat() if t.date else None,
        )


class CheckoutResponse(BaseModel):
    transaction: TransactionResponse
    reference: str
    total_amount_cents: int
    replayed: bool = False


class ReturnBookResponse(BaseModel):
    book_id: str
    return_date: str


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]
    pagination: Pagination


class TransactionStatsResponse(BaseModel):
    total_transactions: int
    completed_transactions: int
    pending_transactions: int
    failed_transactions: int
    total_revenue_cents: int
    total_revenue_display: str
    recent_transactions: list[TransactionResponse]
