"""Domain models for bs_ledger — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field, replace
from datetime import datetime


@dataclass(frozen=True)
class TransactionItem:
    """Priced snapshot of one checked-out book.

    Decoupled from the live Book row so historical totals never drift when
    catalog prices change later.
    """

    book_id: str
    title: str
    author: str
    type: str          # ItemType value
    price_cents: int
    image: str


@dataclass
class Transaction:
    id: str
    user_id: str
    total_amount_cents: int
    items: list[TransactionItem]
    reference: str                     # globally unique
    status: str                        # TransactionStatus value
    payment_method: str = "card"
    idempotency_key: str | None = None
    date: datetime | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    updated_at: datetime | None = None

    def copy(self) -> "Transaction":
        """Independent copy for the account's embedded history."""
        return replace(self, items=list(self.items), metadata=dict(self.metadata))


@dataclass
class TransactionStats:
    total: int
    completed: int
    pending: int
    failed: int
    revenue_cents: int
