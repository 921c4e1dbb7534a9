"""Domain models for bs_catalog — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class BookComment:
    """Comment copy embedded in the book document (source of truth: comments table)."""

    id: str
    user_id: str
    user_name: str
    content: str
    rating: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Book:
    id: str
    title: str
    author: str
    description: str
    image: str
    pdf_url: str
    price_cents: int
    rent_cents: int
    total_copies: int = 1
    available_copies: int = 1   # invariant: 0 <= available_copies <= total_copies
    category: str = "General"
    is_available: bool = True
    comments: list[BookComment] = field(default_factory=list)
    date_added: datetime | None = None
    updated_at: datetime | None = None

    @property
    def average_rating(self) -> float:
        rated = [c.rating or 0 for c in self.comments]
        if not rated:
            return 0.0
        return round(sum(rated) / len(rated), 1)

    @property
    def can_borrow(self) -> bool:
        return self.available_copies > 0
