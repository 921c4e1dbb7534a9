"""Domain models for bs_comment — pure dataclasses, no SQLAlchemy dependency.

The comments table is the system of record. The account and (for book
comments) the book carry embedded copies that are kept in step on every write.
"""

from dataclasses import dataclass
from datetime import datetime

from src.bs_account.domain.models import AccountComment
from src.bs_catalog.domain.models import BookComment


@dataclass
class Comment:
    id: str
    user_id: str
    user_name: str
    content: str
    book_id: str | None = None
    rating: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def to_book_comment(self) -> BookComment:
        return BookComment(
            id=self.id,
            user_id=self.user_id,
            user_name=self.user_name,
            content=self.content,
            rating=self.rating,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def to_account_comment(self) -> AccountComment:
        return AccountComment(
            id=self.id,
            user_id=self.user_id,
            book_id=self.book_id,
            content=self.content,
            rating=self.rating,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
