"""Repository Protocol — dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_catalog.domain.models import Book, BookComment


class CatalogRepositoryProtocol(Protocol):
    async def get_book(self, db: AsyncSession, book_id: str) -> Book | None: ...

    async def list_books(
        self,
        db: AsyncSession,
        category: str | None,
        search: str | None,
        offset: int,
        limit: int,
    ) -> list[Book]: ...

    async def count_books(
        self, db: AsyncSession, category: str | None, search: str | None
    ) -> int: ...

    async def insert_book(self, db: AsyncSession, book: Book) -> Book: ...

    async def update_book(
        self, db: AsyncSession, book_id: str, fields: dict[str, object]
    ) -> Book | None: ...

    async def delete_book(self, db: AsyncSession, book_id: str) -> bool: ...

    async def list_categories(self, db: AsyncSession) -> list[str]: ...

    async def list_popular(self, db: AsyncSession, limit: int) -> list[Book]: ...

    async def decrement_available(self, db: AsyncSession, book_id: str) -> Book | None: ...

    async def increment_available(self, db: AsyncSession, book_id: str) -> Book | None: ...

    async def append_comment(
        self, db: AsyncSession, book_id: str, comment: BookComment
    ) -> None: ...

    async def replace_comment(
        self, db: AsyncSession, book_id: str, comment: BookComment
    ) -> None: ...

    async def remove_comment(self, db: AsyncSession, book_id: str, comment_id: str) -> None: ...

    async def has_active_borrow(self, db: AsyncSession, book_id: str) -> bool: ...
