"""Repository Protocol for the comments table."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_comment.domain.models import Comment


class CommentRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, comment: Comment) -> Comment: ...

    async def get(self, db: AsyncSession, comment_id: str) -> Comment | None: ...

    async def list_comments(
        self,
        db: AsyncSession,
        book_id: str | None,
        user_id: str | None,
        offset: int,
        limit: int,
    ) -> list[Comment]: ...

    async def count_comments(
        self, db: AsyncSession, book_id: str | None, user_id: str | None
    ) -> int: ...

    async def update(self, db: AsyncSession, comment: Comment) -> Comment | None: ...

    async def delete(self, db: AsyncSession, comment_id: str) -> bool: ...
