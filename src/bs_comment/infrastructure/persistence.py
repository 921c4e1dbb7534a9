"""CommentRepository — concrete implementation of CommentRepositoryProtocol.

Transaction ownership: The CALLER (application service) commits.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_comment.domain.models import Comment

_COMMENT_COLUMNS = "id, user_id, book_id, user_name, content, rating, created_at, updated_at"

_INSERT_SQL = text(f"""
    INSERT INTO comments (id, user_id, book_id, user_name, content, rating)
    VALUES (:id, :user_id, :book_id, :user_name, :content, :rating)
    RETURNING {_COMMENT_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COMMENT_COLUMNS} FROM comments WHERE id = :comment_id")

_FILTER = """
    (CAST(:book_id AS TEXT) IS NULL OR book_id = CAST(:book_id AS TEXT))
    AND (CAST(:user_id AS TEXT) IS NULL OR user_id = CAST(:user_id AS TEXT))
"""

_LIST_SQL = text(f"""
    SELECT {_COMMENT_COLUMNS}
    FROM comments
    WHERE {_FILTER}
    ORDER BY created_at DESC, id DESC
    OFFSET :offset
    LIMIT :limit
""")

_COUNT_SQL = text(f"SELECT COUNT(*) AS total FROM comments WHERE {_FILTER}")

_UPDATE_SQL = text(f"""
    UPDATE comments
    SET content = :content,
        rating = :rating,
        updated_at = NOW()
    WHERE id = :comment_id
    RETURNING {_COMMENT_COLUMNS}
""")

_DELETE_SQL = text("DELETE FROM comments WHERE id = :comment_id RETURNING id")


def _row_to_comment(row: object) -> Comment:
    return Comment(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        book_id=row.book_id,  # type: ignore[attr-defined]
        user_name=row.user_name,  # type: ignore[attr-defined]
        content=row.content,  # type: ignore[attr-defined]
        rating=row.rating,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class CommentRepository:
    async def insert(self, db: AsyncSession, comment: Comment) -> Comment:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": comment.id,
                "user_id": comment.user_id,
                "book_id": comment.book_id,
                "user_name": comment.user_name,
                "content": comment.content,
                "rating": comment.rating,
            },
        )
        return _row_to_comment(result.fetchone())

    async def get(self, db: AsyncSession, comment_id: str) -> Comment | None:
        row = (await db.execute(_GET_SQL, {"comment_id": comment_id})).fetchone()
        return _row_to_comment(row) if row else None

    async def list_comments(
        self,
        db: AsyncSession,
        book_id: str | None,
        user_id: str | None,
        offset: int,
        limit: int,
    ) -> list[Comment]:
        result = await db.execute(
            _LIST_SQL,
            {"book_id": book_id, "user_id": user_id, "offset": offset, "limit": limit},
        )
        return [_row_to_comment(row) for row in result.fetchall()]

    async def count_comments(
        self, db: AsyncSession, book_id: str | None, user_id: str | None
    ) -> int:
        row = (await db.execute(_COUNT_SQL, {"book_id": book_id, "user_id": user_id})).fetchone()
        return int(row.total) if row else 0

    async def update(self, db: AsyncSession, comment: Comment) -> Comment | None:
        result = await db.execute(
            _UPDATE_SQL,
            {"comment_id": comment.id, "content": comment.content, "rating": comment.rating},
        )
        row = result.fetchone()
        return _row_to_comment(row) if row else None

    async def delete(self, db: AsyncSession, comment_id: str) -> bool:
        result = await db.execute(_DELETE_SQL, {"comment_id": comment_id})
        return result.fetchone() is not None
