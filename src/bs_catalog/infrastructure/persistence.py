"""CatalogRepository — concrete implementation of CatalogRepositoryProtocol.

Copy-count mutations use atomic PostgreSQL UPDATE ... RETURNING with the bound
check in the WHERE clause. A result of 0 rows means the constraint would have
been violated (no copy left to lend), never a partial write.

Transaction ownership: The CALLER (application service / workflow) commits.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_catalog.domain.models import Book, BookComment
from src.bs_common.database import dump_jsonb, load_jsonb
from src.bs_common.datetime_utils import parse_iso, to_iso

_BOOK_COLUMNS = """
    id, title, author, description, image, pdf_url, category,
    price_cents, rent_cents, total_copies, available_copies, is_available,
    comments, date_added, updated_at
"""

# Columns an admin update may touch; anything else in the payload is ignored
_UPDATABLE_COLUMNS = (
    "title",
    "author",
    "description",
    "image",
    "pdf_url",
    "category",
    "price_cents",
    "rent_cents",
    "is_available",
)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_GET_BOOK_SQL = text(f"SELECT {_BOOK_COLUMNS} FROM books WHERE id = :book_id")

_SEARCH_FILTER = """
    (CAST(:category AS TEXT) IS NULL OR category = CAST(:category AS TEXT))
    AND (
        CAST(:search AS TEXT) IS NULL
        OR title ILIKE '%' || CAST(:search AS TEXT) || '%'
        OR author ILIKE '%' || CAST(:search AS TEXT) || '%'
        OR description ILIKE '%' || CAST(:search AS TEXT) || '%'
    )
"""

_LIST_BOOKS_SQL = text(f"""
    SELECT {_BOOK_COLUMNS}
    FROM books
    WHERE {_SEARCH_FILTER}
    ORDER BY date_added DESC, id DESC
    OFFSET :offset
    LIMIT :limit
""")

_COUNT_BOOKS_SQL = text(f"SELECT COUNT(*) AS total FROM books WHERE {_SEARCH_FILTER}")

_INSERT_BOOK_SQL = text(f"""
    INSERT INTO books
        (id, title, author, description, image, pdf_url, category,
         price_cents, rent_cents, total_copies, available_copies, is_available, comments)
    VALUES
        (:id, :title, :author, :description, :image, :pdf_url, :category,
         :price_cents, :rent_cents, :total_copies, :available_copies, :is_available,
         CAST(:comments AS JSONB))
    RETURNING {_BOOK_COLUMNS}
""")

_DELETE_BOOK_SQL = text("DELETE FROM books WHERE id = :book_id RETURNING id")

_LIST_CATEGORIES_SQL = text("SELECT DISTINCT category FROM books ORDER BY category")

_LIST_POPULAR_SQL = text(f"""
    SELECT {_BOOK_COLUMNS}
    FROM books
    ORDER BY jsonb_array_length(comments) DESC, date_added DESC
    LIMIT :limit
""")

_DECREMENT_AVAILABLE_SQL = text(f"""
    UPDATE books
    SET available_copies = available_copies - 1,
        updated_at = NOW()
    WHERE id = :book_id AND available_copies > 0
    RETURNING {_BOOK_COLUMNS}
""")

_INCREMENT_AVAILABLE_SQL = text(f"""
    UPDATE books
    SET available_copies = LEAST(available_copies + 1, total_copies),
        updated_at = NOW()
    WHERE id = :book_id
    RETURNING {_BOOK_COLUMNS}
""")

# The embedded comment list is edited inside a single UPDATE so concurrent
# writers on one book serialize on the row lock and none of them is lost.
_APPEND_COMMENT_SQL = text("""
    UPDATE books
    SET comments = comments || jsonb_build_array(CAST(:doc AS JSONB)),
        updated_at = NOW()
    WHERE id = :book_id
""")

_REPLACE_COMMENT_SQL = text("""
    UPDATE books
    SET comments = COALESCE(
            (SELECT jsonb_agg(
                        CASE WHEN elem->>'id' = :comment_id THEN CAST(:doc AS JSONB) ELSE elem END
                        ORDER BY pos)
             FROM jsonb_array_elements(comments) WITH ORDINALITY AS t(elem, pos)),
            '[]'::jsonb),
        updated_at = NOW()
    WHERE id = :book_id
""")

_REMOVE_COMMENT_SQL = text("""
    UPDATE books
    SET comments = COALESCE(
            (SELECT jsonb_agg(elem ORDER BY pos)
             FROM jsonb_array_elements(comments) WITH ORDINALITY AS t(elem, pos)
             WHERE elem->>'id' <> :comment_id),
            '[]'::jsonb),
        updated_at = NOW()
    WHERE id = :book_id
""")

_HAS_ACTIVE_BORROW_SQL = text("""
    SELECT EXISTS (
        SELECT 1 FROM users
        WHERE borrowed_books @> CAST(:needle AS JSONB)
    ) AS in_use
""")

# ---------------------------------------------------------------------------
# Row / document mappers
# ---------------------------------------------------------------------------


def comment_to_doc(comment: BookComment) -> dict[str, Any]:
    return {
        "id": comment.id,
        "user_id": comment.user_id,
        "user_name": comment.user_name,
        "content": comment.content,
        "rating": comment.rating,
        "created_at": to_iso(comment.created_at),
        "updated_at": to_iso(comment.updated_at),
    }


def doc_to_comment(doc: dict[str, Any]) -> BookComment:
    return BookComment(
        id=doc["id"],
        user_id=doc["user_id"],
        user_name=doc.get("user_name", ""),
        content=doc["content"],
        rating=doc.get("rating"),
        created_at=parse_iso(doc.get("created_at")),
        updated_at=parse_iso(doc.get("updated_at")),
    )


def _row_to_book(row: object) -> Book:
    return Book(
        id=row.id,  # type: ignore[attr-defined]
        title=row.title,  # type: ignore[attr-defined]
        author=row.author,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        image=row.image,  # type: ignore[attr-defined]
        pdf_url=row.pdf_url,  # type: ignore[attr-defined]
        category=row.category,  # type: ignore[attr-defined]
        price_cents=row.price_cents,  # type: ignore[attr-defined]
        rent_cents=row.rent_cents,  # type: ignore[attr-defined]
        total_copies=row.total_copies,  # type: ignore[attr-defined]
        available_copies=row.available_copies,  # type: ignore[attr-defined]
        is_available=row.is_available,  # type: ignore[attr-defined]
        comments=[doc_to_comment(d) for d in load_jsonb(row.comments)],  # type: ignore[attr-defined]
        date_added=row.date_added,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CatalogRepository:
    """Concrete repository — copy counters are only ever changed atomically in SQL."""

    async def get_book(self, db: AsyncSession, book_id: str) -> Book | None:
        result = await db.execute(_GET_BOOK_SQL, {"book_id": book_id})
        row = result.fetchone()
        return _row_to_book(row) if row else None

    async def list_books(
        self,
        db: AsyncSession,
        category: str | None,
        search: str | None,
        offset: int,
        limit: int,
    ) -> list[Book]:
        result = await db.execute(
            _LIST_BOOKS_SQL,
            {"category": category, "search": search, "offset": offset, "limit": limit},
        )
        return [_row_to_book(row) for row in result.fetchall()]

    async def count_books(
        self, db: AsyncSession, category: str | None, search: str | None
    ) -> int:
        result = await db.execute(_COUNT_BOOKS_SQL, {"category": category, "search": search})
        row = result.fetchone()
        return int(row.total) if row else 0

    async def insert_book(self, db: AsyncSession, book: Book) -> Book:
        result = await db.execute(
            _INSERT_BOOK_SQL,
            {
                "id": book.id,
                "title": book.title,
                "author": book.author,
                "description": book.description,
                "image": book.image,
                "pdf_url": book.pdf_url,
                "category": book.category,
                "price_cents": book.price_cents,
                "rent_cents": book.rent_cents,
                "total_copies": book.total_copies,
                "available_copies": book.available_copies,
                "is_available": book.is_available,
                "comments": dump_jsonb([comment_to_doc(c) for c in book.comments]),
            },
        )
        return _row_to_book(result.fetchone())

    async def update_book(
        self, db: AsyncSession, book_id: str, fields: dict[str, object]
    ) -> Book | None:
        assignments = [f"{col} = :{col}" for col in _UPDATABLE_COLUMNS if col in fields]
        params: dict[str, object] = {
            col: fields[col] for col in _UPDATABLE_COLUMNS if col in fields
        }
        if "total_copies" in fields:
            # Shift available copies by the same delta, clamped to the new bounds
            assignments.append(
                "available_copies = GREATEST(0, LEAST(:total_copies, "
                "available_copies + (:total_copies - total_copies)))"
            )
            assignments.append("total_copies = :total_copies")
            params["total_copies"] = fields["total_copies"]
        if not assignments:
            return await self.get_book(db, book_id)

        assignments.append("updated_at = NOW()")
        params["book_id"] = book_id
        sql = text(
            f"UPDATE books SET {', '.join(assignments)} "
            f"WHERE id = :book_id RETURNING {_BOOK_COLUMNS}"
        )
        result = await db.execute(sql, params)
        row = result.fetchone()
        return _row_to_book(row) if row else None

    async def delete_book(self, db: AsyncSession, book_id: str) -> bool:
        result = await db.execute(_DELETE_BOOK_SQL, {"book_id": book_id})
        return result.fetchone() is not None

    async def list_categories(self, db: AsyncSession) -> list[str]:
        result = await db.execute(_LIST_CATEGORIES_SQL)
        return [row.category for row in result.fetchall()]

    async def list_popular(self, db: AsyncSession, limit: int) -> list[Book]:
        result = await db.execute(_LIST_POPULAR_SQL, {"limit": limit})
        return [_row_to_book(row) for row in result.fetchall()]

    async def decrement_available(self, db: AsyncSession, book_id: str) -> Book | None:
        result = await db.execute(_DECREMENT_AVAILABLE_SQL, {"book_id": book_id})
        row = result.fetchone()
        return _row_to_book(row) if row else None

    async def increment_available(self, db: AsyncSession, book_id: str) -> Book | None:
        result = await db.execute(_INCREMENT_AVAILABLE_SQL, {"book_id": book_id})
        row = result.fetchone()
        return _row_to_book(row) if row else None

    async def append_comment(self, db: AsyncSession, book_id: str, comment: BookComment) -> None:
        await db.execute(
            _APPEND_COMMENT_SQL,
            {"book_id": book_id, "doc": dump_jsonb(comment_to_doc(comment))},
        )

    async def replace_comment(self, db: AsyncSession, book_id: str, comment: BookComment) -> None:
        await db.execute(
            _REPLACE_COMMENT_SQL,
            {
                "book_id": book_id,
                "comment_id": comment.id,
                "doc": dump_jsonb(comment_to_doc(comment)),
            },
        )

    async def remove_comment(self, db: AsyncSession, book_id: str, comment_id: str) -> None:
        await db.execute(_REMOVE_COMMENT_SQL, {"book_id": book_id, "comment_id": comment_id})

    async def has_active_borrow(self, db: AsyncSession, book_id: str) -> bool:
        needle = dump_jsonb([{"id": book_id, "status": "active"}])
        result = await db.execute(_HAS_ACTIVE_BORROW_SQL, {"needle": needle})
        row = result.fetchone()
        return bool(row.in_use) if row else False
