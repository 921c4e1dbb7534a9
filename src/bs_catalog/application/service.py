"""CatalogApplicationService — thin composition layer over CatalogRepository.

Reads run without an explicit transaction. Admin writes (create, update,
delete) commit on success and roll back on any error.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_catalog.application.schemas import (
    BookCommentOut,
    BookCommentsResponse,
    BookCreateRequest,
    BookListResponse,
    BookResponse,
    BookUpdateRequest,
)
from src.bs_catalog.domain.models import Book
from src.bs_catalog.domain.repository import CatalogRepositoryProtocol
from src.bs_catalog.infrastructure.persistence import CatalogRepository
from src.bs_common.errors import BookInUseError, BookNotFoundError
from src.bs_common.id_generator import generate_book_id
from src.bs_common.pagination import Pagination, page_offset

logger = logging.getLogger("bs.catalog")

_POPULAR_LIMIT = 10


class CatalogApplicationService:
    def __init__(self, repo: CatalogRepositoryProtocol | None = None) -> None:
        self._repo: CatalogRepositoryProtocol = repo or CatalogRepository()

    async def list_books(
        self,
        db: AsyncSession,
        category: str | None,
        search: str | None,
        page: int,
        limit: int,
    ) -> BookListResponse:
        # category=all is the storefront's "no filter"
        if category == "all":
            category = None
        books = await self._repo.list_books(
            db, category, search, page_offset(page, limit), limit
        )
        total = await self._repo.count_books(db, category, search)
        return BookListResponse(
            books=[BookResponse.from_domain(b) for b in books],
            pagination=Pagination.build(page, limit, total),
        )

    async def get_book(self, db: AsyncSession, book_id: str) -> BookResponse:
        book = await self._repo.get_book(db, book_id)
        if book is None:
            raise BookNotFoundError(book_id)
        return BookResponse.from_domain(book)

    async def create_book(self, db: AsyncSession, req: BookCreateRequest) -> BookResponse:
        book = Book(
            id=generate_book_id(),
            title=req.title,
            author=req.author,
            description=req.description,
            image=str(req.image),
            pdf_url=str(req.pdf_url),
            price_cents=req.price_cents,
            rent_cents=req.rent_cents,
            total_copies=req.total_copies,
            available_copies=req.total_copies,
            category=req.category or "General",
        )
        try:
            created = await self._repo.insert_book(db, book)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Book %s added (%d copies)", created.id, created.total_copies)
        return BookResponse.from_domain(created)

    async def update_book(
        self, db: AsyncSession, book_id: str, req: BookUpdateRequest
    ) -> BookResponse:
        try:
            book = await self._repo.update_book(db, book_id, req.to_fields())
            if book is None:
                raise BookNotFoundError(book_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return BookResponse.from_domain(book)

    async def delete_book(self, db: AsyncSession, book_id: str) -> None:
        try:
            if await self._repo.has_active_borrow(db, book_id):
                raise BookInUseError(book_id)
            if not await self._repo.delete_book(db, book_id):
                raise BookNotFoundError(book_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Book %s deleted", book_id)

    async def list_categories(self, db: AsyncSession) -> list[str]:
        return await self._repo.list_categories(db)

    async def list_popular(self, db: AsyncSession) -> list[BookResponse]:
        books = await self._repo.list_popular(db, _POPULAR_LIMIT)
        return [BookResponse.from_domain(b) for b in books]

    async def get_comments(self, db: AsyncSession, book_id: str) -> BookCommentsResponse:
        book = await self._repo.get_book(db, book_id)
        if book is None:
            raise BookNotFoundError(book_id)
        return BookCommentsResponse(
            comments=[BookCommentOut.from_domain(c) for c in book.comments],
            total_comments=len(book.comments),
            average_rating=book.average_rating,
        )
