"""CommentApplicationService — comment CRUD with mirrored copies.

Each write touches up to three rows (comments, the author's users row, the
book row) and commits them together; on any error all of them roll back.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_account.domain.repository import AccountRepositoryProtocol
from src.bs_account.infrastructure.persistence import AccountRepository
from src.bs_catalog.domain.repository import CatalogRepositoryProtocol
from src.bs_catalog.infrastructure.persistence import CatalogRepository
from src.bs_comment.application.schemas import (
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    UpdateCommentRequest,
)
from src.bs_comment.domain.models import Comment
from src.bs_comment.domain.repository import CommentRepositoryProtocol
from src.bs_comment.infrastructure.persistence import CommentRepository
from src.bs_common.errors import (
    AccountNotFoundError,
    BookNotFoundError,
    CommentNotFoundError,
    DuplicateCommentError,
    ForbiddenError,
)
from src.bs_common.id_generator import generate_comment_id
from src.bs_common.pagination import Pagination, page_offset

logger = logging.getLogger("bs.comment")


class CommentApplicationService:
    def __init__(
        self,
        repo: CommentRepositoryProtocol | None = None,
        catalog: CatalogRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
    ) -> None:
        self._repo: CommentRepositoryProtocol = repo or CommentRepository()
        self._catalog: CatalogRepositoryProtocol = catalog or CatalogRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()

    async def create(
        self,
        db: AsyncSession,
        author_id: str,
        author_name: str,
        req: CreateCommentRequest,
    ) -> CommentResponse:
        try:
            book = None
            if req.book_id:
                book = await self._catalog.get_book(db, req.book_id)
                if book is None:
                    raise BookNotFoundError(req.book_id)
                # One comment per user per book; uq_comments_user_book settles races
                if any(c.user_id == author_id for c in book.comments):
                    raise DuplicateCommentError()

            account = await self._accounts.get_account(db, author_id)
            if account is None:
                raise AccountNotFoundError(author_id)

            draft = Comment(
                id=generate_comment_id(),
                user_id=author_id,
                user_name=author_name,
                book_id=req.book_id or None,
                content=req.content,
                rating=req.rating,
            )
            try:
                comment = await self._repo.insert(db, draft)
            except IntegrityError as exc:
                if req.book_id and "uq_comments_user_book" in str(exc.orig):
                    raise DuplicateCommentError() from None
                raise
            account.upsert_comment(comment.to_account_comment())
            await self._accounts.replace(db, account)
            if book is not None:
                await self._catalog.append_comment(db, book.id, comment.to_book_comment())
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Comment %s created by %s (book=%s)", comment.id, author_id, comment.book_id)
        return CommentResponse.from_domain(comment)

    async def list_comments(
        self,
        db: AsyncSession,
        book_id: str | None,
        user_id: str | None,
        page: int,
        limit: int,
    ) -> CommentListResponse:
        rows = await self._repo.list_comments(db, book_id, user_id, page_offset(page, limit), limit)
        total = await self._repo.count_comments(db, book_id, user_id)
        return CommentListResponse(
            comments=[CommentResponse.from_domain(c) for c in rows],
            pagination=Pagination.build(page, limit, total),
        )

    async def get(self, db: AsyncSession, comment_id: str) -> CommentResponse:
        comment = await self._repo.get(db, comment_id)
        if comment is None:
            raise CommentNotFoundError(comment_id)
        return CommentResponse.from_domain(comment)

    async def update(
        self,
        db: AsyncSession,
        comment_id: str,
        requester_id: str,
        req: UpdateCommentRequest,
    ) -> CommentResponse:
        try:
            comment = await self._repo.get(db, comment_id)
            if comment is None:
                raise CommentNotFoundError(comment_id)
            if comment.user_id != requester_id:
                raise ForbiddenError()
            if req.content is not None:
                comment.content = req.content
            if "rating" in req.model_fields_set:
                comment.rating = req.rating
            updated = await self._repo.update(db, comment)
            if updated is None:
                raise CommentNotFoundError(comment_id)
            await self._mirror(db, updated, remove=False)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return CommentResponse.from_domain(updated)

    async def delete(
        self, db: AsyncSession, comment_id: str, requester_id: str, is_admin: bool
    ) -> None:
        try:
            comment = await self._repo.get(db, comment_id)
            if comment is None:
                raise CommentNotFoundError(comment_id)
            if not is_admin and comment.user_id != requester_id:
                raise ForbiddenError()
            await self._repo.delete(db, comment_id)
            await self._mirror(db, comment, remove=True)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Comment %s deleted by %s", comment_id, requester_id)

    async def _mirror(self, db: AsyncSession, comment: Comment, remove: bool) -> None:
        """Bring the author's and the book's embedded copies in line with `comment`.

        A vanished account or book is skipped: there is no copy left to fix.
        """
        account = await self._accounts.get_account(db, comment.user_id)
        if account is not None:
            if remove:
                account.remove_comment(comment.id)
            else:
                account.upsert_comment(comment.to_account_comment())
            await self._accounts.replace(db, account)

        if comment.book_id is None:
            return
        # a missing book row simply matches nothing
        if remove:
            await self._catalog.remove_comment(db, comment.book_id, comment.id)
        else:
            await self._catalog.replace_comment(db, comment.book_id, comment.to_book_comment())
