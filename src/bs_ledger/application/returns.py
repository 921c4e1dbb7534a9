"""ReturnWorkflow — closes one active borrow and gives the copy back to the catalog.

The account update and the clamped increment commit together. A book that was
deleted from the catalog in the meantime still closes the borrow entry.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_account.domain.repository import AccountRepositoryProtocol
from src.bs_account.infrastructure.persistence import AccountRepository
from src.bs_catalog.domain.repository import CatalogRepositoryProtocol
from src.bs_catalog.infrastructure.persistence import CatalogRepository
from src.bs_common.datetime_utils import utc_now
from src.bs_common.errors import AccountNotFoundError, AppError, StoreFailureError

logger = logging.getLogger("bs.ledger")


@dataclass
class ReturnResult:
    book_id: str
    return_date: datetime


class ReturnWorkflow:
    def __init__(
        self,
        catalog: CatalogRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._catalog: CatalogRepositoryProtocol = catalog or CatalogRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._clock = clock

    async def return_book(self, db: AsyncSession, user_id: str, book_id: str) -> ReturnResult:
        try:
            account = await self._accounts.get_account(db, user_id)
            if account is None:
                raise AccountNotFoundError(user_id)

            entry = account.mark_returned(book_id, self._clock())
            await self._accounts.replace(db, account)

            book = await self._catalog.increment_available(db, book_id)
            if book is None:
                logger.warning("Returned book %s is no longer in the catalog", book_id)
            await db.commit()
        except AppError as e:
            await db.rollback()
            logger.warning("Return of %s by %s aborted: [%d] %s", book_id, user_id, e.code, e.message)
            raise
        except SQLAlchemyError:
            await db.rollback()
            logger.exception("Return of %s by %s failed in the store", book_id, user_id)
            raise StoreFailureError("Return could not be recorded")

        logger.info("Book %s returned by %s", book_id, user_id)
        return ReturnResult(book_id=book_id, return_date=entry.actual_return_date)  # type: ignore[arg-type]
