"""LedgerApplicationService — checkout/return entry points plus transaction views.

The two workflows own their DB transaction. The status update here touches
both the ledger row and the owner's embedded history, and commits them
together.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_account.domain.repository import AccountRepositoryProtocol
from src.bs_account.infrastructure.persistence import AccountRepository
from src.bs_common.cents import cents_to_display
from src.bs_common.enums import TransactionStatus
from src.bs_common.errors import (
    ForbiddenError,
    InvalidTransactionStatusError,
    TransactionNotFoundError,
)
from src.bs_common.pagination import Pagination, page_offset
from src.bs_ledger.application.checkout import CheckoutWorkflow
from src.bs_ledger.application.returns import ReturnWorkflow
from src.bs_ledger.application.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    ReturnBookResponse,
    TransactionListResponse,
    TransactionResponse,
    TransactionStatsResponse,
)
from src.bs_ledger.domain.repository import LedgerRepositoryProtocol
from src.bs_ledger.infrastructure.persistence import LedgerRepository

logger = logging.getLogger("bs.ledger")

_RECENT_LIMIT = 5
_VALID_STATUSES = {s.value for s in TransactionStatus}


class LedgerApplicationService:
    def __init__(
        self,
        ledger: LedgerRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        checkout_workflow: CheckoutWorkflow | None = None,
        return_workflow: ReturnWorkflow | None = None,
    ) -> None:
        self._ledger: LedgerRepositoryProtocol = ledger or LedgerRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._checkout = checkout_workflow or CheckoutWorkflow(
            ledger=self._ledger, accounts=self._accounts
        )
        self._returns = return_workflow or ReturnWorkflow(accounts=self._accounts)

    async def checkout(
        self,
        db: AsyncSession,
        user_id: str,
        req: CheckoutRequest,
        idempotency_key: str | None = None,
    ) -> CheckoutResponse:
        # Header wins over body
        key = idempotency_key or req.idempotency_key
        result = await self._checkout.checkout(
            db, user_id, req.items, req.payment_method, key
        )
        return CheckoutResponse(
            transaction=TransactionResponse.from_domain(result.transaction),
            reference=result.reference,
            total_amount_cents=result.total_amount_cents,
            replayed=result.replayed,
        )

    async def return_book(self, db: AsyncSession, user_id: str, book_id: str) -> ReturnBookResponse:
        result = await self._returns.return_book(db, user_id, book_id)
        return ReturnBookResponse(
            book_id=result.book_id, return_date=result.return_date.isoformat()
        )

    async def get_transaction(
        self, db: AsyncSession, transaction_id: str, requester_id: str, is_admin: bool
    ) -> TransactionResponse:
        transaction = await self._ledger.get_by_id(db, transaction_id)
        if transaction is None:
            raise TransactionNotFoundError(transaction_id)
        if not is_admin and transaction.user_id != requester_id:
            raise ForbiddenError()
        return TransactionResponse.from_domain(transaction)

    async def list_transactions(
        self,
        db: AsyncSession,
        status: str | None,
        user_id: str | None,
        page: int,
        limit: int,
    ) -> TransactionListResponse:
        rows = await self._ledger.list_transactions(
            db, status, user_id, page_offset(page, limit), limit
        )
        total = await self._ledger.count_transactions(db, status, user_id)
        return TransactionListResponse(
            transactions=[TransactionResponse.from_domain(t) for t in rows],
            pagination=Pagination.build(page, limit, total),
        )

    async def update_status(
        self, db: AsyncSession, transaction_id: str, status: str
    ) -> TransactionResponse:
        if status not in _VALID_STATUSES:
            raise InvalidTransactionStatusError(status)
        try:
            transaction = await self._ledger.update_status(db, transaction_id, status)
            if transaction is None:
                raise TransactionNotFoundError(transaction_id)
            account = await self._accounts.get_account(db, transaction.user_id)
            if account is not None and account.set_history_status(transaction_id, status):
                await self._accounts.replace(db, account)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Transaction %s set to %s", transaction_id, status)
        return TransactionResponse.from_domain(transaction)

    async def stats(self, db: AsyncSession) -> TransactionStatsResponse:
        stats = await self._ledger.stats(db)
        recent = await self._ledger.list_transactions(db, None, None, 0, _RECENT_LIMIT)
        return TransactionStatsResponse(
            total_transactions=stats.total,
            completed_transactions=stats.completed,
            pending_transactions=stats.pending,
            failed_transactions=stats.failed,
            total_revenue_cents=stats.revenue_cents,
            total_revenue_display=cents_to_display(stats.revenue_cents),
            recent_transactions=[TransactionResponse.from_domain(t) for t in recent],
        )
