"""Repository Protocol for the transaction ledger."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_ledger.domain.models import Transaction, TransactionStats


class LedgerRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, transaction: Transaction) -> Transaction: ...

    async def get_by_id(self, db: AsyncSession, transaction_id: str) -> Transaction | None: ...

    async def get_by_idempotency_key(
        self, db: AsyncSession, user_id: str, key: str
    ) -> Transaction | None: ...

    async def list_transactions(
        self,
        db: AsyncSession,
        status: str | None,
        user_id: str | None,
        offset: int,
        limit: int,
    ) -> list[Transaction]: ...

    async def count_transactions(
        self, db: AsyncSession, status: str | None, user_id: str | None
    ) -> int: ...

    async def update_status(
        self, db: AsyncSession, transaction_id: str, status: str
    ) -> Transaction | None: ...

    async def stats(self, db: AsyncSession) -> TransactionStats: ...
