"""Repository Protocol — dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_account.domain.models import Account


class AccountRepositoryProtocol(Protocol):
    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None: ...

    async def get_by_email(self, db: AsyncSession, email: str) -> Account | None: ...

    async def insert_account(self, db: AsyncSession, account: Account) -> Account: ...

    async def replace(self, db: AsyncSession, account: Account) -> Account:
        """Full-document replace guarded by `account.version`.

        Raises AccountConflictError when the stored version moved on.
        """
        ...

    async def list_accounts(self, db: AsyncSession) -> list[Account]: ...
