"""LedgerRepository — concrete implementation of LedgerRepositoryProtocol.

Transactions are append-only apart from `status`. `reference` and
`(user_id, idempotency_key)` are UNIQUE in the schema; the database is the
final guard against duplicate checkouts.

Transaction ownership: The CALLER (checkout workflow / service) commits.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_common.database import dump_jsonb, load_jsonb
from src.bs_ledger.domain.models import Transaction, TransactionItem, TransactionStats

_TX_COLUMNS = """
    id, user_id, total_amount_cents, items, reference, status,
    payment_method, idempotency_key, metadata AS meta, date, updated_at
"""

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_INSERT_TX_SQL = text(f"""
    INSERT INTO transactions
        (id, user_id, total_amount_cents, items, reference, status,
         payment_method, idempotency_key, metadata, date)
    VALUES
        (:id, :user_id, :total_amount_cents, CAST(:items AS JSONB), :reference, :status,
         :payment_method, :idempotency_key, CAST(:metadata AS JSONB), COALESCE(:date, NOW()))
    RETURNING {_TX_COLUMNS}
""")

_GET_TX_SQL = text(f"SELECT {_TX_COLUMNS} FROM transactions WHERE id = :transaction_id")

_GET_BY_IDEMPOTENCY_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM transactions
    WHERE user_id = :user_id AND idempotency_key = :key
""")

_FILTER = """
    (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    AND (CAST(:user_id AS TEXT) IS NULL OR user_id = CAST(:user_id AS TEXT))
"""

_LIST_TX_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM transactions
    WHERE {_FILTER}
    ORDER BY date DESC, id DESC
    OFFSET :offset
    LIMIT :limit
""")

_COUNT_TX_SQL = text(f"SELECT COUNT(*) AS total FROM transactions WHERE {_FILTER}")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE transactions
    SET status = :status,
        updated_at = NOW()
    WHERE id = :transaction_id
    RETURNING {_TX_COLUMNS}
""")

_STATS_SQL = text("""
    SELECT
        COUNT(*) AS total,
        COUNT(*) FILTER (WHERE status = 'completed') AS completed,
        COUNT(*) FILTER (WHERE status = 'pending') AS pending,
        COUNT(*) FILTER (WHERE status = 'failed') AS failed,
        COALESCE(SUM(total_amount_cents) FILTER (WHERE status = 'completed'), 0) AS revenue
    FROM transactions
""")

# ---------------------------------------------------------------------------
# Row / document mappers
# ---------------------------------------------------------------------------


def item_to_doc(item: TransactionItem) -> dict[str, Any]:
    return {
        "book_id": item.book_id,
        "title": item.title,
        "author": item.author,
        "type": item.type,
        "price_cents": item.price_cents,
        "image": item.image,
    }


def doc_to_item(doc: dict[str, Any]) -> TransactionItem:
    return TransactionItem(
        book_id=doc["book_id"],
        title=doc["title"],
        author=doc["author"],
        type=doc["type"],
        price_cents=doc["price_cents"],
        image=doc.get("image", ""),
    )


def _row_to_transaction(row: object) -> Transaction:
    meta = row.meta  # type: ignore[attr-defined]
    return Transaction(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        total_amount_cents=row.total_amount_cents,  # type: ignore[attr-defined]
        items=[doc_to_item(d) for d in load_jsonb(row.items)],  # type: ignore[attr-defined]
        reference=row.reference,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        payment_method=row.payment_method,  # type: ignore[attr-defined]
        idempotency_key=row.idempotency_key,  # type: ignore[attr-defined]
        metadata=load_jsonb(meta) if meta else {},
        date=row.date,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class LedgerRepository:
    """Concrete repository for the transactions table."""

    async def insert(self, db: AsyncSession, transaction: Transaction) -> Transaction:
        result = await db.execute(
            _INSERT_TX_SQL,
            {
                "id": transaction.id,
                "user_id": transaction.user_id,
                "total_amount_cents": transaction.total_amount_cents,
                "items": dump_jsonb([item_to_doc(i) for i in transaction.items]),
                "reference": transaction.reference,
                "status": transaction.status,
                "payment_method": transaction.payment_method,
                "idempotency_key": transaction.idempotency_key,
                "metadata": dump_jsonb(transaction.metadata),
                "date": transaction.date,
            },
        )
        return _row_to_transaction(result.fetchone())

    async def get_by_id(self, db: AsyncSession, transaction_id: str) -> Transaction | None:
        result = await db.execute(_GET_TX_SQL, {"transaction_id": transaction_id})
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def get_by_idempotency_key(
        self, db: AsyncSession, user_id: str, key: str
    ) -> Transaction | None:
        result = await db.execute(_GET_BY_IDEMPOTENCY_SQL, {"user_id": user_id, "key": key})
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def list_transactions(
        self,
        db: AsyncSession,
        status: str | None,
        user_id: str | None,
        offset: int,
        limit: int,
    ) -> list[Transaction]:
        result = await db.execute(
            _LIST_TX_SQL,
            {"status": status, "user_id": user_id, "offset": offset, "limit": limit},
        )
        return [_row_to_transaction(row) for row in result.fetchall()]

    async def count_transactions(
        self, db: AsyncSession, status: str | None, user_id: str | None
    ) -> int:
        result = await db.execute(_COUNT_TX_SQL, {"status": status, "user_id": user_id})
        row = result.fetchone()
        return int(row.total) if row else 0

    async def update_status(
        self, db: AsyncSession, transaction_id: str, status: str
    ) -> Transaction | None:
        result = await db.execute(
            _UPDATE_STATUS_SQL, {"transaction_id": transaction_id, "status": status}
        )
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def stats(self, db: AsyncSession) -> TransactionStats:
        row = (await db.execute(_STATS_SQL)).fetchone()
        return TransactionStats(
            total=row.total,  # type: ignore[union-attr]
            completed=row.completed,  # type: ignore[union-attr]
            pending=row.pending,  # type: ignore[union-attr]
            failed=row.failed,  # type: ignore[union-attr]
            revenue_cents=int(row.revenue),  # type: ignore[union-attr]
        )
