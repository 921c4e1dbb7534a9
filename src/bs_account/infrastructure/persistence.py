"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

The embedded lists live in JSONB columns of the `users` row. Writes are a
single full-document UPDATE guarded by the `version` column (optimistic
concurrency): 0 rows returned means another request replaced the account
after we read it.

Transaction ownership: The CALLER (application service / workflow) commits.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_account.domain.models import (
    Account,
    AccountAppointment,
    AccountComment,
    BorrowedBookEntry,
    CartItem,
    OwnedBookEntry,
)
from src.bs_common.database import dump_jsonb, load_jsonb
from src.bs_common.datetime_utils import parse_iso, to_iso
from src.bs_common.errors import AccountConflictError, AccountNotFoundError
from src.bs_ledger.domain.models import Transaction
from src.bs_ledger.infrastructure.persistence import doc_to_item, item_to_doc

_ACCOUNT_COLUMNS = """
    id, first_name, last_name, email, phone_number, password_hash, role,
    is_active, version, cart, brought_books, borrowed_books,
    transaction_history, comments, appointments, created_at, updated_at
"""

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_GET_ACCOUNT_SQL = text(f"SELECT {_ACCOUNT_COLUMNS} FROM users WHERE id = :user_id")

_GET_BY_EMAIL_SQL = text(f"SELECT {_ACCOUNT_COLUMNS} FROM users WHERE email = :email")

_LIST_ACCOUNTS_SQL = text(f"SELECT {_ACCOUNT_COLUMNS} FROM users ORDER BY created_at DESC")

_INSERT_ACCOUNT_SQL = text(f"""
    INSERT INTO users
        (id, first_name, last_name, email, phone_number, password_hash, role,
         is_active, version, cart, brought_books, borrowed_books,
         transaction_history, comments, appointments)
    VALUES
        (:id, :first_name, :last_name, :email, :phone_number, :password_hash, :role,
         :is_active, 0,
         CAST(:cart AS JSONB), CAST(:brought_books AS JSONB), CAST(:borrowed_books AS JSONB),
         CAST(:transaction_history AS JSONB), CAST(:comments AS JSONB),
         CAST(:appointments AS JSONB))
    RETURNING {_ACCOUNT_COLUMNS}
""")

_REPLACE_ACCOUNT_SQL = text(f"""
    UPDATE users
    SET first_name = :first_name,
        last_name = :last_name,
        phone_number = :phone_number,
        role = :role,
        is_active = :is_active,
        cart = CAST(:cart AS JSONB),
        brought_books = CAST(:brought_books AS JSONB),
        borrowed_books = CAST(:borrowed_books AS JSONB),
        transaction_history = CAST(:transaction_history AS JSONB),
        comments = CAST(:comments AS JSONB),
        appointments = CAST(:appointments AS JSONB),
        version = version + 1,
        updated_at = NOW()
    WHERE id = :id AND version = :version
    RETURNING {_ACCOUNT_COLUMNS}
""")

_EXISTS_SQL = text("SELECT 1 FROM users WHERE id = :user_id")

# ---------------------------------------------------------------------------
# Embedded document mappers
# ---------------------------------------------------------------------------


def _cart_to_doc(c: CartItem) -> dict[str, Any]:
    return {
        "book_id": c.book_id,
        "title": c.title,
        "author": c.author,
        "image": c.image,
        "type": c.type,
        "price_cents": c.price_cents,
        "added_at": to_iso(c.added_at),
    }


def _doc_to_cart(d: dict[str, Any]) -> CartItem:
    return CartItem(
        book_id=d["book_id"],
        title=d["title"],
        author=d["author"],
        image=d.get("image", ""),
        type=d["type"],
        price_cents=d["price_cents"],
        added_at=parse_iso(d.get("added_at")),
    )


def _owned_to_doc(o: OwnedBookEntry) -> dict[str, Any]:
    return {
        "id": o.id,
        "title": o.title,
        "author": o.author,
        "image": o.image,
        "price_cents": o.price_cents,
        "pdf_url": o.pdf_url,
        "transaction_ref": o.transaction_ref,
        "purchase_date": to_iso(o.purchase_date),
        "status": o.status,
    }


def _doc_to_owned(d: dict[str, Any]) -> OwnedBookEntry:
    return OwnedBookEntry(
        id=d["id"],
        title=d["title"],
        author=d["author"],
        image=d.get("image", ""),
        price_cents=d["price_cents"],
        pdf_url=d.get("pdf_url", ""),
        transaction_ref=d["transaction_ref"],
        purchase_date=parse_iso(d["purchase_date"]),  # type: ignore[arg-type]
        status=d.get("status", "purchased"),
    )


def _borrowed_to_doc(b: BorrowedBookEntry) -> dict[str, Any]:
    return {
        "id": b.id,
        "title": b.title,
        "author": b.author,
        "image": b.image,
        "price_cents": b.price_cents,
        "pdf_url": b.pdf_url,
        "transaction_ref": b.transaction_ref,
        "borrow_date": to_iso(b.borrow_date),
        "return_date": to_iso(b.return_date),
        "actual_return_date": to_iso(b.actual_return_date),
        "status": b.status,
    }


def _doc_to_borrowed(d: dict[str, Any]) -> BorrowedBookEntry:
    return BorrowedBookEntry(
        id=d["id"],
        title=d["title"],
        author=d["author"],
        image=d.get("image", ""),
        price_cents=d["price_cents"],
        pdf_url=d.get("pdf_url", ""),
        transaction_ref=d["transaction_ref"],
        borrow_date=parse_iso(d["borrow_date"]),  # type: ignore[arg-type]
        return_date=parse_iso(d["return_date"]),  # type: ignore[arg-type]
        actual_return_date=parse_iso(d.get("actual_return_date")),
        status=d.get("status", "active"),
    )


def _history_to_doc(t: Transaction) -> dict[str, Any]:
    return {
        "id": t.id,
        "user_id": t.user_id,
        "total_amount_cents": t.total_amount_cents,
        "items": [item_to_doc(i) for i in t.items],
        "reference": t.reference,
        "status": t.status,
        "payment_method": t.payment_method,
        "date": to_iso(t.date),
        "metadata": t.metadata,
    }


def _doc_to_history(d: dict[str, Any]) -> Transaction:
    return Transaction(
        id=d["id"],
        user_id=d["user_id"],
        total_amount_cents=d["total_amount_cents"],
        items=[doc_to_item(i) for i in d.get("items", [])],
        reference=d["reference"],
        status=d["status"],
        payment_method=d.get("payment_method", "card"),
        date=parse_iso(d.get("date")),
        metadata=d.get("metadata") or {},
    )


def _comment_to_doc(c: AccountComment) -> dict[str, Any]:
    return {
        "id": c.id,
        "user_id": c.user_id,
        "book_id": c.book_id,
        "content": c.content,
        "rating": c.rating,
        "created_at": to_iso(c.created_at),
        "updated_at": to_iso(c.updated_at),
    }


def _doc_to_comment(d: dict[str, Any]) -> AccountComment:
    return AccountComment(
        id=d["id"],
        user_id=d["user_id"],
        book_id=d.get("book_id"),
        content=d["content"],
        rating=d.get("rating"),
        created_at=parse_iso(d.get("created_at")),
        updated_at=parse_iso(d.get("updated_at")),
    )


def _appointment_to_doc(a: AccountAppointment) -> dict[str, Any]:
    return {
        "id": a.id,
        "user_id": a.user_id,
        "subject": a.subject,
        "details": a.details,
        "date": to_iso(a.date),
        "status": a.status,
        "created_at": to_iso(a.created_at),
    }


def _doc_to_appointment(d: dict[str, Any]) -> AccountAppointment:
    return AccountAppointment(
        id=d["id"],
        user_id=d["user_id"],
        subject=d["subject"],
        details=d["details"],
        date=parse_iso(d["date"]),  # type: ignore[arg-type]
        status=d["status"],
        created_at=parse_iso(d.get("created_at")),
    )


def _embedded_params(account: Account) -> dict[str, str]:
    return {
        "cart": dump_jsonb([_cart_to_doc(c) for c in account.cart]),
        "brought_books": dump_jsonb([_owned_to_doc(o) for o in account.brought_books]),
        "borrowed_books": dump_jsonb([_borrowed_to_doc(b) for b in account.borrowed_books]),
        "transaction_history": dump_jsonb(
            [_history_to_doc(t) for t in account.transaction_history]
        ),
        "comments": dump_jsonb([_comment_to_doc(c) for c in account.comments]),
        "appointments": dump_jsonb([_appointment_to_doc(a) for a in account.appointments]),
    }


def _row_to_account(row: object) -> Account:
    return Account(
        id=row.id,  # type: ignore[attr-defined]
        first_name=row.first_name,  # type: ignore[attr-defined]
        last_name=row.last_name,  # type: ignore[attr-defined]
        email=row.email,  # type: ignore[attr-defined]
        phone_number=row.phone_number,  # type: ignore[attr-defined]
        password_hash=row.password_hash,  # type: ignore[attr-defined]
        role=row.role,  # type: ignore[attr-defined]
        is_active=row.is_active,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        cart=[_doc_to_cart(d) for d in load_jsonb(row.cart)],  # type: ignore[attr-defined]
        brought_books=[_doc_to_owned(d) for d in load_jsonb(row.brought_books)],  # type: ignore[attr-defined]
        borrowed_books=[_doc_to_borrowed(d) for d in load_jsonb(row.borrowed_books)],  # type: ignore[attr-defined]
        transaction_history=[
            _doc_to_history(d) for d in load_jsonb(row.transaction_history)  # type: ignore[attr-defined]
        ],
        comments=[_doc_to_comment(d) for d in load_jsonb(row.comments)],  # type: ignore[attr-defined]
        appointments=[_doc_to_appointment(d) for d in load_jsonb(row.appointments)],  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountRepository:
    """Concrete repository — one users row per account document."""

    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def get_by_email(self, db: AsyncSession, email: str) -> Account | None:
        result = await db.execute(_GET_BY_EMAIL_SQL, {"email": email.lower()})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def insert_account(self, db: AsyncSession, account: Account) -> Account:
        params: dict[str, Any] = {
            "id": account.id,
            "first_name": account.first_name,
            "last_name": account.last_name,
            "email": account.email.lower(),
            "phone_number": account.phone_number,
            "password_hash": account.password_hash,
            "role": account.role,
            "is_active": account.is_active,
        }
        params.update(_embedded_params(account))
        result = await db.execute(_INSERT_ACCOUNT_SQL, params)
        return _row_to_account(result.fetchone())

    async def replace(self, db: AsyncSession, account: Account) -> Account:
        params: dict[str, Any] = {
            "id": account.id,
            "version": account.version,
            "first_name": account.first_name,
            "last_name": account.last_name,
            "phone_number": account.phone_number,
            "role": account.role,
            "is_active": account.is_active,
        }
        params.update(_embedded_params(account))
        result = await db.execute(_REPLACE_ACCOUNT_SQL, params)
        row = result.fetchone()
        if row is None:
            exists = (await db.execute(_EXISTS_SQL, {"user_id": account.id})).fetchone()
            if exists is None:
                raise AccountNotFoundError(account.id)
            raise AccountConflictError(account.id)
        return _row_to_account(row)

    async def list_accounts(self, db: AsyncSession) -> list[Account]:
        result = await db.execute(_LIST_ACCOUNTS_SQL)
        return [_row_to_account(row) for row in result.fetchall()]
