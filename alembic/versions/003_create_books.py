"""003: create books table

Revision ID: 003
Revises: 002
Create Date: 2026-10-01
"""

from typing import Sequence, Union

from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE books (
            id                  VARCHAR(64)  PRIMARY KEY,
            title               VARCHAR(255) NOT NULL,
            author              VARCHAR(255) NOT NULL,
            description         TEXT         NOT NULL DEFAULT '',
            image               TEXT         NOT NULL DEFAULT '',
            pdf_url             TEXT         NOT NULL DEFAULT '',
            category            VARCHAR(64)  NOT NULL,
            price_cents         BIGINT       NOT NULL,
            rent_cents          BIGINT       NOT NULL,
            total_copies        INTEGER      NOT NULL DEFAULT 1,
            available_copies    INTEGER      NOT NULL DEFAULT 1,
            is_available        BOOLEAN      NOT NULL DEFAULT TRUE,
            comments            JSONB        NOT NULL DEFAULT '[]'::jsonb,
            date_added          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_books_price_gte_0     CHECK (price_cents >= 0),
            CONSTRAINT ck_books_rent_gte_0      CHECK (rent_cents >= 0),
            CONSTRAINT ck_books_total_gte_0     CHECK (total_copies >= 0),
            CONSTRAINT ck_books_available_range CHECK (
                available_copies >= 0 AND available_copies <= total_copies
            )
        );
    """)
    op.execute("CREATE INDEX idx_books_category ON books (category);")
    op.execute("CREATE INDEX idx_books_date_added ON books (date_added DESC);")
    op.execute("""
        CREATE TRIGGER trg_books_updated_at
            BEFORE UPDATE ON books
            FOR EACH ROW EXECUTE FUNCTION fn_set_updated_at();
    """)
    op.execute("COMMENT ON TABLE books IS 'Catalog. Money columns in cents; available_copies counts lendable copies';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS books CASCADE;")
