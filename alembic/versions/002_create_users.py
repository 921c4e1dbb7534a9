"""002: create users table

Revision ID: 002
Revises: 001
Create Date: 2026-10-01
"""

from typing import Sequence, Union

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id                  VARCHAR(64)  PRIMARY KEY,
            first_name          VARCHAR(50)  NOT NULL,
            last_name           VARCHAR(50)  NOT NULL,
            email               VARCHAR(255) NOT NULL,
            phone_number        VARCHAR(32)  NOT NULL DEFAULT '',
            password_hash       VARCHAR(255) NOT NULL,
            role                VARCHAR(16)  NOT NULL DEFAULT 'user',
            is_active           BOOLEAN      NOT NULL DEFAULT TRUE,
            version             BIGINT       NOT NULL DEFAULT 0,
            cart                JSONB        NOT NULL DEFAULT '[]'::jsonb,
            brought_books       JSONB        NOT NULL DEFAULT '[]'::jsonb,
            borrowed_books      JSONB        NOT NULL DEFAULT '[]'::jsonb,
            transaction_history JSONB        NOT NULL DEFAULT '[]'::jsonb,
            comments            JSONB        NOT NULL DEFAULT '[]'::jsonb,
            appointments        JSONB        NOT NULL DEFAULT '[]'::jsonb,
            created_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_email    UNIQUE (email),
            CONSTRAINT ck_users_role     CHECK (role IN ('user', 'admin')),
            CONSTRAINT ck_users_version  CHECK (version >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_set_updated_at();
    """)
    op.execute("COMMENT ON TABLE users IS 'Identity plus the embedded account document (cart, library, history)';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
