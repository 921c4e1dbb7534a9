"""004: create transactions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-01
"""

from typing import Sequence, Union

from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transactions (
            id                  VARCHAR(64)  PRIMARY KEY,
            user_id             VARCHAR(64)  NOT NULL,
            total_amount_cents  BIGINT       NOT NULL,
            items               JSONB        NOT NULL DEFAULT '[]'::jsonb,
            reference           VARCHAR(64)  NOT NULL,
            status              VARCHAR(16)  NOT NULL DEFAULT 'pending',
            payment_method      VARCHAR(32)  NOT NULL DEFAULT 'card',
            idempotency_key     VARCHAR(128),
            metadata            JSONB        NOT NULL DEFAULT '{}'::jsonb,
            date                TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_transactions_reference   UNIQUE (reference),
            CONSTRAINT uq_transactions_idempotency UNIQUE (user_id, idempotency_key),
            CONSTRAINT ck_transactions_total_gte_0 CHECK (total_amount_cents >= 0),
            CONSTRAINT ck_transactions_status      CHECK (
                status IN ('pending', 'completed', 'failed')
            )
        );
    """)
    op.execute("CREATE INDEX idx_transactions_user_date ON transactions (user_id, date DESC);")
    op.execute("CREATE INDEX idx_transactions_status ON transactions (status);")
    op.execute("""
        CREATE TRIGGER trg_transactions_updated_at
            BEFORE UPDATE ON transactions
            FOR EACH ROW EXECUTE FUNCTION fn_set_updated_at();
    """)
    op.execute("COMMENT ON TABLE transactions IS 'Ledger of checkouts; items are priced snapshots in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
