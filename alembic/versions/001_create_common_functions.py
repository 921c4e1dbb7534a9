"""001: shared trigger function for updated_at columns

users, books, transactions, appointments and comments all carry an
updated_at column maintained by a BEFORE UPDATE trigger calling this.

Revision ID: 001
Revises:
Create Date: 2026-10-01
"""

from typing import Sequence, Union

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # clock_timestamp(): a long checkout transaction still stamps the real write time
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_set_updated_at()
        RETURNS TRIGGER
        LANGUAGE plpgsql AS $$
        BEGIN
            IF ROW(NEW.*) IS DISTINCT FROM ROW(OLD.*) THEN
                NEW.updated_at := clock_timestamp();
            END IF;
            RETURN NEW;
        END;
        $$;
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS fn_set_updated_at() CASCADE;")
