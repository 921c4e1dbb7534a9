"""005: create appointments table

Revision ID: 005
Revises: 004
Create Date: 2026-10-01
"""

from typing import Sequence, Union

from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE appointments (
            id          VARCHAR(64)  PRIMARY KEY,
            user_id     VARCHAR(64)  NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            subject     VARCHAR(255) NOT NULL,
            details     TEXT         NOT NULL,
            date        TIMESTAMPTZ  NOT NULL,
            status      VARCHAR(16)  NOT NULL DEFAULT 'pending',
            created_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_appointments_status CHECK (
                status IN ('pending', 'confirmed', 'completed', 'cancelled', 'successful')
            )
        );
    """)
    op.execute("CREATE INDEX idx_appointments_user_date ON appointments (user_id, date);")
    op.execute("CREATE INDEX idx_appointments_status_date ON appointments (status, date);")
    op.execute("""
        CREATE TRIGGER trg_appointments_updated_at
            BEFORE UPDATE ON appointments
            FOR EACH ROW EXECUTE FUNCTION fn_set_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS appointments CASCADE;")
