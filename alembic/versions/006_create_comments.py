"""006: create comments table

Revision ID: 006
Revises: 005
Create Date: 2026-10-01
"""

from typing import Sequence, Union

from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE comments (
            id          VARCHAR(64)  PRIMARY KEY,
            user_id     VARCHAR(64)  NOT NULL REFERENCES users (id) ON DELETE CASCADE,
            book_id     VARCHAR(64)  REFERENCES books (id) ON DELETE CASCADE,
            user_name   VARCHAR(128) NOT NULL DEFAULT '',
            content     TEXT         NOT NULL,
            rating      SMALLINT,
            created_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ  NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_comments_user_book  UNIQUE (user_id, book_id),
            CONSTRAINT ck_comments_rating     CHECK (rating IS NULL OR rating BETWEEN 1 AND 5)
        );
    """)
    op.execute("CREATE INDEX idx_comments_book ON comments (book_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_comments_updated_at
            BEFORE UPDATE ON comments
            FOR EACH ROW EXECUTE FUNCTION fn_set_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS comments CASCADE;")
