"""007: seed sample books

Revision ID: 007
Revises: 006
Create Date: 2026-10-01
"""

from typing import Sequence, Union

from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Prices in cents
    op.execute("""
        INSERT INTO books (
            id, title, author, description, image, pdf_url, category,
            price_cents, rent_cents, total_copies, available_copies, is_available
        ) VALUES
            ('book_seed_001',
             'The Pragmatic Programmer',
             'David Thomas, Andrew Hunt',
             'Practical advice on building software that lasts.',
             '', '', 'technology',
             2999, 499, 5, 5, TRUE),
            ('book_seed_002',
             'Pride and Prejudice',
             'Jane Austen',
             'A novel of manners set in rural England.',
             '', '', 'fiction',
             999, 199, 3, 3, TRUE),
            ('book_seed_003',
             'A Brief History of Time',
             'Stephen Hawking',
             'From the Big Bang to black holes.',
             '', '', 'science',
             1899, 299, 2, 2, TRUE),
            ('book_seed_004',
             'Sapiens',
             'Yuval Noah Harari',
             'A brief history of humankind.',
             '', '', 'history',
             2199, 399, 4, 4, TRUE);
    """)


def downgrade() -> None:
    op.execute("DELETE FROM books WHERE id IN ('book_seed_001', 'book_seed_002', 'book_seed_003', 'book_seed_004');")
