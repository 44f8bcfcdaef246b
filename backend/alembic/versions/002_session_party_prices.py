"""Adult and child prices on shared sessions.

Revision ID: 002
Revises: 001
Create Date: 2026-10-17
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # NULL adult_price falls back to price, NULL child_price to half of price
    op.add_column("shared_sessions", sa.Column("adult_price", sa.Numeric(10, 2), nullable=True))
    op.add_column("shared_sessions", sa.Column("child_price", sa.Numeric(10, 2), nullable=True))
    op.create_check_constraint(
        "check_session_party_prices_positive",
        "shared_sessions",
        "(adult_price IS NULL OR adult_price > 0) AND (child_price IS NULL OR child_price >= 0)",
    )


def downgrade() -> None:
    op.drop_constraint("check_session_party_prices_positive", "shared_sessions", type_="check")
    op.drop_column("shared_sessions", "child_price")
    op.drop_column("shared_sessions", "adult_price")
