"""create ballot vote ledger

Revision ID: 5c1e2a9d7b40
Revises:
Create Date: 2026-10-18 09:12:41.530214

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e2a9d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the ballot ledger table and its lookup indexes."""
    op.create_table(
        "ballot_vote",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("voter_type", sa.String(length=255), nullable=False),
        sa.Column("voter_id", sa.String(length=255), nullable=False),
        sa.Column("votable_type", sa.String(length=255), nullable=False),
        sa.Column("votable_id", sa.String(length=255), nullable=False),
        sa.Column("scope", sa.String(length=255), nullable=True),
        sa.Column("vote", sa.Boolean(), nullable=False),
        sa.Column("weight", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_ballot_vote_identity",
        "ballot_vote",
        ["voter_type", "voter_id", "votable_type", "votable_id", "scope"],
        unique=False,
    )
    op.create_index(
        "ix_ballot_vote_votable",
        "ballot_vote",
        ["votable_type", "votable_id", "scope", "vote"],
        unique=False,
    )


def downgrade() -> None:
    """Drop the ballot ledger."""
    op.drop_index("ix_ballot_vote_votable", table_name="ballot_vote")
    op.drop_index("ix_ballot_vote_identity", table_name="ballot_vote")
    op.drop_table("ballot_vote")
