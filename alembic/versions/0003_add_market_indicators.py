"""add market indicators

Revision ID: 0003
Revises: 0002
Create Date: 2026-10-02 00:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0003"
down_revision = "0002"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "market_indicator",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("region", sa.String(length=50), nullable=False),
        sa.Column("region_type", sa.String(length=50), nullable=False),
        sa.Column("indicator_name", sa.String(length=255), nullable=False),
        sa.Column("indicator_type", sa.String(length=50), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("previous_value", sa.Float(), nullable=True),
        sa.Column("percent_change", sa.Float(), nullable=True),
        sa.Column("impact_factor", sa.Float(), nullable=False, server_default=sa.text("1.0")),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("source", sa.String(length=255), nullable=True),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.UniqueConstraint(
            "region",
            "indicator_name",
            "period_start",
            name="uq_market_indicator_region_name_period",
        ),
    )


def downgrade() -> None:
    op.drop_table("market_indicator")
