"""add forecast config, demand forecast and suggested order models

Revision ID: 0002
Revises: 0001
Create Date: 2026-09-29 00:00:00.000000

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "forecast_config",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "dealer_id",
            sa.Integer(),
            sa.ForeignKey("dealer.id"),
            nullable=False,
            unique=True,
        ),
        sa.Column("history_period", sa.Integer(), nullable=False, server_default=sa.text("24")),
        sa.Column("forecast_horizon", sa.Integer(), nullable=False, server_default=sa.text("18")),
        sa.Column("use_seasonality", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("confidence_level", sa.Float(), nullable=False, server_default=sa.text("0.95")),
        sa.Column("market_growth_rate", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("local_market_factor", sa.Float(), nullable=False, server_default=sa.text("1.0")),
        sa.Column("safety_stock_days", sa.Integer(), nullable=False, server_default=sa.text("14")),
        sa.Column("lead_time_days", sa.Integer(), nullable=False, server_default=sa.text("7")),
        sa.Column("min_order_quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("order_multiple", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_calculated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "demand_forecast",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "forecast_config_id",
            sa.Integer(),
            sa.ForeignKey("forecast_config.id"),
            nullable=False,
        ),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("period_type", sa.String(length=20), nullable=False, server_default="month"),
        sa.Column("forecasted_demand", sa.Integer(), nullable=False),
        sa.Column("lower_bound", sa.Integer(), nullable=False),
        sa.Column("upper_bound", sa.Integer(), nullable=False),
        sa.Column("historical_average", sa.Float(), nullable=True),
        sa.Column("year_over_year_change", sa.Float(), nullable=True),
        sa.Column("trend_component", sa.Float(), nullable=True),
        sa.Column("seasonal_component", sa.Float(), nullable=True),
        sa.UniqueConstraint(
            "forecast_config_id",
            "product_id",
            "period_start",
            name="uq_demand_forecast_config_product_period",
        ),
    )

    op.create_table(
        "suggested_order",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "forecast_config_id",
            sa.Integer(),
            sa.ForeignKey("forecast_config.id"),
            nullable=False,
        ),
        sa.Column("product_id", sa.Integer(), sa.ForeignKey("product.id"), nullable=False),
        sa.Column("suggested_order_date", sa.Date(), nullable=False),
        sa.Column("expected_delivery_date", sa.Date(), nullable=True),
        sa.Column("suggested_quantity", sa.Integer(), nullable=False),
        sa.Column("minimum_quantity", sa.Integer(), nullable=True),
        sa.Column("economic_order_qty", sa.Integer(), nullable=True),
        sa.Column("current_stock", sa.Integer(), nullable=False),
        sa.Column("projected_stock", sa.Integer(), nullable=True),
        sa.Column("projected_demand", sa.Integer(), nullable=True),
        sa.Column("estimated_cost", sa.Float(), nullable=True),
        sa.Column("estimated_value", sa.Float(), nullable=True),
        sa.Column("priority", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("reasoning", sa.JSON(), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_order_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index(
        "ix_suggested_order_config_status",
        "suggested_order",
        ["forecast_config_id", "status"],
    )


def downgrade() -> None:
    op.drop_index("ix_suggested_order_config_status", table_name="suggested_order")
    op.drop_table("suggested_order")
    op.drop_table("demand_forecast")
    op.drop_table("forecast_config")
