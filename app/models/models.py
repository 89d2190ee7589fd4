from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class Dealer(Base):
    __tablename__ = "dealer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    region: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="active")


class Product(Base):
    __tablename__ = "product"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sku: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[float] = mapped_column(Numeric(12, 2), nullable=False)
    cost_price: Mapped[float | None] = mapped_column(Numeric(12, 2), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="active")

    inventory: Mapped[list["InventoryLevel"]] = relationship(
        "InventoryLevel", back_populates="product"
    )


class InventoryLevel(Base):
    __tablename__ = "inventory_level"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("product.id"), nullable=False)
    location: Mapped[str] = mapped_column(String(100), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reserved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("product_id", "location", name="uq_inventory_level_product_location"),
    )

    product: Mapped[Product] = relationship("Product", back_populates="inventory")


class DealerOrder(Base):
    __tablename__ = "dealer_order"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dealer_id: Mapped[int] = mapped_column(ForeignKey("dealer.id"), nullable=False)
    order_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    submitted_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("ix_dealer_order_dealer_submitted", "dealer_id", "submitted_at"),)

    items: Mapped[list["DealerOrderItem"]] = relationship("DealerOrderItem", back_populates="order")


class DealerOrderItem(Base):
    __tablename__ = "dealer_order_item"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("dealer_order.id"), nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("product.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[float | None] = mapped_column(Numeric(12, 2), nullable=True)

    order: Mapped[DealerOrder] = relationship("DealerOrder", back_populates="items")


class ForecastConfig(Base):
    __tablename__ = "forecast_config"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    dealer_id: Mapped[int] = mapped_column(ForeignKey("dealer.id"), nullable=False, unique=True)
    history_period: Mapped[int] = mapped_column(Integer, nullable=False, default=24)
    forecast_horizon: Mapped[int] = mapped_column(Integer, nullable=False, default=18)
    use_seasonality: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    confidence_level: Mapped[float] = mapped_column(Float, nullable=False, default=0.95)
    market_growth_rate: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    local_market_factor: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    safety_stock_days: Mapped[int] = mapped_column(Integer, nullable=False, default=14)
    lead_time_days: Mapped[int] = mapped_column(Integer, nullable=False, default=7)
    min_order_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    order_multiple: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_calculated_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class DemandForecast(Base):
    __tablename__ = "demand_forecast"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    forecast_config_id: Mapped[int] = mapped_column(ForeignKey("forecast_config.id"), nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("product.id"), nullable=False)
    period_start: Mapped[Date] = mapped_column(Date, nullable=False)
    period_end: Mapped[Date] = mapped_column(Date, nullable=False)
    period_type: Mapped[str] = mapped_column(String(20), nullable=False, default="month")
    forecasted_demand: Mapped[int] = mapped_column(Integer, nullable=False)
    lower_bound: Mapped[int] = mapped_column(Integer, nullable=False)
    upper_bound: Mapped[int] = mapped_column(Integer, nullable=False)
    historical_average: Mapped[float | None] = mapped_column(Float, nullable=True)
    year_over_year_change: Mapped[float | None] = mapped_column(Float, nullable=True)
    trend_component: Mapped[float | None] = mapped_column(Float, nullable=True)
    seasonal_component: Mapped[float | None] = mapped_column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "forecast_config_id",
            "product_id",
            "period_start",
            name="uq_demand_forecast_config_product_period",
        ),
    )

    product: Mapped[Product] = relationship("Product")


class SuggestedOrder(Base):
    __tablename__ = "suggested_order"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    forecast_config_id: Mapped[int] = mapped_column(ForeignKey("forecast_config.id"), nullable=False)
    product_id: Mapped[int] = mapped_column(ForeignKey("product.id"), nullable=False)
    suggested_order_date: Mapped[Date] = mapped_column(Date, nullable=False)
    expected_delivery_date: Mapped[Date] = mapped_column(Date, nullable=True)
    suggested_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    minimum_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    economic_order_qty: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_stock: Mapped[int] = mapped_column(Integer, nullable=False)
    projected_stock: Mapped[int | None] = mapped_column(Integer, nullable=True)
    projected_demand: Mapped[int | None] = mapped_column(Integer, nullable=True)
    estimated_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    estimated_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    priority: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    reasoning: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    accepted_at: Mapped[DateTime] = mapped_column(DateTime(timezone=True), nullable=True)
    actual_order_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_suggested_order_config_status", "forecast_config_id", "status"),)

    product: Mapped[Product] = relationship("Product")


class MarketIndicator(Base):
    __tablename__ = "market_indicator"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    region: Mapped[str] = mapped_column(String(50), nullable=False)
    region_type: Mapped[str] = mapped_column(String(50), nullable=False)
    indicator_name: Mapped[str] = mapped_column(String(255), nullable=False)
    indicator_type: Mapped[str] = mapped_column(String(50), nullable=False)
    period_start: Mapped[Date] = mapped_column(Date, nullable=False)
    period_end: Mapped[Date] = mapped_column(Date, nullable=False)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    previous_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    percent_change: Mapped[float | None] = mapped_column(Float, nullable=True)
    impact_factor: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "region",
            "indicator_name",
            "period_start",
            name="uq_market_indicator_region_name_period",
        ),
    )
