from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class ForecastConfigRead(BaseModel):
    id: int
    dealer_id: int
    history_period: int
    forecast_horizon: int
    use_seasonality: bool
    confidence_level: float
    market_growth_rate: float
    local_market_factor: float
    safety_stock_days: int
    lead_time_days: int
    min_order_quantity: int
    order_multiple: int
    is_active: bool
    last_calculated_at: datetime | None = None

    class Config:
        from_attributes = True


class ForecastConfigUpdate(BaseModel):
    forecast_horizon: int | None = Field(None, ge=1, le=36)
    history_period: int | None = Field(None, ge=6, le=60)
    confidence_level: float | None = Field(None, ge=0.8, le=0.99)
    use_seasonality: bool | None = None
    safety_stock_days: int | None = Field(None, ge=0, le=90)
    lead_time_days: int | None = Field(None, ge=0, le=60)
    min_order_quantity: int | None = Field(None, ge=1)
    order_multiple: int | None = Field(None, ge=1)
    market_growth_rate: float | None = Field(None, ge=-50, le=100)
    local_market_factor: float | None = Field(None, ge=0.5, le=2)
    is_active: bool | None = None


class ForecastConfigUpdateRequest(ForecastConfigUpdate):
    dealer_id: int


class ForecastPeriod(BaseModel):
    period_start: date
    period_end: date
    period_label: str
    forecasted_demand: int
    lower_bound: int
    upper_bound: int
    historical_average: float | None = None
    year_over_year_change: float | None = None
    trend_component: float | None = None
    seasonal_component: float | None = None


class ForecastSummary(BaseModel):
    total_forecasted_demand: int
    average_monthly_demand: float
    peak_month: str
    low_month: str
    trend_direction: str
    confidence_score: float


class DemandForecastResult(BaseModel):
    product_id: int
    product_name: str
    product_sku: str
    periods: list[ForecastPeriod]
    summary: ForecastSummary | None = None


class GenerateForecastRequest(BaseModel):
    dealer_id: int
    product_ids: list[int] | None = None


class OrderReasoning(BaseModel):
    primary_reason: str
    factors: list[str]
    risk_level: str
    stockout_risk: int
    overstock_risk: int


class SuggestedOrderItem(BaseModel):
    id: int | None = None
    product_id: int
    product_name: str
    product_sku: str
    suggested_order_date: date
    expected_delivery_date: date | None = None
    suggested_quantity: int
    minimum_quantity: int | None = None
    economic_order_qty: int | None = None
    current_stock: int
    projected_stock: int | None = None
    projected_demand: int | None = None
    estimated_cost: float | None = None
    estimated_value: float | None = None
    priority: str
    status: str = "pending"
    reasoning: OrderReasoning | None = None
    accepted_at: datetime | None = None
    actual_order_id: int | None = None


class OrderPlanSummary(BaseModel):
    total_orders: int
    total_units: int
    total_estimated_cost: float
    total_estimated_value: float
    critical_orders: int
    upcoming_week: int
    upcoming_month: int


class SuggestedOrderPlan(BaseModel):
    dealer_id: int
    dealer_name: str
    generated_at: datetime
    horizon_months: int
    orders: list[SuggestedOrderItem]
    summary: OrderPlanSummary


class GenerateOrderPlanRequest(BaseModel):
    dealer_id: int


class SuggestedOrderStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(accepted|skipped)$")
    linked_order_id: int | None = None


class ChartDataset(BaseModel):
    label: str
    data: list[float]
    border_color: str | None = None
    fill: bool | str = False


class ForecastChartData(BaseModel):
    labels: list[str]
    datasets: list[ChartDataset]


class TimelineProduct(BaseModel):
    product_name: str
    quantity: int
    priority: str


class MonthlyOrderSummary(BaseModel):
    month: str
    orders: int
    units: int
    estimated_cost: float
    products: list[TimelineProduct]


class OrderTimelineData(BaseModel):
    months: list[MonthlyOrderSummary]


class MarketIndicatorInput(BaseModel):
    region: str
    region_type: str
    indicator_name: str
    indicator_type: str
    period_start: date
    period_end: date
    value: float
    previous_value: float | None = None
    impact_factor: float | None = None
    confidence: float | None = None
    source: str | None = None
    source_url: str | None = None


class MarketIndicatorSummary(BaseModel):
    name: str
    type: str
    current_value: float
    trend: str
    impact: str


class MarketAnalysis(BaseModel):
    region: str
    indicators: list[MarketIndicatorSummary]
    overall_outlook: str
    adjustment_factor: float


class MarketIndicatorRead(BaseModel):
    id: int
    region: str
    region_type: str
    indicator_name: str
    indicator_type: str
    period_start: date
    period_end: date
    value: float
    previous_value: float | None = None
    percent_change: float | None = None
    impact_factor: float
    confidence: float | None = None
    source: str | None = None

    class Config:
        from_attributes = True


class MarketSeedResult(BaseModel):
    seeded_count: int
