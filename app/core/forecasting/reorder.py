from __future__ import annotations

import math
from datetime import date, datetime, timedelta
from typing import Protocol, Sequence

from app.core.forecasting.domain import OrderPriority, ProductSnapshot, ReorderPolicy
from app.core.forecasting.forecast_math import round_half_up
from app.schemas.forecasting import OrderPlanSummary, OrderReasoning, SuggestedOrderItem


DAYS_PER_MONTH = 30
BUFFER_MONTHS = 2
HOLDING_COST_RATE = 0.2
OVERSTOCK_MONTHS = 3


class ForecastedPeriod(Protocol):
    period_start: date
    forecasted_demand: int


def calculate_eoq(annual_demand: float, order_cost: float, holding_cost_per_unit: float) -> int:
    """Economic order quantity sqrt(2DS/H); a month of demand when H <= 0."""

    if holding_cost_per_unit <= 0:
        return round_half_up(annual_demand / 12)
    return round_half_up(math.sqrt((2 * annual_demand * order_cost) / holding_cost_per_unit))


def calculate_stockout_risk(projected_stock: float, reorder_point: float) -> float:
    if projected_stock <= 0:
        return 100.0
    if reorder_point <= 0:
        return 0.0
    return max(0.0, 100 * (1 - projected_stock / reorder_point))


def classify_priority(stockout_risk: float) -> OrderPriority:
    if stockout_risk > 80:
        return OrderPriority.CRITICAL
    if stockout_risk > 50:
        return OrderPriority.HIGH
    if stockout_risk > 20:
        return OrderPriority.NORMAL
    return OrderPriority.LOW


def classify_risk_level(stockout_risk: float) -> str:
    if stockout_risk > 80:
        return "high"
    if stockout_risk > 40:
        return "medium"
    return "low"


def calculate_overstock_risk(order_qty: int, monthly_demand: float) -> float:
    if monthly_demand <= 0:
        return 100.0
    return max(0.0, (order_qty / monthly_demand - OVERSTOCK_MONTHS) * 20)


def round_up_to_multiple(quantity: int, multiple: int) -> int:
    if multiple > 1:
        return math.ceil(quantity / multiple) * multiple
    return quantity


def calculate_reorder_schedule(
    product: ProductSnapshot,
    forecasts: Sequence[ForecastedPeriod],
    policy: ReorderPolicy,
) -> list[SuggestedOrderItem]:
    """Walk the forecast periods and emit an order whenever stock dips below the reorder point.

    Daily demand is seeded from the first period only. Each emitted order is
    assumed to land at the start of its period, so it is added back to the
    projected stock before the next period is evaluated.
    """

    orders: list[SuggestedOrderItem] = []
    if not forecasts:
        return orders

    daily_demand = forecasts[0].forecasted_demand / DAYS_PER_MONTH or 1.0
    safety_stock = math.ceil(daily_demand * policy.safety_stock_days)
    reorder_point = safety_stock + math.ceil(daily_demand * policy.lead_time_days)

    cost_price = product.effective_cost_price
    projected_stock = product.current_stock

    for i, forecast in enumerate(forecasts):
        monthly_demand = forecast.forecasted_demand
        projected_stock -= monthly_demand

        if projected_stock >= reorder_point:
            continue

        deficit = reorder_point - projected_stock + monthly_demand * BUFFER_MONTHS
        minimum_qty = max(policy.min_order_quantity, deficit)
        order_qty = round_up_to_multiple(minimum_qty, policy.order_multiple)

        stockout_risk = calculate_stockout_risk(projected_stock, reorder_point)
        priority = classify_priority(stockout_risk)

        reasoning = OrderReasoning(
            primary_reason=(
                "Prevent stockout before delivery"
                if stockout_risk > 50
                else "Maintain safety stock levels"
            ),
            factors=[
                f"Projected stock: {round_half_up(projected_stock)} units",
                f"Reorder point: {reorder_point} units",
                f"Expected demand: {round_half_up(monthly_demand)} units/month",
                f"Lead time: {policy.lead_time_days} days",
            ],
            risk_level=classify_risk_level(stockout_risk),
            stockout_risk=round_half_up(stockout_risk),
            overstock_risk=round_half_up(calculate_overstock_risk(order_qty, monthly_demand)),
        )

        orders.append(
            SuggestedOrderItem(
                product_id=product.id,
                product_name=product.name,
                product_sku=product.sku,
                suggested_order_date=forecast.period_start - timedelta(days=policy.lead_time_days),
                expected_delivery_date=forecast.period_start,
                suggested_quantity=order_qty,
                minimum_quantity=minimum_qty,
                economic_order_qty=calculate_eoq(
                    monthly_demand * 12,
                    cost_price,
                    cost_price * HOLDING_COST_RATE,
                ),
                current_stock=(
                    product.current_stock
                    if i == 0
                    else round_half_up(projected_stock + monthly_demand)
                ),
                projected_stock=round_half_up(projected_stock),
                projected_demand=round_half_up(monthly_demand),
                estimated_cost=order_qty * cost_price,
                estimated_value=order_qty * product.price,
                priority=priority.value,
                reasoning=reasoning,
            )
        )

        projected_stock += order_qty

    return orders


def calculate_order_plan_summary(
    orders: Sequence[SuggestedOrderItem],
    now: datetime,
) -> OrderPlanSummary:
    """Totals plus the number of orders due within a week and a month of `now`."""

    today = now.date()
    one_week = today + timedelta(days=7)
    one_month = today + timedelta(days=30)

    return OrderPlanSummary(
        total_orders=len(orders),
        total_units=sum(o.suggested_quantity for o in orders),
        total_estimated_cost=sum(o.estimated_cost or 0 for o in orders),
        total_estimated_value=sum(o.estimated_value or 0 for o in orders),
        critical_orders=sum(1 for o in orders if o.priority == OrderPriority.CRITICAL.value),
        upcoming_week=sum(1 for o in orders if o.suggested_order_date <= one_week),
        upcoming_month=sum(1 for o in orders if o.suggested_order_date <= one_month),
    )
