from __future__ import annotations

from sqlalchemy.orm import Session

from app.core.forecasting.forecast_math import period_label
from app.schemas.forecasting import (
    ChartDataset,
    ForecastChartData,
    MonthlyOrderSummary,
    OrderTimelineData,
    TimelineProduct,
)
from app.services.forecast_repository import (
    find_config,
    list_forecasts,
    list_suggested_orders,
)


FORECAST_COLOR = "#2563eb"
BOUND_COLOR = "#94a3b8"


def get_forecast_chart_data(
    db: Session,
    dealer_id: int,
    product_id: int | None = None,
) -> ForecastChartData:
    """Forecast, lower and upper series per month, summed over products."""

    config = find_config(db, dealer_id)
    rows = list_forecasts(db, config.id, product_id) if config is not None else []

    totals: dict[str, list[float]] = {}
    for row in rows:
        label = period_label(row.period_start)
        current = totals.setdefault(label, [0, 0, 0])
        current[0] += row.forecasted_demand
        current[1] += row.lower_bound
        current[2] += row.upper_bound

    values = list(totals.values())

    return ForecastChartData(
        labels=list(totals.keys()),
        datasets=[
            ChartDataset(
                label="Forecasted Demand",
                data=[v[0] for v in values],
                border_color=FORECAST_COLOR,
            ),
            ChartDataset(
                label="Lower Bound",
                data=[v[1] for v in values],
                border_color=BOUND_COLOR,
            ),
            ChartDataset(
                label="Upper Bound",
                data=[v[2] for v in values],
                border_color=BOUND_COLOR,
                fill="-1",
            ),
        ],
    )


def get_order_timeline_data(db: Session, dealer_id: int) -> OrderTimelineData:
    config = find_config(db, dealer_id)
    if config is None:
        return OrderTimelineData(months=[])

    months: dict[str, MonthlyOrderSummary] = {}
    for order in list_suggested_orders(db, config.id):
        label = period_label(order.suggested_order_date)
        monthly = months.get(label)
        if monthly is None:
            monthly = MonthlyOrderSummary(
                month=label,
                orders=0,
                units=0,
                estimated_cost=0.0,
                products=[],
            )
            months[label] = monthly

        monthly.orders += 1
        monthly.units += order.suggested_quantity
        monthly.estimated_cost += order.estimated_cost or 0
        monthly.products.append(
            TimelineProduct(
                product_name=order.product.name,
                quantity=order.suggested_quantity,
                priority=order.priority,
            )
        )

    return OrderTimelineData(months=list(months.values()))
