from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.core.forecasting.deadline import RunDeadline
from app.core.forecasting.domain import ReorderPolicy
from app.core.forecasting.errors import ForecastRunCancelledError
from app.core.forecasting.reorder import calculate_order_plan_summary, calculate_reorder_schedule
from app.models.models import DemandForecast, ForecastConfig
from app.schemas.forecasting import SuggestedOrderItem, SuggestedOrderPlan
from app.services.forecast_repository import (
    get_active_products,
    get_or_create_config,
    list_forecasts,
    replace_suggested_orders,
    require_dealer,
)


logger = logging.getLogger(__name__)


def _policy_from_config(config: ForecastConfig) -> ReorderPolicy:
    return ReorderPolicy(
        safety_stock_days=config.safety_stock_days,
        lead_time_days=config.lead_time_days,
        min_order_quantity=config.min_order_quantity,
        order_multiple=config.order_multiple,
    )


def generate_suggested_order_plan(
    db: Session,
    dealer_id: int,
    now: datetime | None = None,
    deadline: RunDeadline | None = None,
) -> SuggestedOrderPlan:
    """Turn stored forecasts and current stock into a suggested purchase schedule.

    Pending suggestions of the dealer are replaced wholesale; accepted and
    skipped ones are kept. Orders are returned sorted by order date.
    """

    now = now or datetime.now(timezone.utc)
    deadline = deadline or RunDeadline.from_env()

    dealer = require_dealer(db, dealer_id)

    try:
        config = get_or_create_config(db, dealer_id)
        policy = _policy_from_config(config)

        forecasts_by_product: dict[int, list[DemandForecast]] = {}
        for row in list_forecasts(db, config.id):
            forecasts_by_product.setdefault(row.product_id, []).append(row)

        products = {
            p.id: p for p in get_active_products(db, list(forecasts_by_product.keys()))
        }

        orders: list[SuggestedOrderItem] = []
        for product_id, product_forecasts in forecasts_by_product.items():
            deadline.check()
            product = products.get(product_id)
            if product is None:
                continue
            product_forecasts.sort(key=lambda f: f.period_start)
            orders.extend(calculate_reorder_schedule(product, product_forecasts, policy))

        orders.sort(key=lambda o: o.suggested_order_date)

        rows = replace_suggested_orders(db, config.id, orders)
        for item, row in zip(orders, rows):
            item.id = row.id

        db.commit()
    except ForecastRunCancelledError:
        db.rollback()
        logger.warning("Order plan run for dealer %s cancelled; rolled back", dealer_id)
        raise
    except Exception:
        db.rollback()
        logger.exception("Order plan run for dealer %s failed", dealer_id)
        raise

    summary = calculate_order_plan_summary(orders, now)

    logger.info(
        "Generated order plan for dealer %s: %s orders, %s critical",
        dealer_id,
        summary.total_orders,
        summary.critical_orders,
    )

    return SuggestedOrderPlan(
        dealer_id=dealer.id,
        dealer_name=dealer.name,
        generated_at=now,
        horizon_months=config.forecast_horizon,
        orders=orders,
        summary=summary,
    )
