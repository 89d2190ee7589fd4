from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Sequence

from sqlalchemy.orm import Session

from app.core.forecasting.deadline import RunDeadline
from app.core.forecasting.demand_analyzer import (
    aggregate_to_monthly,
    analyze_trend,
    calculate_seasonal_factors,
)
from app.core.forecasting.domain import ProductSnapshot, SeasonalFactors
from app.core.forecasting.errors import ForecastRunCancelledError
from app.core.forecasting.forecast_math import (
    calculate_forecast_summary,
    generate_forecast_periods,
    period_label,
)
from app.models.models import ForecastConfig
from app.schemas.forecasting import DemandForecastResult, ForecastPeriod
from app.services.forecast_repository import (
    get_active_products,
    find_config,
    get_or_create_config,
    get_order_history,
    list_forecasts,
    replace_forecasts,
    require_dealer,
)


logger = logging.getLogger(__name__)


def _forecast_product(
    db: Session,
    dealer_id: int,
    config: ForecastConfig,
    product: ProductSnapshot,
    as_of: date,
) -> DemandForecastResult:
    history = get_order_history(
        db,
        dealer_id,
        product_id=product.id,
        months_back=config.history_period,
        as_of=as_of,
    )
    monthly = aggregate_to_monthly(history)

    if not monthly:
        logger.info(
            "Dealer %s product %s has no demand history; using default base demand",
            dealer_id,
            product.sku,
        )

    if config.use_seasonality:
        seasonal = calculate_seasonal_factors(monthly)
    else:
        seasonal = SeasonalFactors.flat()
    trend = analyze_trend(monthly)

    periods = generate_forecast_periods(
        horizon_months=config.forecast_horizon,
        monthly_history=monthly,
        seasonal_factors=seasonal,
        trend=trend,
        confidence_level=config.confidence_level,
        market_growth_rate=config.market_growth_rate,
        local_market_factor=config.local_market_factor,
        as_of=as_of,
    )
    summary = calculate_forecast_summary(periods, trend)

    replace_forecasts(db, config.id, product.id, periods)

    return DemandForecastResult(
        product_id=product.id,
        product_name=product.name,
        product_sku=product.sku,
        periods=periods,
        summary=summary,
    )


def generate_demand_forecasts(
    db: Session,
    dealer_id: int,
    product_ids: Sequence[int] | None = None,
    as_of: date | None = None,
    deadline: RunDeadline | None = None,
) -> list[DemandForecastResult]:
    """Forecast monthly demand for the dealer's products and store the result.

    The whole run is a single transaction: stored forecasts of every product
    are replaced together on commit, and any failure (or an expired deadline)
    rolls the run back and re-raises, leaving previous forecasts untouched.
    """

    as_of = as_of or date.today()
    deadline = deadline or RunDeadline.from_env()

    require_dealer(db, dealer_id)

    try:
        config = get_or_create_config(db, dealer_id)
        products = get_active_products(db, product_ids)

        results: list[DemandForecastResult] = []
        for product in products:
            deadline.check()
            results.append(_forecast_product(db, dealer_id, config, product, as_of))

        config.last_calculated_at = datetime.now(timezone.utc)
        db.commit()
    except ForecastRunCancelledError:
        db.rollback()
        logger.warning("Demand forecast run for dealer %s cancelled; rolled back", dealer_id)
        raise
    except Exception:
        db.rollback()
        logger.exception("Demand forecast run for dealer %s failed", dealer_id)
        raise

    logger.info(
        "Generated demand forecasts for dealer %s: %s products, horizon %s months",
        dealer_id,
        len(results),
        config.forecast_horizon,
    )
    return results


def get_stored_forecasts(
    db: Session,
    dealer_id: int,
    product_id: int | None = None,
) -> list[DemandForecastResult]:
    """Return persisted forecasts grouped per product (no summary is recomputed)."""

    config = find_config(db, dealer_id)
    if config is None:
        return []
    rows = list_forecasts(db, config.id, product_id)

    by_product: dict[int, DemandForecastResult] = {}
    for row in sorted(rows, key=lambda r: (r.product_id, r.period_start)):
        result = by_product.get(row.product_id)
        if result is None:
            result = DemandForecastResult(
                product_id=row.product_id,
                product_name=row.product.name,
                product_sku=row.product.sku,
                periods=[],
            )
            by_product[row.product_id] = result
        result.periods.append(
            ForecastPeriod(
                period_start=row.period_start,
                period_end=row.period_end,
                period_label=period_label(row.period_start),
                forecasted_demand=row.forecasted_demand,
                lower_bound=row.lower_bound,
                upper_bound=row.upper_bound,
                historical_average=row.historical_average,
                year_over_year_change=row.year_over_year_change,
                trend_component=row.trend_component,
                seasonal_component=row.seasonal_component,
            )
        )

    return list(by_product.values())
