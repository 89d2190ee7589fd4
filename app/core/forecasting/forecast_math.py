from __future__ import annotations

import calendar
import math
from collections import defaultdict
from datetime import date
from typing import Sequence

from app.core.forecasting.demand_analyzer import (
    calculate_confidence_interval,
    calculate_standard_error,
)
from app.core.forecasting.domain import (
    MONTHS_IN_YEAR,
    HistoricalDemandPoint,
    SeasonalFactors,
    TrendAnalysis,
)
from app.schemas.forecasting import ForecastPeriod, ForecastSummary


BASE_DEMAND_WINDOW_MONTHS = 6
DEFAULT_BASE_DEMAND = 10.0
MAX_CONFIDENCE_SCORE = 0.95

# Fixed English abbreviations; labels double as grouping keys and must not follow the locale
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def add_months(day: date, months: int) -> date:
    """Shift to the first day of the month `months` after `day`'s month."""

    index = day.year * MONTHS_IN_YEAR + (day.month - 1) + months
    return date(index // MONTHS_IN_YEAR, index % MONTHS_IN_YEAR + 1, 1)


def month_end(day: date) -> date:
    return date(day.year, day.month, calendar.monthrange(day.year, day.month)[1])


def period_label(day: date) -> str:
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} {day.year}"


def generate_forecast_periods(
    horizon_months: int,
    monthly_history: Sequence[HistoricalDemandPoint],
    seasonal_factors: SeasonalFactors,
    trend: TrendAnalysis,
    confidence_level: float,
    market_growth_rate: float,
    local_market_factor: float,
    as_of: date,
) -> list[ForecastPeriod]:
    """Build one bounded forecast per calendar month after `as_of`.

    `monthly_history` must already be aggregated and sorted oldest first.
    Base demand is the mean of the trailing six months; the trend adds
    slope * i for the i-th month ahead and market growth ramps linearly.
    The interval widens with sqrt(1 + i/12).
    """

    recent = monthly_history[-BASE_DEMAND_WINDOW_MONTHS:]
    if recent:
        base_demand = sum(p.quantity for p in recent) / len(recent)
    else:
        base_demand = DEFAULT_BASE_DEMAND

    std_error = calculate_standard_error([p.quantity for p in monthly_history])

    history_by_month: dict[int, list[float]] = defaultdict(list)
    for point in monthly_history:
        history_by_month[point.date.month].append(point.quantity)

    periods: list[ForecastPeriod] = []
    for i in range(1, horizon_months + 1):
        start = add_months(as_of, i)
        end = month_end(start)

        trend_value = trend.slope * i
        seasonal_factor = seasonal_factors.factor_for_month(start.month)
        growth_factor = 1 + (market_growth_rate / 100) * (i / MONTHS_IN_YEAR)

        raw = (base_demand + trend_value) * seasonal_factor * growth_factor * local_market_factor
        forecast = max(0, round_half_up(raw))

        interval = calculate_confidence_interval(
            forecast,
            std_error * math.sqrt(1 + i / MONTHS_IN_YEAR),
            confidence_level,
        )

        same_month = history_by_month.get(start.month, [])
        historical_average = sum(same_month) / len(same_month) if same_month else None

        last_year_value = same_month[-1] if same_month else None
        if last_year_value:
            year_over_year_change = (forecast - last_year_value) / last_year_value * 100
        else:
            year_over_year_change = None

        periods.append(
            ForecastPeriod(
                period_start=start,
                period_end=end,
                period_label=period_label(start),
                forecasted_demand=forecast,
                lower_bound=round_half_up(interval.lower),
                upper_bound=round_half_up(interval.upper),
                historical_average=historical_average,
                year_over_year_change=year_over_year_change,
                trend_component=trend_value,
                seasonal_component=seasonal_factor - 1,
            )
        )

    return periods


def calculate_forecast_summary(
    periods: Sequence[ForecastPeriod],
    trend: TrendAnalysis,
) -> ForecastSummary:
    if not periods:
        return ForecastSummary(
            total_forecasted_demand=0,
            average_monthly_demand=0.0,
            peak_month="",
            low_month="",
            trend_direction=trend.direction,
            confidence_score=0.5,
        )

    demands = [p.forecasted_demand for p in periods]
    total = sum(demands)

    # max/min return the first match, so ties resolve to the earliest month
    peak = max(periods, key=lambda p: p.forecasted_demand)
    low = min(periods, key=lambda p: p.forecasted_demand)

    with_history = sum(1 for p in periods if p.historical_average is not None)
    confidence_score = min(MAX_CONFIDENCE_SCORE, 0.5 + (with_history / len(periods)) * 0.45)

    return ForecastSummary(
        total_forecasted_demand=total,
        average_monthly_demand=total / len(periods),
        peak_month=peak.period_label,
        low_month=low.period_label,
        trend_direction=trend.direction,
        confidence_score=confidence_score,
    )
