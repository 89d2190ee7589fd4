"""Numeric building blocks for demand forecasting.

Every function here is pure and deterministic: it takes in-memory sequences
and returns new values without touching the database.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import date
from typing import Sequence

import numpy as np

from app.core.forecasting.domain import (
    MONTHS_IN_YEAR,
    ConfidenceInterval,
    HistoricalDemandPoint,
    OutlierDetection,
    SeasonalFactors,
    TrendAnalysis,
)


MIN_POINTS_FOR_SEASONALITY = 24
MIN_POINTS_FOR_TREND = 3
TREND_THRESHOLD_RATIO = 0.01
DEFAULT_Z_SCORE = 1.96

Z_SCORES: dict[float, float] = {
    0.90: 1.645,
    0.95: 1.96,
    0.99: 2.576,
}


def calculate_seasonal_factors(points: Sequence[HistoricalDemandPoint]) -> SeasonalFactors:
    """Derive 12 monthly factors as month average over the average of months.

    Needs at least two years of points; anything shorter yields flat factors.
    """

    if len(points) < MIN_POINTS_FOR_SEASONALITY:
        return SeasonalFactors.flat()

    by_month: dict[int, list[float]] = {m: [] for m in range(MONTHS_IN_YEAR)}
    for point in points:
        by_month[point.date.month - 1].append(point.quantity)

    # a calendar month without observations averages to 0
    monthly_averages = np.array(
        [np.mean(by_month[m]) if by_month[m] else 0.0 for m in range(MONTHS_IN_YEAR)]
    )
    overall_average = monthly_averages.mean()

    if overall_average == 0:
        return SeasonalFactors.flat()

    factors = monthly_averages / overall_average
    pattern_strength = min(float(np.std(factors) / np.mean(factors)), 1.0)

    return SeasonalFactors(
        monthly=factors.tolist(),
        calculated=True,
        pattern_strength=max(0.0, pattern_strength),
    )


def analyze_trend(points: Sequence[HistoricalDemandPoint]) -> TrendAnalysis:
    """Fit y = slope * x + intercept with x being the position in date order."""

    if len(points) < MIN_POINTS_FOR_TREND:
        return TrendAnalysis.stable()

    ordered = sorted(points, key=lambda p: p.date)
    xs = np.arange(len(ordered), dtype=float)
    ys = np.array([p.quantity for p in ordered], dtype=float)

    slope, intercept = (float(c) for c in np.polyfit(xs, ys, 1))
    y_mean = float(ys.mean())

    ss_res = float(np.sum((ys - (slope * xs + intercept)) ** 2))
    ss_tot = float(np.sum((ys - y_mean) ** 2))
    r_squared = 1 - ss_res / ss_tot if ss_tot != 0 else 0.0

    threshold = y_mean * TREND_THRESHOLD_RATIO
    if slope > threshold:
        direction = "up"
    elif slope < -threshold:
        direction = "down"
    else:
        direction = "stable"

    monthly_growth_rate = (slope / y_mean) * 100 if y_mean != 0 else 0.0

    return TrendAnalysis(
        slope=slope,
        intercept=intercept,
        r_squared=r_squared,
        direction=direction,
        monthly_growth_rate=monthly_growth_rate,
    )


def calculate_moving_average(values: Sequence[float], window_size: int) -> list[float]:
    if len(values) < window_size:
        return list(values)

    return [
        sum(values[i : i + window_size]) / window_size
        for i in range(len(values) - window_size + 1)
    ]


def calculate_exponential_ma(values: Sequence[float], alpha: float = 0.3) -> list[float]:
    if not values:
        return []

    result = [float(values[0])]
    for value in values[1:]:
        result.append(alpha * value + (1 - alpha) * result[-1])
    return result


def detect_outliers(values: Sequence[float]) -> OutlierDetection:
    """Split values on the 1.5 * IQR fences.

    Quartiles are read at sorted[floor(n * q)], not interpolated.
    """

    if len(values) < 4:
        return OutlierDetection(cleaned_data=list(values))

    data = np.asarray(values, dtype=float)
    ordered = np.sort(data)
    q1 = ordered[math.floor(len(ordered) * 0.25)]
    q3 = ordered[math.floor(len(ordered) * 0.75)]
    iqr = q3 - q1

    mask = (data < q1 - 1.5 * iqr) | (data > q3 + 1.5 * iqr)

    return OutlierDetection(
        outliers=data[mask].tolist(),
        outlier_indices=np.flatnonzero(mask).tolist(),
        cleaned_data=data[~mask].tolist(),
    )


def calculate_confidence_interval(
    forecast: float,
    standard_error: float,
    confidence_level: float = 0.95,
) -> ConfidenceInterval:
    z = DEFAULT_Z_SCORE
    for level, score in Z_SCORES.items():
        if math.isclose(level, confidence_level):
            z = score
            break

    margin = z * standard_error
    return ConfidenceInterval(lower=max(0.0, forecast - margin), upper=forecast + margin)


def calculate_standard_error(values: Sequence[float]) -> float:
    """Population standard deviation of the values (0 for an empty input)."""

    if not values:
        return 0.0
    return float(np.std(values))


def aggregate_to_monthly(points: Sequence[HistoricalDemandPoint]) -> list[HistoricalDemandPoint]:
    """Sum quantities per calendar month, dated on the 1st, oldest first."""

    totals: dict[tuple[int, int], float] = defaultdict(float)
    for point in points:
        totals[(point.date.year, point.date.month)] += point.quantity

    product_id = points[0].product_id if points else None

    return [
        HistoricalDemandPoint(date=date(year, month, 1), quantity=quantity, product_id=product_id)
        for (year, month), quantity in sorted(totals.items())
    ]
