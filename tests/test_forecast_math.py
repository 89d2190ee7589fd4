from __future__ import annotations

import locale
from datetime import date

import pytest

from app.core.forecasting.domain import HistoricalDemandPoint, SeasonalFactors, TrendAnalysis
from app.core.forecasting.forecast_math import (
    add_months,
    calculate_forecast_summary,
    generate_forecast_periods,
    month_end,
    period_label,
    round_half_up,
)


def _generate(monthly_history, **overrides):
    params = dict(
        horizon_months=3,
        monthly_history=monthly_history,
        seasonal_factors=SeasonalFactors.flat(),
        trend=TrendAnalysis.stable(),
        confidence_level=0.95,
        market_growth_rate=0.0,
        local_market_factor=1.0,
        as_of=date(2026, 9, 10),
    )
    params.update(overrides)
    return generate_forecast_periods(**params)


def _alternating_history() -> list[HistoricalDemandPoint]:
    points = []
    for offset in range(24):
        index = 2024 * 12 + 8 + offset
        points.append(
            HistoricalDemandPoint(
                date=date(index // 12, index % 12 + 1, 1),
                quantity=8 if offset % 2 == 0 else 12,
            )
        )
    return points


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4) == 2
    assert round_half_up(-2.5) == -2
    assert round_half_up(0) == 0


def test_calendar_helpers():
    assert add_months(date(2026, 11, 15), 2) == date(2027, 1, 1)
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 1)
    assert month_end(date(2028, 2, 1)) == date(2028, 2, 29)
    assert month_end(date(2026, 4, 1)) == date(2026, 4, 30)
    assert period_label(date(2026, 11, 1)) == "Nov 2026"


def test_no_history_uses_default_base_demand():
    periods = _generate([])

    assert [p.period_start for p in periods] == [
        date(2026, 10, 1),
        date(2026, 11, 1),
        date(2026, 12, 1),
    ]
    assert [p.period_end for p in periods] == [
        date(2026, 10, 31),
        date(2026, 11, 30),
        date(2026, 12, 31),
    ]
    for period in periods:
        assert period.forecasted_demand == 10
        assert period.lower_bound == 10
        assert period.upper_bound == 10
        assert period.historical_average is None
        assert period.year_over_year_change is None
        assert period.seasonal_component == 0


def test_horizon_controls_period_count():
    assert len(_generate([], horizon_months=18)) == 18
    assert len(_generate([], horizon_months=1)) == 1


def test_base_demand_is_mean_of_last_six_months():
    history = [
        HistoricalDemandPoint(date=date(2026, month, 1), quantity=quantity)
        for month, quantity in zip(range(1, 9), [100, 100, 6, 6, 6, 6, 6, 6])
    ]

    periods = _generate(history)

    assert periods[0].forecasted_demand == 6


def test_interval_width_grows_with_horizon():
    """Alternating 8/12 history: forecast stays at 10 while the band widens."""
    periods = _generate(_alternating_history(), horizon_months=12)

    assert all(p.forecasted_demand == 10 for p in periods)
    widths = [p.upper_bound - p.lower_bound for p in periods]
    assert widths == sorted(widths)
    assert widths[-1] > widths[0]

    first = periods[0]
    assert first.lower_bound == 6
    assert first.upper_bound == 14
    assert all(p.lower_bound <= p.forecasted_demand <= p.upper_bound for p in periods)


def test_trend_seasonality_and_market_adjustments():
    factors = SeasonalFactors.flat()
    factors.monthly[9] = 1.5  # October
    trend = TrendAnalysis(slope=2.0, intercept=0.0, r_squared=1.0, direction="up", monthly_growth_rate=20.0)

    periods = _generate(
        [],
        seasonal_factors=factors,
        trend=trend,
        market_growth_rate=12.0,
        local_market_factor=2.0,
    )

    # (10 + 2) * 1.5 * 1.01 * 2
    assert periods[0].forecasted_demand == 36
    assert periods[0].trend_component == pytest.approx(2.0)
    assert periods[0].seasonal_component == pytest.approx(0.5)
    # (10 + 4) * 1.0 * 1.02 * 2
    assert periods[1].forecasted_demand == 29


def test_forecast_never_negative():
    trend = TrendAnalysis(slope=-20.0, intercept=0.0, r_squared=1.0, direction="down", monthly_growth_rate=-100.0)

    periods = _generate([], trend=trend)

    assert all(p.forecasted_demand == 0 for p in periods)
    assert all(p.lower_bound == 0 for p in periods)


def test_historical_average_and_year_over_year():
    history = [
        HistoricalDemandPoint(date=date(2025, 10, 1), quantity=8),
        HistoricalDemandPoint(date=date(2026, 8, 1), quantity=12),
    ]

    periods = _generate(history)

    october = periods[0]
    assert october.forecasted_demand == 10
    assert october.historical_average == pytest.approx(8.0)
    assert october.year_over_year_change == pytest.approx(25.0)

    november = periods[1]
    assert november.historical_average is None
    assert november.year_over_year_change is None


def test_summary_of_empty_periods():
    summary = calculate_forecast_summary([], TrendAnalysis.stable())

    assert summary.total_forecasted_demand == 0
    assert summary.average_monthly_demand == 0.0
    assert summary.peak_month == ""
    assert summary.low_month == ""
    assert summary.trend_direction == "stable"
    assert summary.confidence_score == 0.5


def test_summary_without_history_has_lowest_confidence():
    periods = _generate([])

    summary = calculate_forecast_summary(periods, TrendAnalysis.stable())

    assert summary.total_forecasted_demand == 30
    assert summary.average_monthly_demand == pytest.approx(10.0)
    # ties resolve to the earliest month
    assert summary.peak_month == "Oct 2026"
    assert summary.low_month == "Oct 2026"
    assert summary.confidence_score == pytest.approx(0.5)


def test_summary_confidence_grows_with_history_coverage():
    periods = _generate(_alternating_history(), horizon_months=12)

    summary = calculate_forecast_summary(periods, TrendAnalysis.stable())

    assert summary.confidence_score == pytest.approx(0.95)


def test_period_label_is_english_for_every_month():
    labels = [period_label(date(2026, month, 1)) for month in range(1, 13)]

    assert labels == [
        "Jan 2026", "Feb 2026", "Mar 2026", "Apr 2026", "May 2026", "Jun 2026",
        "Jul 2026", "Aug 2026", "Sep 2026", "Oct 2026", "Nov 2026", "Dec 2026",
    ]


def test_period_label_ignores_process_locale():
    previous = locale.setlocale(locale.LC_TIME)
    try:
        locale.setlocale(locale.LC_TIME, "de_DE.UTF-8")
    except locale.Error:
        pytest.skip("de_DE.UTF-8 locale not installed")
    try:
        assert period_label(date(2026, 5, 1)) == "May 2026"
        assert period_label(date(2026, 12, 1)) == "Dec 2026"
    finally:
        locale.setlocale(locale.LC_TIME, previous)
