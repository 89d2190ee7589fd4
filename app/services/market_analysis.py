from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.forecasting.forecast_math import add_months
from app.models.models import MarketIndicator
from app.schemas.forecasting import MarketAnalysis, MarketIndicatorInput, MarketIndicatorSummary
from app.services.forecast_repository import require_dealer


logger = logging.getLogger(__name__)


NATIONAL_REGION = "national"
LOOKBACK_DAYS = 365
TREND_THRESHOLD_PERCENT = 2


def _indicator_trend(percent_change: float | None) -> str:
    if percent_change and percent_change > TREND_THRESHOLD_PERCENT:
        return "up"
    if percent_change and percent_change < -TREND_THRESHOLD_PERCENT:
        return "down"
    return "stable"


def _indicator_impact(indicator: MarketIndicator, trend: str) -> str:
    if indicator.indicator_type in ("economic", "demographic"):
        return {"up": "positive", "down": "negative"}.get(trend, "neutral")
    if indicator.indicator_type == "industry":
        if indicator.impact_factor > 1:
            return "positive"
        if indicator.impact_factor < 1:
            return "negative"
    return "neutral"


def get_market_analysis(
    db: Session,
    dealer_id: int,
    as_of: date | None = None,
) -> MarketAnalysis:
    """Summarise the latest regional and national indicators for a dealer.

    Only the most recent reading of each indicator name within the last year
    counts. The adjustment factor is the mean impact factor of those readings.
    """

    as_of = as_of or date.today()
    dealer = require_dealer(db, dealer_id)
    region = dealer.region or NATIONAL_REGION

    indicators = (
        db.query(MarketIndicator)
        .filter(
            or_(MarketIndicator.region == region, MarketIndicator.region == NATIONAL_REGION),
            MarketIndicator.period_start >= as_of - timedelta(days=LOOKBACK_DAYS),
        )
        .order_by(MarketIndicator.period_start.desc(), MarketIndicator.id.desc())
        .all()
    )

    latest_by_name: dict[str, MarketIndicator] = {}
    for indicator in indicators:
        latest_by_name.setdefault(indicator.indicator_name, indicator)

    summaries: list[MarketIndicatorSummary] = []
    positive = 0
    negative = 0
    total_impact = 0.0

    for name, indicator in latest_by_name.items():
        trend = _indicator_trend(indicator.percent_change)
        impact = _indicator_impact(indicator, trend)
        if impact == "positive":
            positive += 1
        elif impact == "negative":
            negative += 1
        total_impact += indicator.impact_factor

        summaries.append(
            MarketIndicatorSummary(
                name=name,
                type=indicator.indicator_type,
                current_value=indicator.value,
                trend=trend,
                impact=impact,
            )
        )

    if positive > negative + 1:
        outlook = "positive"
    elif negative > positive + 1:
        outlook = "negative"
    else:
        outlook = "neutral"

    adjustment_factor = total_impact / len(summaries) if summaries else 1.0

    return MarketAnalysis(
        region=region,
        indicators=summaries,
        overall_outlook=outlook,
        adjustment_factor=adjustment_factor,
    )


def upsert_market_indicator(db: Session, data: MarketIndicatorInput) -> MarketIndicator:
    if data.previous_value:
        percent_change = (data.value - data.previous_value) / data.previous_value * 100
    else:
        percent_change = None

    indicator = (
        db.query(MarketIndicator)
        .filter(
            MarketIndicator.region == data.region,
            MarketIndicator.indicator_name == data.indicator_name,
            MarketIndicator.period_start == data.period_start,
        )
        .first()
    )

    if indicator is None:
        indicator = MarketIndicator(
            region=data.region,
            region_type=data.region_type,
            indicator_name=data.indicator_name,
            indicator_type=data.indicator_type,
            period_start=data.period_start,
            period_end=data.period_end,
            value=data.value,
        )
        db.add(indicator)

    indicator.period_end = data.period_end
    indicator.value = data.value
    indicator.previous_value = data.previous_value
    indicator.percent_change = percent_change
    if data.impact_factor is not None:
        indicator.impact_factor = data.impact_factor
    indicator.confidence = data.confidence
    indicator.source = data.source
    indicator.source_url = data.source_url

    db.commit()
    db.refresh(indicator)
    return indicator


def get_regional_comparison(db: Session, regions: Sequence[str]) -> dict[str, list[MarketIndicator]]:
    """All readings of the given regions, grouped by region, newest first."""

    if not regions:
        return {}

    indicators = (
        db.query(MarketIndicator)
        .filter(MarketIndicator.region.in_(regions))
        .order_by(MarketIndicator.period_start.desc(), MarketIndicator.id.desc())
        .all()
    )

    by_region: dict[str, list[MarketIndicator]] = {}
    for indicator in indicators:
        by_region.setdefault(indicator.region, []).append(indicator)
    return by_region


def _sample_indicators(as_of: date) -> list[MarketIndicatorInput]:
    last_month = add_months(as_of, -1)
    common = dict(period_start=last_month, period_end=as_of)

    return [
        MarketIndicatorInput(
            region=NATIONAL_REGION,
            region_type="national",
            indicator_name="Consumer Confidence Index",
            indicator_type="economic",
            value=102.5,
            previous_value=100.8,
            impact_factor=1.02,
            confidence=0.9,
            source="Conference Board",
            **common,
        ),
        MarketIndicatorInput(
            region="CA",
            region_type="state",
            indicator_name="Housing Starts",
            indicator_type="industry",
            value=145000,
            previous_value=138000,
            impact_factor=1.05,
            confidence=0.85,
            source="Census Bureau",
            **common,
        ),
        MarketIndicatorInput(
            region="TX",
            region_type="state",
            indicator_name="Housing Starts",
            indicator_type="industry",
            value=180000,
            previous_value=175000,
            impact_factor=1.03,
            confidence=0.85,
            source="Census Bureau",
            **common,
        ),
        MarketIndicatorInput(
            region=NATIONAL_REGION,
            region_type="national",
            indicator_name="RV Industry Sales",
            indicator_type="industry",
            value=42500,
            previous_value=40000,
            impact_factor=1.06,
            confidence=0.92,
            source="RV Industry Association",
            **common,
        ),
        MarketIndicatorInput(
            region=NATIONAL_REGION,
            region_type="national",
            indicator_name="Fuel Price Index",
            indicator_type="economic",
            value=95.2,
            previous_value=98.5,
            # cheaper fuel lifts demand
            impact_factor=1.03,
            confidence=0.95,
            source="EIA",
            **common,
        ),
    ]


def seed_market_indicators(db: Session, as_of: date | None = None) -> int:
    """Upsert a fixed set of sample readings for development databases."""

    samples = _sample_indicators(as_of or date.today())
    for sample in samples:
        upsert_market_indicator(db, sample)

    logger.info("Seeded %s sample market indicators", len(samples))
    return len(samples)
