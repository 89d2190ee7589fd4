from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional


MONTHS_IN_YEAR = 12


@dataclass(frozen=True)
class HistoricalDemandPoint:
    """One observed quantity of a product on a given day.

    Produced from confirmed-or-later order lines for every forecast run and
    never persisted on its own.
    """

    date: date
    quantity: float
    product_id: Optional[int] = None


@dataclass
class SeasonalFactors:
    """Multiplicative month-of-year adjustments (index 0 is January)."""

    monthly: List[float]
    """Twelve factors; 1.0 means "an average month"."""

    calculated: bool
    """False when the history was too short or empty and flat factors are used."""

    pattern_strength: float
    """Coefficient of variation of the factors, clamped to [0, 1]."""

    @classmethod
    def flat(cls) -> "SeasonalFactors":
        return cls(monthly=[1.0] * MONTHS_IN_YEAR, calculated=False, pattern_strength=0.0)

    def factor_for_month(self, month: int) -> float:
        """Return the factor for a calendar month numbered 1..12."""

        return self.monthly[month - 1]


@dataclass
class TrendAnalysis:
    """Least-squares linear trend over an ordered demand series."""

    slope: float
    intercept: float
    r_squared: float
    direction: str
    """One of "up", "down" or "stable"."""

    monthly_growth_rate: float
    """Slope as a percentage of the mean level."""

    @classmethod
    def stable(cls) -> "TrendAnalysis":
        return cls(slope=0.0, intercept=0.0, r_squared=0.0, direction="stable", monthly_growth_rate=0.0)


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: float
    upper: float


@dataclass
class OutlierDetection:
    outliers: List[float] = field(default_factory=list)
    outlier_indices: List[int] = field(default_factory=list)
    cleaned_data: List[float] = field(default_factory=list)


@dataclass(frozen=True)
class ReorderPolicy:
    """Replenishment parameters of a dealer, taken from its forecast config."""

    safety_stock_days: int
    lead_time_days: int
    min_order_quantity: int
    order_multiple: int


@dataclass(frozen=True)
class ProductSnapshot:
    """Product attributes the planner needs, with stock summed over locations."""

    id: int
    name: str
    sku: str
    price: float
    cost_price: Optional[float]
    current_stock: int

    @property
    def effective_cost_price(self) -> float:
        if self.cost_price:
            return self.cost_price
        return self.price * 0.6


class SuggestedOrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    ORDERED = "ordered"
    SKIPPED = "skipped"


class OrderPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


# Externally driven transitions only; regeneration never touches non-pending rows.
ALLOWED_STATUS_TRANSITIONS: dict[SuggestedOrderStatus, set[SuggestedOrderStatus]] = {
    SuggestedOrderStatus.PENDING: {
        SuggestedOrderStatus.PENDING,
        SuggestedOrderStatus.ACCEPTED,
        SuggestedOrderStatus.SKIPPED,
    },
    SuggestedOrderStatus.ACCEPTED: {SuggestedOrderStatus.ACCEPTED},
    SuggestedOrderStatus.SKIPPED: {SuggestedOrderStatus.SKIPPED},
    SuggestedOrderStatus.ORDERED: {SuggestedOrderStatus.ORDERED},
}
