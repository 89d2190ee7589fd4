from __future__ import annotations


class ForecastingError(Exception):
    """Base class for forecasting and replenishment planning errors."""


class DealerNotFoundError(ForecastingError):
    def __init__(self, dealer_id: int) -> None:
        self.dealer_id = dealer_id
        super().__init__(f"Dealer id={dealer_id} not found")


class SuggestedOrderNotFoundError(ForecastingError):
    def __init__(self, order_id: int) -> None:
        self.order_id = order_id
        super().__init__(f"Suggested order id={order_id} not found")


class InvalidStatusTransitionError(ForecastingError):
    def __init__(self, old_status: str, new_status: str) -> None:
        self.old_status = old_status
        self.new_status = new_status
        super().__init__(f"Invalid status transition from '{old_status}' to '{new_status}'")


class ForecastRunCancelledError(ForecastingError):
    """Raised when a per-dealer run exceeds its deadline or is cancelled."""
