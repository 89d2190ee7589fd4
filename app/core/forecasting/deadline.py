from __future__ import annotations

import os
import threading
import time
from typing import Optional

from app.core.forecasting.errors import ForecastRunCancelledError


DEADLINE_ENV_VAR = "FORECAST_RUN_DEADLINE_SECONDS"


class RunDeadline:
    """Time budget and cancel token for one per-dealer run.

    `check()` is called between products; it raises once the budget is spent
    or the cancel event is set.
    """

    def __init__(
        self,
        seconds: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._seconds = seconds
        self._cancel_event = cancel_event
        self._expires_at = time.monotonic() + seconds if seconds is not None else None

    @classmethod
    def from_env(cls) -> "RunDeadline":
        raw = os.getenv(DEADLINE_ENV_VAR)
        if not raw:
            return cls()
        return cls(seconds=float(raw))

    @property
    def expired(self) -> bool:
        return self._expires_at is not None and time.monotonic() >= self._expires_at

    def check(self) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise ForecastRunCancelledError("Run cancelled")
        if self.expired:
            raise ForecastRunCancelledError(f"Run exceeded its deadline of {self._seconds}s")
