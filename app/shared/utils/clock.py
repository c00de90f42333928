"""Clock implementations for wall-clock scheduling.

Engine components take a clock instead of calling utc_now() directly so
waits, retries and leases can be tested without sleeping.

Production code uses SystemClock (the default). Tests inject ManualClock
and advance it explicitly.
"""

from datetime import datetime, timedelta

from app.shared.utils.datetime import ensure_utc, utc_now


class SystemClock:
    """Production clock backed by utc_now()."""

    def now(self) -> datetime:
        return utc_now()


class ManualClock:
    """Controllable clock for deterministic tests.

    Example:
        clock = ManualClock(datetime(2025, 1, 1, tzinfo=UTC))
        clock.advance(timedelta(days=2))
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._current = ensure_utc(start) or utc_now()

    def now(self) -> datetime:
        return self._current

    def advance(self, delta: timedelta) -> None:
        """Move time forward by delta (must be non-negative)."""
        if delta < timedelta(0):
            raise ValueError(f"Cannot advance clock backwards: {delta}")
        self._current += delta

    def set(self, value: datetime) -> None:
        self._current = ensure_utc(value)
