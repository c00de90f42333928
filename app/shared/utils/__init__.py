"""Shared utilities: datetime, clocks, generators."""

from app.shared.utils.clock import ManualClock, SystemClock
from app.shared.utils.datetime import ensure_utc, parse_iso_datetime, utc_now
from app.shared.utils.generators import generate_claim_token, generate_cuid

__all__ = [
    "generate_cuid",
    "generate_claim_token",
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "ManualClock",
    "SystemClock",
]
