"""Rate limiter instance for SlowAPI.

Shared so both main (app.state.limiter) and route modules can use the same
instance without circular imports.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

limiter = Limiter(key_func=get_remote_address)

WRITE_ENDPOINT_LIMIT = "120/minute"
EVENT_INGEST_LIMIT = "600/minute"
SCHEDULER_RUN_LIMIT = "12/minute"

limit_writes = limiter.limit(WRITE_ENDPOINT_LIMIT)
limit_events = limiter.limit(EVENT_INGEST_LIMIT)
limit_scheduler_run = limiter.limit(SCHEDULER_RUN_LIMIT)
