"""Run one flow resumption cycle (or keep running with --loop).

Usage:
    uv run python -m scripts.run_flow_scheduler [--loop]
Advances every waiting / retry-pending / resumed execution whose
next_execution_at has passed. Safe to run next to the API process: the
execution claim lets exactly one worker advance a given execution.
"""

import argparse
import asyncio
import sys

import app.infrastructure.persistence.database as database
from app.core.config import get_settings
from app.core.flow_engine import build_flow_engine
from app.domain.exceptions import SqlNotConfiguredException
from app.shared.telemetry.logging import setup_logging
from app.shared.telemetry.telemetry import configure_telemetry


async def main() -> None:
    """Build the engine without the event bus loop and drive the scheduler."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--loop", action="store_true", help="run every SCHEDULER_INTERVAL_SECONDS")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging()
    telemetry = configure_telemetry(settings)
    try:
        session_factory = database.get_session_factory()
    except SqlNotConfiguredException as e:
        print(e.message, file=sys.stderr)
        sys.exit(1)

    engine = build_flow_engine(settings, session_factory)
    try:
        if args.loop:
            while True:
                result = await engine.scheduler.run_due()
                print(f"due={result.due} advanced={result.advanced} skipped={result.skipped} failed={result.failed}")
                await asyncio.sleep(settings.scheduler_interval_seconds)
        result = await engine.scheduler.run_due()
        print(f"due={result.due} advanced={result.advanced} skipped={result.skipped} failed={result.failed}")
    finally:
        await engine.stop()
        await database.dispose_engine()
        if telemetry is not None:
            telemetry.shutdown()
    if result.failed:
        sys.exit(2)


if __name__ == "__main__":
    asyncio.run(main())
