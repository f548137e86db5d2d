"""One-shot tick — the periodic-wake entry point (`reminder-tick`, `python -m app.run_tick`).

Invariants:
    - Builds the same runtime over the same database as the API
    - Runs exactly one tick and exits 0 whatever the outcome
    - Permission is asserted by the caller (--not-permitted to simulate a revoked grant)

Design Decisions:
    - Serialized against the API process by the SQL tick lease: a wake that
      lands during an API tick is dropped (or waits, per overlap policy)
"""

import argparse
import asyncio
import json
import logging
import sys

from app.config import get_settings
from app.core.errors import ReminderError
from app.infrastructure.database import init_db
from app.infrastructure.kv_store import SqlKeyValueStore
from app.infrastructure.tick_lock import SqlTickLock
from app.infrastructure.observability import setup_logging
from app.services.reminder_runtime import build_runtime

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="reminder-tick", description="Run one reminder tick and exit.",
    )
    parser.add_argument(
        "--not-permitted", action="store_true",
        help="treat reminders as not permitted (tick is skipped)",
    )
    parser.add_argument(
        "--print-outcome", action="store_true",
        help="write the tick outcome as JSON to stdout",
    )
    return parser.parse_args(argv)


async def run_once(permitted: bool) -> dict | None:
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    try:
        await manager.create_schema()
        runtime = build_runtime(
            settings, SqlKeyValueStore(manager), tick_lock=SqlTickLock(manager),
        )
        try:
            outcome = await runtime.scheduler.on_tick(permitted=permitted)
        finally:
            await runtime.aclose()
        return outcome.to_dict()
    except ReminderError as e:
        logger.error(f"Tick could not start: {e.message}",
                     extra={"error_code": e.code})
        return None
    finally:
        await manager.dispose()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        outcome = asyncio.run(run_once(permitted=not args.not_permitted))
    except Exception as e:
        logger.error(f"Tick crashed: {e}", exc_info=True)
        outcome = None
    if args.print_outcome and outcome is not None:
        json.dump(outcome, sys.stdout)
        sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
