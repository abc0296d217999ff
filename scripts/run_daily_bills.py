"""
Run the daily billing batches once.

Marks overdue bills, then generates recurring bills from master templates.
Use this from cron when the API's in-process scheduler is disabled.

Usage:
    python -m scripts.run_daily_bills
    python -m scripts.run_daily_bills --sweep-only
    python -m scripts.run_daily_bills --renew-only --date 2026-02-01
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from propman.database import engine, init_db
from propman.jobs.recurring_bills import run_overdue_sweep, run_cycle_cloner


def parse_run_date(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}', expected YYYY-MM-DD")


async def main(args: argparse.Namespace) -> int:
    await init_db()
    now = args.date or datetime.now(timezone.utc)
    exit_code = 0

    try:
        if not args.renew_only:
            print("=" * 60)
            print(f"OVERDUE SWEEP ({now.date().isoformat()})")
            print("=" * 60)
            result = await run_overdue_sweep(now)
            print(json.dumps(result, indent=2))
            if result["errors"]:
                exit_code = 1

        if not args.sweep_only:
            print("=" * 60)
            print(f"RECURRING BILL GENERATION ({now.date().isoformat()})")
            print("=" * 60)
            result = await run_cycle_cloner(now)
            print(json.dumps(result, indent=2))
            if result["errors"]:
                exit_code = 1
    finally:
        await engine.dispose()

    return exit_code


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    parser = argparse.ArgumentParser(description="Run the daily billing batches once")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--sweep-only", action="store_true", help="Only mark overdue bills")
    group.add_argument("--renew-only", action="store_true", help="Only generate recurring bills")
    parser.add_argument("--date", type=parse_run_date, help="Run as of this date (YYYY-MM-DD, UTC)")

    sys.exit(asyncio.run(main(parser.parse_args())))
