"""
Run one scheduled notification pass from the command line.

Equivalent to POST /scheduled/notifications, for environments where a
system cron is easier to set up than an HTTP scheduler.

Usage:
  python scripts/run_dispatch_pass.py
  python scripts/run_dispatch_pass.py --job-type survey-invitations
  python scripts/run_dispatch_pass.py --now 2025-01-01T11:30:00Z

Environment:
  Uses the database configured by gatherease.core.settings / gatherease.db
"""
from __future__ import annotations
import argparse
import json
import sys
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()

from gatherease.core.logging_config import setup_logging
from gatherease.db import SessionLocal
from gatherease.schemas.dispatch import JobType
from gatherease.services.scheduler import run_scheduled_notifications


def _parse_now(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run one GatherEase dispatch pass")
    parser.add_argument(
        "--job-type",
        choices=[j.value for j in JobType],
        default=None,
        help="Restrict the pass to one job (default: both)",
    )
    parser.add_argument("--now", type=_parse_now, default=None, help="Evaluate windows at this ISO-8601 instant")
    args = parser.parse_args(argv)

    logger = setup_logging()
    db = SessionLocal()
    try:
        summary = run_scheduled_notifications(
            db,
            job_type=JobType(args.job_type) if args.job_type else None,
            now=args.now,
        )
    finally:
        db.close()

    logger.info("Dispatch pass complete")
    print(json.dumps(summary.model_dump(mode="json"), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
