"""Maintenance script to delete expired one-time tokens.

Usage:
    python scripts/prune_expired_tokens.py

Environment overrides:
    TOKEN_PRUNE_GRACE_MINUTES=0
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from time import perf_counter

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from core import settings  # noqa: E402
from core.logging import configure_logging  # noqa: E402
from db.session import AsyncSessionMaker  # noqa: E402
from services.one_time_tokens import prune_expired_one_time_tokens  # noqa: E402

GRACE_MINUTES_ENV = "TOKEN_PRUNE_GRACE_MINUTES"
DEFAULT_GRACE_MINUTES = 0

logger = logging.getLogger("scripts.prune_expired_tokens")


def _parse_non_negative_int(raw_value: str | None, *, default: int, label: str) -> int:
    if raw_value is None or raw_value.strip() == "":
        return default
    try:
        parsed = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{label} must be an integer") from exc
    if parsed < 0:
        raise ValueError(f"{label} must be non-negative")
    return parsed


async def run(*, now: datetime | None = None) -> int:
    grace_minutes = _parse_non_negative_int(
        os.getenv(GRACE_MINUTES_ENV),
        default=DEFAULT_GRACE_MINUTES,
        label=GRACE_MINUTES_ENV,
    )
    reference = (now or datetime.now(timezone.utc)) - timedelta(minutes=grace_minutes)

    started_at = perf_counter()
    async with AsyncSessionMaker() as session:
        deleted = await prune_expired_one_time_tokens(session, now=reference)
    elapsed_ms = int((perf_counter() - started_at) * 1000)
    logger.info(
        "One-time token prune complete: rows_deleted=%s, elapsed_ms=%s",
        deleted,
        elapsed_ms,
    )
    return deleted


def main() -> None:
    configure_logging(settings.log_level)
    asyncio.run(run())


if __name__ == "__main__":
    main()
