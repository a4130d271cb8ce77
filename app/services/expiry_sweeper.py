from __future__ import annotations

import logging
import os
import time
from datetime import datetime

from croniter import croniter

from app.db import SessionLocal
from app.services.clock import utcnow
from app.services.expiry_service import sweep_expired_redemptions
from app.services.transactional import run_in_transaction


logger = logging.getLogger(__name__)

DEFAULT_SWEEP_CRON = "* * * * *"


def compute_next_sweep_at(*, base_utc: datetime, cron_expr: str) -> datetime:
    if not croniter.is_valid(cron_expr):
        raise ValueError(f"Invalid cron expression: {cron_expr!r}")
    return croniter(cron_expr, base_utc).get_next(datetime)


def run_sweep_once(session_factory=SessionLocal, *, now: datetime | None = None) -> int:
    now = now or utcnow()

    db = session_factory()
    try:
        return run_in_transaction(
            db,
            lambda: sweep_expired_redemptions(db, now=now),
            name="expiry_sweep",
        )
    finally:
        db.close()


def run_sweeper_loop(
    *,
    cron_expr: str = DEFAULT_SWEEP_CRON,
    session_factory=SessionLocal,
    max_runs: int | None = None,
    sleep=time.sleep,
):
    """Sweep all users' stale vouchers on a cron schedule.

    Vouchers are also swept on read, and settlement checks expiry itself; this
    loop only keeps balances fresh for users who stop opening the app.
    """
    logger.info("expiry sweeper started", extra={"cron": cron_expr})

    runs = 0
    next_run_at = compute_next_sweep_at(base_utc=utcnow(), cron_expr=cron_expr)

    while max_runs is None or runs < max_runs:
        now = utcnow()
        delay = (next_run_at - now).total_seconds()
        if delay > 0:
            sleep(delay)
            continue

        try:
            expired = run_sweep_once(session_factory)
            logger.info(
                "expiry sweep finished",
                extra={"expired": expired, "run_at": next_run_at.isoformat()},
            )
        except Exception:
            # keep the schedule moving; the next run picks up what this one missed
            logger.exception("expiry sweep failed", extra={"run_at": next_run_at.isoformat()})

        runs += 1
        next_run_at = compute_next_sweep_at(base_utc=max(next_run_at, utcnow()), cron_expr=cron_expr)


def main():
    logging.basicConfig(level=os.getenv("LOG_LEVEL") or "INFO")
    cron_expr = os.getenv("EXPIRY_SWEEP_CRON") or DEFAULT_SWEEP_CRON
    run_sweeper_loop(cron_expr=cron_expr)


if __name__ == "__main__":
    main()
