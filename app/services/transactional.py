from __future__ import annotations

import logging
import os
from typing import Callable, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.services.errors import ConcurrencyConflict, StorageFailure


logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_ATTEMPTS = int(os.getenv("LEDGER_MAX_ATTEMPTS") or "3")

# serialization_failure, deadlock_detected, lock_not_available
CONFLICT_PGCODES = {"40001", "40P01", "55P03"}

# SQLite reports the column instead of the constraint name
RETRYABLE_UNIQUE_CONSTRAINTS = {
    "uq_redemptions_code": "redemptions.code",
    "uq_rides_healthkit_uuid": "rides.healthkit_uuid",
    "uq_users_email": "users.email",
}


def _constraint_name(orig) -> str | None:
    diag = getattr(orig, "diag", None)
    return getattr(diag, "constraint_name", None)


def is_conflict(error: SQLAlchemyError) -> bool:
    """True when starting the unit over can succeed.

    Lock timeouts, deadlocks and serialization failures are conflicts, and so
    are collisions on a unique key the retried unit re-reads or regenerates
    (voucher code, workout id, signup email). A missing table, a dropped
    connection or any other constraint is not.
    """
    orig = getattr(error, "orig", None)
    message = str(orig if orig is not None else error).lower()

    if isinstance(error, OperationalError):
        if getattr(orig, "pgcode", None) in CONFLICT_PGCODES:
            return True
        return "database is locked" in message

    if isinstance(error, IntegrityError):
        name = _constraint_name(orig)
        if name is not None:
            return name in RETRYABLE_UNIQUE_CONSTRAINTS
        return any(
            constraint in message or f"unique constraint failed: {column}" in message
            for constraint, column in RETRYABLE_UNIQUE_CONSTRAINTS.items()
        )

    return False


def run_in_transaction(
    db: Session,
    operation: Callable[[], T],
    *,
    name: str,
    max_attempts: int | None = None,
) -> T:
    """Run ``operation`` and commit, retrying the whole unit on conflicts.

    Any exception rolls the session back before it propagates, so a failed
    attempt never leaves a half-written voucher or ride behind.
    """
    attempts = max_attempts or MAX_ATTEMPTS

    for attempt in range(1, attempts + 1):
        try:
            result = operation()
            db.commit()
            return result
        except SQLAlchemyError as e:
            db.rollback()
            if not is_conflict(e):
                logger.exception("storage failure", extra={"operation": name})
                raise StorageFailure() from e
            if attempt >= attempts:
                logger.error(
                    "transaction conflict retries exhausted",
                    extra={"operation": name, "attempts": attempt, "error": str(getattr(e, "orig", None) or e)},
                )
                raise ConcurrencyConflict(name, attempt) from e
            logger.warning(
                "transaction conflict, retrying",
                extra={"operation": name, "attempt": attempt, "error": str(getattr(e, "orig", None) or e)},
            )
        except Exception:
            db.rollback()
            raise

    raise ConcurrencyConflict(name, attempts)
