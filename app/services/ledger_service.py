from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.redemption import Redemption, RESERVING_STATUSES
from app.models.user import User
from app.services.errors import UserNotFound


def _reserved_points_subquery(user_id: UUID):
    return (
        select(func.coalesce(func.sum(Redemption.points_spent), 0))
        .where(
            Redemption.user_id == user_id,
            Redemption.status.in_(RESERVING_STATUSES),
        )
        .scalar_subquery()
    )


def balance_snapshot(db: Session, user_id: UUID) -> tuple[int, int]:
    """Return ``(earned, reserved)`` for the user.

    Both sides are read in one statement so a concurrent issuance cannot land
    between the two reads.
    """
    row = db.execute(
        select(User.total_points, _reserved_points_subquery(user_id)).where(User.id == user_id)
    ).first()

    if row is None:
        raise UserNotFound(user_id)

    earned, reserved = row
    return int(earned or 0), int(reserved or 0)


def available_balance(db: Session, user_id: UUID) -> int:
    """Earned points minus points held by pending and completed vouchers."""
    earned, reserved = balance_snapshot(db, user_id)
    return earned - reserved


def lock_user_ledger(db: Session, user_id: UUID) -> None:
    """Serialize reservations for one user until the transaction ends.

    The version bump takes the row lock on PostgreSQL and the database write
    lock on SQLite; a plain SELECT would take neither.
    """
    updated = (
        db.query(User)
        .filter(User.id == user_id)
        .update({User.ledger_version: User.ledger_version + 1}, synchronize_session=False)
    )
    if not updated:
        raise UserNotFound(user_id)
