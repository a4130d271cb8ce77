import logging
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.redemption import Redemption, RESERVING_STATUSES
from app.models.ride import Ride
from app.models.user import User
from app.services.errors import UserNotFound, ValidationError
from app.services.ledger_service import available_balance
from app.services.transactional import run_in_transaction


logger = logging.getLogger(__name__)


def _normalize_email(value: str | None) -> str:
    return (value or "").strip().lower()


def get_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise UserNotFound(user_id)
    return user


def create_user(db: Session, email: str | None, name: str | None = None):
    """Register a user, or return the existing one for a known email.

    Returns ``(user, created)``.
    """
    email = _normalize_email(email)
    if not email:
        raise ValidationError("Email is required")

    def _create():
        existing = db.query(User).filter(User.email == email).first()
        if existing:
            return existing, False

        user = User(email=email, name=(name or None))
        db.add(user)
        db.flush()
        return user, True

    # a concurrent signup with the same email fails the unique constraint and
    # the retry finds the row it created
    user, created = run_in_transaction(db, _create, name="create_user")
    db.refresh(user)

    if created:
        logger.info("user created", extra={"user_id": str(user.id)})
    return user, created


def update_user(db: Session, user_id: UUID, name: str | None = None) -> User:
    user = get_user(db, user_id)
    if name:
        user.name = name
    db.commit()
    db.refresh(user)
    return user


def get_user_stats(db: Session, user_id: UUID) -> dict:
    user = get_user(db, user_id)

    rides = (
        db.query(
            func.count(Ride.id),
            func.coalesce(func.sum(Ride.distance_km), 0),
            func.coalesce(func.sum(Ride.duration_minutes), 0),
            func.coalesce(func.sum(Ride.co2_saved_g), 0),
        )
        .filter(Ride.user_id == user_id)
        .one()
    )
    total_rides, total_distance, total_duration, total_co2 = rides

    total_redemptions = (
        db.query(func.count(Redemption.id))
        .filter(
            Redemption.user_id == user_id,
            Redemption.status.in_(RESERVING_STATUSES),
        )
        .scalar()
    )

    return {
        "user": {"id": str(user.id), "email": user.email, "name": user.name},
        "stats": {
            "total_points": user.total_points,
            "available_points": available_balance(db, user_id),
            "total_rides": int(total_rides or 0),
            "total_distance_km": round(float(total_distance or 0), 1),
            "total_duration_minutes": round(float(total_duration or 0)),
            "total_co2_saved_g": round(float(total_co2 or 0)),
            "total_redemptions": int(total_redemptions or 0),
        },
    }
