import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.ride import Ride
from app.models.user import User
from app.services.errors import RideNotFound, UserNotFound, ValidationError
from app.services.transactional import run_in_transaction


logger = logging.getLogger(__name__)

POINTS_PER_KM = 100
POINTS_PER_MINUTE = 10
CO2_GRAMS_PER_KM = 150  # vs. the same trip by car


def calculate_points(distance_km: float, duration_minutes: float) -> int:
    return math.floor(distance_km * POINTS_PER_KM) + math.floor(duration_minutes * POINTS_PER_MINUTE)


def calculate_co2_saved(distance_km: float) -> float:
    return distance_km * CO2_GRAMS_PER_KM


@dataclass
class RideSyncResult:
    rides_processed: int = 0
    new_rides: int = 0
    points_earned: int = 0
    distance_km: float = 0.0
    co2_saved_g: float = 0.0
    results: list = field(default_factory=list)
    user: User | None = None


# ============================================================
# SYNC RIDES
# ============================================================
def sync_rides(db: Session, user_id: UUID, rides) -> RideSyncResult:
    """Store new workouts and credit their points.

    ``rides`` items expose healthkitUuid, startDate, endDate, distanceKm,
    durationMinutes and caloriesBurned. A workout already stored, or repeated
    within the batch, is reported as already_synced and earns nothing.
    """
    if rides is None:
        raise ValidationError("rides array is required")

    def _sync() -> RideSyncResult:
        user = db.get(User, user_id)
        if not user:
            raise UserNotFound(user_id)

        result = RideSyncResult(rides_processed=len(rides))
        seen = set()

        for ride in rides:
            workout_id = ride.healthkitUuid
            if ride.endDate < ride.startDate:
                raise ValidationError("endDate must not be before startDate", healthkitUuid=workout_id)

            existing = db.query(Ride.id).filter(Ride.healthkit_uuid == workout_id).first()
            if existing or workout_id in seen:
                result.results.append({"healthkitUuid": workout_id, "status": "already_synced"})
                continue
            seen.add(workout_id)

            points = calculate_points(ride.distanceKm, ride.durationMinutes)
            co2 = calculate_co2_saved(ride.distanceKm)

            db.add(
                Ride(
                    user_id=user_id,
                    healthkit_uuid=workout_id,
                    start_date=ride.startDate,
                    end_date=ride.endDate,
                    distance_km=ride.distanceKm,
                    duration_minutes=ride.durationMinutes,
                    calories_burned=ride.caloriesBurned,
                    points_earned=points,
                    co2_saved_g=co2,
                )
            )

            result.new_rides += 1
            result.points_earned += points
            result.distance_km += ride.distanceKm
            result.co2_saved_g += co2
            result.results.append(
                {
                    "healthkitUuid": workout_id,
                    "status": "synced",
                    "pointsEarned": points,
                    "co2Saved": co2,
                }
            )

        db.flush()

        if result.new_rides:
            # relative update: never overwrite totals another sync just wrote
            db.query(User).filter(User.id == user_id).update(
                {
                    User.total_points: User.total_points + result.points_earned,
                    User.total_distance_km: User.total_distance_km + result.distance_km,
                    User.total_co2_saved_g: User.total_co2_saved_g + result.co2_saved_g,
                    User.updated_at: func.now(),
                },
                synchronize_session=False,
            )

        result.user = user
        return result

    result = run_in_transaction(db, _sync, name="sync_rides")
    db.refresh(result.user)

    logger.info(
        "rides synced",
        extra={
            "user_id": str(user_id),
            "processed": result.rides_processed,
            "new_rides": result.new_rides,
            "points_earned": result.points_earned,
        },
    )
    return result


def list_user_rides(db: Session, user_id: UUID, *, limit: int = 50, offset: int = 0):
    if not db.get(User, user_id):
        raise UserNotFound(user_id)

    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    rides = (
        db.query(Ride)
        .filter(Ride.user_id == user_id)
        .order_by(Ride.start_date.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    total = db.query(func.count(Ride.id)).filter(Ride.user_id == user_id).scalar()

    return rides, int(total or 0), limit, offset


def get_ride(db: Session, ride_id: UUID) -> Ride:
    ride = db.get(Ride, ride_id)
    if not ride:
        raise RideNotFound(ride_id)
    return ride
