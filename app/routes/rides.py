from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.ride import RideOut, RideSync
from app.services.ride_service import get_ride, list_user_rides, sync_rides


router = APIRouter(prefix="/rides", tags=["rides"])


@router.post("")
def sync_user_rides(payload: RideSync, db: Session = Depends(get_db)):
    result = sync_rides(db, payload.userId, payload.rides)
    user = result.user

    return {
        "message": f"Synced {result.new_rides} new rides",
        "summary": {
            "ridesProcessed": result.rides_processed,
            "newRidesSynced": result.new_rides,
            "pointsEarned": result.points_earned,
            "co2SavedGrams": round(result.co2_saved_g),
        },
        "user": {
            "totalPoints": user.total_points,
            "totalDistanceKm": round(user.total_distance_km, 1),
            "totalCO2SavedGrams": round(user.total_co2_saved_g),
        },
        "rides": result.results,
    }


@router.get("/user/{user_id}")
def read_user_rides(
    user_id: UUID,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    rides, total, limit, offset = list_user_rides(db, user_id, limit=limit, offset=offset)
    return {
        "rides": [RideOut.model_validate(r) for r in rides],
        "pagination": {"total": total, "limit": limit, "offset": offset},
    }


@router.get("/{ride_id}", response_model=RideOut)
def read_ride(ride_id: UUID, db: Session = Depends(get_db)):
    return get_ride(db, ride_id)
