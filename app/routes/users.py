from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.user import UserCreate, UserOut, UserUpdate
from app.services.expiry_service import sweep_expired_redemptions
from app.services.ledger_service import balance_snapshot
from app.services.transactional import run_in_transaction
from app.services.user_service import create_user, get_user, get_user_stats, update_user


router = APIRouter(prefix="/users", tags=["users"])


@router.post("")
def register_user(payload: UserCreate, db: Session = Depends(get_db)):
    user, created = create_user(db, payload.email, payload.name)
    body = {
        "message": ("User created successfully" if created else "User already exists"),
        "user": UserOut.model_validate(user).model_dump(),
    }
    return JSONResponse(status_code=(201 if created else 200), content=jsonable_encoder(body))


@router.get("/{user_id}", response_model=UserOut)
def read_user(user_id: UUID, db: Session = Depends(get_db)):
    return get_user(db, user_id)


@router.put("/{user_id}", response_model=UserOut)
def edit_user(user_id: UUID, payload: UserUpdate, db: Session = Depends(get_db)):
    return update_user(db, user_id, payload.name)


@router.get("/{user_id}/stats")
def read_user_stats(user_id: UUID, db: Session = Depends(get_db)):
    return get_user_stats(db, user_id)


@router.get("/{user_id}/balance")
def read_user_balance(user_id: UUID, db: Session = Depends(get_db)):
    get_user(db, user_id)

    run_in_transaction(
        db,
        lambda: sweep_expired_redemptions(db, user_id=user_id),
        name="sweep_expired_redemptions",
    )

    earned, reserved = balance_snapshot(db, user_id)
    return {
        "userId": str(user_id),
        "totalPoints": earned,
        "reservedPoints": reserved,
        "availablePoints": earned - reserved,
    }
