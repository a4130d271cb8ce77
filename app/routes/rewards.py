from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.redemption import RedemptionCreate, RedemptionOut, RedemptionVerify
from app.schemas.reward import RewardCreate, RewardOut, RewardUpdate
from app.services.catalog_service import create_reward, get_reward, list_rewards, update_reward
from app.services.redemption_service import (
    SettlementOutcome,
    issue_redemption,
    list_user_redemptions,
    verify_and_settle,
)


router = APIRouter(prefix="/rewards", tags=["rewards"])


SETTLEMENT_RESPONSES = {
    SettlementOutcome.SUCCESS: (200, "Redemption successful"),
    SettlementOutcome.INVALID_CODE: (404, "Invalid QR code"),
    SettlementOutcome.WRONG_LOCATION: (403, "QR code not valid at this location"),
    SettlementOutcome.ALREADY_USED: (400, "QR code already used"),
    SettlementOutcome.EXPIRED: (400, "QR code has expired"),
}


@router.get("", response_model=list[RewardOut])
def read_rewards(
    max_points: int | None = Query(default=None, alias="maxPoints"),
    category: str | None = None,
    db: Session = Depends(get_db),
):
    return list_rewards(db, max_points=max_points, category=category)


@router.post("", response_model=RewardOut, status_code=201)
def add_reward(payload: RewardCreate, db: Session = Depends(get_db)):
    return create_reward(db, payload)


@router.post("/redeem", status_code=201)
def redeem_reward(payload: RedemptionCreate, db: Session = Depends(get_db)):
    issued = issue_redemption(db, payload.userId, payload.rewardId)
    redemption, reward, partner = issued.redemption, issued.reward, issued.partner

    return {
        "message": "Reward redeemed successfully",
        "redemption": {
            "id": str(redemption.id),
            "qrCode": redemption.code,
            "status": redemption.status,
            "expiresAt": redemption.expires_at,
            "reward": {
                "id": str(reward.id),
                "name": reward.name,
                "description": reward.description,
                "pointsCost": redemption.points_spent,
            },
            "partner": {
                "id": str(partner.id),
                "name": partner.name,
            },
        },
        "remainingPoints": issued.remaining_points,
    }


@router.post("/verify")
def verify_redemption(payload: RedemptionVerify, db: Session = Depends(get_db)):
    result = verify_and_settle(db, payload.qrCode, payload.partnerId)
    status_code, message = SETTLEMENT_RESPONSES[result.outcome]

    body = {
        "valid": result.valid,
        "reason": result.outcome.value,
        "message": message,
    }
    if result.outcome == SettlementOutcome.SUCCESS:
        body["redemption"] = {
            "id": str(result.redemption_id),
            "rewardName": result.reward_name,
            "pointsSpent": result.points_spent,
            "userName": result.user_name,
            "redeemedAt": result.redeemed_at,
        }
    else:
        body["error"] = message
    if result.outcome == SettlementOutcome.ALREADY_USED:
        body["usedAt"] = result.redeemed_at
    if result.outcome == SettlementOutcome.EXPIRED:
        body["expiresAt"] = result.expires_at

    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


@router.get("/redemptions/{user_id}")
def read_user_redemptions(
    user_id: UUID,
    status: str | None = None,
    limit: int = 100,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    rows, total, limit, offset = list_user_redemptions(db, user_id, status=status, limit=limit, offset=offset)
    return {
        "redemptions": [
            RedemptionOut(
                **RedemptionOut.model_validate(redemption).model_dump(
                    exclude={"reward_name", "reward_description", "partner_name"}
                ),
                reward_name=reward_name,
                reward_description=reward_description,
                partner_name=partner_name,
            )
            for redemption, reward_name, reward_description, partner_name in rows
        ],
        "pagination": {"total": total, "limit": limit, "offset": offset},
    }


@router.get("/{reward_id}", response_model=RewardOut)
def read_reward(reward_id: UUID, db: Session = Depends(get_db)):
    return get_reward(db, reward_id)


@router.patch("/{reward_id}", response_model=RewardOut)
def edit_reward(reward_id: UUID, payload: RewardUpdate, db: Session = Depends(get_db)):
    return update_reward(db, reward_id, payload)
