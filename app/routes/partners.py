from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.schemas.partner import PartnerCreate, PartnerListItem, PartnerOut
from app.schemas.reward import RewardOut
from app.services.catalog_service import create_partner, get_partner, list_partner_rewards, list_partners


router = APIRouter(prefix="/partners", tags=["partners"])


@router.get("", response_model=list[PartnerListItem])
def read_partners(
    category: str | None = None,
    lat: float | None = None,
    lng: float | None = None,
    radius: float | None = None,
    db: Session = Depends(get_db),
):
    items = list_partners(db, category=category, lat=lat, lng=lng, radius_km=radius)
    return [
        PartnerListItem(
            **PartnerOut.model_validate(item["partner"]).model_dump(),
            distance_km=item["distance_km"],
            reward_count=item["reward_count"],
        )
        for item in items
    ]


@router.post("", response_model=PartnerOut, status_code=201)
def add_partner(payload: PartnerCreate, db: Session = Depends(get_db)):
    return create_partner(db, payload)


@router.get("/{partner_id}")
def read_partner(partner_id: UUID, db: Session = Depends(get_db)):
    partner = get_partner(db, partner_id)
    return {
        "partner": PartnerOut.model_validate(partner),
        "rewards": [RewardOut.model_validate(r) for r in list_partner_rewards(db, partner_id)],
    }


@router.get("/{partner_id}/rewards")
def read_partner_rewards(partner_id: UUID, db: Session = Depends(get_db)):
    partner = get_partner(db, partner_id, active_only=False)
    return {
        "partner": {"id": str(partner.id), "name": partner.name},
        "rewards": [RewardOut.model_validate(r) for r in list_partner_rewards(db, partner_id)],
    }
