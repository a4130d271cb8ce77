import logging
import math
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.partner import Partner
from app.models.reward import Reward
from app.services.errors import PartnerNotFound, RewardNotFound, ValidationError


logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371
DEFAULT_RADIUS_KM = 10


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


# ============================================================
# PARTNERS
# ============================================================
def list_partners(
    db: Session,
    *,
    category: str | None = None,
    lat: float | None = None,
    lng: float | None = None,
    radius_km: float | None = None,
) -> list[dict]:
    q = db.query(Partner).filter(Partner.active.is_(True))
    if category:
        q = q.filter(Partner.category == category)
    partners = q.order_by(Partner.name.asc()).all()

    reward_counts = dict(
        db.query(Reward.partner_id, func.count(Reward.id))
        .filter(Reward.active.is_(True))
        .group_by(Reward.partner_id)
        .all()
    )

    items = []
    for partner in partners:
        items.append(
            {
                "partner": partner,
                "distance_km": None,
                "reward_count": int(reward_counts.get(partner.id, 0)),
            }
        )

    if lat is not None and lng is not None:
        max_radius = radius_km if radius_km is not None else DEFAULT_RADIUS_KM
        located = []
        for item in items:
            partner = item["partner"]
            if partner.latitude is not None and partner.longitude is not None:
                distance = haversine_km(lat, lng, partner.latitude, partner.longitude)
                item["distance_km"] = round(distance, 1)
                if item["distance_km"] > max_radius:
                    continue
            located.append(item)

        # partners without coordinates go last
        located.sort(key=lambda i: (i["distance_km"] is None, i["distance_km"] or 0))
        items = located

    return items


def get_partner(db: Session, partner_id: UUID, *, active_only: bool = True) -> Partner:
    q = db.query(Partner).filter(Partner.id == partner_id)
    if active_only:
        q = q.filter(Partner.active.is_(True))
    partner = q.first()
    if not partner:
        raise PartnerNotFound(partner_id)
    return partner


def list_partner_rewards(db: Session, partner_id: UUID) -> list[Reward]:
    return (
        db.query(Reward)
        .filter(Reward.partner_id == partner_id, Reward.active.is_(True))
        .order_by(Reward.points_cost.asc())
        .all()
    )


def create_partner(db: Session, payload) -> Partner:
    partner = Partner(
        name=payload.name,
        description=payload.description,
        address=payload.address,
        latitude=payload.latitude,
        longitude=payload.longitude,
        image_url=payload.image_url,
        category=payload.category,
        active=payload.active,
    )
    db.add(partner)
    db.commit()
    db.refresh(partner)
    return partner


# ============================================================
# REWARDS
# ============================================================
def list_rewards(db: Session, *, max_points: int | None = None, category: str | None = None) -> list[Reward]:
    q = (
        db.query(Reward)
        .join(Partner, Reward.partner_id == Partner.id)
        .filter(Reward.active.is_(True), Partner.active.is_(True))
    )
    if max_points is not None:
        q = q.filter(Reward.points_cost <= max_points)
    if category:
        q = q.filter(Partner.category == category)
    return q.order_by(Reward.points_cost.asc()).all()


def get_reward(db: Session, reward_id: UUID, *, active_only: bool = True) -> Reward:
    q = db.query(Reward).filter(Reward.id == reward_id)
    if active_only:
        q = q.filter(Reward.active.is_(True))
    reward = q.first()
    if not reward:
        raise RewardNotFound(reward_id)
    return reward


def create_reward(db: Session, payload) -> Reward:
    get_partner(db, payload.partner_id, active_only=False)

    reward = Reward(
        partner_id=payload.partner_id,
        name=payload.name,
        description=payload.description,
        points_cost=payload.points_cost,
        image_url=payload.image_url,
        active=payload.active,
    )
    db.add(reward)
    db.commit()
    db.refresh(reward)
    return reward


def update_reward(db: Session, reward_id: UUID, payload) -> Reward:
    """Patch a catalog entry. Outstanding vouchers keep their own points_spent."""
    reward = get_reward(db, reward_id, active_only=False)

    data = payload.model_dump(exclude_unset=True)
    for k in ("partner_id", "name", "active"):
        if k in data and data[k] is None:
            raise ValidationError(f"{k} cannot be null")
    if "points_cost" in data and (data["points_cost"] is None or data["points_cost"] <= 0):
        raise ValidationError("points_cost must be a positive integer")
    if "partner_id" in data:
        get_partner(db, data["partner_id"], active_only=False)

    for k, v in data.items():
        setattr(reward, k, v)

    db.commit()
    db.refresh(reward)

    logger.info("reward updated", extra={"reward_id": str(reward.id), "fields": sorted(data)})
    return reward


# ============================================================
# SAMPLE DATA
# ============================================================
SAMPLE_PARTNERS = [
    ("Signorelli Pasticceria", "Authentic Italian pastries and coffee", "7 Victory Parade, London E20 1AW", 51.5387, -0.0166, "cafe"),
    ("Bean & Brew", "Specialty coffee roasters", "23 High Street, London E15 2QB", 51.5432, -0.0211, "cafe"),
    ("Green Pedal Cafe", "Cyclist-friendly cafe with bike parking", "45 Cycle Lane, London E3 4RT", 51.5301, -0.0298, "cafe"),
    ("OA Coffee", "Organic artisan coffee", "12 Market Square, London E8 1HN", 51.5445, -0.0556, "cafe"),
]

# (partner index, name, description, points cost)
SAMPLE_REWARDS = [
    (0, "Free Espresso", "One free espresso shot", 500),
    (0, "Pastry of the Day", "Any pastry from the display", 750),
    (1, "Free Coffee", "Any regular hot drink", 600),
    (1, "Coffee & Cake Combo", "Regular coffee plus cake slice", 1200),
    (2, "Cyclist Breakfast", "Full breakfast for cyclists", 2000),
    (2, "Energy Smoothie", "Post-ride protein smoothie", 800),
    (3, "Organic Latte", "Large organic latte", 700),
    (3, "Lunch Deal", "Sandwich + drink combo", 1500),
]


def seed_sample_catalog(db: Session) -> int:
    if db.query(Partner.id).first():
        return 0

    partners = [
        Partner(name=name, description=description, address=address, latitude=lat, longitude=lng, category=category)
        for name, description, address, lat, lng, category in SAMPLE_PARTNERS
    ]
    db.add_all(partners)
    db.flush()

    db.add_all(
        [
            Reward(partner_id=partners[idx].id, name=name, description=description, points_cost=cost)
            for idx, name, description, cost in SAMPLE_REWARDS
        ]
    )
    db.commit()

    logger.info("sample catalog seeded", extra={"partners": len(SAMPLE_PARTNERS), "rewards": len(SAMPLE_REWARDS)})
    return len(SAMPLE_REWARDS)
