from datetime import datetime

from app.models.partner import Partner
from app.models.reward import Reward
from app.models.user import User


NOW = datetime(2026, 3, 14, 9, 30, 0)


def add_user(db, *, points=0, email="rider@example.com", name="Rider"):
    user = User(email=email, name=name, total_points=points)
    db.add(user)
    db.commit()
    return user


def add_partner(db, *, name="Bean & Brew", active=True, latitude=None, longitude=None, category="cafe"):
    partner = Partner(name=name, active=active, latitude=latitude, longitude=longitude, category=category)
    db.add(partner)
    db.commit()
    return partner


def add_reward(db, partner, *, cost=750, name="Pastry of the Day", active=True):
    reward = Reward(partner_id=partner.id, name=name, points_cost=cost, active=active)
    db.add(reward)
    db.commit()
    return reward
