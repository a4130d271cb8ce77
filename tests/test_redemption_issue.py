"""
Unit tests for voucher issuance

Tests cover:
1. Reservation of points and the pending voucher it creates
2. Insufficient points and lookup failures
3. Price snapshots and code generation
4. Release of stale reservations before a new issuance
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from app.models.redemption import Redemption, RedemptionStatus
from app.services import redemption_service
from app.services.errors import InsufficientPoints, RewardNotFound, UserNotFound
from app.services.ledger_service import available_balance
from app.services.redemption_service import CODE_PREFIX, issue_redemption

from factories import NOW, add_partner, add_reward, add_user


class TestIssueRedemption:
    def test_issue_reserves_points_and_creates_pending_voucher(self, db):
        user = add_user(db, points=1000)
        reward = add_reward(db, add_partner(db), cost=750)

        issued = issue_redemption(db, user.id, reward.id, now=NOW)

        voucher = issued.redemption
        assert voucher.status == RedemptionStatus.PENDING.value
        assert voucher.points_spent == 750
        assert voucher.partner_id == reward.partner_id
        assert voucher.expires_at == NOW + timedelta(minutes=15)
        assert voucher.redeemed_at is None
        assert issued.remaining_points == 250
        assert issued.reward.id == reward.id
        assert issued.partner.name == "Bean & Brew"
        assert available_balance(db, user.id) == 250

    def test_exact_balance_then_insufficient_points(self, db):
        user = add_user(db, points=500)
        partner = add_partner(db)
        espresso = add_reward(db, partner, cost=500, name="Free Espresso")
        cookie = add_reward(db, partner, cost=50, name="Cookie")

        issued = issue_redemption(db, user.id, espresso.id, now=NOW)
        assert issued.remaining_points == 0

        with pytest.raises(InsufficientPoints) as exc:
            issue_redemption(db, user.id, cookie.id, now=NOW)

        assert exc.value.required == 50
        assert exc.value.available == 0
        assert exc.value.to_dict() == {"error": "Insufficient points", "required": 50, "available": 0}
        assert db.query(Redemption).count() == 1

    def test_balance_never_goes_negative(self, db):
        user = add_user(db, points=1000)
        reward = add_reward(db, add_partner(db), cost=300)

        issued = 0
        for minute in range(6):
            try:
                issue_redemption(db, user.id, reward.id, now=NOW + timedelta(minutes=minute))
                issued += 1
            except InsufficientPoints:
                pass
            assert available_balance(db, user.id) >= 0

        assert issued == 3
        assert available_balance(db, user.id) == 100

    def test_unknown_user(self, db):
        reward = add_reward(db, add_partner(db))

        with pytest.raises(UserNotFound):
            issue_redemption(db, uuid4(), reward.id, now=NOW)

    def test_unknown_reward(self, db):
        user = add_user(db, points=1000)

        with pytest.raises(RewardNotFound):
            issue_redemption(db, user.id, uuid4(), now=NOW)

    def test_inactive_reward_is_not_redeemable(self, db):
        user = add_user(db, points=1000)
        reward = add_reward(db, add_partner(db), active=False)

        with pytest.raises(RewardNotFound):
            issue_redemption(db, user.id, reward.id, now=NOW)

    def test_reward_of_inactive_partner_is_not_redeemable(self, db):
        user = add_user(db, points=1000)
        reward = add_reward(db, add_partner(db, active=False))

        with pytest.raises(RewardNotFound):
            issue_redemption(db, user.id, reward.id, now=NOW)

    def test_failed_issuance_does_not_bump_ledger(self, db):
        user = add_user(db, points=10)
        reward = add_reward(db, add_partner(db), cost=750)

        with pytest.raises(InsufficientPoints):
            issue_redemption(db, user.id, reward.id, now=NOW)

        db.refresh(user)
        assert user.ledger_version == 0


class TestSnapshotsAndCodes:
    def test_price_change_does_not_touch_outstanding_vouchers(self, db):
        user = add_user(db, points=1000)
        reward = add_reward(db, add_partner(db), cost=600)

        issued = issue_redemption(db, user.id, reward.id, now=NOW)

        reward.points_cost = 900
        db.commit()

        db.refresh(issued.redemption)
        assert issued.redemption.points_spent == 600
        assert available_balance(db, user.id) == 400

    def test_codes_are_unique_and_prefixed(self, db):
        user = add_user(db, points=10_000)
        reward = add_reward(db, add_partner(db), cost=100)

        codes = {issue_redemption(db, user.id, reward.id, now=NOW).redemption.code for _ in range(20)}

        assert len(codes) == 20
        for code in codes:
            assert code.startswith(CODE_PREFIX)
            assert len(code) == len(CODE_PREFIX) + 16

    def test_code_collision_is_retried(self, db, monkeypatch):
        user = add_user(db, points=1000)
        reward = add_reward(db, add_partner(db), cost=100)

        codes = iter(["SYKLE-COLLIDE", "SYKLE-COLLIDE", "SYKLE-FRESH"])
        monkeypatch.setattr(redemption_service, "generate_redemption_code", lambda: next(codes))

        first = issue_redemption(db, user.id, reward.id, now=NOW)
        second = issue_redemption(db, user.id, reward.id, now=NOW)

        assert first.redemption.code == "SYKLE-COLLIDE"
        assert second.redemption.code == "SYKLE-FRESH"
        assert db.query(Redemption).count() == 2
        assert available_balance(db, user.id) == 800


class TestStaleReservations:
    def test_expired_voucher_is_released_before_next_issuance(self, db):
        user = add_user(db, points=500)
        reward = add_reward(db, add_partner(db), cost=500)

        first = issue_redemption(db, user.id, reward.id, now=NOW)
        second = issue_redemption(db, user.id, reward.id, now=NOW + timedelta(minutes=16))

        db.refresh(first.redemption)
        assert first.redemption.status == RedemptionStatus.EXPIRED.value
        assert second.redemption.status == RedemptionStatus.PENDING.value
        assert second.remaining_points == 0

    def test_unexpired_voucher_still_reserves(self, db):
        user = add_user(db, points=500)
        reward = add_reward(db, add_partner(db), cost=500)

        issue_redemption(db, user.id, reward.id, now=NOW)

        with pytest.raises(InsufficientPoints):
            issue_redemption(db, user.id, reward.id, now=NOW + timedelta(minutes=14))
