"""
Unit tests for ride sync and point earning

Tests cover:
1. Points and CO2 formulas
2. Crediting a user's totals for new workouts
3. Duplicate workouts, across syncs and within one batch
4. Validation and missing users
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from app.models.ride import Ride
from app.schemas.ride import RideIn
from app.services.errors import RideNotFound, UserNotFound, ValidationError
from app.services.ledger_service import available_balance
from app.services.ride_service import (
    calculate_co2_saved,
    calculate_points,
    get_ride,
    list_user_rides,
    sync_rides,
)

from factories import NOW, add_user


def _ride(workout_id, *, km=5.5, minutes=20.25, start=NOW):
    return RideIn(
        healthkitUuid=workout_id,
        startDate=start,
        endDate=start + timedelta(minutes=minutes),
        distanceKm=km,
        durationMinutes=minutes,
        caloriesBurned=180,
    )


class TestFormulas:
    def test_points_are_floored_per_component(self):
        # 550 for distance, 202 for time
        assert calculate_points(5.5, 20.25) == 752

    def test_zero_length_ride_earns_nothing(self):
        assert calculate_points(0, 0) == 0

    def test_co2_saved(self):
        assert calculate_co2_saved(5.5) == pytest.approx(825.0)


class TestSyncRides:
    def test_new_rides_credit_user_totals(self, db):
        user = add_user(db)

        result = sync_rides(db, user.id, [_ride("HK-1"), _ride("HK-2", km=2.0, minutes=8)])

        assert result.rides_processed == 2
        assert result.new_rides == 2
        assert result.points_earned == 752 + 280
        assert result.user.total_points == 1032
        assert result.user.total_distance_km == pytest.approx(7.5)
        assert result.user.total_co2_saved_g == pytest.approx(1125.0)
        assert [r["status"] for r in result.results] == ["synced", "synced"]
        assert available_balance(db, user.id) == 1032

    def test_resync_does_not_double_credit(self, db):
        user = add_user(db)
        sync_rides(db, user.id, [_ride("HK-1")])

        again = sync_rides(db, user.id, [_ride("HK-1"), _ride("HK-3", km=1.0, minutes=5)])

        assert again.new_rides == 1
        assert again.points_earned == 150
        assert again.results[0] == {"healthkitUuid": "HK-1", "status": "already_synced"}
        assert again.user.total_points == 752 + 150
        assert db.query(Ride).count() == 2

    def test_duplicate_within_batch_counts_once(self, db):
        user = add_user(db)

        result = sync_rides(db, user.id, [_ride("HK-1"), _ride("HK-1")])

        assert result.new_rides == 1
        assert result.user.total_points == 752
        assert result.results[1]["status"] == "already_synced"

    def test_empty_batch_is_a_no_op(self, db):
        user = add_user(db, points=40)

        result = sync_rides(db, user.id, [])

        assert result.new_rides == 0
        assert result.user.total_points == 40

    def test_unknown_user(self, db):
        with pytest.raises(UserNotFound):
            sync_rides(db, uuid4(), [_ride("HK-1")])

        assert db.query(Ride).count() == 0

    def test_end_before_start_stores_nothing(self, db):
        user = add_user(db)
        backwards = RideIn(
            healthkitUuid="HK-BAD",
            startDate=NOW,
            endDate=NOW - timedelta(minutes=1),
            distanceKm=1.0,
            durationMinutes=1,
        )

        with pytest.raises(ValidationError) as exc:
            sync_rides(db, user.id, [_ride("HK-1"), backwards])

        assert exc.value.context["healthkitUuid"] == "HK-BAD"
        assert db.query(Ride).count() == 0
        db.refresh(user)
        assert user.total_points == 0


class TestRideHistory:
    def test_list_newest_first_with_total(self, db):
        user = add_user(db)
        sync_rides(
            db,
            user.id,
            [
                _ride("HK-OLD", start=NOW - timedelta(days=2)),
                _ride("HK-NEW", start=NOW),
                _ride("HK-MID", start=NOW - timedelta(days=1)),
            ],
        )

        rides, total, limit, offset = list_user_rides(db, user.id, limit=2)

        assert [r.healthkit_uuid for r in rides] == ["HK-NEW", "HK-MID"]
        assert (total, limit, offset) == (3, 2, 0)

    def test_get_ride(self, db):
        user = add_user(db)
        sync_rides(db, user.id, [_ride("HK-1")])
        stored = db.query(Ride).one()

        assert get_ride(db, stored.id).points_earned == 752

    def test_get_unknown_ride(self, db):
        with pytest.raises(RideNotFound):
            get_ride(db, uuid4())

    def test_list_for_unknown_user(self, db):
        with pytest.raises(UserNotFound):
            list_user_rides(db, uuid4())
