from __future__ import annotations

import enum
import logging
import os
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.partner import Partner
from app.models.redemption import Redemption, RedemptionStatus
from app.models.reward import Reward
from app.models.user import User
from app.services.clock import utcnow
from app.services.errors import InsufficientPoints, RewardNotFound, UserNotFound, ValidationError
from app.services.expiry_service import sweep_expired_redemptions
from app.services.ledger_service import available_balance, lock_user_ledger
from app.services.transactional import run_in_transaction


logger = logging.getLogger(__name__)

REDEMPTION_TTL = timedelta(minutes=int(os.getenv("REDEMPTION_TTL_MINUTES") or "15"))

CODE_PREFIX = "SYKLE-"


def generate_redemption_code() -> str:
    return f"{CODE_PREFIX}{secrets.token_hex(8).upper()}"


@dataclass
class IssuedRedemption:
    redemption: Redemption
    reward: Reward
    partner: Partner
    remaining_points: int


class SettlementOutcome(str, enum.Enum):
    SUCCESS = "SUCCESS"
    INVALID_CODE = "INVALID_CODE"
    WRONG_LOCATION = "WRONG_LOCATION"
    ALREADY_USED = "ALREADY_USED"
    EXPIRED = "EXPIRED"


@dataclass
class SettlementResult:
    outcome: SettlementOutcome
    redemption_id: UUID | None = None
    reward_name: str | None = None
    points_spent: int | None = None
    user_name: str | None = None
    redeemed_at: datetime | None = None
    expires_at: datetime | None = None

    @property
    def valid(self) -> bool:
        return self.outcome == SettlementOutcome.SUCCESS


# ============================================================
# ISSUE (check-and-reserve)
# ============================================================
def _get_redeemable_reward(db: Session, reward_id: UUID) -> Reward:
    reward = (
        db.query(Reward)
        .join(Partner, Reward.partner_id == Partner.id)
        .filter(
            Reward.id == reward_id,
            Reward.active.is_(True),
            Partner.active.is_(True),
        )
        .first()
    )
    if not reward:
        raise RewardNotFound(reward_id)
    return reward


def issue_redemption(
    db: Session,
    user_id: UUID,
    reward_id: UUID,
    *,
    now: datetime | None = None,
) -> IssuedRedemption:
    now = now or utcnow()

    def _reserve() -> IssuedRedemption:
        # lock first: every read below happens after concurrent issuances for
        # this user have committed or rolled back
        lock_user_ledger(db, user_id)

        reward = _get_redeemable_reward(db, reward_id)

        sweep_expired_redemptions(db, now=now, user_id=user_id)

        available = available_balance(db, user_id)
        if available < reward.points_cost:
            raise InsufficientPoints(required=reward.points_cost, available=available)

        redemption = Redemption(
            user_id=user_id,
            reward_id=reward.id,
            partner_id=reward.partner_id,
            points_spent=reward.points_cost,
            code=generate_redemption_code(),
            status=RedemptionStatus.PENDING.value,
            expires_at=now + REDEMPTION_TTL,
            created_at=now,
        )
        db.add(redemption)
        db.flush()

        return IssuedRedemption(
            redemption=redemption,
            reward=reward,
            partner=reward.partner,
            remaining_points=available - reward.points_cost,
        )

    issued = run_in_transaction(db, _reserve, name="issue_redemption")

    logger.info(
        "voucher issued",
        extra={
            "redemption_id": str(issued.redemption.id),
            "user_id": str(user_id),
            "reward_id": str(reward_id),
            "points_spent": issued.redemption.points_spent,
            "expires_at": issued.redemption.expires_at.isoformat(),
        },
    )
    return issued


# ============================================================
# VERIFY & SETTLE
# ============================================================
def _compare_and_set_status(
    db: Session,
    redemption_id: UUID,
    new_status: RedemptionStatus,
    *,
    values: dict | None = None,
    not_expired_at: datetime | None = None,
) -> bool:
    q = (
        db.query(Redemption)
        .filter(Redemption.id == redemption_id)
        .filter(Redemption.status == RedemptionStatus.PENDING.value)
    )
    if not_expired_at is not None:
        q = q.filter(Redemption.expires_at >= not_expired_at)

    changes = {Redemption.status: new_status.value}
    changes.update(values or {})

    return q.update(changes, synchronize_session=False) == 1


def _display_name(user: User | None) -> str | None:
    if user is None:
        return None
    return user.name or user.email


def _classify_settled(redemption: Redemption) -> SettlementResult:
    if redemption.status == RedemptionStatus.COMPLETED.value:
        return SettlementResult(
            outcome=SettlementOutcome.ALREADY_USED,
            redemption_id=redemption.id,
            redeemed_at=redemption.redeemed_at,
        )
    return SettlementResult(
        outcome=SettlementOutcome.EXPIRED,
        redemption_id=redemption.id,
        expires_at=redemption.expires_at,
    )


def verify_and_settle(
    db: Session,
    code: str,
    partner_id: UUID,
    *,
    now: datetime | None = None,
) -> SettlementResult:
    """Validate a scanned code and settle it.

    Checks run in order and the first failure wins: unknown code, wrong
    partner, already completed, expired. A pending, unexpired voucher moves to
    completed through a compare-and-set on its pending status, so of two
    simultaneous scans exactly one succeeds and the other reports it used.
    """
    if not code or not code.strip():
        raise ValidationError("qrCode is required")
    if not isinstance(partner_id, UUID):
        try:
            partner_id = UUID(str(partner_id))
        except ValueError:
            raise ValidationError("partnerId is not a valid id")

    now = now or utcnow()
    code = code.strip()

    def _settle() -> SettlementResult:
        redemption = db.query(Redemption).filter(Redemption.code == code).first()
        if not redemption:
            return SettlementResult(outcome=SettlementOutcome.INVALID_CODE)

        if redemption.partner_id != partner_id:
            return SettlementResult(outcome=SettlementOutcome.WRONG_LOCATION, redemption_id=redemption.id)

        if redemption.status == RedemptionStatus.COMPLETED.value:
            return _classify_settled(redemption)

        if redemption.status == RedemptionStatus.EXPIRED.value or now > redemption.expires_at:
            if redemption.status == RedemptionStatus.PENDING.value:
                if not _compare_and_set_status(db, redemption.id, RedemptionStatus.EXPIRED):
                    # settled by a concurrent scan just before expiry
                    db.refresh(redemption)
                    return _classify_settled(redemption)
            return SettlementResult(
                outcome=SettlementOutcome.EXPIRED,
                redemption_id=redemption.id,
                expires_at=redemption.expires_at,
            )

        settled = _compare_and_set_status(
            db,
            redemption.id,
            RedemptionStatus.COMPLETED,
            values={Redemption.redeemed_at: now},
            not_expired_at=now,
        )
        if not settled:
            db.refresh(redemption)
            return _classify_settled(redemption)

        reward = db.get(Reward, redemption.reward_id)
        user = db.get(User, redemption.user_id)

        return SettlementResult(
            outcome=SettlementOutcome.SUCCESS,
            redemption_id=redemption.id,
            reward_name=(reward.name if reward else None),
            points_spent=redemption.points_spent,
            user_name=_display_name(user),
            redeemed_at=now,
            expires_at=redemption.expires_at,
        )

    result = run_in_transaction(db, _settle, name="verify_and_settle")

    logger.info(
        "voucher scanned",
        extra={
            "outcome": result.outcome.value,
            "redemption_id": (str(result.redemption_id) if result.redemption_id else None),
            "partner_id": str(partner_id),
        },
    )
    return result


# ============================================================
# HISTORY
# ============================================================
def list_user_redemptions(
    db: Session,
    user_id: UUID,
    *,
    status: str | None = None,
    limit: int = 100,
    offset: int = 0,
    now: datetime | None = None,
):
    """Sweep the user's stale vouchers, then list them newest first.

    Returns ``(rows, total, limit, offset)``; each row is
    ``(redemption, reward_name, reward_description, partner_name)``.
    """
    if status is not None and status not in {s.value for s in RedemptionStatus}:
        raise ValidationError(
            "Invalid status filter",
            allowed=[s.value for s in RedemptionStatus],
        )

    if not db.get(User, user_id):
        raise UserNotFound(user_id)

    run_in_transaction(
        db,
        lambda: sweep_expired_redemptions(db, now=now, user_id=user_id),
        name="sweep_expired_redemptions",
    )

    q = (
        db.query(Redemption, Reward.name, Reward.description, Partner.name)
        .join(Reward, Redemption.reward_id == Reward.id)
        .join(Partner, Redemption.partner_id == Partner.id)
        .filter(Redemption.user_id == user_id)
    )
    if status:
        q = q.filter(Redemption.status == status)

    limit = max(1, min(limit, 500))
    offset = max(0, offset)

    total = q.count()
    rows = (
        q.order_by(Redemption.created_at.desc(), Redemption.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    return rows, int(total or 0), limit, offset
