import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.models.redemption import Redemption, RedemptionStatus
from app.services.clock import utcnow


logger = logging.getLogger(__name__)


# ============================================================
# SWEEP EXPIRED VOUCHERS
# ============================================================
def sweep_expired_redemptions(
    db: Session,
    *,
    now: datetime | None = None,
    user_id: UUID | None = None,
) -> int:
    """Move pending vouchers past their expiry to expired.

    Only narrows the window in which a stale voucher still reserves points;
    settlement checks expiry on its own. The caller owns the transaction.
    """
    now = now or utcnow()

    q = (
        db.query(Redemption)
        .filter(Redemption.status == RedemptionStatus.PENDING.value)
        .filter(Redemption.expires_at < now)
    )
    if user_id is not None:
        q = q.filter(Redemption.user_id == user_id)

    expired = q.update({Redemption.status: RedemptionStatus.EXPIRED.value}, synchronize_session=False)

    if expired:
        logger.info(
            "expired stale vouchers",
            extra={
                "count": expired,
                "user_id": (str(user_id) if user_id else None),
                "now": now.isoformat(),
            },
        )

    return expired
