class RewardsError(Exception):
    """Base class for errors surfaced to API callers.

    ``status_code`` is the HTTP status the API answers with; keyword context
    is rendered next to the message so clients can act on it.
    """

    status_code = 400

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self) -> dict:
        return {"error": self.message, **self.context}


# ------------------------------------------------------------
# NOT FOUND
# ------------------------------------------------------------
class NotFoundError(RewardsError):
    status_code = 404


class UserNotFound(NotFoundError):
    def __init__(self, user_id=None):
        super().__init__("User not found")
        self.user_id = user_id


class RewardNotFound(NotFoundError):
    def __init__(self, reward_id=None):
        super().__init__("Reward not found")
        self.reward_id = reward_id


class PartnerNotFound(NotFoundError):
    def __init__(self, partner_id=None):
        super().__init__("Partner not found")
        self.partner_id = partner_id


class RideNotFound(NotFoundError):
    def __init__(self, ride_id=None):
        super().__init__("Ride not found")
        self.ride_id = ride_id


# ------------------------------------------------------------
# VALIDATION / BUSINESS RULES
# ------------------------------------------------------------
class ValidationError(RewardsError):
    status_code = 400


class BusinessRuleViolation(RewardsError):
    status_code = 400


class InsufficientPoints(BusinessRuleViolation):
    def __init__(self, required: int, available: int):
        super().__init__("Insufficient points", required=required, available=available)
        self.required = required
        self.available = available


# ------------------------------------------------------------
# INFRASTRUCTURE
# ------------------------------------------------------------
class ConcurrencyConflict(RewardsError):
    status_code = 409

    def __init__(self, operation: str, attempts: int):
        super().__init__("Request conflicted with a concurrent update, please retry")
        self.operation = operation
        self.attempts = attempts


class StorageFailure(RewardsError):
    status_code = 500

    def __init__(self):
        super().__init__("Internal server error")
