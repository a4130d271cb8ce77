from datetime import datetime, timezone


def utcnow() -> datetime:
    # Naive UTC to match the TIMESTAMP columns.
    return datetime.now(timezone.utc).replace(tzinfo=None)
