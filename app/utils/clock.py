from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC; DateTime kolonları timezone'suz tutuluyor."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
