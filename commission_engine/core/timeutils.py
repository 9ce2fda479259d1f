from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the naive DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def default_period(start: date = None, days: int = 30):
    start = start or utcnow().date()
    return start, start + timedelta(days=days)


def to_naive_utc(value: datetime) -> datetime:
    """Offset-aware input is shifted to UTC before dropping tzinfo; naive values are taken as UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
