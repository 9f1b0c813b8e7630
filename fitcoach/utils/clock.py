# fitcoach/utils/clock.py
from datetime import date, datetime, timedelta, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def week_start(moment: datetime) -> date:
    # Monday is the week key
    day = moment.date()
    return day - timedelta(days=day.weekday())
