"""Time sources for the scheduling engines"""

from datetime import datetime, timedelta, timezone


class Clock:
    """Wall clock returning naive UTC datetimes, matching how instants are stored"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)


class FixedClock(Clock):
    """Clock pinned to a given instant; used by tests and by replayed calculations"""

    def __init__(self, current: datetime):
        self.current = to_naive_utc(current)

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current = self.current + timedelta(**delta)


def to_naive_utc(value: datetime) -> datetime:
    """Normalize an aware datetime to naive UTC; naive values are assumed to already be UTC"""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 string (accepting a trailing Z) into naive UTC"""
    return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def get_clock() -> Clock:
    """Dependency injection for the request clock"""
    return Clock()
