"""Scheduling business rules shared by the availability engine and the policy calculator"""

from dataclasses import dataclass, field
from typing import Optional

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

SUNDAY = 0
SATURDAY = 6


def _default_business_hours() -> dict[int, Optional[tuple[int, int]]]:
    # Opening hours in minutes since midnight (UTC), keyed by day of week (0 = Sunday)
    weekday = (9 * 60, 17 * 60)
    return {
        SUNDAY: None,
        1: weekday,
        2: weekday,
        3: weekday,
        4: weekday,
        5: weekday,
        SATURDAY: (10 * 60, 14 * 60),
    }


@dataclass(frozen=True)
class SchedulingRules:
    MIN_ADVANCE_HOURS: int = 24
    MAX_ADVANCE_DAYS: int = 30
    BUFFER_MINUTES: int = 15
    SLOT_GRANULARITY_MINUTES: int = 15
    DEFAULT_SERVICE_DURATION: int = 60
    MIN_DURATION: int = 15
    MAX_DURATION: int = 480
    # Policy tiers (hours before the appointment)
    FREE_CHANGE_HOURS: int = 48
    LATE_CHANGE_HOURS: int = 24
    LATE_CHANGE_PERCENTAGE: int = 50
    business_hours: dict = field(default_factory=_default_business_hours)


DEFAULT_RULES = SchedulingRules()
