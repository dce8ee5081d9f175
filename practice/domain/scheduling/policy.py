"""
Reschedule and cancellation fee policy.

Both actions share the same distance-to-appointment tiers:

    remaining <= 0        past, nothing allowed
    remaining < 24h       reschedule blocked, cancel allowed with no refund
    24h <= remaining < 48h  reschedule for a 50% fee, cancel with a 50% refund
    remaining >= 48h      free reschedule, full refund

Tiers are decided on the exact remaining time; the rounded-up hour count
(`hours_until`) is only used for the time-remaining labels.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Optional, Union

from ...models import ACTIVE_APPOINTMENT_STATUSES
from .clock import Clock, parse_iso_datetime, to_naive_utc
from .rules import DEFAULT_RULES, SchedulingRules

CENTS = Decimal("0.01")

PAST_DUE_LABEL = "Past due"
PASSED_LABEL = "Appointment has passed"


class ReschedulePolicy(str, Enum):
    FREE = "free"
    FEE = "fee"
    NOT_ALLOWED = "not_allowed"


class CancellationPolicy(str, Enum):
    FREE = "free"
    HALF = "half"
    FULL = "full"


@dataclass(frozen=True)
class PolicyResult:
    can_act: bool
    policy: str
    amount: Decimal
    percentage: int
    message: str
    time_remaining: str

    def as_reschedule_dict(self) -> dict:
        return {
            "canReschedule": self.can_act,
            "policy": self.policy,
            "fees": float(self.amount),
            "feePercentage": self.percentage,
            "message": self.message,
            "timeRemaining": self.time_remaining,
        }

    def as_cancellation_dict(self) -> dict:
        return {
            "canCancel": self.can_act,
            "policy": self.policy,
            "refundAmount": float(self.amount),
            "refundPercentage": self.percentage,
            "message": self.message,
            "timeRemaining": self.time_remaining,
        }


def _as_datetime(value: Union[datetime, str]) -> datetime:
    if isinstance(value, str):
        return parse_iso_datetime(value)
    return to_naive_utc(value)


def money(value) -> Decimal:
    """Coerce a price to Decimal without going through float"""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def percentage_of(price, percentage: int) -> Decimal:
    return (money(price) * percentage / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)


def hours_until(appointment_time: Union[datetime, str], now: datetime) -> int:
    """Remaining whole hours, rounded up"""
    remaining = _as_datetime(appointment_time) - to_naive_utc(now)
    return math.ceil(remaining / timedelta(hours=1))


def exact_hours_until(appointment_time: Union[datetime, str], now: datetime) -> float:
    return (_as_datetime(appointment_time) - to_naive_utc(now)) / timedelta(hours=1)


def format_time_remaining(hours: int, past_label: str = PASSED_LABEL) -> str:
    if hours <= 0:
        return past_label
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} remaining"

    days, remaining_hours = divmod(hours, 24)
    day_label = f"{days} day{'s' if days != 1 else ''}"
    if remaining_hours == 0:
        return f"{day_label} remaining"
    return f"{day_label} and {remaining_hours} hour{'s' if remaining_hours != 1 else ''} remaining"


def calculate_rescheduling_policy(
    appointment_time: Union[datetime, str],
    service_price,
    now: datetime,
    rules: SchedulingRules = DEFAULT_RULES,
) -> PolicyResult:
    appointment_time = _as_datetime(appointment_time)
    now = to_naive_utc(now)
    remaining = appointment_time - now
    hours = hours_until(appointment_time, now)

    if remaining <= timedelta(0):
        return PolicyResult(
            can_act=False,
            policy=ReschedulePolicy.NOT_ALLOWED.value,
            amount=Decimal("0.00"),
            percentage=0,
            message="Past appointments cannot be rescheduled. Please contact our office if you need assistance.",
            time_remaining=PAST_DUE_LABEL,
        )

    time_remaining = format_time_remaining(hours, PAST_DUE_LABEL)

    if remaining >= timedelta(hours=rules.FREE_CHANGE_HOURS):
        return PolicyResult(
            can_act=True,
            policy=ReschedulePolicy.FREE.value,
            amount=Decimal("0.00"),
            percentage=0,
            message="Free rescheduling available. You can reschedule without any fees.",
            time_remaining=time_remaining,
        )

    if remaining >= timedelta(hours=rules.LATE_CHANGE_HOURS):
        fee = percentage_of(service_price, rules.LATE_CHANGE_PERCENTAGE)
        return PolicyResult(
            can_act=True,
            policy=ReschedulePolicy.FEE.value,
            amount=fee,
            percentage=rules.LATE_CHANGE_PERCENTAGE,
            message=(
                f"Rescheduling fee applies. You will be charged {rules.LATE_CHANGE_PERCENTAGE}% "
                f"of the session fee (${fee}) to reschedule."
            ),
            time_remaining=time_remaining,
        )

    return PolicyResult(
        can_act=False,
        policy=ReschedulePolicy.NOT_ALLOWED.value,
        amount=Decimal("0.00"),
        percentage=0,
        message=(
            f"Appointments cannot be rescheduled within {rules.LATE_CHANGE_HOURS} hours of the "
            "scheduled time. Please contact our office directly if you have an emergency."
        ),
        time_remaining=time_remaining,
    )


def calculate_cancellation_policy(
    appointment_time: Union[datetime, str],
    service_price,
    now: datetime,
    rules: SchedulingRules = DEFAULT_RULES,
) -> PolicyResult:
    appointment_time = _as_datetime(appointment_time)
    now = to_naive_utc(now)
    remaining = appointment_time - now
    time_remaining = format_time_remaining(hours_until(appointment_time, now), PASSED_LABEL)

    if remaining <= timedelta(0):
        return PolicyResult(
            can_act=False,
            policy=CancellationPolicy.FULL.value,
            amount=Decimal("0.00"),
            percentage=0,
            message="This appointment has already passed and cannot be cancelled.",
            time_remaining=time_remaining,
        )

    if remaining >= timedelta(hours=rules.FREE_CHANGE_HOURS):
        return PolicyResult(
            can_act=True,
            policy=CancellationPolicy.FREE.value,
            amount=percentage_of(service_price, 100),
            percentage=100,
            message="Free cancellation available. You will receive a full refund.",
            time_remaining=time_remaining,
        )

    if remaining >= timedelta(hours=rules.LATE_CHANGE_HOURS):
        return PolicyResult(
            can_act=True,
            policy=CancellationPolicy.HALF.value,
            amount=percentage_of(service_price, rules.LATE_CHANGE_PERCENTAGE),
            percentage=rules.LATE_CHANGE_PERCENTAGE,
            message=(
                f"Cancellation within {rules.FREE_CHANGE_HOURS} hours. You will receive a "
                f"{rules.LATE_CHANGE_PERCENTAGE}% refund due to our cancellation policy."
            ),
            time_remaining=time_remaining,
        )

    # Late cancellations are still accepted so the slot is released
    return PolicyResult(
        can_act=True,
        policy=CancellationPolicy.FULL.value,
        amount=Decimal("0.00"),
        percentage=0,
        message=(
            f"Cancellation within {rules.LATE_CHANGE_HOURS} hours. No refund available due to our "
            "cancellation policy. You will be charged the full amount."
        ),
        time_remaining=time_remaining,
    )


def can_reschedule_appointment(
    status: str,
    appointment_time: Union[datetime, str],
    now: datetime,
    rules: SchedulingRules = DEFAULT_RULES,
) -> bool:
    """Only PENDING/CONFIRMED appointments at least LATE_CHANGE_HOURS away can move"""
    if status not in ACTIVE_APPOINTMENT_STATUSES:
        return False
    remaining = _as_datetime(appointment_time) - to_naive_utc(now)
    return remaining >= timedelta(hours=rules.LATE_CHANGE_HOURS)


def get_cancellation_warning_color(hours: float, rules: SchedulingRules = DEFAULT_RULES) -> str:
    """Severity for the cancel/reschedule UI; pass exact hours so the color matches the policy tier"""
    if hours <= 0:
        return "gray"
    if hours < rules.LATE_CHANGE_HOURS:
        return "red"
    if hours < rules.FREE_CHANGE_HOURS:
        return "yellow"
    return "green"


class PolicyCalculator:
    """Policy functions bound to a clock"""

    def __init__(self, clock: Optional[Clock] = None, rules: SchedulingRules = DEFAULT_RULES):
        self.clock = clock or Clock()
        self.rules = rules

    def rescheduling(self, appointment_time, service_price) -> PolicyResult:
        return calculate_rescheduling_policy(appointment_time, service_price, self.clock.now(), self.rules)

    def cancellation(self, appointment_time, service_price) -> PolicyResult:
        return calculate_cancellation_policy(appointment_time, service_price, self.clock.now(), self.rules)

    def can_reschedule(self, status: str, appointment_time) -> bool:
        return can_reschedule_appointment(status, appointment_time, self.clock.now(), self.rules)

    def hours_until(self, appointment_time) -> int:
        return hours_until(appointment_time, self.clock.now())

    def warning_color(self, appointment_time) -> str:
        return get_cancellation_warning_color(exact_hours_until(appointment_time, self.clock.now()), self.rules)
