from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from practice.domain.scheduling.clock import FixedClock
from practice.domain.scheduling.policy import (
    PolicyCalculator,
    calculate_cancellation_policy,
    calculate_rescheduling_policy,
    can_reschedule_appointment,
    format_time_remaining,
    get_cancellation_warning_color,
    hours_until,
    percentage_of,
)

NOW = datetime(2025, 3, 3, 12, 0)


def in_hours(hours=0, minutes=0):
    return NOW + timedelta(hours=hours, minutes=minutes)


@pytest.mark.parametrize(
    "appointment_time, policy, can_act, fee",
    [
        (in_hours(48), "free", True, Decimal("0.00")),
        (in_hours(200), "free", True, Decimal("0.00")),
        (in_hours(47, 59), "fee", True, Decimal("75.00")),
        (in_hours(24), "fee", True, Decimal("75.00")),
        (in_hours(23, 59), "not_allowed", False, Decimal("0.00")),
        (in_hours(1), "not_allowed", False, Decimal("0.00")),
        (in_hours(0), "not_allowed", False, Decimal("0.00")),
        (in_hours(-5), "not_allowed", False, Decimal("0.00")),
    ],
)
def test_rescheduling_tiers(appointment_time, policy, can_act, fee):
    result = calculate_rescheduling_policy(appointment_time, Decimal("150.00"), NOW)
    assert result.policy == policy
    assert result.can_act is can_act
    assert result.amount == fee


@pytest.mark.parametrize(
    "appointment_time, policy, can_act, refund, percentage",
    [
        (in_hours(48), "free", True, Decimal("150.00"), 100),
        (in_hours(24), "half", True, Decimal("75.00"), 50),
        (in_hours(23, 59), "full", True, Decimal("0.00"), 0),
        (in_hours(0), "full", False, Decimal("0.00"), 0),
        (in_hours(-1), "full", False, Decimal("0.00"), 0),
    ],
)
def test_cancellation_tiers(appointment_time, policy, can_act, refund, percentage):
    result = calculate_cancellation_policy(appointment_time, Decimal("150.00"), NOW)
    assert result.policy == policy
    assert result.can_act is can_act
    assert result.amount == refund
    assert result.percentage == percentage


def test_cancellation_36_hours_out_refunds_half():
    result = calculate_cancellation_policy(in_hours(36), 120, NOW)
    view = result.as_cancellation_dict()

    assert view["canCancel"] is True
    assert view["policy"] == "half"
    assert view["refundPercentage"] == 50
    assert result.amount == Decimal("60.00")
    assert view["refundAmount"] == 60.0


def test_fee_rounds_half_up_to_the_cent():
    assert percentage_of(Decimal("155.50"), 50) == Decimal("77.75")
    assert percentage_of(100, 50) == Decimal("50.00")
    assert percentage_of("0.05", 50) == Decimal("0.03")
    assert percentage_of(Decimal("99.99"), 50) == Decimal("50.00")

    result = calculate_rescheduling_policy(in_hours(36), Decimal("155.50"), NOW)
    assert result.amount == Decimal("77.75")
    assert "$77.75" in result.message


def test_past_appointment_messages():
    reschedule = calculate_rescheduling_policy(in_hours(-2), 100, NOW)
    assert reschedule.time_remaining == "Past due"
    assert reschedule.message.startswith("Past appointments cannot be rescheduled")

    cancellation = calculate_cancellation_policy(in_hours(-2), 100, NOW)
    assert cancellation.time_remaining == "Appointment has passed"
    assert "already passed" in cancellation.message


def test_accepts_iso_strings():
    result = calculate_rescheduling_policy("2025-03-06T12:00:00Z", 100, NOW)
    assert result.policy == "free"
    assert hours_until("2025-03-04T12:00:00+00:00", NOW) == 24


@pytest.mark.parametrize("status", ["CANCELLED", "COMPLETED", "NO_SHOW"])
def test_terminal_statuses_can_never_reschedule(status):
    assert not can_reschedule_appointment(status, in_hours(1000), NOW)


@pytest.mark.parametrize(
    "status, appointment_time, expected",
    [
        ("PENDING", in_hours(24), True),
        ("CONFIRMED", in_hours(72), True),
        ("CONFIRMED", in_hours(23, 59), False),
        ("PENDING", in_hours(-1), False),
    ],
)
def test_active_statuses_follow_time_tiers(status, appointment_time, expected):
    assert can_reschedule_appointment(status, appointment_time, NOW) is expected


@pytest.mark.parametrize(
    "hours, color",
    [(-1, "gray"), (0, "gray"), (0.5, "red"), (23, "red"), (24, "yellow"), (47, "yellow"), (48, "green"), (200, "green")],
)
def test_warning_colors(hours, color):
    assert get_cancellation_warning_color(hours) == color


def test_warning_color_matches_policy_tier():
    calculator = PolicyCalculator(FixedClock(NOW))
    for hours, policy in [(12, "full"), (30, "half"), (60, "free")]:
        appointment_time = in_hours(hours)
        color = calculator.warning_color(appointment_time)
        assert calculator.cancellation(appointment_time, 100).policy == policy
        assert color == {"full": "red", "half": "yellow", "free": "green"}[policy]


@pytest.mark.parametrize(
    "hours, label",
    [
        (1, "1 hour remaining"),
        (2, "2 hours remaining"),
        (24, "1 day remaining"),
        (25, "1 day and 1 hour remaining"),
        (50, "2 days and 2 hours remaining"),
        (48, "2 days remaining"),
        (0, "Appointment has passed"),
    ],
)
def test_time_remaining_labels(hours, label):
    assert format_time_remaining(hours) == label


def test_hours_until_rounds_up():
    assert hours_until(in_hours(23, 1), NOW) == 24
    assert hours_until(in_hours(0, 1), NOW) == 1
    assert hours_until(in_hours(-1, 30), NOW) == 0


def test_calculator_uses_injected_clock():
    clock = FixedClock(NOW)
    calculator = PolicyCalculator(clock)
    appointment_time = in_hours(49)

    assert calculator.rescheduling(appointment_time, 100).policy == "free"
    clock.advance(hours=2)
    assert calculator.rescheduling(appointment_time, 100).policy == "fee"
    clock.advance(hours=24)
    assert calculator.rescheduling(appointment_time, 100).policy == "not_allowed"
    assert calculator.cancellation(appointment_time, 100).policy == "full"
