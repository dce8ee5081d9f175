"""Analytics service - Dashboard metrics for the practice owner"""

import logging
import math
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ...models import COMPLETED, PENDING
from ..scheduling.clock import Clock
from .repository import AnalyticsRepository

logger = logging.getLogger(__name__)

# Utilization assumes 8 bookable hours on each of 5 working days
WORKDAY_SLOTS = 8
WORKDAYS_PER_WEEK = 5


def _round(value: Decimal, places: str = "1") -> float:
    return float(value.quantize(Decimal(places), rounding=ROUND_HALF_UP))


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    return part / whole * 100


def month_start(value: datetime) -> datetime:
    return datetime(value.year, value.month, 1)


def add_months(value: datetime, months: int) -> datetime:
    index = value.year * 12 + (value.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def week_start(value: datetime) -> datetime:
    """Midnight of the Sunday starting the week containing `value`"""
    midnight = datetime(value.year, value.month, value.day)
    return midnight - timedelta(days=(value.weekday() + 1) % 7)


class AnalyticsService:
    """Computes dashboard metrics relative to the injected clock (UTC)"""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        self.db = db
        self.clock = clock or Clock()
        self.repo = AnalyticsRepository()

    def get_dashboard_metrics(self) -> dict:
        now = self.clock.now()
        start_of_today = datetime(now.year, now.month, now.day)
        start_of_month = month_start(now)
        start_of_next_month = add_months(start_of_month, 1)
        start_of_last_month = add_months(start_of_month, -1)
        start_of_week = week_start(now)

        this_month_revenue = self.repo.revenue_between(self.db, COMPLETED, start_of_month, start_of_next_month)
        last_month_revenue = self.repo.revenue_between(self.db, COMPLETED, start_of_last_month, start_of_month)
        if last_month_revenue > 0:
            revenue_change = _percent(this_month_revenue - last_month_revenue, last_month_revenue)
        else:
            revenue_change = Decimal(100) if this_month_revenue > 0 else Decimal(0)

        booked_this_week = self.repo.count_appointments(self.db, start=start_of_week, end=now, end_inclusive=True)
        days_elapsed = min(7, math.ceil((now - start_of_week) / timedelta(days=1)))
        available_slots = min(WORKDAYS_PER_WEEK, days_elapsed) * WORKDAY_SLOTS
        utilization = _percent(Decimal(booked_this_week), Decimal(available_slots)) if available_slots else Decimal(0)

        # Counted per appointment: a client whose first-ever visit falls in this month is new
        month_rows = self.repo.appointments_with_first_visit(self.db, start_of_month, start_of_next_month)
        new_clients = sum(1 for _, first_visit in month_rows if first_visit >= start_of_month)
        returning_clients = len(month_rows) - new_clients
        if returning_clients > 0:
            client_ratio = _percent(Decimal(new_clients), Decimal(returning_clients))
        else:
            client_ratio = Decimal(100) if new_clients > 0 else Decimal(0)

        metrics = {
            "totalClients": self.repo.count_clients(self.db),
            "appointmentsToday": self.repo.count_appointments(
                self.db, start=start_of_today, end=start_of_today + timedelta(days=1)
            ),
            "pendingAppointments": self.repo.count_appointments(self.db, status=PENDING),
            "unreadMessages": self.repo.count_unread_messages(self.db),
            "completedAppointments": self.repo.count_appointments(self.db, status=COMPLETED),
            "thisMonthRevenue": _round(this_month_revenue),
            "lastMonthRevenue": _round(last_month_revenue),
            "revenueChange": _round(revenue_change, "0.01"),
            "utilizationRate": _round(utilization, "0.01"),
            "availableSlots": available_slots,
            "bookedSlotsThisWeek": booked_this_week,
            "newClientsThisMonth": new_clients,
            "returningClientsThisMonth": returning_clients,
            "clientRatio": _round(client_ratio, "0.01"),
        }
        logger.info(
            f"📊 Dashboard metrics computed: {metrics['appointmentsToday']} today, "
            f"{metrics['pendingAppointments']} pending, revenue ${metrics['thisMonthRevenue']}"
        )
        return metrics
