from datetime import datetime

from conftest import make_appointment, make_user

from practice.domain.analytics.service import add_months, week_start
from practice.models import COMPLETED, ContactSubmission


def get_metrics(client, headers):
    response = client.get("/admin/dashboard-metrics", headers=headers)
    assert response.status_code == 200
    assert response.json()["success"] is True
    return response.json()["metrics"]


def test_empty_practice(client, admin_headers):
    metrics = get_metrics(client, admin_headers)

    assert metrics["totalClients"] == 0
    assert metrics["thisMonthRevenue"] == 0
    assert metrics["revenueChange"] == 0
    # Sunday 2024-12-29 through Wednesday morning is four started days
    assert metrics["availableSlots"] == 32
    assert metrics["utilizationRate"] == 0
    assert metrics["clientRatio"] == 0


def test_dashboard_metrics(client, db, user, admin_headers, therapy):
    newcomer = make_user(db, email="new@example.com", name="Sam Newcomer")

    make_appointment(db, user, therapy, datetime(2024, 12, 10, 10, 0), status=COMPLETED)
    make_appointment(db, user, therapy, datetime(2025, 1, 1, 7, 0), status=COMPLETED)
    make_appointment(db, newcomer, therapy, datetime(2025, 1, 1, 10, 0))
    make_appointment(db, newcomer, therapy, datetime(2025, 1, 6, 10, 0))

    db.add_all(
        [
            ContactSubmission(name="A", email="a@example.com", subject="Hello", message="Unread message"),
            ContactSubmission(name="B", email="b@example.com", subject="Hello", message="Read message", is_read=True),
        ]
    )
    db.commit()

    metrics = get_metrics(client, admin_headers)
    assert metrics == {
        "totalClients": 2,
        "appointmentsToday": 2,
        "pendingAppointments": 2,
        "unreadMessages": 1,
        "completedAppointments": 2,
        "thisMonthRevenue": 120.0,
        "lastMonthRevenue": 120.0,
        "revenueChange": 0.0,
        # One booking since Sunday out of 32 slots
        "utilizationRate": 3.13,
        "availableSlots": 32,
        "bookedSlotsThisWeek": 1,
        "newClientsThisMonth": 2,
        "returningClientsThisMonth": 1,
        "clientRatio": 200.0,
    }


def test_revenue_change_without_last_month(client, db, user, admin_headers, therapy):
    make_appointment(db, user, therapy, datetime(2025, 1, 1, 7, 0), status=COMPLETED)

    metrics = get_metrics(client, admin_headers)
    assert metrics["lastMonthRevenue"] == 0
    assert metrics["revenueChange"] == 100
    assert metrics["newClientsThisMonth"] == 1
    assert metrics["clientRatio"] == 100


def test_calendar_helpers():
    assert week_start(datetime(2025, 1, 1, 8, 0)) == datetime(2024, 12, 29)
    assert week_start(datetime(2024, 12, 29, 23, 0)) == datetime(2024, 12, 29)
    assert add_months(datetime(2025, 1, 1), -1) == datetime(2024, 12, 1)
    assert add_months(datetime(2024, 12, 1), 1) == datetime(2025, 1, 1)


def test_metrics_are_admin_only(client, user_headers):
    assert client.get("/admin/dashboard-metrics", headers=user_headers).status_code == 403
