from datetime import datetime

import pytest
from conftest import make_appointment, make_user

from practice import email_service
from practice.models import CANCELLED, COMPLETED, CONFIRMED, PENDING, AppointmentHistory

pytestmark = pytest.mark.usefixtures("weekday_windows")

MONDAY_10 = datetime(2025, 1, 6, 10, 0)


@pytest.fixture
def other_user(db):
    return make_user(db, email="riley@example.com", name="Riley Other")


@pytest.fixture
def appointment(db, user, therapy):
    return make_appointment(db, user, therapy, MONDAY_10, status=CONFIRMED)


def history_actions(db, appointment_id):
    db.expire_all()
    entries = (
        db.query(AppointmentHistory)
        .filter(AppointmentHistory.appointment_id == appointment_id)
        .order_by(AppointmentHistory.id)
        .all()
    )
    return [entry.action for entry in entries]


def test_admin_routes_reject_clients(client, user_headers):
    assert client.get("/admin/appointments", headers=user_headers).status_code == 403
    assert client.get("/admin/appointments/calendar", headers=user_headers).status_code == 403


# ============================================================================
# LISTING
# ============================================================================


def test_list_with_filters(client, db, user, other_user, admin_headers, therapy):
    make_appointment(db, user, therapy, datetime(2024, 12, 20, 10, 0), status=COMPLETED)
    make_appointment(db, user, therapy, MONDAY_10)
    make_appointment(db, other_user, therapy, datetime(2025, 1, 7, 10, 0), status=CONFIRMED)

    everything = client.get("/admin/appointments", headers=admin_headers, params={"status": "all"}).json()
    assert everything["pagination"]["total"] == 3
    assert everything["appointments"][0]["dateTime"] == "2025-01-07T10:00:00"

    confirmed = client.get("/admin/appointments", headers=admin_headers, params={"status": "confirmed"}).json()
    assert [a["user"]["name"] for a in confirmed["appointments"]] == ["Riley Other"]

    searched = client.get("/admin/appointments", headers=admin_headers, params={"search": "RILEY"}).json()
    assert searched["pagination"]["total"] == 1

    january = client.get(
        "/admin/appointments",
        headers=admin_headers,
        params={"startDate": "2025-01-01T00:00:00Z", "endDate": "2025-01-31T23:59:59Z"},
    ).json()
    assert january["pagination"]["total"] == 2

    paged = client.get("/admin/appointments", headers=admin_headers, params={"limit": 2}).json()
    assert paged["pagination"]["totalPages"] == 2
    assert paged["pagination"]["hasNext"] is True


def test_calendar_groups_by_day(client, db, user, other_user, admin_headers, therapy):
    make_appointment(db, user, therapy, MONDAY_10)
    make_appointment(db, other_user, therapy, datetime(2025, 1, 6, 14, 0))
    make_appointment(db, other_user, therapy, datetime(2025, 1, 7, 10, 0))
    make_appointment(db, other_user, therapy, datetime(2025, 1, 9, 10, 0))

    calendar = client.get(
        "/admin/appointments/calendar",
        headers=admin_headers,
        params={"start": "2025-01-06T00:00:00Z", "end": "2025-01-08T00:00:00Z"},
    ).json()["appointments"]
    assert sorted(calendar) == ["2025-01-06", "2025-01-07"]
    assert [a["dateTime"] for a in calendar["2025-01-06"]] == ["2025-01-06T10:00:00", "2025-01-06T14:00:00"]


# ============================================================================
# CONFLICTS
# ============================================================================


def test_conflict_check_free_slot(client, admin_headers, therapy):
    response = client.post(
        "/admin/appointments/conflicts",
        headers=admin_headers,
        json={"dateTime": "2025-01-06T10:00:00Z", "serviceId": therapy.id},
    )
    assert response.json() == {
        "hasConflict": False,
        "conflictType": None,
        "conflictingAppointments": [],
        "reason": "",
        "suggestedAlternatives": [],
    }


def test_conflict_check_lists_clashing_appointments(client, admin_headers, appointment, therapy):
    body = client.post(
        "/admin/appointments/conflicts",
        headers=admin_headers,
        json={"dateTime": "2025-01-06T10:15:00Z", "serviceId": therapy.id},
    ).json()

    assert body["hasConflict"] is True
    assert body["conflictType"] == "appointment"
    assert body["reason"] == "Time slot conflicts with existing appointment"
    assert [a["id"] for a in body["conflictingAppointments"]] == [appointment.id]
    assert body["conflictingAppointments"][0]["user"]["name"] == "Jordan Client"
    assert body["suggestedAlternatives"][0] == {"dateTime": "2025-01-06T13:00:00", "displayTime": "1:00 PM"}


def test_conflict_check_can_exclude_the_moving_appointment(client, admin_headers, appointment, therapy):
    body = client.post(
        "/admin/appointments/conflicts",
        headers=admin_headers,
        json={"dateTime": "2025-01-06T10:15:00Z", "serviceId": therapy.id, "excludeAppointmentId": appointment.id},
    ).json()
    assert body["hasConflict"] is False


def test_conflict_check_outside_hours_and_unknown_service(client, admin_headers, therapy):
    body = client.post(
        "/admin/appointments/conflicts",
        headers=admin_headers,
        json={"dateTime": "2025-01-06T18:00:00Z", "serviceId": therapy.id},
    ).json()
    assert body["conflictType"] == "outside_hours"
    assert len(body["suggestedAlternatives"]) == 6

    body = client.post(
        "/admin/appointments/conflicts",
        headers=admin_headers,
        json={"dateTime": "2025-01-06T10:00:00Z", "serviceId": 999},
    ).json()
    assert body["conflictType"] == "service"
    assert body["suggestedAlternatives"] == []


# ============================================================================
# RESCHEDULE / CANCEL
# ============================================================================


def test_admin_reschedule_resets_to_pending(client, db, admin, admin_headers, appointment):
    response = client.post(
        f"/admin/appointments/{appointment.id}/reschedule",
        headers=admin_headers,
        json={"newDateTime": "2025-01-08T15:00:00Z", "reason": "Therapist unavailable"},
    )
    assert response.status_code == 200
    assert response.json()["appointment"]["status"] == PENDING
    assert response.json()["appointment"]["dateTime"] == "2025-01-08T15:00:00"

    history = client.get(f"/admin/appointments/{appointment.id}/history", headers=admin_headers).json()
    entry = history["history"][0]
    assert entry["action"] == "RESCHEDULED"
    assert entry["oldStatus"] == CONFIRMED
    assert entry["newStatus"] == PENDING
    assert entry["oldDateTime"] == "2025-01-06T10:00:00"
    assert entry["reason"] == "Therapist unavailable"
    assert entry["actorName"] == admin.name


def test_admin_reschedule_into_unavailable_slot(client, db, other_user, admin_headers, appointment, therapy):
    make_appointment(db, other_user, therapy, datetime(2025, 1, 8, 15, 0))

    response = client.post(
        f"/admin/appointments/{appointment.id}/reschedule",
        headers=admin_headers,
        json={"newDateTime": "2025-01-08T15:30:00Z"},
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "New time slot is not available: Time slot conflicts with existing appointment"

    response = client.post(
        f"/admin/appointments/{appointment.id}/reschedule",
        headers=admin_headers,
        json={"newDateTime": "2025-01-05T10:00:00Z"},
    )
    assert response.json()["detail"] == "New time slot is not available: Outside business hours"


def test_admin_cannot_reschedule_finished_appointment(client, db, user, admin_headers, therapy):
    finished = make_appointment(db, user, therapy, datetime(2024, 12, 20, 10, 0), status=COMPLETED)
    response = client.post(
        f"/admin/appointments/{finished.id}/reschedule",
        headers=admin_headers,
        json={"newDateTime": "2025-01-08T15:00:00Z"},
    )
    assert response.status_code == 400


def test_admin_cancel_notifies_client(client, db, user, admin_headers, appointment, sent_emails):
    response = client.post(
        f"/admin/appointments/{appointment.id}/cancel",
        headers=admin_headers,
        json={"reason": "Therapist ill", "cancellationPolicy": "No charge for practice cancellations."},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["appointment"]["status"] == CANCELLED
    assert body["appointment"]["cancellationReason"] == "Therapist ill"
    assert body["notificationQueued"] is True

    assert sent_emails[0]["to"] == user.email
    assert "No charge for practice cancellations." in sent_emails[0]["body"]
    assert history_actions(db, appointment.id) == ["CANCELLED"]

    again = client.post(f"/admin/appointments/{appointment.id}/cancel", headers=admin_headers)
    assert again.status_code == 400
    assert again.json()["detail"] == "Appointment is already cancelled"


def test_admin_cancel_without_notification(client, admin_headers, appointment, sent_emails):
    response = client.post(
        f"/admin/appointments/{appointment.id}/cancel", headers=admin_headers, json={"sendNotification": False}
    )
    assert response.status_code == 200
    assert response.json()["notificationQueued"] is False
    assert sent_emails == []


def test_admin_cancel_unknown_appointment(client, admin_headers):
    assert client.post("/admin/appointments/999/cancel", headers=admin_headers).status_code == 404


# ============================================================================
# NOTIFICATIONS
# ============================================================================


def test_send_reminder(client, db, user, admin_headers, appointment, sent_emails):
    response = client.post(
        f"/admin/appointments/{appointment.id}/notify",
        headers=admin_headers,
        json={"type": "reminder", "customMessage": "Bring your intake form", "includeCustomMessage": True},
    )
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "notificationType": "reminder",
        "messageId": "email-1",
        "message": "Reminder notification sent successfully",
    }
    assert sent_emails[0]["subject"] == "Reminder: your Couples Counseling session on Monday, January 6, 2025"
    assert "Bring your intake form" in sent_emails[0]["body"]
    assert history_actions(db, appointment.id) == ["NOTIFIED"]


def test_custom_message_only_included_when_requested(client, admin_headers, appointment, sent_emails):
    client.post(
        f"/admin/appointments/{appointment.id}/notify",
        headers=admin_headers,
        json={"type": "confirmation", "customMessage": "Parking is behind the building"},
    )
    assert sent_emails[0]["subject"] == "Appointment request received - Monday, January 6, 2025"
    assert "Parking is behind the building" not in sent_emails[0]["body"]


def test_custom_message_required_when_included(client, admin_headers, appointment):
    response = client.post(
        f"/admin/appointments/{appointment.id}/notify",
        headers=admin_headers,
        json={"type": "reminder", "includeCustomMessage": True},
    )
    assert response.status_code == 422


def test_reschedule_notice_uses_previous_time_from_history(client, admin_headers, appointment, sent_emails):
    response = client.post(
        f"/admin/appointments/{appointment.id}/notify", headers=admin_headers, json={"type": "reschedule"}
    )
    assert response.status_code == 400

    client.post(
        f"/admin/appointments/{appointment.id}/reschedule",
        headers=admin_headers,
        json={"newDateTime": "2025-01-08T15:00:00Z"},
    )
    response = client.post(
        f"/admin/appointments/{appointment.id}/notify", headers=admin_headers, json={"type": "reschedule"}
    )
    assert response.status_code == 200
    assert sent_emails[-1]["subject"] == "Appointment rescheduled to Wednesday, January 8, 2025"
    assert "Monday, January 6, 2025" in sent_emails[-1]["body"]


def test_cancellation_notice(client, admin_headers, appointment, sent_emails):
    response = client.post(
        f"/admin/appointments/{appointment.id}/notify",
        headers=admin_headers,
        json={"type": "cancellation", "cancellationPolicy": "Full refund issued."},
    )
    assert response.status_code == 200
    assert sent_emails[0]["subject"] == "Appointment cancelled"
    assert "Full refund issued." in sent_emails[0]["body"]


def test_failed_notification_is_reported(client, db, admin_headers, appointment, monkeypatch):
    async def broken_send_email(*args, **kwargs):
        raise RuntimeError("provider down")

    monkeypatch.setattr(email_service, "send_email", broken_send_email)

    response = client.post(
        f"/admin/appointments/{appointment.id}/notify", headers=admin_headers, json={"type": "reminder"}
    )
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to send notification"
    assert history_actions(db, appointment.id) == []
