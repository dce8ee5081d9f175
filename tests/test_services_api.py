from datetime import datetime

from conftest import make_appointment

NEW_SERVICE = {
    "title": "Grief Counseling",
    "description": "Support through loss and major life transitions",
    "duration": 50,
    "price": 140,
    "features": ["Compassionate support"],
}


def test_public_list_hides_inactive_services(client, db, therapy):
    therapy.is_active = False
    db.commit()
    assert client.get("/services").json() == []


def test_public_list(client, therapy):
    services = client.get("/services").json()
    assert len(services) == 1
    assert services[0]["title"] == "Couples Counseling"
    assert services[0]["price"] == 120.0
    assert services[0]["features"] == ["Communication skills training"]


def test_admin_creates_and_updates_service(client, admin_headers):
    response = client.post("/admin/services", headers=admin_headers, json=NEW_SERVICE)
    assert response.status_code == 201
    created = response.json()
    assert created["duration"] == 50
    assert created["appointmentCount"] == 0

    response = client.patch(
        f"/admin/services/{created['id']}", headers=admin_headers, json={"price": 155.5, "isActive": False}
    )
    assert response.status_code == 200
    assert response.json()["price"] == 155.5
    assert response.json()["isActive"] is False


def test_create_service_validation(client, admin_headers):
    response = client.post("/admin/services", headers=admin_headers, json={**NEW_SERVICE, "duration": 5})
    assert response.status_code == 422
    response = client.post("/admin/services", headers=admin_headers, json={**NEW_SERVICE, "title": "Hi"})
    assert response.status_code == 422


def test_clients_cannot_manage_services(client, user_headers):
    response = client.post("/admin/services", headers=user_headers, json=NEW_SERVICE)
    assert response.status_code == 403


def test_delete_unused_service(client, admin_headers, therapy):
    response = client.delete(f"/admin/services/{therapy.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["deactivated"] is False
    assert client.get("/admin/services", headers=admin_headers).json() == []


def test_delete_service_with_appointments_deactivates(client, db, user, admin_headers, therapy):
    make_appointment(db, user, therapy, datetime(2025, 1, 6, 10, 0))

    response = client.delete(f"/admin/services/{therapy.id}", headers=admin_headers)
    assert response.json()["deactivated"] is True

    services = client.get("/admin/services", headers=admin_headers).json()
    assert services[0]["isActive"] is False
    assert services[0]["appointmentCount"] == 1


def test_unknown_service_is_404(client, admin_headers):
    assert client.patch("/admin/services/999", headers=admin_headers, json={"price": 10}).status_code == 404
