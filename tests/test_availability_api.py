def create_window(client, headers, **overrides):
    payload = {"dayOfWeek": 1, "startTime": "09:00", "endTime": "12:00", **overrides}
    return client.post("/availability", headers=headers, json=payload)


def test_create_and_list_windows(client, admin_headers):
    response = create_window(client, admin_headers, startTime="9:00")
    assert response.status_code == 201
    window = response.json()
    assert window["startTime"] == "09:00"
    assert window["dayName"] == "Monday"

    assert create_window(client, admin_headers, dayOfWeek=6, startTime="10:00", endTime="14:00").status_code == 201

    listing = client.get("/availability").json()
    assert listing["total"] == 2
    assert set(listing["grouped"]) == {"Monday", "Saturday"}

    monday_only = client.get("/availability", params={"dayOfWeek": 1}).json()
    assert monday_only["total"] == 1
    # Out of range filters are ignored
    assert client.get("/availability", params={"dayOfWeek": 9}).json()["total"] == 2


def test_overlapping_window_rejected(client, admin_headers):
    assert create_window(client, admin_headers).status_code == 201

    response = create_window(client, admin_headers, startTime="11:00", endTime="13:00")
    assert response.status_code == 400
    assert response.json()["detail"] == "New availability window overlaps with existing active window"

    # Touching windows are fine
    assert create_window(client, admin_headers, startTime="12:00", endTime="13:00").status_code == 201


def test_window_validation(client, admin_headers):
    assert create_window(client, admin_headers, startTime="12:00", endTime="09:00").status_code == 422
    assert create_window(client, admin_headers, startTime="25:00").status_code == 422
    assert create_window(client, admin_headers, dayOfWeek=7).status_code == 422


def test_update_and_delete_window(client, admin_headers):
    window_id = create_window(client, admin_headers).json()["id"]
    other_id = create_window(client, admin_headers, startTime="13:00", endTime="17:00").json()["id"]

    response = client.patch(f"/availability/{window_id}", headers=admin_headers, json={"endTime": "14:00"})
    assert response.status_code == 400

    response = client.patch(f"/availability/{window_id}", headers=admin_headers, json={"isActive": False})
    assert response.status_code == 200
    assert response.json()["isActive"] is False

    assert client.delete(f"/availability/{other_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/availability/{other_id}", headers=admin_headers).status_code == 404


def test_bulk_update(client, admin_headers):
    window_id = create_window(client, admin_headers).json()["id"]

    response = client.put(
        "/availability",
        headers=admin_headers,
        json={
            "windows": [
                {"id": window_id, "endTime": "11:30"},
                {"dayOfWeek": 2, "startTime": "09:00", "endTime": "17:00"},
            ]
        },
    )
    assert response.status_code == 200
    body = response.json()
    assert body["updated"][0]["endTime"] == "11:30"
    assert body["created"][0]["dayName"] == "Tuesday"


def test_bulk_update_is_all_or_nothing(client, admin_headers):
    response = client.put(
        "/availability",
        headers=admin_headers,
        json={"windows": [{"dayOfWeek": 2, "startTime": "09:00", "endTime": "17:00"}, {"dayOfWeek": 3}]},
    )
    assert response.status_code == 400
    assert client.get("/availability").json()["total"] == 0


def test_windows_are_admin_only(client, user_headers):
    assert create_window(client, user_headers).status_code == 403


def test_blocked_slots(client, admin_headers):
    response = client.post(
        "/admin/blocked-slots",
        headers=admin_headers,
        json={"dateTime": "2025-01-06T13:00:00Z", "duration": 120, "reason": "Training"},
    )
    assert response.status_code == 201
    slot = response.json()
    assert slot["dateTime"] == "2025-01-06T13:00:00"

    day_off = client.post(
        "/admin/blocked-slots",
        headers=admin_headers,
        json={"dateTime": "2025-01-10T00:00:00Z", "duration": 1440},
    )
    assert day_off.status_code == 201

    listing = client.get(
        "/admin/blocked-slots",
        headers=admin_headers,
        params={"start": "2025-01-06T00:00:00Z", "end": "2025-01-07T00:00:00Z"},
    ).json()
    assert [s["id"] for s in listing] == [slot["id"]]

    assert client.delete(f"/admin/blocked-slots/{slot['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/admin/blocked-slots/{slot['id']}", headers=admin_headers).status_code == 404


def test_blocked_slot_validation(client, admin_headers):
    response = client.post(
        "/admin/blocked-slots", headers=admin_headers, json={"dateTime": "2025-01-06T13:00:00Z", "duration": 5}
    )
    assert response.status_code == 422

    response = client.get("/admin/blocked-slots", headers=admin_headers, params={"start": "yesterday"})
    assert response.status_code == 400
