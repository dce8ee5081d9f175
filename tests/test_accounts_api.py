from conftest import auth_headers, make_user

from practice.models import User
from practice.security import generate_email_verification_token, hash_password


def register(client, **overrides):
    payload = {
        "name": "Avery Client",
        "email": "Avery@Example.com",
        "password": "healing123",
        "phone": "(555) 123-4567",
        **overrides,
    }
    return client.post("/auth/register", json=payload)


def test_register_creates_client_and_sends_verification(client, db, sent_emails):
    response = register(client)

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "avery@example.com"
    assert body["user"]["role"] == "CLIENT"
    assert body["user"]["phone"] == "+15551234567"
    assert body["user"]["emailVerified"] is False

    assert [email["to"] for email in sent_emails] == ["avery@example.com"]
    assert "/verify-email?token=" in sent_emails[0]["body"]


def test_register_rejects_duplicate_email(client):
    assert register(client).status_code == 201
    response = register(client, email="avery@example.com")
    assert response.status_code == 409
    assert response.json()["detail"] == "User already exists with this email address"


def test_register_validates_password(client):
    response = register(client, password="short")
    assert response.status_code == 422

    response = register(client, password="lettersonly")
    assert response.status_code == 422


def test_login_returns_session_token(client, db):
    make_user(db, email="login@example.com", password_hash=hash_password("healing123"))

    response = client.post("/auth/login", json={"email": " LOGIN@example.com ", "password": "healing123"})
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "login@example.com"


def test_login_rejects_wrong_password(client, db):
    make_user(db, email="login@example.com", password_hash=hash_password("healing123"))
    response = client.post("/auth/login", json={"email": "login@example.com", "password": "wrong-pass1"})
    assert response.status_code == 401


def test_contact_form_clients_cannot_sign_in(client, db):
    # Created from the contact form, no password set
    make_user(db, email="nopass@example.com")
    response = client.post("/auth/login", json={"email": "nopass@example.com", "password": "anything1"})
    assert response.status_code == 401


def test_protected_routes_require_token(client):
    assert client.get("/auth/me").status_code in (401, 403)
    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_check_email(client, user):
    assert client.get("/auth/check-email", params={"email": user.email}).json()["available"] is False
    assert client.get("/auth/check-email", params={"email": "free@example.com"}).json()["available"] is True


def test_verify_email(client, db):
    assert register(client).status_code == 201
    token = generate_email_verification_token("avery@example.com")

    response = client.post("/auth/verify-email", json={"token": token})
    assert response.status_code == 200

    db.expire_all()
    user = db.query(User).filter(User.email == "avery@example.com").one()
    assert user.email_verified is True
    assert user.email_verified_at is not None


def test_verify_email_rejects_tampered_token(client):
    response = client.post("/auth/verify-email", json={"token": "garbage.token"})
    assert response.status_code == 400


def test_resend_verification(client, user, sent_emails):
    assert register(client).status_code == 201
    sent_emails.clear()

    response = client.post("/auth/resend-verification", json={"email": "avery@example.com"})
    assert response.status_code == 200
    assert [email["to"] for email in sent_emails] == ["avery@example.com"]

    # The fixture user is already verified
    assert client.post("/auth/resend-verification", json={"email": user.email}).status_code == 400
    assert client.post("/auth/resend-verification", json={"email": "ghost@example.com"}).status_code == 404


def test_profile_round_trip(client, user, user_headers):
    response = client.put(
        "/user/profile",
        headers=user_headers,
        json={
            "name": "Jordan Updated",
            "phone": "555.987.6543",
            "emergencyContactName": "Sam",
            "emergencyContactPhone": "+1 555 222 3333",
            "communicationPreferences": {"emailNotifications": False, "smsReminders": True, "reminderTime": "2"},
        },
    )
    assert response.status_code == 200

    profile = client.get("/user/profile", headers=user_headers).json()
    assert profile["name"] == "Jordan Updated"
    assert profile["phone"] == "+15559876543"
    assert profile["emergencyContactPhone"] == "+15552223333"
    assert profile["emailNotifications"] is False
    assert profile["smsReminders"] is True
    assert profile["reminderTime"] == "2"


def test_profile_rejects_unknown_reminder_time(client, user_headers):
    response = client.put(
        "/user/profile",
        headers=user_headers,
        json={
            "name": "Jordan",
            "communicationPreferences": {"emailNotifications": True, "smsReminders": False, "reminderTime": "3"},
        },
    )
    assert response.status_code == 422


def test_admin_token_resolves_admin(client, admin):
    me = client.get("/auth/me", headers=auth_headers(admin)).json()
    assert me["role"] == "ADMIN"
