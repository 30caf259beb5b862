import smtplib
from datetime import timedelta

import services.verification
from conftest import PASSWORD, verify_email
from extensions import mail
from storage import utcnow

REGISTRATION = {
    "username": "asha",
    "password": "Green#2024",
    "full_name": "Asha Rao",
    "email": "asha@example.com",
    "phone": "9876543210",
    "address": {"basic_address": "12 Green Lane", "city": "Pune", "pin_code": "411001"},
}


def test_register_signs_in_and_hides_hash(client):
    verify_email(client, REGISTRATION["email"])
    response = client.post("/api/register", json=REGISTRATION)

    assert response.status_code == 201
    body = response.get_json()
    assert body["username"] == "asha"
    assert body["role"] == "customer"
    assert body["social_points"] == 0
    assert "password_hash" not in body

    me = client.get("/api/user")
    assert me.status_code == 200
    assert me.get_json()["id"] == body["id"]


def test_register_stores_a_salted_hash(client, storage):
    verify_email(client, REGISTRATION["email"])
    client.post("/api/register", json=REGISTRATION)

    stored = storage.get_user_by_username("asha")["password_hash"]
    assert stored != REGISTRATION["password"]
    assert stored.startswith(("scrypt:", "pbkdf2:"))


def test_register_rejects_duplicates(client):
    verify_email(client, REGISTRATION["email"])
    client.post("/api/register", json=REGISTRATION)

    same_email = client.post("/api/register", json={**REGISTRATION, "username": "other"})
    assert same_email.status_code == 400
    assert same_email.get_json()["message"] == "Email already registered"

    same_name = client.post("/api/register", json={**REGISTRATION, "email": "b@example.com"})
    assert same_name.status_code == 400
    assert same_name.get_json()["message"] == "Username already taken"


def test_register_validates_password_and_role(client):
    weak = client.post("/api/register", json={**REGISTRATION, "password": "password"})
    assert weak.status_code == 400
    assert weak.get_json()["message"] == "Invalid request data"
    assert weak.get_json()["errors"][0]["loc"] == ["password"]

    admin = client.post("/api/register", json={**REGISTRATION, "role": "admin"})
    assert admin.status_code == 400


def test_register_requires_json_object(client):
    response = client.post("/api/register", data="nope", content_type="text/plain")
    assert response.status_code == 400


def test_login_with_username_or_email(client, make_user):
    user = make_user(username="dealer_dan", email="dan@example.com", role="dealer")

    by_name = client.post("/api/login", json={"username": "dealer_dan", "password": PASSWORD})
    assert by_name.status_code == 200
    assert by_name.get_json()["id"] == user["id"]

    by_email = client.post("/api/login", json={"username": "dan@example.com", "password": PASSWORD})
    assert by_email.status_code == 200


def test_login_rejects_bad_password(client, make_user):
    make_user(username="asha")

    response = client.post("/api/login", json={"username": "asha", "password": "Wrong#123"})

    assert response.status_code == 401
    assert response.get_json()["message"] == "Invalid username or password"


def test_current_user_requires_token(client):
    response = client.get("/api/user")

    assert response.status_code == 401
    assert "message" in response.get_json()


def test_logout_clears_session(login, make_user):
    client = login(make_user())

    assert client.post("/api/logout").status_code == 200
    assert client.get("/api/user").status_code == 401


def test_bearer_token_is_accepted(app, make_user):
    user = make_user()
    client = app.test_client()
    token = None
    response = client.post("/api/login", json={"username": user["username"], "password": PASSWORD})
    for header in response.headers.getlist("Set-Cookie"):
        if header.startswith("access_token_cookie="):
            token = header.split(";")[0].split("=", 1)[1]

    fresh = app.test_client(use_cookies=False)
    me = fresh.get("/api/user", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.get_json()["username"] == user["username"]


def test_deleted_account_token_is_rejected(login, make_user, storage):
    user = make_user()
    client = login(user)
    storage.users.delete(user["id"])

    assert client.get("/api/user").status_code == 401


def test_register_requires_verified_email(client, storage):
    response = client.post("/api/register", json=REGISTRATION)

    assert response.status_code == 400
    assert response.get_json()["message"] == "Email not verified"
    assert "access_token_cookie" not in response.headers.get("Set-Cookie", "")
    assert storage.get_user_by_username("asha") is None


def test_verify_email_mails_a_code(client):
    with mail.record_messages() as outbox:
        response = client.post("/api/verify-email", json={"email": "asha@example.com"})

    assert response.status_code == 200
    assert response.get_json()["message"] == "OTP sent successfully"
    assert len(outbox) == 1
    assert outbox[0].recipients == ["asha@example.com"]


def test_verify_email_rejects_registered_address(client, make_user):
    make_user(email="taken@example.com")

    response = client.post("/api/verify-email", json={"email": "taken@example.com"})

    assert response.status_code == 400
    assert response.get_json()["message"] == "Email already registered"


def test_verify_email_rejects_malformed_address(client):
    assert client.post("/api/verify-email", json={"email": "not-an-email"}).status_code == 400


def test_verify_email_reports_mail_failure(client, monkeypatch):
    def broken(email, code):
        raise smtplib.SMTPException("relay down")

    monkeypatch.setattr("routes.auth.send_otp", broken)

    response = client.post("/api/verify-email", json={"email": "asha@example.com"})

    assert response.status_code == 503
    assert response.get_json()["message"] == "Failed to send OTP"


def test_verify_otp_without_a_code(client):
    response = client.post("/api/verify-otp", json={"email": "asha@example.com", "otp": "123456"})

    assert response.status_code == 400
    assert response.get_json()["message"] == "No OTP found for this email"


def test_wrong_code_is_rejected_and_the_right_one_still_works(client):
    with mail.record_messages() as outbox:
        client.post("/api/verify-email", json={"email": "asha@example.com"})
    code = outbox[0].body.split("code is ")[1][:6]

    wrong = client.post("/api/verify-otp", json={"email": "asha@example.com", "otp": "000000"})
    assert wrong.status_code == 400
    assert wrong.get_json()["message"] == "Invalid OTP"

    right = client.post("/api/verify-otp", json={"email": "asha@example.com", "otp": code})
    assert right.status_code == 200

    assert client.post("/api/register", json=REGISTRATION).status_code == 201


def test_expired_code_is_rejected(client, monkeypatch):
    with mail.record_messages() as outbox:
        client.post("/api/verify-email", json={"email": "asha@example.com"})
    code = outbox[0].body.split("code is ")[1][:6]
    later = utcnow() + timedelta(minutes=11)
    monkeypatch.setattr(services.verification, "utcnow", lambda: later)

    expired = client.post("/api/verify-otp", json={"email": "asha@example.com", "otp": code})
    assert expired.status_code == 400
    assert expired.get_json()["message"] == "OTP expired"

    again = client.post("/api/verify-otp", json={"email": "asha@example.com", "otp": code})
    assert again.get_json()["message"] == "No OTP found for this email"


def test_registration_uses_up_the_verified_mark(client, app):
    verify_email(client, REGISTRATION["email"])

    assert client.post("/api/register", json=REGISTRATION).status_code == 201
    assert app.extensions["email_verifier"].consume(REGISTRATION["email"]) is False
