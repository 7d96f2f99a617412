import threading
from datetime import datetime, timedelta

import pytest

from app.services import auth_service
from app.services.registration_service import generate_otp
from tests.fakes import bearer

FORM = {
    "full_name": "Ayesha Khan",
    "email": "Ayesha@Example.com",
    "cnic": "35202-7654321-2",
    "phone": "0300 1234567",
    "dob": "1990-04-12",
    "address1": "House 12, Street 4, Lahore",
    "password": "s3cure-passw0rd",
    "confirm_password": "s3cure-passw0rd",
    "agreed_to_principles": True,
}


def pending_documents(database):
    return list(database["pending_users"].docs.values())


def register(client, **overrides):
    return client.post("/auth/register", json={**FORM, **overrides})


def test_generate_otp_is_numeric():
    for _ in range(20):
        otp = generate_otp(6)
        assert len(otp) == 6
        assert otp.isdigit()


def test_register_stores_pending_registration(client, database):
    response = register(client)
    assert response.status_code == 201
    assert "10 minutes" in response.json()["message"]

    [pending] = pending_documents(database)
    assert pending["_id"] == f"pending_users/{response.json()['pending_id']}"
    assert pending["email"] == "ayesha@example.com"
    assert pending["phone"] == "+923001234567"
    assert len(pending["otp"]) == 6 and pending["otp"].isdigit()
    assert pending["password_hash"] != FORM["password"]
    assert pending["expires_at"] > pending["created_at"]


@pytest.mark.parametrize("overrides", [
    {"confirm_password": "something-else"},
    {"agreed_to_principles": False},
    {"cnic": "123"},
    {"dob": "12/04/1990"},
    {"password": "short", "confirm_password": "short"},
])
def test_invalid_registration_writes_nothing(client, database, overrides):
    response = register(client, **overrides)
    assert response.status_code == 422
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert pending_documents(database) == []


def test_otp_verification_completes_registration(client, database):
    register(client)
    [pending] = pending_documents(database)

    wrong = "000000" if pending["otp"] != "000000" else "111111"
    rejected = client.post("/auth/verify-otp", json={"email": FORM["email"], "phone": FORM["phone"], "otp": wrong})
    assert rejected.status_code == 400
    assert rejected.json()["code"] == "OTP_REJECTED"
    assert len(pending_documents(database)) == 1

    verified = client.post(
        "/auth/verify-otp", json={"email": FORM["email"], "phone": FORM["phone"], "otp": pending["otp"]}
    )
    assert verified.status_code == 200
    token = verified.json()
    assert token["token_type"] == "bearer"
    assert token["display_name"] == "Ayesha Khan"

    uid = token["uid"]
    profile = database["users"].docs[f"users/{uid}"]
    assert profile["full_name"] == "Ayesha Khan"
    assert profile["email"] == "ayesha@example.com"
    assert "password_hash" not in profile
    assert pending_documents(database) == []

    # The OTP is single use
    replay = client.post("/auth/verify-otp", json={"email": FORM["email"], "phone": FORM["phone"], "otp": pending["otp"]})
    assert replay.status_code == 400


def test_expired_otp_rejected(client, database):
    register(client)
    [pending] = pending_documents(database)
    pending["expires_at"] = datetime.utcnow() - timedelta(minutes=1)

    response = client.post("/auth/verify-otp", json={"email": FORM["email"], "phone": FORM["phone"], "otp": pending["otp"]})
    assert response.status_code == 400
    assert pending_documents(database) == []


def test_login_after_registration(client, database):
    register(client)
    [pending] = pending_documents(database)
    verified = client.post("/auth/verify-otp", json={"email": FORM["email"], "phone": FORM["phone"], "otp": pending["otp"]})
    assert verified.status_code == 200

    bad = client.post("/auth/login", json={"email": FORM["email"], "password": "wrong-password"})
    assert bad.status_code == 401

    good = client.post("/auth/login", json={"email": "ayesha@example.com", "password": FORM["password"]})
    assert good.status_code == 200

    principal = auth_service.decode_access_token(good.json()["access_token"])
    assert principal.email == "ayesha@example.com"

    profile = client.get("/api/v1/profile", headers=bearer(principal))
    assert profile.status_code == 200
    assert profile.json()["cnic"] == FORM["cnic"]


def test_register_existing_email_rejected(client, database):
    register(client)
    [pending] = pending_documents(database)
    verified = client.post("/auth/verify-otp", json={"email": FORM["email"], "phone": FORM["phone"], "otp": pending["otp"]})
    assert verified.status_code == 200

    response = register(client)
    assert response.status_code == 422
    assert pending_documents(database) == []


def test_google_sign_in_creates_account(client, database, monkeypatch):
    claims = {"email": "gmail.user@gmail.com", "email_verified": True, "name": "G User", "picture": "https://p"}
    monkeypatch.setattr(auth_service, "verify_google_id_token", lambda token: claims)

    first = client.post("/auth/oauth/google", json={"id_token": "token"})
    second = client.post("/auth/oauth/google", json={"id_token": "token"})

    assert first.status_code == second.status_code == 200
    assert first.json()["uid"] == second.json()["uid"]
    assert len(database["auth_accounts"].docs) == 1


async def test_blocking_auth_work_runs_in_worker_threads(database, monkeypatch):
    threads = []
    claims = {"email": "gmail.user@gmail.com", "email_verified": True}

    def verify(token):
        threads.append(threading.current_thread())
        return claims

    real_verify_password = auth_service.verify_password

    def verify_password(password, password_hash):
        threads.append(threading.current_thread())
        return real_verify_password(password, password_hash)

    monkeypatch.setattr(auth_service, "verify_google_id_token", verify)
    monkeypatch.setattr(auth_service, "verify_password", verify_password)

    await auth_service.sign_in_with_google(database, "token")
    await auth_service.create_account(database, "pw@example.com", auth_service.hash_password("s3cure-passw0rd"))
    await auth_service.sign_in_with_password(database, "pw@example.com", "s3cure-passw0rd")

    assert len(threads) == 2
    assert threading.current_thread() not in threads


def test_google_sign_in_unverified_email(client, monkeypatch):
    monkeypatch.setattr(auth_service, "verify_google_id_token", lambda token: {"email": "x@y.z", "email_verified": False})
    assert client.post("/auth/oauth/google", json={"id_token": "token"}).status_code == 401


def test_invalid_token_rejected(client):
    response = client.get("/api/v1/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
