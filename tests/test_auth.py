from datetime import timedelta

from jose import jwt

from lupora.config import settings
from lupora.models.user import User
from lupora.utils.security import create_access_token, decode_token

from tests.conftest import register


def test_register_returns_token_and_public_user(client):
    response = client.post("/api/auth/register", json={
        "name": "Asha Rao",
        "email": "Asha@Example.com",
        "password": "secret123",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["user"]["name"] == "Asha Rao"
    assert body["user"]["email"] == "asha@example.com"
    assert "password" not in body["user"]
    assert "passwordHash" not in body["user"]


def test_register_stores_bcrypt_hash(client, db):
    register(client, password="secret123")

    user = db.query(User).filter(User.email == "asha@example.com").one()
    assert user.password_hash != "secret123"
    assert user.password_hash.startswith("$2")


def test_register_rejects_duplicate_email_case_insensitively(client):
    register(client, email="asha@example.com")

    response = client.post("/api/auth/register", json={
        "name": "Another Asha",
        "email": "ASHA@example.com",
        "password": "secret123",
    })

    assert response.status_code == 409
    assert response.json()["message"] == "Email already registered"


def test_register_validates_input(client):
    cases = [
        {"name": "A", "email": "a@example.com", "password": "secret123"},
        {"name": "Asha", "email": "not-an-email", "password": "secret123"},
        {"name": "Asha", "email": "a@example.com", "password": "12345"},
        {"email": "a@example.com", "password": "secret123"},
    ]
    for payload in cases:
        response = client.post("/api/auth/register", json=payload)
        assert response.status_code == 400, payload
        assert "message" in response.json()


def test_register_sanitizes_name(client):
    response = client.post("/api/auth/register", json={
        "name": "  <Asha>   Rao ",
        "email": "asha@example.com",
        "password": "secret123",
    })

    assert response.status_code == 201
    assert response.json()["user"]["name"] == "Asha Rao"


def test_validation_errors_do_not_echo_passwords(client):
    response = client.post("/api/auth/register", json={
        "name": "Asha",
        "email": "asha@example.com",
        "password": "12345",
    })

    assert response.status_code == 400
    assert "12345" not in response.text


def test_login_with_valid_credentials(client):
    register(client)

    response = client.post("/api/auth/login", json={"email": "ASHA@example.com", "password": "secret123"})

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["email"] == "asha@example.com"
    claims = decode_token(body["token"])
    assert claims["sub"] == body["user"]["id"]
    assert claims["name"] == "Asha Rao"
    assert claims["email"] == "asha@example.com"


def test_login_failures_share_one_message(client):
    register(client)

    wrong_password = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "nope123"})
    unknown_email = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "secret123"})

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json()["message"] == "Invalid email or password"
    assert unknown_email.json()["message"] == wrong_password.json()["message"]


def test_token_expires_after_seven_days(client, user):
    claims = decode_token(user["token"])
    assert claims["exp"] - claims["iat"] == int(timedelta(days=7).total_seconds())


def test_me_returns_profile(client, user):
    response = client.get("/api/auth/me", headers=user["headers"])

    assert response.status_code == 200
    assert response.json()["id"] == user["id"]
    assert response.json()["email"] == "asha@example.com"


def test_missing_or_malformed_header_is_401(client):
    assert client.get("/api/auth/me").status_code == 401
    assert client.get("/api/auth/me", headers={"Authorization": "Basic abc"}).status_code == 401
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer"})
    assert response.status_code == 401
    assert response.json()["message"] == "Access denied. No token provided."


def test_bad_tokens_are_403(client, user):
    expired = create_access_token(
        {"sub": user["id"], "name": "Asha Rao", "email": "asha@example.com"},
        expires_delta=timedelta(seconds=-10),
    )
    foreign = jwt.encode({"sub": user["id"]}, "not-the-secret", algorithm=settings.ALGORITHM)
    bad_subject = create_access_token({"sub": "12345", "name": "x", "email": "x@example.com"})

    for token in ("garbage", expired, foreign, bad_subject):
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 403, token


def test_update_profile_issues_token_with_new_name(client, user):
    response = client.put("/api/auth/profile", json={"name": "Asha R"}, headers=user["headers"])

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["name"] == "Asha R"
    assert decode_token(body["token"])["name"] == "Asha R"


def test_change_password(client, user):
    wrong = client.put(
        "/api/auth/change-password",
        json={"currentPassword": "wrong", "newPassword": "newsecret1"},
        headers=user["headers"],
    )
    assert wrong.status_code == 401

    changed = client.put(
        "/api/auth/change-password",
        json={"currentPassword": "secret123", "newPassword": "newsecret1"},
        headers=user["headers"],
    )
    assert changed.status_code == 200

    old_login = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "secret123"})
    new_login = client.post("/api/auth/login", json={"email": "asha@example.com", "password": "newsecret1"})
    assert old_login.status_code == 401
    assert new_login.status_code == 200


def test_root_and_health(client):
    assert client.get("/").status_code == 200
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json()["status"] == "healthy"
