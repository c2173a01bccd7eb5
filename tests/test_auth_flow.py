from datetime import datetime, timedelta, timezone

from codedex.core import security
from codedex.core.config import settings
from codedex.models.user.user_model import User
from tests.utils import create_user, login


def test_register_creates_user_without_leaking_hash(client, db_session):
    response = client.post(
        "/api/auth/register",
        json={"name": "  Ada  ", "email": "ada@example.com", "password": "secret1"},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User created successfully"
    assert body["user"]["email"] == "ada@example.com"
    assert body["user"]["name"] == "Ada"
    assert body["user"]["role"] == "USER"
    assert "password_hash" not in body["user"]

    stored = db_session.query(User).filter_by(email="ada@example.com").one()
    assert stored.password_hash != "secret1"


def test_register_duplicate_email_conflicts(client, db_session):
    create_user(db_session, email="ada@example.com")

    response = client.post("/api/auth/register", json={"email": "ada@example.com", "password": "secret1"})

    assert response.status_code == 409
    assert response.json() == {"message": "User with this email already exists"}


def test_register_rejects_short_password(client):
    response = client.post("/api/auth/register", json={"email": "ada@example.com", "password": "123"})

    assert response.status_code == 400
    assert "password" in response.json()["message"]


def test_login_sets_session_cookie(client, db_session):
    create_user(db_session, email="a@b.com", password="secret1")

    response = login(client, "a@b.com", "secret1")

    assert response.status_code == 200
    assert response.json()["message"] == "Login successful"
    assert response.json()["user"]["email"] == "a@b.com"

    cookie_header = response.headers["set-cookie"].lower()
    assert cookie_header.startswith(f"{settings.SESSION_COOKIE_NAME}=")
    assert "httponly" in cookie_header
    assert "samesite=lax" in cookie_header
    assert f"max-age={7 * 24 * 60 * 60}" in cookie_header
    assert "path=/" in cookie_header
    assert "secure" not in cookie_header


def test_login_failures_share_one_message(client, db_session):
    create_user(db_session, email="a@b.com", password="secret1")

    wrong_password = login(client, "a@b.com", "nope-nope")
    unknown_email = login(client, "ghost@b.com", "secret1")

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json() == {"message": "Invalid email or password"}
    assert settings.SESSION_COOKIE_NAME not in client.cookies


def test_login_with_unreadable_stored_hash_is_rejected(client, db_session):
    create_user(db_session, email="a@b.com", password_hash="legacy-plaintext")

    response = login(client, "a@b.com", "legacy-plaintext")

    assert response.status_code == 401
    assert response.json() == {"message": "Invalid email or password"}


def test_session_reports_identity_after_login(client, db_session):
    user = create_user(db_session, email="a@b.com", name="Ada", password="secret1")
    login(client, "a@b.com", "secret1")

    response = client.get("/api/auth/session")

    assert response.status_code == 200
    session_user = response.json()["user"]
    assert session_user["id"] == user.id
    assert session_user["email"] == "a@b.com"
    assert session_user["role"] == "USER"
    assert session_user["name"] == "Ada"


def test_session_without_cookie_is_unauthenticated(client):
    response = client.get("/api/auth/session")

    assert response.status_code == 401
    assert response.json() == {"message": "Not authenticated: No token provided", "user": None}


def test_logout_clears_session(client, db_session):
    create_user(db_session, email="a@b.com", password="secret1")
    login(client, "a@b.com", "secret1")
    assert client.get("/api/auth/session").status_code == 200

    response = client.post("/api/auth/logout")

    assert response.status_code == 200
    assert response.json() == {"message": "Logout successful"}
    assert "max-age=0" in response.headers["set-cookie"].lower()
    assert client.get("/api/auth/session").status_code == 401


def test_expired_cookie_is_reported(client, db_session):
    user = create_user(db_session, email="a@b.com")
    token = security.create_session_token(user, now=datetime.now(timezone.utc) - timedelta(days=8))
    client.cookies.set(settings.SESSION_COOKIE_NAME, token)

    response = client.get("/api/auth/session")

    assert response.status_code == 401
    assert response.json()["message"] == "Token expired"


def test_update_profile_trims_name(client, db_session):
    user = create_user(db_session, email="a@b.com", password="secret1")
    login(client, "a@b.com", "secret1")

    response = client.post("/api/user/update-profile", json={"userId": user.id, "name": "  Grace  "})

    assert response.status_code == 200
    assert response.json()["user"]["name"] == "Grace"


def test_update_profile_validates_name(client, db_session):
    create_user(db_session, email="a@b.com", password="secret1")
    login(client, "a@b.com", "secret1")

    blank = client.post("/api/user/update-profile", json={"name": "   "})
    too_long = client.post("/api/user/update-profile", json={"name": "x" * 51})

    assert blank.status_code == 400
    assert too_long.status_code == 400


def test_update_profile_of_someone_else_is_forbidden(client, db_session):
    create_user(db_session, email="a@b.com", password="secret1")
    other = create_user(db_session, email="other@b.com")
    login(client, "a@b.com", "secret1")

    response = client.post("/api/user/update-profile", json={"userId": other.id, "name": "Mallory"})

    assert response.status_code == 403
