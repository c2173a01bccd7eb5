from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from starlette.requests import Request

from codedex.api.dependencies import _normalize_token_value, get_current_identity, require_admin
from codedex.core import security
from codedex.core.config import settings
from codedex.models.user.user_model import UserRole
from tests.utils import create_user


def _request(token: str | None = None) -> Request:
    headers = []
    if token is not None:
        headers.append((b"cookie", f"{settings.SESSION_COOKIE_NAME}={token}".encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers, "query_string": b""})


@pytest.fixture()
def learner(db_session):
    return create_user(db_session, email="learner@example.com")


@pytest.fixture()
def admin(db_session):
    return create_user(db_session, email="admin@example.com", role=UserRole.ADMIN)


def test_missing_cookie_is_unauthenticated():
    with pytest.raises(HTTPException) as exc:
        get_current_identity(_request())
    assert exc.value.status_code == 401
    assert exc.value.detail == "Not authenticated: No token provided"


def test_expired_cookie_is_unauthenticated(learner):
    token = security.create_session_token(learner, now=datetime.now(timezone.utc) - timedelta(days=30))

    with pytest.raises(HTTPException) as exc:
        get_current_identity(_request(token))
    assert exc.value.status_code == 401
    assert exc.value.detail == "Token expired"


def test_tampered_cookie_is_unauthenticated():
    with pytest.raises(HTTPException) as exc:
        get_current_identity(_request("not.a.token"))
    assert exc.value.status_code == 401
    assert exc.value.detail == "Invalid or expired token"


def test_valid_cookie_attaches_identity(learner):
    request = _request(security.create_session_token(learner))

    identity = get_current_identity(request)

    assert identity.user_id == learner.id
    assert identity.email == "learner@example.com"
    assert request.state.identity is identity


def test_normalize_token_value_strips_quotes_and_encoding():
    assert _normalize_token_value('"abc.def.ghi"') == "abc.def.ghi"
    assert _normalize_token_value("abc%2Edef") == "abc.def"
    assert _normalize_token_value("   ") is None
    assert _normalize_token_value(None) is None


def test_require_admin_rejects_regular_user(db_session, learner):
    identity = security.decode_session_token(security.create_session_token(learner))

    with pytest.raises(HTTPException) as exc:
        require_admin(identity=identity, db=db_session)
    assert exc.value.status_code == 403
    assert exc.value.detail == "Forbidden: Admin access required"


def test_require_admin_accepts_admin(db_session, admin):
    identity = security.decode_session_token(security.create_session_token(admin))

    assert require_admin(identity=identity, db=db_session) is identity


def test_store_policy_rechecks_role(db_session, admin, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_ROLE_POLICY", "store")
    identity = security.decode_session_token(security.create_session_token(admin))

    admin.role = UserRole.USER
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        require_admin(identity=identity, db=db_session)
    assert exc.value.status_code == 403
    assert exc.value.detail == "Forbidden: Admin status revoked or user not found"


def test_store_policy_rejects_deleted_user(db_session, admin, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_ROLE_POLICY", "store")
    identity = security.decode_session_token(security.create_session_token(admin))

    db_session.delete(admin)
    db_session.commit()

    with pytest.raises(HTTPException) as exc:
        require_admin(identity=identity, db=db_session)
    assert exc.value.status_code == 403


def test_token_policy_trusts_the_claim(db_session, admin, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_ROLE_POLICY", "token")
    identity = security.decode_session_token(security.create_session_token(admin))

    admin.role = UserRole.USER
    db_session.commit()

    assert require_admin(identity=identity, db=db_session) is identity
