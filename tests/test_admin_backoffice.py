from __future__ import annotations

from types import SimpleNamespace

import pytest

from codedex.admin import AdminAuth
from codedex.core import security
from codedex.core.config import settings
from codedex.models.user.user_model import UserRole
from tests.utils import create_user


class _FakeRequest(SimpleNamespace):
    """Just enough of a Starlette request for the authentication backend."""

    def __init__(self, form: dict | None = None, session: dict | None = None):
        super().__init__(session=session if session is not None else {})
        self._form = form or {}

    async def form(self):
        return self._form


@pytest.fixture()
def backend(database):
    return AdminAuth(secret_key=settings.SECRET_KEY, database=database)


@pytest.fixture()
def admin_user(db_session):
    return create_user(db_session, email="admin@example.com", password="adminpass", role=UserRole.ADMIN)


@pytest.mark.asyncio
async def test_admin_can_log_in(backend, admin_user):
    request = _FakeRequest(form={"username": "admin@example.com", "password": "adminpass"})

    assert await backend.login(request) is True
    identity = security.decode_session_token(request.session["token"])
    assert identity.user_id == admin_user.id
    assert await backend.authenticate(request) is True


@pytest.mark.asyncio
async def test_regular_user_cannot_log_in(backend, db_session):
    create_user(db_session, email="a@b.com", password="secret1")
    request = _FakeRequest(form={"username": "a@b.com", "password": "secret1"})

    assert await backend.login(request) is False
    assert "token" not in request.session


@pytest.mark.asyncio
async def test_wrong_password_cannot_log_in(backend, admin_user):
    request = _FakeRequest(form={"username": "admin@example.com", "password": "wrong"})

    assert await backend.login(request) is False


@pytest.mark.asyncio
async def test_authenticate_rejects_missing_or_bad_token(backend):
    assert await backend.authenticate(_FakeRequest()) is False

    request = _FakeRequest(session={"token": "garbage"})
    assert await backend.authenticate(request) is False
    assert request.session == {}


@pytest.mark.asyncio
async def test_authenticate_applies_store_policy(backend, db_session, admin_user, monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_ROLE_POLICY", "store")
    request = _FakeRequest(session={"token": security.create_session_token(admin_user)})

    admin_user.role = UserRole.USER
    db_session.commit()

    assert await backend.authenticate(request) is False
    assert request.session == {}


@pytest.mark.asyncio
async def test_logout_clears_session(backend, admin_user):
    request = _FakeRequest(session={"token": security.create_session_token(admin_user)})

    assert await backend.logout(request) is True
    assert request.session == {}


def test_back_office_redirects_anonymous_visitors(client):
    response = client.get("/admin/", follow_redirects=False)

    assert response.status_code in (302, 303, 307)
    assert response.headers["location"].endswith("/admin/login")
