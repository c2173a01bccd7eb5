from fastapi.testclient import TestClient
from sqlalchemy import create_engine

from codedex.core.config import settings
from codedex.db.session import Database
from codedex.main import create_app
from codedex.models.user.user_model import User, UserRole


def test_startup_creates_tables_and_seeds_admin(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_ADMIN_EMAIL", "root@example.com")
    monkeypatch.setattr(settings, "DEFAULT_ADMIN_PASSWORD", "rootpass")
    database = Database(create_engine(f"sqlite:///{tmp_path / 'app.db'}", connect_args={"check_same_thread": False}))

    with TestClient(create_app(database=database)) as client:
        assert client.get("/").status_code == 200
        login = client.post("/api/auth/login", json={"email": "root@example.com", "password": "rootpass"})
        assert login.status_code == 200
        assert login.json()["user"]["role"] == "ADMIN"

        with database.session() as session:
            assert session.query(User).filter_by(role=UserRole.ADMIN).count() == 1

    # A second start must not duplicate the seeded admin.
    with TestClient(create_app(database=database)):
        with database.session() as session:
            assert session.query(User).count() == 1


def test_startup_without_default_admin_leaves_users_empty(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DEFAULT_ADMIN_EMAIL", None)
    monkeypatch.setattr(settings, "DEFAULT_ADMIN_PASSWORD", None)
    database = Database(create_engine(f"sqlite:///{tmp_path / 'app.db'}", connect_args={"check_same_thread": False}))

    with TestClient(create_app(database=database)):
        with database.session() as session:
            assert session.query(User).count() == 0
