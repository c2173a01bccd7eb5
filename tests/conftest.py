"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///test.db")
os.environ.setdefault("SECRET_KEY", "secret-key")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("ADMIN_ROLE_POLICY", "store")

import codedex.db.base  # noqa: E402,F401  registers every model
from codedex.db.base_class import Base  # noqa: E402
from codedex.db.session import Database  # noqa: E402
from codedex.main import create_app  # noqa: E402


@pytest.fixture()
def engine():
    # A single shared connection keeps the in-memory database alive across
    # sessions and the TestClient worker thread.
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine) -> Session:
    SessionLocal = sessionmaker(bind=engine, future=True)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def database(engine) -> Database:
    return Database(sync_engine=engine)


@pytest.fixture()
def app(database):
    return create_app(database=database)


@pytest.fixture()
def client(app) -> TestClient:
    # Tables already exist; lifecycle hooks are covered in test_app_lifecycle.
    return TestClient(app)
