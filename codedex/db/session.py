"""Database engines and session factory.

The :class:`Database` handle owns both SQLAlchemy engines. It is created once
by the application factory, verified and migrated at startup and disposed on
shutdown. The synchronous engine serves the API, the asynchronous one serves
the SQLAdmin back-office.
"""

from __future__ import annotations

import logging
import time
from time import perf_counter
from typing import Any, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.orm import Session, sessionmaker

from codedex.core.config import settings
from codedex.db.base_class import Base

logger = logging.getLogger(__name__)


def _derive_sync_connection_parameters(async_url: str) -> tuple[str, dict[str, Any]]:
    """Return a synchronous SQLAlchemy URL matching the async configuration."""

    parsed_url: URL = make_url(async_url)
    drivername = parsed_url.drivername
    connect_args: dict[str, Any] = {}

    if drivername == "postgresql" or drivername.startswith("postgresql+"):
        # Pin psycopg 3; a bare ``postgresql`` URL would resolve to psycopg2.
        parsed_url = parsed_url.set(drivername="postgresql+psycopg")
    elif drivername == "sqlite+aiosqlite":
        parsed_url = parsed_url.set(drivername="sqlite")
        connect_args["check_same_thread"] = False

    return parsed_url.render_as_string(hide_password=False), connect_args


def _install_slow_query_logger(engine: Engine) -> None:
    """Warn when a statement exceeds ``SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS``."""

    threshold_ms = max(settings.SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS or 0, 0)
    if threshold_ms == 0:
        return

    marker = "_codedex_slow_query_hook"
    if getattr(engine, marker, False):
        return
    setattr(engine, marker, True)

    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._codedex_query_start = perf_counter()

    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        start = getattr(context, "_codedex_query_start", None)
        if start is None:
            return

        elapsed_ms = (perf_counter() - start) * 1000.0
        if elapsed_ms < threshold_ms:
            return

        snippet = " ".join(statement.split()) if isinstance(statement, str) else str(statement)
        if len(snippet) > 200:
            snippet = snippet[:197] + "..."

        logger.warning("Slow SQL (%.1f ms) - %s", elapsed_ms, snippet)

    event.listen(engine, "before_cursor_execute", _before_cursor_execute)
    event.listen(engine, "after_cursor_execute", _after_cursor_execute)


class Database:
    """Explicitly-lifetimed persistence handle shared by every request."""

    def __init__(self, sync_engine: Engine, async_engine: AsyncEngine | None = None):
        self.sync_engine = sync_engine
        self.async_engine = async_engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=sync_engine)
        _install_slow_query_logger(sync_engine)

    @classmethod
    def from_url(cls, database_url: str | None = None) -> "Database":
        """Build both engines for ``database_url`` without connecting yet."""

        async_url = str(database_url or settings.DATABASE_URL)
        logger.info("Configuring database: %s", make_url(async_url).render_as_string(hide_password=True))

        async_engine = create_async_engine(async_url, echo=False)
        sync_url, connect_args = _derive_sync_connection_parameters(async_url)
        sync_engine = create_engine(sync_url, pool_pre_ping=True, connect_args=connect_args)
        return cls(sync_engine, async_engine)

    @property
    def admin_engine(self) -> Engine | AsyncEngine:
        return self.async_engine or self.sync_engine

    def session(self) -> Session:
        return self.SessionLocal()

    def verify_connection(self) -> None:
        """Ping the database, retrying with exponential backoff on transient outages."""

        max_retries = max(settings.DATABASE_CONNECTION_MAX_RETRIES or 1, 1)
        backoff = max(settings.DATABASE_CONNECTION_RETRY_BACKOFF_SECONDS or 1.0, 0.1)

        attempt = 1
        last_exc: Optional[Exception] = None

        while attempt <= max_retries:
            try:
                with self.sync_engine.connect() as connection:
                    connection.execute(text("SELECT 1"))
                return
            except (OperationalError, OSError) as exc:
                last_exc = exc
                if attempt >= max_retries:
                    break

                delay = min(30.0, backoff * (2 ** (attempt - 1)))
                logger.warning(
                    "Database connection failed (attempt %s/%s): %s. Retrying in %.1f s.",
                    attempt,
                    max_retries,
                    exc,
                    delay,
                )
                time.sleep(delay)
                attempt += 1

        if last_exc is not None:
            logger.error("Database connection failed: %s", last_exc)
            raise last_exc

    def create_all(self) -> None:
        # Importing the registry attaches every model to ``Base.metadata``.
        import codedex.db.base  # noqa: F401

        Base.metadata.create_all(bind=self.sync_engine)

    def dispose(self) -> None:
        self.sync_engine.dispose()
        if self.async_engine is not None:
            self.async_engine.sync_engine.dispose()
