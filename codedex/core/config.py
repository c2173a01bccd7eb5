import sys
from typing import List, Literal, Optional

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # --- Session ---
    SESSION_COOKIE_NAME: str = "codedex_session_token"
    SESSION_TTL_DAYS: int = 7
    JWT_ALGORITHM: str = "HS256"

    # "token" trusts the role claim, "store" re-reads the role for every
    # admin-gated operation.
    ADMIN_ROLE_POLICY: Literal["token", "store"] = "store"
    ADMIN_PROMOTE_SECRET: Optional[str] = None
    DEFAULT_ADMIN_EMAIL: Optional[str] = None
    DEFAULT_ADMIN_PASSWORD: Optional[str] = None

    # --- Progress ---
    PROGRESS_AWARD_XP_ON_REPEAT: bool = True

    # --- Database ---
    SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS: int = 300
    DATABASE_CONNECTION_MAX_RETRIES: int = 1
    DATABASE_CONNECTION_RETRY_BACKOFF_SECONDS: float = 1.0

    class Config:
        env_file = ".env"

    @property
    def session_max_age_seconds(self) -> int:
        return self.SESSION_TTL_DAYS * 24 * 60 * 60

    @property
    def secure_cookies(self) -> bool:
        return self.ENVIRONMENT == "production"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def _normalize_database_url(cls, value: str) -> str:
        """Ensure Postgres URLs always use the asyncpg driver.

        Managed Postgres providers still hand out ``postgres://`` URLs, an
        alias SQLAlchemy no longer ships. Those, as well as ``postgresql://``
        and the psycopg variants, are rewritten to ``postgresql+asyncpg://``.
        SQLite and other backends are left untouched.
        """

        if not isinstance(value, str):
            return value

        if "+asyncpg" in value:
            return value

        replacements = {
            "postgres://": "postgresql+asyncpg://",
            "postgresql://": "postgresql+asyncpg://",
            "postgresql+psycopg2://": "postgresql+asyncpg://",
            "postgresql+psycopg://": "postgresql+asyncpg://",
        }

        for prefix, target in replacements.items():
            if value.startswith(prefix):
                return target + value[len(prefix):]

        return value


def _log_settings_validation_error(exc: ValidationError) -> None:
    """Print which environment variables are missing or invalid.

    The exception bubbles up during module import, so the structured payload
    is written to stderr before re-raising to make the culprit obvious in
    server logs.
    """

    print("Configuration error while loading environment variables:", file=sys.stderr)

    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Unknown validation error")
        type_name = error.get("type")
        hint = f"{message} (type={type_name})" if type_name else message
        print(f"  - {location}: {hint}", file=sys.stderr)


try:
    settings = Settings()
except ValidationError as exc:  # pragma: no cover - exercised at runtime
    _log_settings_validation_error(exc)
    raise
