# Fichier: codedex/core/security.py

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from codedex.core.config import settings
from codedex.models.user.user_model import User, UserRole

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
logger = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ("sub", "email", "role", "iat", "exp")


class InvalidToken(Exception):
    """Raised for any structural or cryptographic problem with a session token."""


class ExpiredToken(InvalidToken):
    """Raised when a well-formed, correctly signed token is past ``exp``."""


@dataclass(slots=True)
class SessionIdentity:
    """Snapshot of the user carried by a session token."""

    user_id: str
    email: str
    role: UserRole
    name: Optional[str]
    issued_at: datetime
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.user_id,
            "email": self.email,
            "role": self.role.value,
            "name": self.name,
            "issued_at": self.issued_at,
            "expires_at": self.expires_at,
        }


# --- Passwords ---
def verify_password(plain_password: str | None, hashed_password: str | None) -> bool:
    """Return ``True`` when ``plain_password`` matches the stored hash."""

    if not plain_password or not hashed_password:
        return False

    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as exc:
        logger.warning("Password verification failed: %s", exc)
        return False


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


# --- Session tokens ---
def create_session_token(
    user: User,
    *,
    now: datetime | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Issue a signed token for ``user``, valid ``SESSION_TTL_DAYS`` by default."""

    issued_at = now or datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(days=settings.SESSION_TTL_DAYS))

    role = user.role.value if isinstance(user.role, UserRole) else str(user.role)
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "role": role,
        "name": user.name,
        "iat": int(issued_at.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_session_token(token: str | None, *, now: datetime | None = None) -> SessionIdentity:
    """Verify ``token`` and return the identity it carries.

    Signature and expiry are both checked. ``ExpiredToken`` is raised only for
    tokens that are otherwise valid; everything else raises ``InvalidToken``.
    ``now`` overrides the clock used for the expiry check.
    """

    if not token:
        raise InvalidToken("empty token")

    options = {"verify_exp": now is None}
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options=options,
        )
    except ExpiredSignatureError as exc:
        raise ExpiredToken("token expired") from exc
    except JWTError as exc:
        raise InvalidToken(str(exc)) from exc

    missing = [claim for claim in _REQUIRED_CLAIMS if payload.get(claim) in (None, "")]
    if missing:
        raise InvalidToken(f"missing claims: {', '.join(missing)}")

    try:
        role = UserRole(payload["role"])
        issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc)
        expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc)
    except (ValueError, TypeError, OverflowError) as exc:
        raise InvalidToken(f"malformed claims: {exc}") from exc

    if expires_at <= issued_at:
        raise InvalidToken("token expires before it was issued")

    if now is not None and now >= expires_at:
        raise ExpiredToken("token expired")

    return SessionIdentity(
        user_id=str(payload["sub"]),
        email=payload["email"],
        role=role,
        name=payload.get("name"),
        issued_at=issued_at,
        expires_at=expires_at,
    )
