import logging
from typing import Generator
from urllib.parse import unquote

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from codedex.core import security
from codedex.core.config import settings
from codedex.core.security import SessionIdentity
from codedex.crud import user_crud
from codedex.models.user.user_model import UserRole

log = logging.getLogger(__name__)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Provide one SQLAlchemy session per request.

    FastAPI caches dependencies for the duration of a request, so the guard
    and the route handler share the same session. It is closed once the
    response has been produced.
    """

    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()


def _normalize_token_value(raw_token: str | None) -> str | None:
    """Return a clean JWT string from a cookie value.

    Some clients quote cookie values or percent-encode them; both are
    tolerated.
    """

    if raw_token is None:
        return None

    token = unquote(raw_token.strip().strip('"').strip("'")).strip()
    return token or None


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def resolve_identity(raw_token: str | None) -> SessionIdentity:
    """Decode a raw cookie value into an identity or raise a 401."""

    token = _normalize_token_value(raw_token)
    if not token:
        log.warning("Session rejected: no token provided.")
        raise _unauthenticated("Not authenticated: No token provided")

    try:
        return security.decode_session_token(token)
    except security.ExpiredToken:
        log.warning("Session rejected: token expired.")
        raise _unauthenticated("Token expired")
    except security.InvalidToken as exc:
        log.warning("Session rejected: invalid token (%s).", exc)
        raise _unauthenticated("Invalid or expired token")


def get_current_identity(request: Request) -> SessionIdentity:
    identity = resolve_identity(request.cookies.get(settings.SESSION_COOKIE_NAME))
    request.state.identity = identity
    return identity


def admin_denial_reason(identity: SessionIdentity, db: Session) -> str | None:
    """Return why ``identity`` may not act as an admin, or ``None`` when it may.

    Shared by the API guard and the back-office so both apply
    ``ADMIN_ROLE_POLICY`` the same way.
    """

    if not identity.is_admin:
        return "Forbidden: Admin access required"

    if settings.ADMIN_ROLE_POLICY == "store":
        user = user_crud.get_user(db, identity.user_id)
        if user is None or user.role != UserRole.ADMIN:
            return "Forbidden: Admin status revoked or user not found"

    return None


def require_admin(
    identity: SessionIdentity = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> SessionIdentity:
    reason = admin_denial_reason(identity, db)
    if reason is not None:
        log.warning("Admin access denied for user %s: %s", identity.user_id, reason)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=reason)
    return identity
