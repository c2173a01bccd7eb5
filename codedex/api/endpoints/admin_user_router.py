"""Admin endpoints for accounts: platform stats, role management, promotion."""

import hmac
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from codedex.api.dependencies import get_db, require_admin
from codedex.core.config import settings
from codedex.core.security import SessionIdentity
from codedex.crud import cms_crud, user_crud
from codedex.models.user.user_model import UserRole
from codedex.schemas.cms import cms_schema
from codedex.schemas.user import user_schema

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])
# Bootstrap route: reachable before any admin exists.
promote_router = APIRouter()


@router.get("/stats", response_model=cms_schema.PlatformStats)
def read_platform_stats(db: Session = Depends(get_db)):
    return cms_crud.platform_stats(db)


@router.get("/users", response_model=List[user_schema.User])
def list_users(db: Session = Depends(get_db)):
    return user_crud.list_users(db)


@router.put("/users/{user_id}", response_model=user_schema.User)
def update_user_role(
    user_id: str,
    payload: user_schema.RoleUpdate,
    db: Session = Depends(get_db),
    identity: SessionIdentity = Depends(require_admin),
):
    try:
        role = UserRole(payload.role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid role. Must be one of: {', '.join(r.value for r in UserRole)}",
        )

    user = user_crud.get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if user.role == UserRole.ADMIN and role != UserRole.ADMIN and user_crud.count_admins(db) <= 1:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot demote the last administrator",
        )

    user = user_crud.set_role(db, user, role)
    logger.info("Admin %s set role of user %s to %s", identity.user_id, user.id, role.value)
    return user


@promote_router.post("/promote", response_model=user_schema.AuthResponse)
def promote_user(payload: user_schema.PromoteRequest, db: Session = Depends(get_db)):
    expected = settings.ADMIN_PROMOTE_SECRET
    if not expected or not hmac.compare_digest(payload.secret.encode(), expected.encode()):
        logger.warning("Rejected admin promotion attempt for %s", payload.email)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: Invalid secret")

    user = user_crud.get_user_by_email(db, payload.email)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user = user_crud.set_role(db, user, UserRole.ADMIN)
    logger.info("User %s promoted to ADMIN", user.id)
    return {"message": f"User {user.email} is now an ADMIN", "user": user}
