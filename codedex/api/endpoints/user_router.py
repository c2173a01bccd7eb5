import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from codedex.api.dependencies import get_current_identity, get_db
from codedex.core.security import SessionIdentity
from codedex.crud import user_crud
from codedex.schemas.user import user_schema

router = APIRouter()
logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 50


@router.post("/update-profile", response_model=user_schema.ProfileResponse)
def update_profile(
    payload: user_schema.ProfileUpdate,
    db: Session = Depends(get_db),
    identity: SessionIdentity = Depends(get_current_identity),
):
    if payload.user_id is not None and payload.user_id != identity.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden: You can only update your own profile",
        )

    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")
    if len(name) > NAME_MAX_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Name must be at most {NAME_MAX_LENGTH} characters",
        )

    user = user_crud.get_user(db, identity.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    user = user_crud.update_name(db, user, name)
    logger.info("User %s updated their profile", user.id)
    return {"user": user}
