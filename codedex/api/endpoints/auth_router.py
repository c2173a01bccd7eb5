# Fichier: codedex/api/endpoints/auth_router.py

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from codedex.api.dependencies import get_db, resolve_identity
from codedex.core import security
from codedex.core.config import settings
from codedex.crud import user_crud
from codedex.schemas.user import user_schema

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=user_schema.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user_in: user_schema.UserCreate, db: Session = Depends(get_db)):
    if user_crud.get_user_by_email(db, email=user_in.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")

    try:
        user = user_crud.create_user(db=db, user=user_in)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User with this email already exists")

    logger.info("New account registered: %s", user.id)
    return {"message": "User created successfully", "user": user}


@router.post("/login", response_model=user_schema.AuthResponse)
def login(
    credentials: user_schema.UserLogin,
    response: Response,
    db: Session = Depends(get_db),
):
    user = user_crud.get_user_by_email(db, email=credentials.email)
    # Same answer for unknown email and wrong password.
    if not user or not security.verify_password(credentials.password, user.password_hash):
        logger.warning("Failed login attempt for %s", credentials.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    token = security.create_session_token(user)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
        max_age=settings.session_max_age_seconds,
        path="/",
    )

    logger.info("User %s logged in", user.id)
    return {"message": "Login successful", "user": user}


@router.post("/logout")
def logout() -> JSONResponse:
    response = JSONResponse({"message": "Logout successful"})
    response.delete_cookie(
        key=settings.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
    return response


@router.get("/session", response_model=user_schema.SessionResponse)
def read_session(request: Request):
    """Return the identity carried by the session cookie.

    A missing, expired or tampered cookie answers 401 with ``user: null`` so
    the frontend can tell "signed out" apart from a transport error.
    """

    try:
        identity = resolve_identity(request.cookies.get(settings.SESSION_COOKIE_NAME))
    except HTTPException as exc:
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail, "user": None})

    request.state.identity = identity
    return {"user": identity.as_dict()}
