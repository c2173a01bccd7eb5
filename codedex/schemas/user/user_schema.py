# Fichier: codedex/schemas/user/user_schema.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime

from codedex.models.user.user_model import UserRole


# --- Requests ---
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    # The client may echo its id; the session always wins.
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    name: str


class RoleUpdate(BaseModel):
    role: str


class PromoteRequest(BaseModel):
    email: EmailStr
    secret: str


# --- Responses ---
# No password hash here, ever.
class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: EmailStr
    name: Optional[str] = None
    role: UserRole
    github_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SessionUser(BaseModel):
    id: str
    email: str
    role: UserRole
    name: Optional[str] = None
    issued_at: datetime
    expires_at: datetime


class AuthResponse(BaseModel):
    message: str
    user: User


class SessionResponse(BaseModel):
    user: SessionUser


class ProfileResponse(BaseModel):
    user: User
