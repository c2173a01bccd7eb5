# Fichier: codedex/crud/user_crud.py

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from codedex.core.security import get_password_hash
from codedex.models.user.user_model import User, UserRole
from codedex.schemas.user.user_schema import UserCreate


def get_user(db: Session, user_id: str) -> Optional[User]:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Fetch a user by email address.

    Args:
        db: The database session.
        email: The email to look for.

    Returns:
        The User if found, otherwise None.
    """
    return db.query(User).filter(User.email == email).first()


def create_user(db: Session, user: UserCreate, role: UserRole = UserRole.USER) -> User:
    """
    Create a new user with a hashed password.

    Args:
        db: The database session.
        user: The registration payload.
        role: Role granted to the new account.

    Returns:
        The freshly created User.
    """
    db_user = User(
        email=user.email,
        name=user.name.strip() if user.name and user.name.strip() else None,
        password_hash=get_password_hash(user.password),
        role=role,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.desc()).all()


def count_admins(db: Session) -> int:
    return db.query(func.count(User.id)).filter(User.role == UserRole.ADMIN).scalar() or 0


def set_role(db: Session, user: User, role: UserRole) -> User:
    user.role = role
    db.commit()
    db.refresh(user)
    return user


def update_name(db: Session, user: User, name: str) -> User:
    user.name = name
    db.commit()
    db.refresh(user)
    return user
