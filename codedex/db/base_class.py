# Fichier: codedex/db/base_class.py
import uuid

from sqlalchemy.orm import DeclarativeBase


def new_id() -> str:
    """Opaque primary key used by every table."""
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    """
    Base class shared by every SQLAlchemy model.
    Its metadata is used to create the database schema.
    """
