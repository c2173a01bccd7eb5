from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from codedex.db.base_class import Base, new_id


class Setting(Base):
    """Key/value site configuration edited from the admin (site name, maintenance mode...)."""

    __tablename__ = "settings"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    key: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    label: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[str] = mapped_column(String(30), nullable=False, default="text")
    group: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
