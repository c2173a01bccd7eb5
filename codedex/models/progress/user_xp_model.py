from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from codedex.db.base_class import Base, new_id

if TYPE_CHECKING:
    from codedex.models.user.user_model import User


class UserXP(Base):
    __tablename__ = "user_xp"
    __table_args__ = (CheckConstraint("total_xp >= 0", name="ck_user_xp_non_negative"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(
        String(32), ForeignKey("users.id", ondelete="CASCADE"), unique=True, index=True
    )
    total_xp: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    user: Mapped["User"] = relationship(back_populates="xp_ledger")
