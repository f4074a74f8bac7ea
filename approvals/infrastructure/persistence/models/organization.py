"""Organisation hierarchy tables (forum > area > unit).

Owned and maintained by the organisation module; the approval engine only
reads each body's administrator.
"""

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from approvals.infrastructure.persistence.database import Base
from approvals.infrastructure.persistence.models.mixins import TimestampedModel


class Forum(TimestampedModel, Base):
    __tablename__ = "forum"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    admin_user_id: Mapped[str | None] = mapped_column(String, nullable=True)


class Area(TimestampedModel, Base):
    __tablename__ = "area"

    forum_id: Mapped[str] = mapped_column(
        String, ForeignKey("forum.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    admin_user_id: Mapped[str | None] = mapped_column(String, nullable=True)


class Unit(TimestampedModel, Base):
    __tablename__ = "unit"

    area_id: Mapped[str] = mapped_column(
        String, ForeignKey("area.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    admin_user_id: Mapped[str | None] = mapped_column(String, nullable=True)
