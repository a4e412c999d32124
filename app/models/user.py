import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    username: Mapped[str] = mapped_column(
        String(50), unique=True, index=True, nullable=False
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    avatar_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # Relationships
    card_sets: Mapped[list["CardSet"]] = relationship(
        "CardSet", back_populates="user", cascade="all, delete-orphan"
    )
    study_progress: Mapped[list["StudyProgress"]] = relationship(
        "StudyProgress", back_populates="user", cascade="all, delete-orphan"
    )
    stats: Mapped["UserStats | None"] = relationship(
        "UserStats", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    achievements: Mapped[list["UserAchievement"]] = relationship(
        "UserAchievement", back_populates="user", cascade="all, delete-orphan"
    )
    special_badges: Mapped[list["SpecialBadgeGrant"]] = relationship(
        "SpecialBadgeGrant",
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="SpecialBadgeGrant.user_id",
    )
