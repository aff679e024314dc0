"""SQLAlchemy models for the Content service.

Defines four tables:
- Trail: a learning path with an access gate.
- Module: an ordered group of content items inside a trail.
- ContentItem: a video, PDF, quiz or live session inside a module.
- UserProgress: one row per (user, content) pair.
"""

import uuid
from datetime import datetime
from sqlalchemy.orm import relationship, Mapped, mapped_column
from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text, ForeignKey, UniqueConstraint
from packages.common.db import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Trail(Base):
    """Course-level learning path.

    Attributes:
        id: Primary key (UUID string).
        title: Human-readable trail title.
        description: Optional long description.
        level: Difficulty label shown to learners.
        blocked: Access gate overriding every module and content item below.
        modules: Relationship to the trail's Module rows.
    """

    __tablename__ = "trails"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    level: Mapped[str | None] = mapped_column(String(32), nullable=True)
    blocked: Mapped[bool] = mapped_column(Boolean, default=False)
    modules = relationship("Module", back_populates="trail", cascade="all, delete-orphan")


class Module(Base):
    """Module entity that belongs to a Trail and owns its content items."""

    __tablename__ = "modules"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    trail_id: Mapped[str] = mapped_column(ForeignKey("trails.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    order: Mapped[int] = mapped_column("order_index", Integer, default=0)
    blocked: Mapped[bool] = mapped_column(Boolean, default=False)
    trail = relationship("Trail", back_populates="modules")
    content = relationship("ContentItem", back_populates="module", cascade="all, delete-orphan")


class ContentItem(Base):
    """A single unit of learning material."""

    __tablename__ = "content_items"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    module_id: Mapped[str] = mapped_column(ForeignKey("modules.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(200))
    type: Mapped[str] = mapped_column(String(16))  # video | pdf | quiz | live
    order: Mapped[int] = mapped_column("order_index", Integer, default=0)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration: Mapped[str | None] = mapped_column(String(32), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    blocked: Mapped[bool] = mapped_column(Boolean, default=False)
    module = relationship("Module", back_populates="content")


class UserProgress(Base):
    """Per-user, per-content completion record.

    The (user_id, content_id) pair is unique; writers upsert on it.
    """

    __tablename__ = "user_progress"
    __table_args__ = (UniqueConstraint("user_id", "content_id", name="uq_user_progress_user_content"),)
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    content_id: Mapped[str] = mapped_column(ForeignKey("content_items.id", ondelete="CASCADE"), index=True)
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    percentage: Mapped[float] = mapped_column(Float, default=0)
    last_accessed: Mapped[datetime] = mapped_column(DateTime(timezone=True))
