"""
VideoTube Backend — Video SQLAlchemy Model
============================================

What:  ORM model representing the `videos` table.
Who:   Used by VideoService and Alembic.

Table Design:
    - video_file / thumbnail: Cloudinary URLs returned by the upload handoff
    - duration: seconds, as reported by Cloudinary for the uploaded video
    - views: incremented on every detail fetch
    - is_published: only published videos appear in listings
    - owner_id: the uploading user

    Index on (is_published, created_at) serves the listing query.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Float, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Video(Base):
    """A published (or unpublished) video owned by a user."""

    __tablename__ = "videos"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    video_file: Mapped[str] = mapped_column(Text, nullable=False, comment="Cloudinary URL")
    thumbnail: Mapped[str] = mapped_column(Text, nullable=False, comment="Cloudinary URL")
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    duration: Mapped[float] = mapped_column(Float, nullable=False, comment="Seconds, from Cloudinary")
    views: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    is_published: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        server_default=text("true"),
    )
    owner_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_videos_published_created_at", "is_published", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Video(id={self.id}, title='{self.title}', published={self.is_published})>"
