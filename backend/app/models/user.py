"""
VideoTube Backend — User SQLAlchemy Model
===========================================

What:  ORM model for the `users` table plus the `watch_history` association.
How:   Field rules are enforced with @validates so an invalid User can never
       be constructed; the password is hashed as soon as it is assigned.
Who:   Used by UserService, the auth dependency and Alembic.

Field rules:
    username     required, unique, trimmed, ≥ 3 chars, indexed
    email        required, unique, trimmed, lower-cased, must look like a@b.c
    fullname     required, trimmed, ≥ 3 chars, indexed
    avatar       required Cloudinary URL
    cover_image  optional Cloudinary URL
    password     required, ≥ 6 chars before hashing, stored as bcrypt hash
    refresh_token  last refresh token issued (None after logout)
"""

import re
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Column, ForeignKey, String, Table, Text, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.database import Base
from app.exceptions import ValidationError
from app.security import (
    TokenManager,
    access_tokens,
    hash_password,
    refresh_tokens,
    verify_password,
)

EMAIL_PATTERN = re.compile(r".+@.+\..+")
USERNAME_MIN_LENGTH = 3
FULLNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Watch History ─────────────────────────────────────────────────────────
# Ordered by watched_at; one row per (user, video) pair.
watch_history = Table(
    "watch_history",
    Base.metadata,
    Column("user_id", UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("video_id", UUID(as_uuid=True), ForeignKey("videos.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "watched_at",
        TIMESTAMP(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    ),
)


class User(Base):
    """
    A registered channel owner / viewer.

    Lifecycle:
        1. Registered with avatar (and optional cover image) already on Cloudinary
        2. Login stores the refresh token; logout clears it
        3. Watching a video appends it to watch_history
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    fullname: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    avatar: Mapped[str] = mapped_column(Text, nullable=False, comment="Cloudinary URL")
    cover_image: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="Cloudinary URL")
    password: Mapped[str] = mapped_column(String(255), nullable=False, comment="bcrypt hash")
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

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

    watch_history: Mapped[List["Video"]] = relationship(  # noqa: F821
        "Video",
        secondary=watch_history,
        order_by=watch_history.c.watched_at,
        lazy="selectin",
    )

    # ── Field Rules ───────────────────────────────────────────────────────
    @validates("username")
    def _validate_username(self, key: str, value: str) -> str:
        value = (value or "").strip()
        if len(value) < USERNAME_MIN_LENGTH:
            raise ValidationError(
                message=f"Username must be at least {USERNAME_MIN_LENGTH} characters",
                field="username",
            )
        return value

    @validates("email")
    def _validate_email(self, key: str, value: str) -> str:
        value = (value or "").strip().lower()
        if not EMAIL_PATTERN.fullmatch(value):
            raise ValidationError(message="Email address is not valid", field="email")
        return value

    @validates("fullname")
    def _validate_fullname(self, key: str, value: str) -> str:
        value = (value or "").strip()
        if len(value) < FULLNAME_MIN_LENGTH:
            raise ValidationError(
                message=f"Full name must be at least {FULLNAME_MIN_LENGTH} characters",
                field="fullname",
            )
        return value

    @validates("avatar")
    def _validate_avatar(self, key: str, value: str) -> str:
        if not value:
            raise ValidationError(message="Avatar is required", field="avatar")
        return value

    @validates("password")
    def _hash_password(self, key: str, value: str) -> str:
        """Hashes every newly assigned password; rows loaded from the DB are not re-hashed."""
        if not value:
            raise ValidationError(message="Password is required", field="password")
        if len(value) < PASSWORD_MIN_LENGTH:
            raise ValidationError(
                message=f"Password must be at least {PASSWORD_MIN_LENGTH} characters",
                field="password",
            )
        return hash_password(value)

    # ── Auth Helpers ──────────────────────────────────────────────────────
    def is_password_correct(self, password: str) -> bool:
        return verify_password(password, self.password)

    def generate_access_token(self, tokens: TokenManager = access_tokens) -> str:
        return tokens.create(
            {
                "_id": str(self.id),
                "username": self.username,
                "email": self.email,
                "fullname": self.fullname,
            }
        )

    def generate_refresh_token(self, tokens: TokenManager = refresh_tokens) -> str:
        return tokens.create({"_id": str(self.id)})

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}')>"
