"""
VideoTube Backend — User Service
==================================

What:  Registration, login/logout, token refresh and watch history.
How:   Composes FileStager, UploadHandoff, the User model and database operations.
Who:   Called by the users routes and by VideoService (watch history).

Registration Flow (POST /api/v1/users/register):
    ┌──────────┐   ┌────────────┐   ┌───────────────┐   ┌──────────┐
    │ staged   │──▶│ uniqueness │──▶│ UploadHandoff │──▶│ persist  │
    │ files    │   │ check      │   │ avatar, cover │   │ User     │
    └──────────┘   └────────────┘   └───────────────┘   └──────────┘

    Duplicate user → staged files discarded, ConflictError (409)
    Database failure before the handoff → staged files discarded, DatabaseError (500)
    Avatar handoff returns None → cover discarded unuploaded, ValidationError (400)
    A cover image that fails to upload is dropped (the field is optional)
"""

import logging
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import insert, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    AuthenticationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
    VideoTubeError,
)
from app.models.user import User, watch_history
from app.models.video import Video
from app.schemas.user import LoginResult, TokenPair, UserPublic
from app.security import refresh_tokens
from app.services.file_stager import file_stager
from app.services.upload_handoff import upload_handoff

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic for user accounts.

    Error Handling Strategy:
        Application exceptions propagate unchanged. Unexpected database errors
        are wrapped in DatabaseError so no SQL detail reaches the client.
    """

    async def register(
        self,
        db: AsyncSession,
        fullname: str,
        email: str,
        username: str,
        password: str,
        avatar_path: Optional[str],
        cover_image_path: Optional[str] = None,
    ) -> UserPublic:
        """
        Create a user whose avatar (and optional cover image) live on Cloudinary.

        Args:
            db: Async database session
            fullname, email, username, password: Form fields
            avatar_path: Staged avatar file (required)
            cover_image_path: Staged cover image file (optional)

        Returns:
            UserPublic view of the created user

        Raises:
            ValidationError: Missing fields or the avatar could not be uploaded
            ConflictError: Username or email already taken
            DatabaseError: Unexpected database failure
        """
        try:
            if any(not (value or "").strip() for value in (fullname, email, username, password)):
                raise ValidationError(message="All fields are required")
            if not avatar_path:
                raise ValidationError(message="Avatar file is required", field="avatar")

            existing = await db.execute(
                select(User).where(
                    or_(User.username == username.strip(), User.email == email.strip().lower())
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(
                    message="User with email or username already exists",
                    context={"username": username.strip()},
                )

            # Field rules run (and the password is hashed) before anything is uploaded
            user = User(fullname=fullname, email=email, username=username, password=password)
        except VideoTubeError:
            await file_stager.discard(avatar_path)
            await file_stager.discard(cover_image_path)
            raise
        except Exception as e:
            await file_stager.discard(avatar_path)
            await file_stager.discard(cover_image_path)
            logger.error("Database error checking user %s: %s", username, str(e), exc_info=True)
            raise DatabaseError(
                message="Something went wrong while registering the user",
                context={"error_type": type(e).__name__},
            )

        # The cover is only uploaded once the required avatar is on the store
        avatar = await upload_handoff.transfer(avatar_path)
        if avatar is None:
            await file_stager.discard(cover_image_path)
            raise ValidationError(message="Avatar file is required", field="avatar")

        cover_image = await upload_handoff.transfer(cover_image_path)
        if cover_image_path and cover_image is None:
            logger.warning("Cover image upload failed for %s; registering without it", username)

        user.avatar = avatar.get("url")
        user.cover_image = cover_image.get("url") if cover_image else None
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            raise ConflictError(
                message="User with email or username already exists",
                context={"error_type": type(e).__name__},
            )
        except Exception as e:
            logger.error("Database error registering %s: %s", username, str(e), exc_info=True)
            raise DatabaseError(
                message="Something went wrong while registering the user",
                context={"error_type": type(e).__name__},
            )

        logger.info("User registered: %s (%s)", user.username, user.id)
        return UserPublic.model_validate(user)

    async def _issue_tokens(self, db: AsyncSession, user: User) -> Tuple[str, str]:
        access_token = user.generate_access_token()
        refresh_token = user.generate_refresh_token()
        user.refresh_token = refresh_token
        await db.flush()
        return access_token, refresh_token

    async def login(self, db: AsyncSession, identifier: str, password: str) -> LoginResult:
        """
        Authenticate by username or email and issue a token pair.

        Raises:
            NotFoundError: No user with that username/email
            AuthenticationError: Wrong password
        """
        identifier = identifier.strip()
        result = await db.execute(
            select(User).where(
                or_(User.username == identifier, User.email == identifier.lower())
            )
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user")

        if not user.is_password_correct(password):
            raise AuthenticationError(message="Invalid user credentials")

        access_token, refresh_token = await self._issue_tokens(db, user)
        logger.info("User logged in: %s", user.username)
        return LoginResult(
            user=UserPublic.model_validate(user),
            access_token=access_token,
            refresh_token=refresh_token,
        )

    async def logout(self, db: AsyncSession, user: User) -> None:
        user.refresh_token = None
        await db.flush()
        logger.info("User logged out: %s", user.username)

    async def refresh(self, db: AsyncSession, incoming_token: Optional[str]) -> TokenPair:
        """
        Rotate tokens given a valid refresh token.

        The token must decode, reference an existing user, and equal the
        refresh token stored for that user (so a logged-out token is dead).
        """
        if not incoming_token:
            raise AuthenticationError(message="Refresh token is required")

        claims = refresh_tokens.decode(incoming_token)
        user = await self.get_user(db, claims.get("_id"))
        if user is None or user.refresh_token != incoming_token:
            raise AuthenticationError(message="Refresh token is expired or used")

        access_token, refresh_token = await self._issue_tokens(db, user)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    async def get_user(self, db: AsyncSession, user_id) -> Optional[User]:
        """Fetch a user by id; malformed ids yield None."""
        try:
            uid = user_id if isinstance(user_id, UUID) else UUID(str(user_id))
        except ValueError:
            return None
        result = await db.execute(select(User).where(User.id == uid))
        return result.scalar_one_or_none()

    async def add_to_watch_history(self, db: AsyncSession, user: User, video: Video) -> None:
        """Record that `user` watched `video`; repeat views keep the first entry."""
        existing = await db.execute(
            select(watch_history.c.video_id).where(
                watch_history.c.user_id == user.id,
                watch_history.c.video_id == video.id,
            )
        )
        if existing.first() is not None:
            return
        await db.execute(insert(watch_history).values(user_id=user.id, video_id=video.id))


user_service = UserService()
