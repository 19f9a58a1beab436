"""
VideoTube Backend — Video Service
===================================

What:  Publishing, listing and fetching videos.
How:   Hands the staged video file and thumbnail to UploadHandoff, stores the
       returned URLs and Cloudinary-reported duration on a Video row.
Who:   Called by the videos routes.

Publish Flow (POST /api/v1/videos):
    staged videoFile ──▶ UploadHandoff ──┐
    staged thumbnail ──▶ UploadHandoff ──┴──▶ Video(duration=result["duration"])

    Either handoff returning None → FileStorageError naming the field. A failed
    video upload discards the staged thumbnail without uploading it; a failed
    thumbnail logs the public_id of the video asset left on the store.
"""

import logging
import math
from typing import Optional
from uuid import UUID

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from app.exceptions import DatabaseError, FileStorageError, NotFoundError, ValidationError
from app.models.user import User
from app.models.video import Video
from app.schemas.video import VideoPage, VideoResponse
from app.services.file_stager import file_stager
from app.services.upload_handoff import upload_handoff
from app.services.user_service import user_service

logger = logging.getLogger(__name__)


class VideoService:

    async def publish(
        self,
        db: AsyncSession,
        owner: User,
        title: str,
        description: str,
        video_path: Optional[str],
        thumbnail_path: Optional[str],
    ) -> VideoResponse:
        """
        Upload a video and its thumbnail, then persist the Video row.

        Raises:
            ValidationError: Missing title/description/files
            FileStorageError: A handoff returned no result
            DatabaseError: Unexpected database failure
        """
        missing = [
            name
            for name, value in (
                ("title", title),
                ("description", description),
                ("videoFile", video_path),
                ("thumbnail", thumbnail_path),
            )
            if not (value or "").strip()
        ]
        if missing:
            await file_stager.discard(video_path)
            await file_stager.discard(thumbnail_path)
            raise ValidationError(
                message=f"Missing required fields: {', '.join(missing)}",
                context={"missing": missing},
            )

        # The thumbnail is only uploaded once the video is on the store
        video_upload = await upload_handoff.transfer(video_path)
        if video_upload is None:
            await file_stager.discard(thumbnail_path)
            raise FileStorageError(
                message="Video file upload failed. Please try again.",
                context={"field": "videoFile"},
            )

        thumbnail_upload = await upload_handoff.transfer(thumbnail_path)
        if thumbnail_upload is None:
            logger.warning(
                "Thumbnail upload failed; video asset %s is orphaned on the store",
                video_upload.get("public_id"),
            )
            raise FileStorageError(
                message="Thumbnail upload failed. Please try again.",
                context={"field": "thumbnail", "orphaned_public_id": video_upload.get("public_id")},
            )

        video = Video(
            video_file=video_upload.get("url"),
            thumbnail=thumbnail_upload.get("url"),
            title=title.strip(),
            description=description.strip(),
            duration=float(video_upload.get("duration") or 0.0),
            owner_id=owner.id,
        )
        db.add(video)
        try:
            await db.flush()
        except Exception as e:
            logger.error("Database error publishing video: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the video. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Video published: %s by %s (%.1fs)", video.id, owner.username, video.duration)
        return VideoResponse.model_validate(video)

    async def list_videos(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        owner_id: Optional[UUID] = None,
    ) -> VideoPage:
        """
        One page of published videos, newest first.

        Query plan:
            SELECT ... WHERE is_published ORDER BY created_at DESC
            LIMIT :limit OFFSET (:page - 1) * :limit
            → idx_videos_published_created_at
        """
        try:
            filters = [Video.is_published.is_(True)]
            if owner_id is not None:
                filters.append(Video.owner_id == owner_id)

            count_result = await db.execute(select(func.count(Video.id)).where(*filters))
            total_docs = count_result.scalar() or 0

            result = await db.execute(
                select(Video)
                .where(*filters)
                .order_by(desc(Video.created_at))
                .offset((page - 1) * limit)
                .limit(limit)
            )
            videos = list(result.scalars().all())
        except Exception as e:
            logger.error("Database error listing videos: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve videos. Please try again.",
                context={"error_type": type(e).__name__},
            )

        total_pages = math.ceil(total_docs / limit) if total_docs else 1
        has_prev_page = page > 1
        has_next_page = page < total_pages
        return VideoPage(
            docs=[VideoResponse.model_validate(v) for v in videos],
            total_docs=total_docs,
            limit=limit,
            page=page,
            total_pages=total_pages,
            has_prev_page=has_prev_page,
            has_next_page=has_next_page,
            prev_page=page - 1 if has_prev_page else None,
            next_page=page + 1 if has_next_page else None,
        )

    async def get_video(
        self,
        db: AsyncSession,
        video_id: UUID,
        viewer: Optional[User] = None,
    ) -> VideoResponse:
        """
        Fetch a video, count the view, and record it in the viewer's history.

        The view count is incremented in SQL (views = views + 1), so
        concurrent views of one video are never lost.

        Raises:
            NotFoundError: No such video
        """
        counted = await db.execute(
            update(Video)
            .where(Video.id == video_id)
            .values(views=Video.views + 1)
            .returning(Video.views)
            .execution_options(synchronize_session=False)
        )
        views = counted.scalar_one_or_none()
        if views is None:
            raise NotFoundError(resource="video", resource_id=str(video_id))

        result = await db.execute(select(Video).where(Video.id == video_id))
        video = result.scalar_one_or_none()
        if video is None:
            raise NotFoundError(resource="video", resource_id=str(video_id))
        # Not marked dirty: a later flush must not write this value back
        set_committed_value(video, "views", views)

        if viewer is not None:
            await user_service.add_to_watch_history(db, viewer, video)

        return VideoResponse.model_validate(video)


video_service = VideoService()
