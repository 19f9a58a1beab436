"""
VideoTube Backend — Video Route Handlers
==========================================

What:  Publish (multipart upload), list and fetch videos.
How:   Stages the video file and thumbnail, delegates to VideoService.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import VideoTubeError
from app.middleware.auth import get_current_user, get_optional_user
from app.models.user import User
from app.schemas.common import ApiResponse, ErrorResponse
from app.schemas.video import VideoPage, VideoResponse
from app.services.file_stager import IMAGE_EXTENSIONS, VIDEO_EXTENSIONS, file_stager
from app.services.video_service import video_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/videos", tags=["Videos"])


@router.post(
    "",
    status_code=201,
    response_model=ApiResponse[VideoResponse],
    responses={
        400: {"description": "Missing fields or unsupported file type", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
        500: {"description": "Upload to Cloudinary failed", "model": ErrorResponse},
    },
    summary="Publish a video",
)
async def publish_video(
    title: str = Form(...),
    description: str = Form(...),
    videoFile: Optional[UploadFile] = File(None, description="Video file"),
    thumbnail: Optional[UploadFile] = File(None, description="Thumbnail image"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[VideoResponse]:
    video_path: Optional[str] = None
    thumbnail_path: Optional[str] = None
    try:
        video_path = await file_stager.stage_upload("videoFile", videoFile, VIDEO_EXTENSIONS)
        thumbnail_path = await file_stager.stage_upload("thumbnail", thumbnail, IMAGE_EXTENSIONS)
    except VideoTubeError:
        await file_stager.discard(video_path)
        raise

    video = await video_service.publish(
        db=db,
        owner=user,
        title=title,
        description=description,
        video_path=video_path,
        thumbnail_path=thumbnail_path,
    )
    return ApiResponse[VideoResponse](
        statuscode=201,
        data=video,
        message="Video published successfully",
    )


@router.get(
    "",
    response_model=ApiResponse[VideoPage],
    summary="List published videos",
)
async def list_videos(
    response: Response,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    owner: Optional[UUID] = Query(default=None, description="Only videos by this user"),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[VideoPage]:
    result = await video_service.list_videos(db=db, page=page, limit=limit, owner_id=owner)
    response.headers["X-Total-Count"] = str(result.total_docs)
    return ApiResponse[VideoPage](statuscode=200, data=result, message="Videos fetched successfully")


@router.get(
    "/{video_id}",
    response_model=ApiResponse[VideoResponse],
    responses={404: {"description": "Video not found", "model": ErrorResponse}},
    summary="Get a video and count the view",
)
async def get_video(
    video_id: UUID,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[VideoResponse]:
    video = await video_service.get_video(db=db, video_id=video_id, viewer=viewer)
    return ApiResponse[VideoResponse](statuscode=200, data=video, message="Video fetched successfully")
