"""
VideoTube Backend — Video Schemas
===================================

What:  Pydantic models for the videos API, including the paginated listing.

Pagination envelope:
    Page-number pagination with the same fields as mongoose-aggregate-paginate:
    docs, total_docs, limit, page, total_pages, has_prev_page, has_next_page,
    prev_page, next_page.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class VideoResponse(BaseModel):
    """Full video representation."""
    id: uuid.UUID
    video_file: str = Field(description="Cloudinary URL of the video")
    thumbnail: str = Field(description="Cloudinary URL of the thumbnail")
    title: str
    description: str
    duration: float = Field(description="Duration in seconds")
    views: int
    is_published: bool
    owner_id: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class VideoPage(BaseModel):
    """One page of videos."""
    docs: List[VideoResponse]
    total_docs: int
    limit: int
    page: int
    total_pages: int
    has_prev_page: bool
    has_next_page: bool
    prev_page: Optional[int] = None
    next_page: Optional[int] = None
