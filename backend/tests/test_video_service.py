"""
VideoTube Backend — Video Service Unit Tests
==============================================

What:  Tests for VideoService (publish, list, get).
How:   Mock DB sessions; UploadHandoff is patched in the service module.
"""

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy import inspect
from sqlalchemy.sql.dml import Update

from app.exceptions import DatabaseError, FileStorageError, NotFoundError, ValidationError
from app.services.video_service import VideoService

VIDEO_UPLOAD = {
    "url": "http://res.cloudinary.com/demo/video/upload/v1/clip.mp4",
    "public_id": "clip",
    "resource_type": "video",
    "duration": 42.7,
}
THUMBNAIL_UPLOAD = {"url": "http://res.cloudinary.com/demo/image/upload/v1/thumb.png"}


class TestPublish:

    def setup_method(self):
        self.service = VideoService()

    @pytest.mark.asyncio
    async def test_publish_success(self, flush_assigns_defaults, make_user):
        owner = make_user()
        with patch("app.services.video_service.upload_handoff") as handoff:
            handoff.transfer = AsyncMock(side_effect=[VIDEO_UPLOAD, THUMBNAIL_UPLOAD])
            video = await self.service.publish(
                db=flush_assigns_defaults,
                owner=owner,
                title="  My first video ",
                description="Intro",
                video_path="/tmp/videoFile-1.mp4",
                thumbnail_path="/tmp/thumbnail-1.png",
            )

        assert video.video_file == VIDEO_UPLOAD["url"]
        assert video.thumbnail == THUMBNAIL_UPLOAD["url"]
        assert video.duration == 42.7
        assert video.title == "My first video"
        assert video.owner_id == owner.id
        assert video.views == 0
        assert video.is_published is True

    @pytest.mark.asyncio
    async def test_missing_duration_defaults_to_zero(self, flush_assigns_defaults, make_user):
        with patch("app.services.video_service.upload_handoff") as handoff:
            handoff.transfer = AsyncMock(side_effect=[{"url": "https://cdn.example/v.webm"}, THUMBNAIL_UPLOAD])
            video = await self.service.publish(
                db=flush_assigns_defaults,
                owner=make_user(),
                title="t",
                description="d",
                video_path="/tmp/v.webm",
                thumbnail_path="/tmp/t.png",
            )

        assert video.duration == 0.0

    @pytest.mark.asyncio
    async def test_video_upload_failure(self, mock_db_session, make_user):
        with patch("app.services.video_service.upload_handoff") as handoff, \
             patch("app.services.video_service.file_stager") as stager:
            handoff.transfer = AsyncMock(side_effect=[None, THUMBNAIL_UPLOAD])
            stager.discard = AsyncMock()
            with pytest.raises(FileStorageError) as exc_info:
                await self.service.publish(
                    db=mock_db_session,
                    owner=make_user(),
                    title="t",
                    description="d",
                    video_path="/tmp/v.mp4",
                    thumbnail_path="/tmp/t.png",
                )

        assert exc_info.value.context["field"] == "videoFile"
        # The thumbnail never reaches the store; its staged copy is deleted locally
        handoff.transfer.assert_awaited_once_with("/tmp/v.mp4")
        stager.discard.assert_awaited_once_with("/tmp/t.png")
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_thumbnail_upload_failure(self, mock_db_session, make_user):
        with patch("app.services.video_service.upload_handoff") as handoff:
            handoff.transfer = AsyncMock(side_effect=[VIDEO_UPLOAD, None])
            with pytest.raises(FileStorageError) as exc_info:
                await self.service.publish(
                    db=mock_db_session,
                    owner=make_user(),
                    title="t",
                    description="d",
                    video_path="/tmp/v.mp4",
                    thumbnail_path="/tmp/t.png",
                )

        assert exc_info.value.context["field"] == "thumbnail"
        assert exc_info.value.context["orphaned_public_id"] == "clip"
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_fields_discard_staged_files(self, mock_db_session, make_user):
        with patch("app.services.video_service.upload_handoff") as handoff, \
             patch("app.services.video_service.file_stager") as stager:
            handoff.transfer = AsyncMock()
            stager.discard = AsyncMock()
            with pytest.raises(ValidationError) as exc_info:
                await self.service.publish(
                    db=mock_db_session,
                    owner=make_user(),
                    title="",
                    description="d",
                    video_path="/tmp/v.mp4",
                    thumbnail_path=None,
                )

        assert exc_info.value.context["missing"] == ["title", "thumbnail"]
        handoff.transfer.assert_not_awaited()
        assert stager.discard.await_count == 2

    @pytest.mark.asyncio
    async def test_flush_failure_becomes_database_error(self, mock_db_session, make_user):
        mock_db_session.flush = AsyncMock(side_effect=RuntimeError("connection reset"))
        with patch("app.services.video_service.upload_handoff") as handoff:
            handoff.transfer = AsyncMock(side_effect=[VIDEO_UPLOAD, THUMBNAIL_UPLOAD])
            with pytest.raises(DatabaseError):
                await self.service.publish(
                    db=mock_db_session,
                    owner=make_user(),
                    title="t",
                    description="d",
                    video_path="/tmp/v.mp4",
                    thumbnail_path="/tmp/t.png",
                )


class TestListVideos:

    def setup_method(self):
        self.service = VideoService()

    @staticmethod
    def _results(total, videos):
        count = MagicMock()
        count.scalar.return_value = total
        page = MagicMock()
        page.scalars.return_value.all.return_value = videos
        return [count, page]

    @pytest.mark.asyncio
    async def test_first_page(self, mock_db_session, make_video):
        videos = [make_video(title="newest"), make_video(title="older")]
        mock_db_session.execute = AsyncMock(side_effect=self._results(5, videos))

        page = await self.service.list_videos(mock_db_session, page=1, limit=2)

        assert [v.title for v in page.docs] == ["newest", "older"]
        assert page.total_docs == 5
        assert page.total_pages == 3
        assert page.has_prev_page is False
        assert page.has_next_page is True
        assert page.prev_page is None
        assert page.next_page == 2

    @pytest.mark.asyncio
    async def test_last_page(self, mock_db_session, make_video):
        mock_db_session.execute = AsyncMock(side_effect=self._results(5, [make_video()]))

        page = await self.service.list_videos(mock_db_session, page=3, limit=2)

        assert page.has_next_page is False
        assert page.next_page is None
        assert page.prev_page == 2

    @pytest.mark.asyncio
    async def test_empty_listing(self, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=self._results(0, []))

        page = await self.service.list_videos(mock_db_session)

        assert page.docs == []
        assert page.total_pages == 1
        assert page.has_next_page is False

    @pytest.mark.asyncio
    async def test_database_failure(self, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=RuntimeError("boom"))

        with pytest.raises(DatabaseError):
            await self.service.list_videos(mock_db_session)


class TestGetVideo:

    def setup_method(self):
        self.service = VideoService()

    @staticmethod
    def _results(views, video):
        counted = MagicMock()
        counted.scalar_one_or_none.return_value = views
        fetched = MagicMock()
        fetched.scalar_one_or_none.return_value = video
        return [counted, fetched]

    @pytest.mark.asyncio
    async def test_counts_view(self, mock_db_session, make_video):
        video = make_video(views=4)
        mock_db_session.execute = AsyncMock(side_effect=self._results(5, video))

        response = await self.service.get_video(mock_db_session, video.id)

        assert response.views == 5
        assert mock_db_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_view_increment_runs_in_sql(self, mock_db_session, make_video):
        video = make_video(views=4)
        mock_db_session.execute = AsyncMock(side_effect=self._results(5, video))

        await self.service.get_video(mock_db_session, video.id)

        # A read-modify-write in Python would lose increments from concurrent requests
        statement = mock_db_session.execute.await_args_list[0].args[0]
        assert isinstance(statement, Update)
        assert "views + " in str(statement)

    @pytest.mark.asyncio
    async def test_committed_count_is_not_written_back(self, mock_db_session, make_video):
        video = make_video(views=4)
        mock_db_session.execute = AsyncMock(side_effect=self._results(9, video))

        await self.service.get_video(mock_db_session, video.id)

        assert video.views == 9
        assert not inspect(video).attrs.views.history.has_changes()
        mock_db_session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_records_watch_history_for_viewer(self, mock_db_session, make_video, make_user):
        video, viewer = make_video(), make_user()
        mock_db_session.execute = AsyncMock(side_effect=self._results(1, video))

        with patch("app.services.video_service.user_service") as users:
            users.add_to_watch_history = AsyncMock()
            await self.service.get_video(mock_db_session, video.id, viewer=viewer)

        users.add_to_watch_history.assert_awaited_once_with(mock_db_session, viewer, video)

    @pytest.mark.asyncio
    async def test_unknown_video(self, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=self._results(None, None))

        with pytest.raises(NotFoundError):
            await self.service.get_video(mock_db_session, uuid4())

        # Nothing to load once the UPDATE matched no row
        assert mock_db_session.execute.await_count == 1
