"""
VideoTube Backend — Upload Handoff Unit Tests
===============================================

What:  Tests for UploadHandoff (staged file → remote store → local cleanup).
How:   A FakeStore double and real files under pytest's tmp_path.

What we test:
    ✅ Success returns the store response unchanged and deletes the file
    ✅ Store failure returns None, deletes the file, never raises
    ✅ Empty path short-circuits: no store call, nothing deleted
    ✅ Already-deleted file is not an error
    ✅ transfer_outcome explains why there is no result
"""

import os
from unittest.mock import AsyncMock, patch

import pytest

from app.exceptions import RemoteStoreError
from app.services.upload_handoff import UploadHandoff, UploadOutcome

from conftest import FakeStore


class TestTransferSuccess:

    @pytest.mark.asyncio
    async def test_returns_store_response_and_deletes_file(self, staged_file):
        response = {"url": "https://cdn.example/avatar123.png", "id": "avatar123"}
        store = FakeStore(response=response)
        handoff = UploadHandoff(store)

        result = await handoff.transfer(staged_file)

        assert result is response
        assert not os.path.exists(staged_file)

    @pytest.mark.asyncio
    async def test_uploads_once_with_auto_resource_type(self, staged_file, fake_store):
        await UploadHandoff(fake_store).transfer(staged_file)

        assert len(fake_store.calls) == 1
        assert fake_store.calls[0]["local_path"] == staged_file
        assert fake_store.calls[0]["resource_type"] == "auto"

    @pytest.mark.asyncio
    async def test_file_still_exists_while_uploading(self, staged_file, fake_store):
        """Deletion happens after the store has read the file."""
        await UploadHandoff(fake_store).transfer(staged_file)

        assert fake_store.file_existed_during_upload == [True]
        assert not os.path.exists(staged_file)

    @pytest.mark.asyncio
    async def test_video_response_fields_pass_through(self, temp_dir):
        path = temp_dir / "videoFile.mp4"
        path.write_bytes(b"\x00\x00\x00\x18ftypmp42")
        response = {
            "url": "http://res.cloudinary.com/demo/video/upload/v1/clip.mp4",
            "public_id": "clip",
            "resource_type": "video",
            "duration": 42.7,
        }

        result = await UploadHandoff(FakeStore(response=response)).transfer(str(path))

        assert result["duration"] == 42.7
        assert result["resource_type"] == "video"


class TestTransferFailure:

    @pytest.mark.asyncio
    async def test_store_error_returns_none_and_deletes_file(self, staged_file):
        store = FakeStore(error=RemoteStoreError(message="Upload to Cloudinary failed"))

        result = await UploadHandoff(store).transfer(staged_file)

        assert result is None
        assert not os.path.exists(staged_file)

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_absorbed(self, staged_file):
        store = FakeStore(error=RuntimeError("network exploded"))

        result = await UploadHandoff(store).transfer(staged_file)

        assert result is None
        assert not os.path.exists(staged_file)

    @pytest.mark.asyncio
    async def test_failed_upload_is_not_retried(self, staged_file):
        store = FakeStore(error=RemoteStoreError())

        await UploadHandoff(store).transfer(staged_file)

        assert len(store.calls) == 1


class TestEmptyPath:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["", None])
    async def test_empty_path_returns_none_without_store_call(self, path, fake_store):
        with patch("app.services.upload_handoff.aiofiles.os.remove", new=AsyncMock()) as remove:
            result = await UploadHandoff(fake_store).transfer(path)

        assert result is None
        assert fake_store.calls == []
        remove.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_path_leaves_other_files_alone(self, staged_file, fake_store):
        await UploadHandoff(fake_store).transfer("")

        assert os.path.exists(staged_file)


class TestCleanup:

    @pytest.mark.asyncio
    async def test_already_deleted_file_returns_none_gracefully(self, staged_file):
        """The store reports the missing file; cleanup finds nothing to delete."""
        os.remove(staged_file)
        store = FakeStore(error=RemoteStoreError(context={"error_type": "FileNotFoundError"}))

        result = await UploadHandoff(store).transfer(staged_file)

        assert result is None

    @pytest.mark.asyncio
    async def test_file_removed_by_store_is_not_an_error(self, staged_file):
        """A store that consumes the file leaves nothing for cleanup."""

        class ConsumingStore(FakeStore):
            async def upload(self, local_path, resource_type="auto", **options):
                os.remove(local_path)
                return {"url": "https://cdn.example/consumed.png"}

        result = await UploadHandoff(ConsumingStore()).transfer(staged_file)

        assert result == {"url": "https://cdn.example/consumed.png"}

    @pytest.mark.asyncio
    async def test_cleanup_os_error_does_not_change_result(self, staged_file, fake_store):
        with patch(
            "app.services.upload_handoff.aiofiles.os.remove",
            new=AsyncMock(side_effect=PermissionError("read-only file system")),
        ):
            result = await UploadHandoff(fake_store).transfer(staged_file)

        assert result == fake_store.response


class TestTransferOutcome:

    @pytest.mark.asyncio
    async def test_success_outcome(self, staged_file, fake_store):
        outcome = await UploadHandoff(fake_store).transfer_outcome(staged_file)

        assert isinstance(outcome, UploadOutcome)
        assert outcome.ok
        assert outcome.url == "https://cdn.example/file"
        assert outcome.error is None

    @pytest.mark.asyncio
    async def test_empty_path_reason(self, fake_store):
        outcome = await UploadHandoff(fake_store).transfer_outcome("")

        assert not outcome.ok
        assert outcome.url is None
        assert outcome.error.reason == "empty_path"

    @pytest.mark.asyncio
    async def test_upload_failed_reason(self, staged_file):
        store = FakeStore(error=RemoteStoreError(message="Upload to Cloudinary failed"))

        outcome = await UploadHandoff(store).transfer_outcome(staged_file)

        assert outcome.result is None
        assert outcome.error.reason == "upload_failed"
        assert outcome.error.message == "Upload to Cloudinary failed"
        assert outcome.error.error_type == "RemoteStoreError"
        assert not os.path.exists(staged_file)
