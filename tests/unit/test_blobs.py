"""Tests for blob publishing."""

import json
from datetime import UTC, datetime

import pytest

from storytext.models.errors import BlobWriteError
from storytext.models.story import TaskType
from storytext.storage.blobs import BlobPublisher, InMemoryBlobBackend, LocalBlobBackend, blob_key
from tests.conftest import BUCKET, FailingBlobBackend

FIXED_NOW = datetime(2026, 1, 2, tzinfo=UTC)


class TestBlobKey:
    def test_text_key(self):
        assert blob_key("s1", "abc") == "s1/abc_TEXT.json"

    def test_other_type(self):
        assert blob_key("s1", "abc", TaskType.IMAGE) == "s1/abc_IMAGE.json"


class TestBlobPublisher:
    def test_publish_returns_key(self):
        backend = InMemoryBlobBackend()
        publisher = BlobPublisher(backend, BUCKET, clock=lambda: FIXED_NOW)

        locator = publisher.publish("s1", "t1", '[{"text": "a"}]')

        assert locator == "s1/t1_TEXT.json"
        stored = backend.objects[(BUCKET, locator)]
        assert stored.body == '[{"text": "a"}]'
        assert stored.content_type == "application/json"
        assert stored.metadata == {
            "story-id": "s1",
            "uploaded-at": FIXED_NOW.isoformat(),
            "content-category": "story-text",
        }

    def test_backend_failure(self):
        publisher = BlobPublisher(FailingBlobBackend(), BUCKET)
        with pytest.raises(BlobWriteError) as exc_info:
            publisher.publish("s1", "t1", "[]")
        assert exc_info.value.details == {"bucket": BUCKET, "key": "s1/t1_TEXT.json"}


class TestLocalBlobBackend:
    def test_writes_object_and_sidecar(self, tmp_path):
        publisher = BlobPublisher(LocalBlobBackend(tmp_path), BUCKET)
        key = publisher.publish("s1", "t1", "[]")

        path = tmp_path / BUCKET / key
        assert path.read_text() == "[]"
        sidecar = json.loads((path.parent / "t1_TEXT.json.meta.json").read_text())
        assert sidecar["content_type"] == "application/json"
        assert sidecar["metadata"]["story-id"] == "s1"

    def test_leaves_no_staged_files(self, tmp_path):
        backend = LocalBlobBackend(tmp_path)
        backend.put(BUCKET, "s1/t1_TEXT.json", "[]", "application/json", {})
        backend.put(BUCKET, "s1/t1_TEXT.json", "[1]", "application/json", {"v": "2"})

        names = sorted(p.name for p in (tmp_path / BUCKET / "s1").iterdir())
        assert names == ["t1_TEXT.json", "t1_TEXT.json.meta.json"]
        assert (tmp_path / BUCKET / "s1" / "t1_TEXT.json").read_text() == "[1]"

    @pytest.mark.parametrize("story_id", ["..", "../other", "s1/../../escape"])
    def test_rejects_parent_references(self, tmp_path, story_id):
        publisher = BlobPublisher(LocalBlobBackend(tmp_path / "blobs"), BUCKET)
        with pytest.raises(BlobWriteError) as exc_info:
            publisher.publish(story_id, "t1", "[]")
        assert exc_info.value.details["bucket"] == BUCKET
        assert [p for p in tmp_path.rglob("*") if p.is_file()] == []

    def test_rejects_absolute_story_id(self, tmp_path):
        outside = tmp_path / "outside"
        publisher = BlobPublisher(LocalBlobBackend(tmp_path / "blobs"), BUCKET)
        with pytest.raises(BlobWriteError):
            publisher.publish(str(outside), "t1", "[]")
        assert not outside.exists()
