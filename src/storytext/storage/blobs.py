"""Blob storage for raw generator output."""

import json
import logging
import os
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Protocol

from storytext.models.errors import BlobWriteError, StoryTextError
from storytext.models.story import TaskType, utc_now

logger = logging.getLogger(__name__)

CONTENT_TYPE_JSON = "application/json"
CONTENT_CATEGORY = "story-text"


class BlobBackend(Protocol):
    """Write-only object storage capability."""

    def put(
        self, bucket: str, key: str, body: str, content_type: str, metadata: dict[str, str]
    ) -> None:
        ...


@dataclass
class StoredBlob:
    body: str
    content_type: str
    metadata: dict[str, str] = field(default_factory=dict)


class InMemoryBlobBackend:
    """Dict-backed object store for tests and local runs."""

    def __init__(self):
        self.objects: dict[tuple[str, str], StoredBlob] = {}
        self._lock = threading.Lock()

    def put(
        self, bucket: str, key: str, body: str, content_type: str, metadata: dict[str, str]
    ) -> None:
        with self._lock:
            self.objects[(bucket, key)] = StoredBlob(body, content_type, dict(metadata))


class LocalBlobBackend:
    """Stores objects as files under ``base_dir/<bucket>/<key>``.

    Content type and metadata go to a ``<key>.meta.json`` sidecar. Both files
    are staged and renamed into place, sidecar first, so an object is never
    visible without its metadata.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _object_path(self, bucket: str, key: str) -> Path:
        root = (self.base_dir / bucket).resolve()
        path = (root / key).resolve()
        if ".." in Path(key).parts or not path.is_relative_to(root) or path == root:
            raise BlobWriteError(
                f"Object key {key!r} escapes bucket {bucket}",
                details={"bucket": bucket, "key": key},
            )
        return path

    def put(
        self, bucket: str, key: str, body: str, content_type: str, metadata: dict[str, str]
    ) -> None:
        path = self._object_path(bucket, key)
        sidecar = path.with_name(path.name + ".meta.json")
        path.parent.mkdir(parents=True, exist_ok=True)

        staged_body = path.with_name(path.name + ".tmp")
        staged_sidecar = sidecar.with_name(sidecar.name + ".tmp")
        staged_body.write_text(body)
        staged_sidecar.write_text(
            json.dumps({"content_type": content_type, "metadata": metadata}, indent=2)
        )
        os.replace(staged_sidecar, sidecar)
        os.replace(staged_body, path)


def blob_key(story_id: str, task_id: str, task_type: TaskType = TaskType.TEXT) -> str:
    """Object key for a task's raw output."""
    return f"{story_id}/{task_id}_{task_type}.json"


class BlobPublisher:
    """Uploads raw generator responses and returns their locator."""

    def __init__(
        self,
        backend: BlobBackend,
        bucket: str,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.backend = backend
        self.bucket = bucket
        self._clock = clock

    def publish(
        self, story_id: str, task_id: str, payload: str, task_type: TaskType = TaskType.TEXT
    ) -> str:
        """Upload *payload* and return its locator (the object key)."""
        key = blob_key(story_id, task_id, task_type)
        metadata = {
            "story-id": story_id,
            "uploaded-at": self._clock().isoformat(),
            "content-category": CONTENT_CATEGORY,
        }
        try:
            self.backend.put(self.bucket, key, payload, CONTENT_TYPE_JSON, metadata)
        except StoryTextError:
            raise
        except Exception as e:
            raise BlobWriteError(
                f"Failed to upload {key} to {self.bucket}: {e}",
                details={"bucket": self.bucket, "key": key},
            ) from e
        logger.info("Uploaded %s to bucket %s", key, self.bucket)
        return key
