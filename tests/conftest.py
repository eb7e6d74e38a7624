"""Shared test fixtures: in-memory backends, scripted generator, event builders."""

import json

import pytest

from storytext.generation.generator import TextGenerator
from storytext.models.message import QueueRecord
from storytext.models.story import StoryMetadata, StoryStatus
from storytext.pipeline.batch import BatchRunner
from storytext.pipeline.manager import StoryTaskPipeline
from storytext.storage.backends import InMemoryRecordBackend
from storytext.storage.blobs import BlobPublisher, InMemoryBlobBackend
from storytext.storage.records import TaskRecordStore

METADATA_TABLE = "story-metadata"
TASKS_TABLE = "story-tasks"
BUCKET = "story-bucket"

FOX_SEGMENTS = [{"text": "Once upon a time", "imagePrompt": "a fox in a forest"}]


class RecordingBackend(InMemoryRecordBackend):
    """In-memory backend that records every mutating call."""

    def __init__(self, fail_batch_at: int | None = None):
        super().__init__()
        self.mutations: list[str] = []
        self.batch_sizes: list[int] = []
        self.fail_batch_at = fail_batch_at

    def put(self, table, key, item, unique_on=()):
        self.mutations.append("put")
        super().put(table, key, item, unique_on)

    def update(self, table, key, set_fields, remove_fields=()):
        self.mutations.append("update")
        return super().update(table, key, set_fields, remove_fields)

    def batch_put(self, table, items):
        self.mutations.append("batch_put")
        if self.fail_batch_at is not None and len(self.batch_sizes) == self.fail_batch_at:
            raise ConnectionError("throttled")
        self.batch_sizes.append(len(items))
        super().batch_put(table, items)


class ScriptedGenerator(TextGenerator):
    """Returns a fixed output, or raises a fixed error."""

    def __init__(self, output: str = json.dumps(FOX_SEGMENTS), error: Exception | None = None):
        self.output = output
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.output


class FailingBlobBackend:
    def put(self, bucket, key, body, content_type, metadata):
        raise OSError("bucket unavailable")


def make_record(
    message_id: str = "m1",
    story_id: str = "s1",
    prompt: str = "a fox",
    task_type: str | None = None,
    envelope: bool = True,
) -> QueueRecord:
    """Build a queue record carrying a story request."""
    content = json.dumps({"id": story_id, "story_prompt": prompt})
    body = json.dumps({"Message": content}) if envelope else content
    attributes = {}
    if task_type is not None:
        attributes["task_type"] = {"stringValue": task_type, "dataType": "String"}
    return QueueRecord.model_validate(
        {"messageId": message_id, "body": body, "messageAttributes": attributes}
    )


def make_event(*records: QueueRecord) -> dict:
    return {"Records": [r.model_dump(by_alias=True) for r in records]}


@pytest.fixture
def record_backend():
    return RecordingBackend()


@pytest.fixture
def blob_backend():
    return InMemoryBlobBackend()


@pytest.fixture
def record_store(record_backend):
    return TaskRecordStore(record_backend, METADATA_TABLE, TASKS_TABLE)


@pytest.fixture
def blob_publisher(blob_backend):
    return BlobPublisher(blob_backend, BUCKET)


@pytest.fixture
def generator():
    return ScriptedGenerator()


@pytest.fixture
def pipeline(record_store, blob_publisher, generator):
    return StoryTaskPipeline(record_store, blob_publisher, generator)


@pytest.fixture
def runner(pipeline):
    return BatchRunner(pipeline)


@pytest.fixture
def seed_story(record_backend):
    """Create a PENDING metadata record the way the upstream service does."""

    def _seed(story_id: str = "s1") -> None:
        metadata = StoryMetadata(id=story_id, created_by="user-1", status=StoryStatus.PENDING)
        record_backend.put(METADATA_TABLE, (story_id,), metadata.to_item())
        record_backend.mutations.clear()

    return _seed
