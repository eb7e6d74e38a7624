"""Story metadata, task, and segment models.

Records persist with camelCase attribute names (``taskIdsByType``,
``pendingTaskId`` ...); Python code uses the snake_case field names.
"""

import uuid
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, StrictStr, model_validator
from pydantic.alias_generators import to_camel


class StoryStatus(StrEnum):
    """Lifecycle of a story request."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    POST_PROCESSING = "POST_PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TaskStatus(StrEnum):
    """Lifecycle of a single derivative task."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class TaskType(StrEnum):
    """Kinds of derivative work produced for a story."""

    TEXT = "TEXT"
    TTS = "TTS"
    IMAGE = "IMAGE"
    SUBTITLE = "SUBTITLE"


def utc_now() -> datetime:
    return datetime.now(UTC)


def generate_task_id() -> str:
    """Random hex token used as a task sort key."""
    return uuid.uuid4().hex


class StoreRecord(BaseModel):
    """Base for persisted records: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_item(self) -> dict:
        """Serialize to a store item, omitting absent optional attributes."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_item(cls, item: dict):
        return cls.model_validate(item)


class StoryMetadata(StoreRecord):
    """One record per story request, keyed by story id."""

    id: str = Field(..., min_length=1)
    created_by: str = Field(default="")
    status: StoryStatus = Field(default=StoryStatus.PENDING)
    date_created: datetime | None = None
    date_updated: datetime | None = None
    task_ids_by_type: dict[TaskType, list[str]] = Field(
        default_factory=dict, description="Task ids per type, populated on completion"
    )


class VideoTask(StoreRecord):
    """One unit of derivative work, keyed by (story id, task id)."""

    id: str = Field(..., min_length=1, description="Parent story id")
    task_id: str = Field(default_factory=generate_task_id, min_length=1)
    type: TaskType
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    source_prompt: str = Field(default="")
    date_created: datetime = Field(default_factory=utc_now)
    date_updated: datetime = Field(default_factory=utc_now)
    media_url: str | None = None
    pending_task_id: str | None = None

    @model_validator(mode="after")
    def validate_completion_fields(self) -> "VideoTask":
        if self.status == TaskStatus.COMPLETED:
            if self.pending_task_id is not None:
                raise ValueError("pendingTaskId must be absent once a task is COMPLETED")
        elif self.media_url is not None:
            raise ValueError("mediaUrl is only set on COMPLETED tasks")
        return self


class StorySegment(BaseModel):
    """One narrative beat and the prompt used to illustrate it."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    text: StrictStr
    image_prompt: StrictStr
