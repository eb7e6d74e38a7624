"""Per-item pipeline stage and outcome models."""

from enum import StrEnum

from pydantic import BaseModel, Field

from storytext.models.story import TaskType


class ItemStage(StrEnum):
    """Stages a single queue message passes through."""

    RECEIVED = "received"
    DECODED = "decoded"
    TYPE_CHECKED = "type_checked"
    SKIPPED = "skipped"
    TEXT_TASK_CREATED = "text_task_created"
    METADATA_IN_PROGRESS = "metadata_in_progress"
    GENERATED = "generated"
    VALIDATED = "validated"
    BLOB_UPLOADED = "blob_uploaded"
    FANNED_OUT = "fanned_out"
    TEXT_TASK_COMPLETED = "text_task_completed"
    METADATA_COMPLETED = "metadata_completed"
    FAILED = "failed"


class ItemOutcome(BaseModel):
    """Result of running one queue message through the pipeline."""

    message_id: str = Field(..., min_length=1)
    story_id: str | None = None
    stage: ItemStage = Field(default=ItemStage.RECEIVED)
    failed_at: ItemStage | None = Field(
        default=None, description="Last stage reached before failure"
    )
    error_type: str | None = None
    error: str | None = None
    text_task_id: str | None = None
    media_url: str | None = None
    task_ids_by_type: dict[TaskType, list[str]] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.stage in (ItemStage.METADATA_COMPLETED, ItemStage.SKIPPED)
