"""Data models for the story text worker."""

from storytext.models.errors import (
    BlobWriteError,
    ConditionalWriteError,
    ConfigurationError,
    DecodeError,
    ErrorResponse,
    GenerationError,
    InvalidTaskTypeError,
    StoreReadError,
    StoreWriteError,
    StoryNotFoundError,
    StoryTextError,
    ValidationError,
)
from storytext.models.message import (
    BatchItemFailure,
    BatchResult,
    DecodedMessage,
    MessageAttribute,
    QueueEvent,
    QueueRecord,
)
from storytext.models.pipeline import ItemOutcome, ItemStage
from storytext.models.story import (
    StoryMetadata,
    StorySegment,
    StoryStatus,
    TaskStatus,
    TaskType,
    VideoTask,
)

__all__ = [
    "BatchItemFailure",
    "BatchResult",
    "BlobWriteError",
    "ConditionalWriteError",
    "ConfigurationError",
    "DecodeError",
    "DecodedMessage",
    "ErrorResponse",
    "GenerationError",
    "InvalidTaskTypeError",
    "ItemOutcome",
    "ItemStage",
    "MessageAttribute",
    "QueueEvent",
    "QueueRecord",
    "StoreReadError",
    "StoreWriteError",
    "StoryMetadata",
    "StoryNotFoundError",
    "StorySegment",
    "StoryStatus",
    "StoryTextError",
    "TaskStatus",
    "TaskType",
    "ValidationError",
    "VideoTask",
]
