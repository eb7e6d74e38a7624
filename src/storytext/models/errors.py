"""Error hierarchy and error response models."""

from pydantic import BaseModel, Field


class StoryTextError(Exception):
    """Base error for all story text worker errors."""

    def __init__(self, message: str, component: str = "", details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.component = component
        self.details = details or {}


class DecodeError(StoryTextError):
    """Queue message body could not be decoded into a task payload."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="decoder", details=details)


class InvalidTaskTypeError(StoryTextError):
    """Message declared a task type this worker does not handle."""

    def __init__(self, task_type: str):
        super().__init__(
            f"Invalid task type: {task_type}",
            component="decoder",
            details={"task_type": task_type},
        )
        self.task_type = task_type


class GenerationError(StoryTextError):
    """The text generation API call failed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="generation", details=details)


class ValidationError(StoryTextError):
    """Generated output is not a well-formed sequence of story segments.

    ``index`` is the offending array element, or None when the output as a
    whole is unusable. ``raw_output`` keeps the generator text for diagnostics.
    """

    def __init__(self, reason: str, raw_output: str = "", index: int | None = None):
        where = f" at index {index}" if index is not None else ""
        super().__init__(
            f"Invalid story segments{where}: {reason}",
            component="validation",
            details={"index": index, "reason": reason},
        )
        self.reason = reason
        self.index = index
        self.raw_output = raw_output


class StoreReadError(StoryTextError):
    """Record store read failed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="store", details=details)


class StoreWriteError(StoryTextError):
    """Record store write failed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="store", details=details)


class ConditionalWriteError(StoreWriteError):
    """An insert-if-absent found a conflicting record already present."""


class BlobWriteError(StoryTextError):
    """Blob upload failed."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="blob", details=details)


class ConfigurationError(StoryTextError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, component="config", details=details)


class StoryNotFoundError(StoryTextError):
    """No metadata record exists for the requested story."""

    def __init__(self, story_id: str):
        super().__init__(
            f"Story {story_id} not found", component="store", details={"story_id": story_id}
        )


class ErrorResponse(BaseModel):
    """Standardized error response for API."""

    error_type: str = Field(..., description="Error category")
    component: str = Field(default="", description="Component that raised the error")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict)
    retry_possible: bool = Field(default=False)

    @classmethod
    def from_exception(cls, exc: StoryTextError, retry: bool = False) -> "ErrorResponse":
        return cls(
            error_type=type(exc).__name__,
            component=exc.component,
            message=exc.message,
            details=exc.details,
            retry_possible=retry,
        )
