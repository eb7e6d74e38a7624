"""Error handling middleware."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from storytext.models.errors import (
    BlobWriteError,
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

logger = logging.getLogger(__name__)


async def storytext_error_handler(request: Request, exc: StoryTextError) -> JSONResponse:
    """Handle StoryTextError exceptions."""
    status_code = _get_status_code(exc)
    if status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    response = ErrorResponse.from_exception(exc, retry=_is_retryable(exc))
    return JSONResponse(status_code=status_code, content=response.model_dump())


def _get_status_code(exc: StoryTextError) -> int:
    """Map error type to HTTP status code."""
    if isinstance(exc, (DecodeError, InvalidTaskTypeError, ValidationError)):
        return 400
    elif isinstance(exc, StoryNotFoundError):
        return 404
    elif isinstance(exc, ConfigurationError):
        return 500
    elif isinstance(exc, (GenerationError, StoreReadError, StoreWriteError, BlobWriteError)):
        return 503
    return 500


def _is_retryable(exc: StoryTextError) -> bool:
    """Determine if the error is retryable."""
    return isinstance(exc, (GenerationError, StoreReadError, StoreWriteError, BlobWriteError))
