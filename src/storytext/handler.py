"""Queue-event entry point."""

from functools import lru_cache
from typing import Any

from storytext.config import get_settings
from storytext.pipeline.batch import BatchRunner
from storytext.pipeline.manager import StoryTaskPipeline


@lru_cache
def get_batch_runner() -> BatchRunner:
    """Build the pipeline once per process; raises ConfigurationError if unconfigured."""
    return BatchRunner(StoryTaskPipeline.from_settings(get_settings()))


def handler(event: dict, context: Any = None) -> dict:
    """Process a queue event; returns ``{"batchItemFailures": [...]}``."""
    return get_batch_runner().run(event).to_response()
