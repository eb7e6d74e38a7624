"""Dependency injection providers for FastAPI."""

from storytext.handler import get_batch_runner
from storytext.pipeline.batch import BatchRunner
from storytext.storage.records import TaskRecordStore


def get_runner() -> BatchRunner:
    return get_batch_runner()


def get_record_store() -> TaskRecordStore:
    return get_batch_runner().pipeline.record_store
