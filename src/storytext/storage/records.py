"""Task and metadata record persistence."""

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime

from storytext.models.errors import StoreReadError, StoreWriteError, StoryTextError
from storytext.models.story import (
    StoryMetadata,
    StoryStatus,
    TaskStatus,
    TaskType,
    VideoTask,
    utc_now,
)
from storytext.storage.backends import MAX_BATCH_ITEMS, RecordBackend

logger = logging.getLogger(__name__)


@contextmanager
def _store_call(error_cls: type[StoryTextError], operation: str, **details) -> Iterator[None]:
    """Wrap backend failures in the store's domain error."""
    try:
        yield
    except StoryTextError:
        raise
    except Exception as e:
        raise error_cls(
            f"{operation} failed: {e}", details={"operation": operation, **details}
        ) from e


class TaskRecordStore:
    """Creates, queries, and updates story metadata and task records.

    Every operation touches a single key and is safe to retry on its own.
    """

    def __init__(
        self,
        backend: RecordBackend,
        metadata_table: str,
        tasks_table: str,
        chunk_size: int = MAX_BATCH_ITEMS,
        clock: Callable[[], datetime] = utc_now,
    ):
        if not 1 <= chunk_size <= MAX_BATCH_ITEMS:
            raise ValueError(f"chunk_size must be in [1, {MAX_BATCH_ITEMS}], got {chunk_size}")
        self.backend = backend
        self.metadata_table = metadata_table
        self.tasks_table = tasks_table
        self.chunk_size = chunk_size
        self._clock = clock

    def _now(self) -> str:
        return self._clock().isoformat()

    # Reads

    def get_metadata(self, story_id: str) -> StoryMetadata | None:
        with _store_call(StoreReadError, "get_metadata", story_id=story_id):
            item = self.backend.get(self.metadata_table, (story_id,))
            return StoryMetadata.from_item(item) if item else None

    def find_text_task(self, story_id: str) -> VideoTask | None:
        """Return the story's TEXT task, if one was already created."""
        tasks = self.list_tasks(story_id, TaskType.TEXT)
        return tasks[0] if tasks else None

    def list_tasks(self, story_id: str, task_type: TaskType | None = None) -> list[VideoTask]:
        filters = {"type": str(task_type)} if task_type else None
        with _store_call(StoreReadError, "list_tasks", story_id=story_id):
            items = self.backend.query(self.tasks_table, story_id, filters)
            return [VideoTask.from_item(item) for item in items]

    # Task writes

    def create_task(self, task: VideoTask) -> None:
        with _store_call(StoreWriteError, "create_task", story_id=task.id, task_id=task.task_id):
            self.backend.put(self.tasks_table, (task.id, task.task_id), task.to_item())

    def create_text_task(self, task: VideoTask) -> None:
        """Insert a TEXT task only if the story has none yet.

        Raises ConditionalWriteError when another TEXT task already exists.
        """
        if task.type != TaskType.TEXT:
            raise ValueError(f"create_text_task expects a TEXT task, got {task.type}")
        with _store_call(StoreWriteError, "create_text_task", story_id=task.id):
            self.backend.put(
                self.tasks_table, (task.id, task.task_id), task.to_item(), unique_on=("type",)
            )

    def bulk_create_tasks(self, tasks: list[VideoTask]) -> int:
        """Insert tasks in ordered chunks of at most ``chunk_size``.

        A failing chunk aborts the remaining ones. Chunks already written stay
        written, so a StoreWriteError here can leave a partial fan-out; the
        error details report how many tasks were persisted.
        """
        written = 0
        for start in range(0, len(tasks), self.chunk_size):
            chunk = tasks[start : start + self.chunk_size]
            try:
                self.backend.batch_put(
                    self.tasks_table, [((t.id, t.task_id), t.to_item()) for t in chunk]
                )
            except Exception as e:
                logger.error(
                    "Bulk task insert failed at chunk %d; %d of %d tasks written",
                    start // self.chunk_size,
                    written,
                    len(tasks),
                )
                raise StoreWriteError(
                    f"Bulk task insert failed after {written} of {len(tasks)} tasks: {e}",
                    details={
                        "written": written,
                        "total": len(tasks),
                        "chunk_index": start // self.chunk_size,
                    },
                ) from e
            written += len(chunk)
        return written

    def update_task_status(
        self, story_id: str, task_id: str, status: TaskStatus, media_url: str | None = None
    ) -> None:
        """Set a task's status; completion also records the media URL and
        clears ``pendingTaskId``."""
        set_fields = {
            "id": story_id,
            "taskId": task_id,
            "status": str(status),
            "dateUpdated": self._now(),
        }
        remove_fields: tuple[str, ...] = ()
        if status == TaskStatus.COMPLETED:
            if media_url:
                set_fields["mediaUrl"] = media_url
            remove_fields = ("pendingTaskId",)
        with _store_call(StoreWriteError, "update_task_status", story_id=story_id, task_id=task_id):
            self.backend.update(self.tasks_table, (story_id, task_id), set_fields, remove_fields)

    # Metadata writes

    def update_metadata_status(self, story_id: str, status: StoryStatus) -> None:
        with _store_call(StoreWriteError, "update_metadata_status", story_id=story_id):
            self.backend.update(
                self.metadata_table,
                (story_id,),
                {"id": story_id, "status": str(status), "dateUpdated": self._now()},
            )

    def complete_metadata(self, story_id: str, task_ids_by_type: dict[TaskType, list[str]]) -> None:
        """Record produced task ids and mark the story COMPLETED in one update."""
        summary = {str(t): list(ids) for t, ids in task_ids_by_type.items() if ids}
        with _store_call(StoreWriteError, "complete_metadata", story_id=story_id):
            self.backend.update(
                self.metadata_table,
                (story_id,),
                {
                    "id": story_id,
                    "taskIdsByType": summary,
                    "status": str(StoryStatus.COMPLETED),
                    "dateUpdated": self._now(),
                },
            )
