"""Story task pipeline: runs one queue message from decode to completion."""

import logging

from openai import OpenAI

from storytext.config import Settings
from storytext.generation.generator import TextGenerator, create_generator
from storytext.generation.parser import parse_story_segments
from storytext.ingest.decoder import check_task_type, decode_message
from storytext.models.errors import ConditionalWriteError, StoryTextError
from storytext.models.message import QueueRecord
from storytext.models.pipeline import ItemOutcome, ItemStage
from storytext.models.story import (
    StorySegment,
    StoryStatus,
    TaskStatus,
    TaskType,
    VideoTask,
    generate_task_id,
)
from storytext.storage.backends import InMemoryRecordBackend, JsonFileRecordBackend
from storytext.storage.blobs import BlobPublisher, InMemoryBlobBackend, LocalBlobBackend
from storytext.storage.records import TaskRecordStore

logger = logging.getLogger(__name__)


def build_fan_out(story_id: str, segments: list[StorySegment]) -> list[VideoTask]:
    """One PENDING TTS task and one PENDING IMAGE task per segment, in segment order."""
    tasks = []
    for segment in segments:
        for task_type, prompt in (
            (TaskType.TTS, segment.text),
            (TaskType.IMAGE, segment.image_prompt),
        ):
            task_id = generate_task_id()
            tasks.append(
                VideoTask(
                    id=story_id,
                    task_id=task_id,
                    type=task_type,
                    status=TaskStatus.PENDING,
                    source_prompt=prompt,
                    pending_task_id=task_id,
                )
            )
    return tasks


def summarize_task_ids(text_task_id: str, tasks: list[VideoTask]) -> dict[TaskType, list[str]]:
    summary: dict[TaskType, list[str]] = {TaskType.TEXT: [text_task_id]}
    for task in tasks:
        summary.setdefault(task.type, []).append(task.task_id)
    return summary


class StoryTaskPipeline:
    """Turns a story request message into a completed TEXT task plus fanned-out
    TTS/IMAGE tasks.

    Stage order: decode -> type check -> duplicate check -> TEXT task ->
    metadata IN_PROGRESS -> generate -> validate -> upload -> fan-out ->
    TEXT task COMPLETED -> metadata COMPLETED.
    """

    def __init__(
        self,
        record_store: TaskRecordStore,
        blob_publisher: BlobPublisher,
        generator: TextGenerator,
    ):
        self.record_store = record_store
        self.blob_publisher = blob_publisher
        self.generator = generator

    @classmethod
    def from_settings(
        cls, settings: Settings, openai_client: OpenAI | None = None
    ) -> "StoryTaskPipeline":
        """Build a pipeline from configuration, failing fast on missing settings."""
        settings.require_complete()

        if settings.record_backend == "memory":
            record_backend = InMemoryRecordBackend()
        else:
            record_backend = JsonFileRecordBackend(settings.data_dir / "records")

        if settings.blob_backend == "memory":
            blob_backend = InMemoryBlobBackend()
        else:
            blob_backend = LocalBlobBackend(settings.data_dir / "blobs")

        return cls(
            record_store=TaskRecordStore(
                record_backend,
                metadata_table=settings.metadata_table,
                tasks_table=settings.tasks_table,
                chunk_size=settings.bulk_write_chunk_size,
            ),
            blob_publisher=BlobPublisher(blob_backend, settings.blob_bucket),
            generator=create_generator(settings, client=openai_client),
        )

    def process(self, record: QueueRecord, outcome: ItemOutcome | None = None) -> ItemOutcome:
        """Run one queue record through the pipeline.

        Returns the outcome on success or duplicate skip. Any failure is
        re-raised after the story and its TEXT task are marked FAILED (when
        they had been touched); ``outcome.stage`` holds the last stage reached.
        """
        outcome = outcome or ItemOutcome(message_id=record.message_id)

        message = decode_message(record)
        outcome.story_id = message.story_id
        self._advance(outcome, ItemStage.DECODED)

        check_task_type(message.attributes)
        self._advance(outcome, ItemStage.TYPE_CHECKED)

        existing = self.record_store.find_text_task(message.story_id)
        if existing is not None:
            logger.info(
                "Story %s already has TEXT task %s; skipping", message.story_id, existing.task_id
            )
            outcome.text_task_id = existing.task_id
            self._advance(outcome, ItemStage.SKIPPED)
            return outcome

        task_id = generate_task_id()
        text_task = VideoTask(
            id=message.story_id,
            task_id=task_id,
            type=TaskType.TEXT,
            status=TaskStatus.IN_PROGRESS,
            source_prompt=message.story_prompt,
            pending_task_id=task_id,
        )
        try:
            self.record_store.create_text_task(text_task)
        except ConditionalWriteError:
            logger.info("Story %s TEXT task created concurrently; skipping", message.story_id)
            self._advance(outcome, ItemStage.SKIPPED)
            return outcome
        outcome.text_task_id = task_id
        self._advance(outcome, ItemStage.TEXT_TASK_CREATED)

        metadata_started = False
        try:
            self.record_store.update_metadata_status(message.story_id, StoryStatus.IN_PROGRESS)
            metadata_started = True
            self._advance(outcome, ItemStage.METADATA_IN_PROGRESS)

            raw_output = self.generator.generate(message.story_prompt)
            self._advance(outcome, ItemStage.GENERATED)

            segments = parse_story_segments(raw_output)
            self._advance(outcome, ItemStage.VALIDATED)

            locator = self.blob_publisher.publish(message.story_id, task_id, raw_output)
            outcome.media_url = locator
            self._advance(outcome, ItemStage.BLOB_UPLOADED)

            fan_out = build_fan_out(message.story_id, segments)
            self.record_store.bulk_create_tasks(fan_out)
            self._advance(outcome, ItemStage.FANNED_OUT)

            self.record_store.update_task_status(
                message.story_id, task_id, TaskStatus.COMPLETED, media_url=locator
            )
            self._advance(outcome, ItemStage.TEXT_TASK_COMPLETED)

            summary = summarize_task_ids(task_id, fan_out)
            self.record_store.complete_metadata(message.story_id, summary)
            outcome.task_ids_by_type = summary
            self._advance(outcome, ItemStage.METADATA_COMPLETED)
        except Exception:
            self._mark_failed(message.story_id, task_id, metadata_started)
            raise

        logger.info(
            "Story %s completed: %d segments, %d tasks fanned out",
            message.story_id,
            len(segments),
            len(fan_out),
        )
        return outcome

    def _advance(self, outcome: ItemOutcome, stage: ItemStage) -> None:
        outcome.stage = stage
        logger.debug("Message %s -> %s", outcome.message_id, stage)

    def _mark_failed(self, story_id: str, task_id: str, metadata_started: bool) -> None:
        """Best-effort FAILED writes; the original error is what gets reported."""
        try:
            self.record_store.update_task_status(story_id, task_id, TaskStatus.FAILED)
        except StoryTextError as e:
            logger.error("Could not mark TEXT task %s/%s FAILED: %s", story_id, task_id, e)
        if metadata_started:
            try:
                self.record_store.update_metadata_status(story_id, StoryStatus.FAILED)
            except StoryTextError as e:
                logger.error("Could not mark story %s FAILED: %s", story_id, e)
