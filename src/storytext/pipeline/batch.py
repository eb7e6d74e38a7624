"""Batch runner: drives the pipeline over a delivered batch of queue messages."""

import logging
from typing import Any

from storytext.models.message import BatchResult, QueueEvent, QueueRecord
from storytext.models.pipeline import ItemOutcome, ItemStage
from storytext.pipeline.manager import StoryTaskPipeline

logger = logging.getLogger(__name__)


def _record_ids(event: Any) -> list[str]:
    """Best-effort message ids from a possibly malformed event."""
    if isinstance(event, QueueEvent):
        return [r.message_id for r in event.records]
    records = event.get("Records") if isinstance(event, dict) else None
    if not isinstance(records, list):
        return []
    return [r["messageId"] for r in records if isinstance(r, dict) and r.get("messageId")]


class BatchRunner:
    """Processes batch items one at a time, in delivery order.

    A failing item never aborts the batch; its message id is reported so the
    queue redelivers only that item.
    """

    def __init__(self, pipeline: StoryTaskPipeline):
        self.pipeline = pipeline

    def process_records(self, records: list[QueueRecord]) -> list[ItemOutcome]:
        outcomes = []
        for record in records:
            outcome = ItemOutcome(message_id=record.message_id)
            try:
                self.pipeline.process(record, outcome)
                logger.info("Successfully processed message: %s", record.message_id)
            except Exception as e:
                logger.error("Error processing message %s: %s", record.message_id, e, exc_info=True)
                outcome.failed_at = outcome.stage
                outcome.stage = ItemStage.FAILED
                outcome.error_type = type(e).__name__
                outcome.error = str(e)
            outcomes.append(outcome)
        return outcomes

    def run(self, event: QueueEvent | dict) -> BatchResult:
        """Process a queue event and report the failed message ids.

        A failure outside the per-item loop (e.g. a malformed batch) reports
        every message id in the batch as failed.
        """
        try:
            batch = event if isinstance(event, QueueEvent) else QueueEvent.model_validate(event)
            logger.info("Processing %d queue message(s)", len(batch.records))
            outcomes = self.process_records(batch.records)
        except Exception as e:
            logger.error("Batch-level failure, marking all messages failed: %s", e, exc_info=True)
            return BatchResult.from_failed_ids(_record_ids(event))

        failed = [o.message_id for o in outcomes if o.stage == ItemStage.FAILED]
        logger.info(
            "Processing complete. %d successful, %d failed",
            len(outcomes) - len(failed),
            len(failed),
        )
        return BatchResult.from_failed_ids(failed)
