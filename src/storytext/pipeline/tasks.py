"""Celery task definitions."""

from celery import Celery

from storytext.config import get_settings

settings = get_settings()

celery_app = Celery(
    "storytext",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
)


@celery_app.task(name="storytext.process_story_batch")
def process_story_batch(event: dict) -> dict:
    """Celery task wrapping the queue-event handler."""
    from storytext.handler import handler

    return handler(event)
