"""Queue message decoding and task-type guard."""

import json
from typing import Any

from storytext.models.errors import DecodeError, InvalidTaskTypeError
from storytext.models.message import DecodedMessage, MessageAttribute, QueueRecord
from storytext.models.story import TaskType

TASK_TYPE_ATTRIBUTE = "task_type"
# Notification envelopes can be nested (topic -> queue -> topic fan-out).
MAX_ENVELOPE_DEPTH = 2


def _load_json(text: Any, where: str) -> Any:
    if not isinstance(text, str):
        return text
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(
            f"Failed to parse {where} as JSON: {e}",
            details={"where": where, "preview": text[:200]},
        ) from e


def _unwrap_envelopes(value: Any) -> Any:
    for _ in range(MAX_ENVELOPE_DEPTH):
        if not (isinstance(value, dict) and "Message" in value):
            break
        value = _load_json(value["Message"], "notification Message")
    return value


def _extract_content(outer: Any) -> dict:
    """Locate the task content inside a decoded message body."""
    content = _unwrap_envelopes(outer)
    if isinstance(content, dict) and "id" not in content:
        inner = content.get("body") or content.get("payload")
        if inner is not None:
            content = _unwrap_envelopes(_load_json(inner, "message payload"))
    if not isinstance(content, dict):
        raise DecodeError(
            "Message content is not a JSON object",
            details={"content_type": type(content).__name__},
        )
    return content


def decode_message(record: QueueRecord) -> DecodedMessage:
    """Extract the story id and prompt from a raw queue record."""
    content = _extract_content(_load_json(record.body, "message body"))

    story_id = content.get("id")
    story_prompt = content.get("story_prompt")
    if not isinstance(story_id, str) or not story_id:
        raise DecodeError("Message is missing a story id", details={"keys": sorted(content)})
    if not isinstance(story_prompt, str) or not story_prompt.strip():
        raise DecodeError(
            f"Message for story {story_id} is missing story_prompt",
            details={"story_id": story_id},
        )

    return DecodedMessage(
        message_id=record.message_id,
        story_id=story_id,
        story_prompt=story_prompt,
        attributes=record.message_attributes,
    )


def check_task_type(attributes: dict[str, MessageAttribute]) -> TaskType:
    """Reject messages tagged with a task type other than TEXT.

    A missing or empty ``task_type`` attribute defaults to TEXT.
    """
    attribute = attributes.get(TASK_TYPE_ATTRIBUTE)
    value = attribute.string_value if attribute is not None else None
    if value and value != TaskType.TEXT:
        raise InvalidTaskTypeError(value)
    return TaskType.TEXT
