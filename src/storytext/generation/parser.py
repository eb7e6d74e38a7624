"""Generator output parser: raw text to ordered story segments."""

import json
import logging
import re

from storytext.models.errors import ValidationError
from storytext.models.story import StorySegment

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("text", "imagePrompt")


def _strip_code_fence(text: str) -> str:
    match = re.fullmatch(r"```(?:json)?\s*\n?(.*?)\n?```", text, re.DOTALL)
    return match.group(1).strip() if match else text


def parse_story_segments(raw_output: str) -> list[StorySegment]:
    """Parse generator output as a JSON array of ``{text, imagePrompt}`` objects.

    Order is preserved. Any malformed element raises ValidationError naming
    its index; the raw output travels with the error.
    """
    text = _strip_code_fence(raw_output.strip())

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Generator output is not JSON: %r", raw_output[:200])
        raise ValidationError(f"output is not valid JSON ({e.msg})", raw_output=raw_output) from e

    if not isinstance(data, list):
        raise ValidationError(
            f"expected a JSON array, got {type(data).__name__}", raw_output=raw_output
        )

    segments = []
    for i, element in enumerate(data):
        if not isinstance(element, dict):
            raise ValidationError(
                f"element is {type(element).__name__}, not an object",
                raw_output=raw_output,
                index=i,
            )
        for field in REQUIRED_FIELDS:
            if field not in element:
                raise ValidationError(f"missing '{field}'", raw_output=raw_output, index=i)
            if not isinstance(element[field], str):
                raise ValidationError(
                    f"'{field}' must be a string, got {type(element[field]).__name__}",
                    raw_output=raw_output,
                    index=i,
                )
        segments.append(StorySegment(text=element["text"], image_prompt=element["imagePrompt"]))
    return segments
