"""Text generators: expand a story prompt into raw segment JSON."""

import json
import logging
from abc import ABC, abstractmethod

from openai import OpenAI, OpenAIError

from storytext.config import Settings, get_settings
from storytext.generation.prompts import SYSTEM_PROMPT, build_story_prompt
from storytext.models.errors import GenerationError

logger = logging.getLogger(__name__)


def _preview(text: str, limit: int = 100) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class TextGenerator(ABC):
    """Produces story text for a prompt."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return generated text for *prompt*; raise GenerationError on failure."""
        ...


class PlaceholderGenerator(TextGenerator):
    """Deterministic stand-in used before a generation API is wired up.

    Emits a single segment whose text is the upper-cased prompt.
    """

    def generate(self, prompt: str) -> str:
        logger.info("Placeholder generation for prompt: %s", _preview(prompt))
        return json.dumps([{"text": prompt.upper(), "imagePrompt": prompt}])


class OpenAIGenerator(TextGenerator):
    """Generates story segments with a chat-completion model.

    Failures propagate as GenerationError; the prompt is never substituted
    for the generated text.
    """

    def __init__(
        self,
        client: OpenAI | None = None,
        model: str | None = None,
        temperature: float | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.model = model or settings.openai_model
        self.temperature = settings.openai_temperature if temperature is None else temperature
        self.client = client
        if self.client is None and settings.openai_api_key:
            self.client = OpenAI(
                api_key=settings.openai_api_key, timeout=settings.openai_timeout_seconds
            )

    def generate(self, prompt: str) -> str:
        if self.client is None:
            raise GenerationError("No generation API client configured")

        logger.info("Generating story text with %s for prompt: %s", self.model, _preview(prompt))
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_story_prompt(prompt)},
                ],
                temperature=self.temperature,
            )
        except OpenAIError as e:
            raise GenerationError(
                f"Generation API call failed: {e}", details={"model": self.model}
            ) from e

        if not response.choices:
            raise GenerationError(
                "Generation API returned no choices", details={"model": self.model}
            )
        content = response.choices[0].message.content
        if not content:
            raise GenerationError(
                "Generation API returned empty content", details={"model": self.model}
            )
        return content


def create_generator(settings: Settings, client: OpenAI | None = None) -> TextGenerator:
    """Build the generator selected by ``settings.generator_policy``."""
    if settings.generator_policy == "placeholder":
        return PlaceholderGenerator()
    return OpenAIGenerator(client=client, settings=settings)
