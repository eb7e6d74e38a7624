"""Application configuration using Pydantic BaseSettings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from storytext.models.errors import ConfigurationError

MAX_BULK_WRITE_CHUNK = 25


class Settings(BaseSettings):
    """Story text worker configuration loaded from environment variables."""

    model_config = {"env_prefix": "STORYTEXT_", "env_file": ".env", "extra": "ignore"}

    # Tables / buckets
    metadata_table: str = ""
    tasks_table: str = ""
    blob_bucket: str = ""

    # Text generation
    generator_policy: Literal["api", "placeholder"] = "api"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = Field(default=0.7, ge=0, le=2)
    openai_timeout_seconds: float = Field(default=60.0, gt=0)

    # Storage backends
    record_backend: Literal["file", "memory"] = "file"
    blob_backend: Literal["file", "memory"] = "file"
    data_dir: Path = Path("/tmp/storytext/data")
    bulk_write_chunk_size: int = Field(default=MAX_BULK_WRITE_CHUNK, ge=1, le=MAX_BULK_WRITE_CHUNK)

    # Redis / Celery
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"

    def missing_settings(self) -> list[str]:
        """Names of required settings that are unset."""
        required = ["metadata_table", "tasks_table", "blob_bucket"]
        if self.generator_policy == "api":
            required.append("openai_api_key")
        return [name for name in required if not getattr(self, name)]

    def require_complete(self) -> "Settings":
        """Fail fast when any required setting is missing."""
        missing = self.missing_settings()
        if missing:
            env_names = [f"STORYTEXT_{name.upper()}" for name in missing]
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(env_names)}",
                details={"missing": env_names},
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
