"""Tests for Settings."""

import pytest

from storytext.config import Settings
from storytext.models.errors import ConfigurationError


class TestSettings:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("STORYTEXT_METADATA_TABLE", "meta")
        monkeypatch.setenv("STORYTEXT_GENERATOR_POLICY", "placeholder")
        settings = Settings(_env_file=None)
        assert settings.metadata_table == "meta"
        assert settings.generator_policy == "placeholder"

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.bulk_write_chunk_size == 25
        assert settings.record_backend == "file"

    def test_chunk_size_capped(self):
        with pytest.raises(Exception):
            Settings(bulk_write_chunk_size=30, _env_file=None)

    def test_missing_settings_listed(self):
        settings = Settings(tasks_table="tasks", _env_file=None)
        assert settings.missing_settings() == ["metadata_table", "blob_bucket", "openai_api_key"]

    def test_api_key_optional_for_placeholder(self):
        settings = Settings(
            metadata_table="m", tasks_table="t", blob_bucket="b",
            generator_policy="placeholder", _env_file=None,
        )
        assert settings.require_complete() is settings

    def test_require_complete_fails_fast(self):
        settings = Settings(metadata_table="m", tasks_table="t", blob_bucket="b", _env_file=None)
        with pytest.raises(ConfigurationError, match="STORYTEXT_OPENAI_API_KEY"):
            settings.require_complete()
