"""Tests for the queue-event handler and Celery task."""

import pytest

from storytext import handler as handler_module
from storytext.config import get_settings
from storytext.models.errors import ConfigurationError
from storytext.pipeline.tasks import celery_app, process_story_batch
from tests.conftest import make_event, make_record


@pytest.fixture
def configured_env(monkeypatch, tmp_path):
    monkeypatch.setenv("STORYTEXT_METADATA_TABLE", "story-metadata")
    monkeypatch.setenv("STORYTEXT_TASKS_TABLE", "story-tasks")
    monkeypatch.setenv("STORYTEXT_BLOB_BUCKET", "story-bucket")
    monkeypatch.setenv("STORYTEXT_GENERATOR_POLICY", "placeholder")
    monkeypatch.setenv("STORYTEXT_DATA_DIR", str(tmp_path))
    get_settings.cache_clear()
    handler_module.get_batch_runner.cache_clear()
    yield
    get_settings.cache_clear()
    handler_module.get_batch_runner.cache_clear()


@pytest.fixture
def unconfigured_env(monkeypatch):
    for name in ("METADATA_TABLE", "TASKS_TABLE", "BLOB_BUCKET"):
        monkeypatch.delenv(f"STORYTEXT_{name}", raising=False)
    monkeypatch.chdir("/")
    get_settings.cache_clear()
    handler_module.get_batch_runner.cache_clear()
    yield
    get_settings.cache_clear()
    handler_module.get_batch_runner.cache_clear()


class TestHandler:
    def test_handler_reports_failures(self, configured_env):
        event = make_event(make_record("m1", "s1"), make_record("m2", "s2", task_type="IMAGE"))
        assert handler_module.handler(event) == {"batchItemFailures": [{"itemIdentifier": "m2"}]}

    def test_runner_built_once(self, configured_env):
        assert handler_module.get_batch_runner() is handler_module.get_batch_runner()

    def test_missing_configuration_fails_fast(self, unconfigured_env):
        with pytest.raises(ConfigurationError):
            handler_module.handler(make_event(make_record()))


class TestCeleryTask:
    def test_task_registered(self):
        assert "storytext.process_story_batch" in celery_app.tasks

    def test_task_runs_handler(self, configured_env):
        result = process_story_batch(make_event(make_record("m1", "s1")))
        assert result == {"batchItemFailures": []}
