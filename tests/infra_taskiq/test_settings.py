"""Unit tests for locatio.infra.taskiq.settings."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from pydantic import ValidationError

from locatio.infra.taskiq.settings import TaskIQSettings, get_taskiq_settings


@pytest.mark.unit
class TestTaskIQSettings:
    def test_defaults(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            settings = TaskIQSettings()
            assert settings.redis_url == "redis://localhost:6379/1"
            assert settings.queue_name == "locatio"
            assert settings.consumer_group == "locatio-workers"

    def test_env_var_override(self) -> None:
        env = {
            "TASKIQ_REDIS_URL": "redis://custom-host:6380/2",
            "TASKIQ_QUEUE_NAME": "pool-jobs",
            "TASKIQ_CONSUMER_GROUP": "sweepers",
        }
        with patch.dict("os.environ", env, clear=True):
            settings = TaskIQSettings()
            assert settings.redis_url == "redis://custom-host:6380/2"
            assert settings.queue_name == "pool-jobs"
            assert settings.consumer_group == "sweepers"

    def test_empty_queue_name_rejected(self) -> None:
        with patch.dict("os.environ", {}, clear=True), pytest.raises(ValidationError):
            TaskIQSettings(queue_name="")


@pytest.mark.unit
class TestGetTaskIQSettings:
    def test_cached_returns_same_instance(self) -> None:
        get_taskiq_settings.cache_clear()
        with patch.dict("os.environ", {}, clear=True):
            s1 = get_taskiq_settings()
            s2 = get_taskiq_settings()
            assert isinstance(s1, TaskIQSettings)
            assert s1 is s2
        get_taskiq_settings.cache_clear()
