"""TaskIQ configuration using Pydantic settings.

Settings are loaded from environment variables with ``TASKIQ_`` prefix.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TaskIQSettings(BaseSettings):
    """Where the pool maintenance jobs are queued.

    Environment Variables:
        TASKIQ_REDIS_URL: Redis URL for broker/scheduler
            (default: redis://localhost:6379/1)
        TASKIQ_QUEUE_NAME: Redis stream the jobs are published to (default: locatio)
        TASKIQ_CONSUMER_GROUP: Stream consumer group shared by the workers
            (default: locatio-workers)
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKIQ_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    redis_url: str = Field(
        default="redis://localhost:6379/1",
        description="Redis URL for the TaskIQ broker",
    )
    queue_name: str = Field(
        default="locatio",
        min_length=1,
        description="Redis stream name used by the broker",
    )
    consumer_group: str = Field(
        default="locatio-workers",
        min_length=1,
        description="Consumer group the workers acknowledge messages in",
    )


@lru_cache(maxsize=1)
def get_taskiq_settings() -> TaskIQSettings:
    """Get cached TaskIQ settings singleton."""
    return TaskIQSettings()
