"""TaskIQ broker and scheduler for the pool maintenance jobs.

Jobs are published to a Redis stream and acknowledged by the worker, so a
sweep interrupted by a worker restart is redelivered. The jobs report their
work through logs; no result backend is configured.

Usage:
    # Start worker
    # taskiq worker locatio.infra.taskiq.broker:broker locatio.domain.leasing.tasks

    # Start scheduler (single instance only)
    # taskiq scheduler locatio.infra.taskiq.broker:scheduler locatio.domain.leasing.tasks
"""

from __future__ import annotations

from functools import lru_cache

from taskiq_redis import RedisStreamBroker

from locatio.infra.taskiq.settings import get_taskiq_settings
from taskiq import TaskiqScheduler
from taskiq.schedule_sources import LabelScheduleSource


@lru_cache(maxsize=1)
def get_broker() -> RedisStreamBroker:
    """Get or create the Redis stream broker from ``TaskIQSettings``."""
    settings = get_taskiq_settings()
    return RedisStreamBroker(
        url=settings.redis_url,
        queue_name=settings.queue_name,
        consumer_group_name=settings.consumer_group,
    )


@lru_cache(maxsize=1)
def get_scheduler() -> TaskiqScheduler:
    """Get or create the scheduler.

    Schedules come only from ``@broker.task(schedule=[...])`` labels, so the
    cron table lives next to the job definitions.

    WARNING: Only run ONE scheduler instance per deployment, otherwise the
    pool sweep and replenish jobs run more than once per tick.
    """
    _broker = get_broker()
    return TaskiqScheduler(broker=_broker, sources=[LabelScheduleSource(_broker)])


# The taskiq CLI resolves `module:broker` and `module:scheduler`. Both are
# proxies that defer construction until the first attribute access; the
# `@broker.task` decorators in the task modules make that access on import.


class _LazyBroker:
    _instance: RedisStreamBroker | None = None

    def _get(self) -> RedisStreamBroker:
        if self._instance is None:
            self._instance = get_broker()
        return self._instance

    def __getattr__(self, name: str) -> object:
        return getattr(self._get(), name)


class _LazyScheduler:
    _instance: TaskiqScheduler | None = None

    def _get(self) -> TaskiqScheduler:
        if self._instance is None:
            self._instance = get_scheduler()
        return self._instance

    def __getattr__(self, name: str) -> object:
        return getattr(self._get(), name)


broker: RedisStreamBroker = _LazyBroker()  # type: ignore[assignment]
scheduler: TaskiqScheduler = _LazyScheduler()  # type: ignore[assignment]
