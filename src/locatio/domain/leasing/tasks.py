"""Scheduled maintenance jobs for the subdomain pool.

- ``sweep_expired_reservations``: every minute, recycles reservations whose
  TTL has passed.
- ``replenish_pool``: every 15 minutes, tops the pool up to
  ``SUBDOMAIN_POOL_MINIMUM_AVAILABLE`` available slots.

Run with:
    taskiq worker locatio.infra.taskiq.broker:broker locatio.domain.leasing.tasks
    taskiq scheduler locatio.infra.taskiq.broker:scheduler locatio.domain.leasing.tasks
"""

from __future__ import annotations

import asyncio
from functools import lru_cache
from typing import Any

from locatio.domain.leasing.infrastructure.sql_slot_store import SqlSlotStore
from locatio.domain.leasing.pool import SubdomainPool
from locatio.infra.observability import configure_logging, get_logger
from locatio.infra.persistence import get_sync_engine, get_sync_session_factory
from locatio.infra.taskiq import broker
from taskiq import TaskiqEvents, TaskiqState

logger = get_logger(__name__)

SWEEP_SCHEDULE: list[dict[str, Any]] = [{"cron": "* * * * *"}]
REPLENISH_SCHEDULE: list[dict[str, Any]] = [{"cron": "*/15 * * * *"}]


@lru_cache(maxsize=1)
def get_subdomain_pool() -> SubdomainPool:
    """Pool backed by the default database, created on first use."""
    SqlSlotStore.ensure_table_exists(get_sync_engine())
    return SubdomainPool(SqlSlotStore(get_sync_session_factory()))


def run_sweep(pool: SubdomainPool) -> int:
    released = pool.sweep_expired_reservations()
    logger.info("pool_sweep_completed", released=released)
    return released


def run_replenish(pool: SubdomainPool, minimum: int | None = None) -> int:
    created = pool.ensure_minimum(minimum)
    stats = pool.stats()
    logger.info("pool_replenish_completed", created=created, **stats.as_dict())
    return created


@broker.on_event(TaskiqEvents.WORKER_STARTUP)
async def _configure_worker_logging(state: TaskiqState) -> None:
    configure_logging()


@broker.task(
    task_name="locatio.leasing.sweep_expired_reservations",
    schedule=SWEEP_SCHEDULE,
)
async def sweep_expired_reservations() -> int:
    # Pool operations are blocking database transactions.
    return await asyncio.to_thread(run_sweep, get_subdomain_pool())


@broker.task(
    task_name="locatio.leasing.replenish_pool",
    schedule=REPLENISH_SCHEDULE,
)
async def replenish_pool(minimum: int | None = None) -> int:
    return await asyncio.to_thread(run_replenish, get_subdomain_pool(), minimum)
