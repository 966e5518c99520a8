"""Shared fixtures for domain-leasing tests."""

from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from locatio.domain.leasing.generator import SubdomainNameGenerator
from locatio.domain.leasing.infrastructure import InMemorySlotStore, SqlSlotStore
from locatio.domain.leasing.pool import SubdomainPool
from locatio.domain.leasing.settings import SubdomainPoolSettings

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Engine

    from locatio.domain.leasing.store import SlotStore

START = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = START) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def pool_settings() -> SubdomainPoolSettings:
    return SubdomainPoolSettings(
        reservation_ttl_seconds=300,
        signup_reservation_ttl_seconds=600,
        max_selection_attempts=3,
        populate_batch_size=10,
        minimum_available=5,
        lock_timeout_seconds=2.0,
    )


@pytest.fixture()
def sqlite_engine() -> Iterator[Engine]:
    """In-memory SQLite engine with the slot table created."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    SqlSlotStore.ensure_table_exists(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def memory_store() -> InMemorySlotStore:
    return InMemorySlotStore(lock_timeout=2.0, rng=random.Random(7))


@pytest.fixture()
def sql_store(sqlite_engine: Engine) -> SqlSlotStore:
    return SqlSlotStore(sessionmaker(sqlite_engine, expire_on_commit=False))


@pytest.fixture(params=["memory", "sql"])
def store(request: pytest.FixtureRequest) -> SlotStore:
    """Every pool behaviour test runs against both adapters."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture()
def pool(
    store: SlotStore,
    pool_settings: SubdomainPoolSettings,
    clock: FakeClock,
) -> SubdomainPool:
    return SubdomainPool(
        store,
        pool_settings,
        clock=clock,
        generator=SubdomainNameGenerator(random.Random(11)),
    )
