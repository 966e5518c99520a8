"""Subdomain pool configuration using Pydantic settings.

Settings are loaded from environment variables with the
``SUBDOMAIN_POOL_`` prefix.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SubdomainPoolSettings(BaseSettings):
    """Configuration for the subdomain pool.

    Environment Variables:
        SUBDOMAIN_POOL_RESERVATION_TTL_SECONDS: Default reservation lifetime (300)
        SUBDOMAIN_POOL_SIGNUP_RESERVATION_TTL_SECONDS: Lifetime of the hold
            taken when a signup starts (600)
        SUBDOMAIN_POOL_MAX_SELECTION_ATTEMPTS: Picks attempted when every
            available row is locked by concurrent reservers (3)
        SUBDOMAIN_POOL_POPULATE_BATCH_SIZE: Names generated per insert batch (100)
        SUBDOMAIN_POOL_MINIMUM_AVAILABLE: Target for ``ensure_minimum`` (100)
        SUBDOMAIN_POOL_LOCK_TIMEOUT_SECONDS: Lock wait limit of the in-memory store (5.0)

    Example:
        >>> settings = SubdomainPoolSettings()
        >>> settings.reservation_ttl
        datetime.timedelta(seconds=300)
    """

    model_config = SettingsConfigDict(
        env_prefix="SUBDOMAIN_POOL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    reservation_ttl_seconds: int = Field(
        default=300,
        ge=1,
        le=86400,
        description="Default reservation lifetime in seconds",
    )
    signup_reservation_ttl_seconds: int = Field(
        default=600,
        ge=1,
        le=86400,
        description="Reservation lifetime for signup flows in seconds",
    )
    max_selection_attempts: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Random-pick attempts before reporting exhaustion under contention",
    )
    populate_batch_size: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Slots inserted per populate batch",
    )
    minimum_available: int = Field(
        default=100,
        ge=0,
        description="Available slots the replenish job keeps in the pool",
    )
    lock_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Seconds the in-memory store waits for a row lock",
    )

    @property
    def reservation_ttl(self) -> timedelta:
        return timedelta(seconds=self.reservation_ttl_seconds)

    @property
    def signup_reservation_ttl(self) -> timedelta:
        return timedelta(seconds=self.signup_reservation_ttl_seconds)


@lru_cache(maxsize=1)
def get_pool_settings() -> SubdomainPoolSettings:
    """Get cached subdomain pool settings singleton.

    Clear cache with ``get_pool_settings.cache_clear()`` for testing.
    """
    return SubdomainPoolSettings()
