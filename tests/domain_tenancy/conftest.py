"""Shared fixtures for domain-tenancy tests."""

from __future__ import annotations

import random

import pytest

from locatio.domain.leasing.infrastructure import InMemorySlotStore
from locatio.domain.leasing.pool import SubdomainPool
from locatio.domain.leasing.settings import SubdomainPoolSettings
from locatio.domain.tenancy.tenant import Tenant
from locatio.domain.tenancy.tenant_app import TenantApplication

POOL_NAMES = ["amber-bay-42", "coral-cove-17", "misty-glen-23", "solar-peak-88"]


@pytest.fixture()
def pool() -> SubdomainPool:
    """In-memory pool seeded with a few names."""
    pool = SubdomainPool(
        InMemorySlotStore(lock_timeout=2.0, rng=random.Random(5)),
        SubdomainPoolSettings(
            reservation_ttl_seconds=300,
            signup_reservation_ttl_seconds=600,
            max_selection_attempts=3,
        ),
    )
    pool.add_names(POOL_NAMES)
    return pool


@pytest.fixture()
def app() -> TenantApplication:
    """TenantApplication on the in-memory event store."""
    return TenantApplication()


@pytest.fixture()
def pending_tenant() -> Tenant:
    """Create a Tenant in PENDING state."""
    return Tenant(tenant_id="acme", owner_email="owner@acme.test")


@pytest.fixture()
def allocated_tenant(pool: SubdomainPool) -> Tenant:
    """Create a Tenant in SUBDOMAIN_ALLOCATED state holding 'amber-bay-42'."""
    tenant = Tenant(tenant_id="acme", owner_email="owner@acme.test")
    tenant.allocate_subdomain(pool, name="amber-bay-42")
    return tenant


@pytest.fixture()
def live_tenant(pool: SubdomainPool) -> Tenant:
    """Create a Tenant in LIVE state."""
    tenant = Tenant(tenant_id="acme", owner_email="owner@acme.test")
    tenant.allocate_subdomain(pool, name="amber-bay-42")
    tenant.start_configuring()
    tenant.start_seeding()
    tenant.mark_ready()
    tenant.go_live()
    return tenant


@pytest.fixture()
def failed_tenant(pool: SubdomainPool) -> Tenant:
    """Create a Tenant in FAILED state, interrupted while configuring."""
    tenant = Tenant(tenant_id="acme", owner_email="owner@acme.test")
    tenant.allocate_subdomain(pool, name="amber-bay-42")
    tenant.start_configuring()
    tenant.fail("theme service unavailable")
    return tenant
