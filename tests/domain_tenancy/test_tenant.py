"""Unit tests for the Tenant aggregate provisioning state machine."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from locatio.domain.leasing.exceptions import InvalidSlotStateError
from locatio.domain.leasing.pool import SubdomainPool
from locatio.domain.leasing.slot import SlotState
from locatio.domain.tenancy.tenant import Tenant
from locatio.foundation.domain.exceptions import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
)
from locatio.foundation.domain.tenant_value_objects import (
    ProvisioningState,
    SuspensionCategory,
)


@pytest.mark.unit
class TestTenantCreation:
    def test_new_tenant_is_pending(self, pending_tenant: Tenant) -> None:
        assert pending_tenant.state is ProvisioningState.PENDING
        assert pending_tenant.subdomain is None
        assert pending_tenant.provisioning_progress() == 0
        assert pending_tenant.provisioning_status_message() == "Waiting to start..."

    def test_owner_email_is_normalized(self) -> None:
        tenant = Tenant(tenant_id="acme", owner_email=" Owner@ACME.test ")
        assert tenant.owner_email == "owner@acme.test"

    def test_invalid_tenant_id(self) -> None:
        with pytest.raises(ValueError, match="Invalid tenant ID format"):
            Tenant(tenant_id="Not Valid", owner_email="owner@acme.test")

    def test_invalid_email(self) -> None:
        with pytest.raises(ValueError, match="Invalid email format"):
            Tenant(tenant_id="acme", owner_email="nope")

    def test_id_is_derived_from_tenant_id(self, pending_tenant: Tenant) -> None:
        assert pending_tenant.id == Tenant.create_id("acme")
        assert Tenant.create_id("acme") != Tenant.create_id("zenith")

    def test_records_created_event(self, pending_tenant: Tenant) -> None:
        events = pending_tenant.collect_events()
        assert len(events) == 1
        assert type(events[0]).__name__ == "Created"


@pytest.mark.unit
class TestAllocateSubdomain:
    def test_allocate_by_identity(self, pool: SubdomainPool, pending_tenant: Tenant) -> None:
        reserved = pool.reserve_for_identity("owner@acme.test")
        name = pending_tenant.allocate_subdomain(pool, reserved_by="owner@acme.test")
        assert name == reserved.name
        assert pending_tenant.state is ProvisioningState.SUBDOMAIN_ALLOCATED
        assert pending_tenant.subdomain == reserved.name
        assert pending_tenant.provisioning_started_at is not None
        slot = pool.get(name)
        assert slot is not None
        assert slot.state is SlotState.ALLOCATED
        assert slot.owner_tenant_id == "acme"

    def test_allocate_by_name(self, pool: SubdomainPool, pending_tenant: Tenant) -> None:
        assert pending_tenant.allocate_subdomain(pool, name="Coral-Cove-17") == "coral-cove-17"
        assert pending_tenant.provisioning_progress() == 20

    def test_requires_exactly_one_selector(
        self, pool: SubdomainPool, pending_tenant: Tenant
    ) -> None:
        with pytest.raises(ValueError, match="exactly one"):
            pending_tenant.allocate_subdomain(pool)
        with pytest.raises(ValueError, match="exactly one"):
            pending_tenant.allocate_subdomain(pool, reserved_by="a@b.test", name="amber-bay-42")

    def test_pool_error_leaves_tenant_pending(
        self, pool: SubdomainPool, pending_tenant: Tenant
    ) -> None:
        with pytest.raises(NotFoundError):
            pending_tenant.allocate_subdomain(pool, reserved_by="owner@acme.test")
        assert pending_tenant.state is ProvisioningState.PENDING
        assert pending_tenant.subdomain is None

    def test_name_taken_by_other_tenant(
        self, pool: SubdomainPool, pending_tenant: Tenant
    ) -> None:
        pool.allocate_by_name("amber-bay-42", "zenith")
        with pytest.raises(InvalidSlotStateError):
            pending_tenant.allocate_subdomain(pool, name="amber-bay-42")

    def test_idempotent_when_already_allocated(self, allocated_tenant: Tenant) -> None:
        pool = MagicMock()
        assert allocated_tenant.allocate_subdomain(pool, name="amber-bay-42") == "amber-bay-42"
        pool.allocate_by_name.assert_not_called()

    def test_not_allowed_when_live(self, pool: SubdomainPool, live_tenant: Tenant) -> None:
        with pytest.raises(InvalidStateTransitionError):
            live_tenant.allocate_subdomain(pool, name="coral-cove-17")


@pytest.mark.unit
class TestHappyPath:
    def test_full_provisioning(self, allocated_tenant: Tenant) -> None:
        allocated_tenant.start_configuring()
        assert allocated_tenant.provisioning_progress() == 40
        allocated_tenant.start_seeding()
        assert allocated_tenant.provisioning_progress() == 70
        allocated_tenant.mark_ready()
        assert allocated_tenant.provisioning_completed_at is not None
        assert allocated_tenant.is_accessible
        assert allocated_tenant.is_provisioning
        allocated_tenant.go_live()
        assert allocated_tenant.state is ProvisioningState.LIVE
        assert allocated_tenant.provisioning_progress() == 100
        assert not allocated_tenant.is_provisioning

    def test_skipping_a_stage_is_rejected(self, allocated_tenant: Tenant) -> None:
        with pytest.raises(InvalidStateTransitionError, match="Cannot start_seeding"):
            allocated_tenant.start_seeding()
        assert allocated_tenant.state is ProvisioningState.SUBDOMAIN_ALLOCATED


@pytest.mark.unit
class TestFailureAndRetry:
    def test_fail_records_error_and_stage(self, failed_tenant: Tenant) -> None:
        assert failed_tenant.state is ProvisioningState.FAILED
        assert failed_tenant.provisioning_error == "theme service unavailable"
        assert failed_tenant.provisioning_failed_at is not None
        assert failed_tenant.interrupted_from == "configuring"
        assert failed_tenant.provisioning_progress() == 40
        assert (
            failed_tenant.provisioning_status_message()
            == "Setup failed: theme service unavailable"
        )

    def test_fail_not_allowed_after_ready(self, live_tenant: Tenant) -> None:
        with pytest.raises(InvalidStateTransitionError):
            live_tenant.fail("too late")

    def test_retry_keeps_subdomain(self, failed_tenant: Tenant) -> None:
        started_at = failed_tenant.provisioning_started_at
        failed_tenant.retry()
        assert failed_tenant.state is ProvisioningState.PENDING
        assert failed_tenant.provisioning_error is None
        assert failed_tenant.subdomain == "amber-bay-42"

        pool = MagicMock()
        assert failed_tenant.allocate_subdomain(pool) == "amber-bay-42"
        pool.allocate_by_identity.assert_not_called()
        pool.allocate_by_name.assert_not_called()
        assert failed_tenant.provisioning_started_at == started_at

    def test_already_allocated_rejects_different_name(self, allocated_tenant: Tenant) -> None:
        pool = MagicMock()
        with pytest.raises(ConflictError, match="already holds subdomain"):
            allocated_tenant.allocate_subdomain(pool, name="coral-cove-17")
        pool.allocate_by_name.assert_not_called()
        assert allocated_tenant.subdomain == "amber-bay-42"

    def test_retry_rejects_different_name(self, failed_tenant: Tenant) -> None:
        failed_tenant.retry()
        with pytest.raises(ConflictError, match="already holds subdomain"):
            failed_tenant.allocate_subdomain(MagicMock(), name="coral-cove-17")

    def test_retry_only_from_failed(self, live_tenant: Tenant) -> None:
        with pytest.raises(InvalidStateTransitionError):
            live_tenant.retry()


@pytest.mark.unit
class TestSuspensionAndTermination:
    def test_suspend_and_reactivate(self, live_tenant: Tenant) -> None:
        live_tenant.suspend("unpaid invoice", "billing_hold")
        assert live_tenant.state is ProvisioningState.SUSPENDED
        assert live_tenant.suspension_reason == "unpaid invoice"
        assert live_tenant.suspension_category == "billing_hold"
        assert live_tenant.provisioning_progress() == 100
        assert not live_tenant.is_accessible

        live_tenant.reactivate()
        assert live_tenant.state is ProvisioningState.LIVE
        assert live_tenant.suspension_reason is None

    def test_suspend_accepts_category_enum(self, live_tenant: Tenant) -> None:
        live_tenant.suspend("fraud check", SuspensionCategory.SECURITY_REVIEW)
        assert live_tenant.suspension_category == "security_review"

    def test_suspend_rejects_unknown_category(self, live_tenant: Tenant) -> None:
        with pytest.raises(ValueError, match="not a valid SuspensionCategory"):
            live_tenant.suspend("why not", "vacation")
        assert live_tenant.state is ProvisioningState.LIVE

    def test_suspend_without_reason(self, live_tenant: Tenant) -> None:
        live_tenant.suspend()
        assert live_tenant.suspension_reason is None
        assert live_tenant.suspension_category is None

    def test_terminate_keeps_subdomain_allocated(
        self, pool: SubdomainPool, live_tenant: Tenant
    ) -> None:
        live_tenant.suspend("closed")
        live_tenant.terminate("customer request")
        assert live_tenant.state is ProvisioningState.TERMINATED
        assert live_tenant.termination_reason == "customer request"
        assert live_tenant.subdomain == "amber-bay-42"
        slot = pool.get("amber-bay-42")
        assert slot is not None
        assert slot.state is SlotState.ALLOCATED

    def test_terminate_from_live_rejected(self, live_tenant: Tenant) -> None:
        with pytest.raises(InvalidStateTransitionError):
            live_tenant.terminate()

    def test_nothing_leaves_terminated(self, failed_tenant: Tenant) -> None:
        failed_tenant.terminate()
        for command in (failed_tenant.retry, failed_tenant.reactivate, failed_tenant.go_live):
            with pytest.raises(InvalidStateTransitionError):
                command()

    def test_release_subdomain_after_termination(
        self, pool: SubdomainPool, failed_tenant: Tenant
    ) -> None:
        failed_tenant.terminate()
        failed_tenant.release_subdomain(pool)
        assert failed_tenant.subdomain is None
        slot = pool.get("amber-bay-42")
        assert slot is not None
        assert slot.state is SlotState.RELEASED

        failed_tenant.release_subdomain(pool)  # idempotent

    def test_release_subdomain_requires_termination(
        self, pool: SubdomainPool, live_tenant: Tenant
    ) -> None:
        with pytest.raises(InvalidStateTransitionError, match="expected terminated"):
            live_tenant.release_subdomain(pool)
