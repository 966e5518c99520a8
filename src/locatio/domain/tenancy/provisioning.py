"""Tenant provisioning orchestration.

Drives a tenant from signup to a live website:

1. ``start_signup``: reserve a subdomain for the owner's email (10 minute hold)
2. ``create_tenant``: create the Tenant aggregate and allocate the subdomain
   (compensating release if the aggregate cannot be saved)
3. ``provision``: configuring -> seeding -> ready -> live, running the
   injected configure/seed steps and reporting progress after each stage
4. ``retry``: resume a failed tenant with the subdomain it already holds

A step that raises is recorded on the tenant via ``fail(reason)`` and
returned as an unsuccessful result; invalid transitions always propagate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from locatio.domain.tenancy.state_machine import can_transition
from locatio.domain.tenancy.tenant import Tenant
from locatio.foundation.domain.exceptions import (
    ConflictError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from locatio.foundation.domain.tenant_value_objects import (
    OwnerEmail,
    ProvisioningEvent,
    ProvisioningState,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import timedelta

    from locatio.domain.leasing.pool import NameCheck, SubdomainPool
    from locatio.domain.leasing.slot import SubdomainSlot
    from locatio.domain.tenancy.tenant_app import TenantApplication

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    """Snapshot pushed to progress listeners after each saved stage."""

    state: ProvisioningState
    percentage: int
    message: str

    @classmethod
    def of(cls, tenant: Tenant) -> ProgressUpdate:
        return cls(
            state=tenant.state,
            percentage=tenant.provisioning_progress(),
            message=tenant.provisioning_status_message(),
        )


@dataclass(frozen=True, slots=True)
class ProvisioningResult:
    success: bool
    tenant: Tenant
    errors: tuple[str, ...] = ()


def _skip_step(tenant: Tenant) -> None:
    return None


def _ignore_progress(update: ProgressUpdate) -> None:
    return None


def _normalize_email(email: str, field: str = "email") -> str:
    try:
        return OwnerEmail(email).value
    except ValueError as exc:
        raise ValidationError(field, str(exc)) from exc


class ProvisioningService:
    """Orchestrates signup, tenant creation and the provisioning run.

    Args:
        app: TenantApplication for aggregate persistence.
        pool: Subdomain pool leases are taken from.
        configure_step: Applies default site configuration (theme, pages, ...).
        seed_step: Seeds sample content.
        signup_reservation_ttl: Hold taken by ``start_signup``; defaults to
            the pool's ``signup_reservation_ttl_seconds``.
    """

    def __init__(
        self,
        app: TenantApplication,
        pool: SubdomainPool,
        *,
        configure_step: Callable[[Tenant], None] | None = None,
        seed_step: Callable[[Tenant], None] | None = None,
        signup_reservation_ttl: timedelta | None = None,
    ) -> None:
        self._app = app
        self._pool = pool
        self._configure_step = configure_step or _skip_step
        self._seed_step = seed_step or _skip_step
        self._signup_ttl = signup_reservation_ttl or pool.settings.signup_reservation_ttl

    # -- Signup ----------------------------------------------------------------

    def start_signup(self, email: str) -> SubdomainSlot:
        """Reserve a random subdomain for a new signup.

        Repeated calls with the same email return the same reservation
        while it is live.

        Raises:
            ValidationError: If the email is malformed.
            PoolEmptyError / PoolExhaustedError: From the pool.
        """
        identity = _normalize_email(email)
        slot = self._pool.reserve_for_identity(identity, self._signup_ttl)
        logger.info("signup_started", extra={"email": identity, "subdomain": slot.name})
        return slot

    def check_subdomain_availability(
        self,
        name: str,
        reserved_by: str | None = None,
    ) -> NameCheck:
        identity = _normalize_email(reserved_by, "reserved_by") if reserved_by else None
        return self._pool.validate_custom_name(name, reserved_by=identity)

    # -- Tenant creation -------------------------------------------------------

    def create_tenant(
        self,
        *,
        tenant_id: str,
        owner_email: str,
        subdomain_name: str | None = None,
    ) -> Tenant:
        """Create a tenant and allocate its subdomain.

        Without ``subdomain_name`` the owner's reservation is allocated (a
        fresh one is taken if it was already swept). With it, the chosen
        name is validated and allocated; names unknown to the pool are
        added to it first.

        Raises:
            ConflictError: If the tenant already exists.
            ValidationError: If tenant data or the chosen subdomain is invalid.
        """
        if self._app.tenant_exists(tenant_id):
            raise ConflictError(f"Tenant '{tenant_id}' already exists", tenant_id=tenant_id)
        try:
            tenant = Tenant(tenant_id=tenant_id, owner_email=owner_email)
        except ValueError as exc:
            raise ValidationError("tenant", str(exc), tenant_id=tenant_id) from exc

        if subdomain_name is None:
            subdomain = self._allocate_for_owner(tenant)
        else:
            subdomain = self._allocate_chosen(tenant, subdomain_name)

        try:
            self._app.save(tenant)
        except Exception:
            logger.exception(
                "tenant_creation_failed_releasing_subdomain",
                extra={"tenant_id": tenant_id, "subdomain": subdomain},
            )
            self._pool.release(subdomain)
            self._pool.make_available(subdomain)
            raise

        logger.info(
            "tenant_created",
            extra={"tenant_id": tenant_id, "subdomain": subdomain, "owner_email": tenant.owner_email},
        )
        return tenant

    def _allocate_for_owner(self, tenant: Tenant) -> str:
        try:
            return tenant.allocate_subdomain(self._pool, reserved_by=tenant.owner_email)
        except NotFoundError:
            logger.info(
                "signup_reservation_missing_reserving_again",
                extra={"tenant_id": tenant.tenant_id, "owner_email": tenant.owner_email},
            )
            self._pool.reserve_for_identity(tenant.owner_email, self._signup_ttl)
            return tenant.allocate_subdomain(self._pool, reserved_by=tenant.owner_email)

    def _allocate_chosen(self, tenant: Tenant, name: str) -> str:
        check = self._pool.validate_custom_name(name, reserved_by=tenant.owner_email)
        if not check.valid:
            raise ValidationError(
                "subdomain",
                f"Subdomain {', '.join(check.errors)}",
                subdomain=check.normalized,
            )
        if self._pool.get(check.normalized) is None:
            self._pool.add_names([check.normalized])
        return tenant.allocate_subdomain(self._pool, name=check.normalized)

    # -- Provisioning run ------------------------------------------------------

    def get_tenant(self, tenant_id: str) -> Tenant:
        return self._app.get_tenant(tenant_id)

    def provision(
        self,
        tenant_id: str,
        on_progress: Callable[[ProgressUpdate], None] | None = None,
    ) -> ProvisioningResult:
        """Run configuring -> seeding -> ready -> live for an allocated tenant.

        Raises:
            NotFoundError: If the tenant does not exist.
            InvalidStateTransitionError: If the tenant is not SUBDOMAIN_ALLOCATED.
        """
        report = on_progress or _ignore_progress
        tenant = self._app.get_tenant(tenant_id)

        tenant.start_configuring()
        self._save(tenant, report)
        try:
            self._configure_step(tenant)
            tenant.start_seeding()
            self._save(tenant, report)

            self._seed_step(tenant)
            tenant.mark_ready()
            self._save(tenant, report)

            tenant.go_live()
            self._save(tenant, report)
        except InvalidStateTransitionError:
            raise
        except Exception as exc:
            if not can_transition(tenant.state, ProvisioningEvent.FAIL):
                raise
            logger.exception(
                "tenant_provisioning_failed",
                extra={"tenant_id": tenant_id, "state": tenant.provisioning_state},
            )
            tenant.fail(str(exc))
            self._save(tenant, report)
            return ProvisioningResult(
                success=False,
                tenant=tenant,
                errors=(f"Provisioning failed: {exc}",),
            )

        logger.info(
            "tenant_provisioned",
            extra={"tenant_id": tenant_id, "subdomain": tenant.subdomain},
        )
        return ProvisioningResult(success=True, tenant=tenant)

    def retry(
        self,
        tenant_id: str,
        on_progress: Callable[[ProgressUpdate], None] | None = None,
    ) -> ProvisioningResult:
        """Resume a failed tenant from the start, keeping its subdomain.

        Raises:
            InvalidStateTransitionError: If the tenant is not FAILED.
        """
        report = on_progress or _ignore_progress
        tenant = self._app.get_tenant(tenant_id)
        tenant.retry()
        if tenant.subdomain is not None:
            tenant.allocate_subdomain(self._pool)
        else:
            self._allocate_for_owner(tenant)
        self._save(tenant, report)
        logger.info(
            "tenant_provisioning_retried",
            extra={"tenant_id": tenant_id, "subdomain": tenant.subdomain},
        )
        return self.provision(tenant_id, on_progress)

    def terminate(
        self,
        tenant_id: str,
        *,
        reason: str | None = None,
        release_subdomain: bool = False,
    ) -> Tenant:
        """Terminate a suspended or failed tenant.

        With ``release_subdomain`` the name is released and returned to the
        available set; otherwise it stays allocated to the terminated tenant.
        """
        tenant = self._app.get_tenant(tenant_id)
        tenant.terminate(reason)
        self._app.save(tenant)
        logger.info("tenant_terminated", extra={"tenant_id": tenant_id, "reason": reason})

        if release_subdomain and tenant.subdomain is not None:
            name = tenant.subdomain
            tenant.release_subdomain(self._pool)
            self._app.save(tenant)
            self._pool.make_available(name)
            logger.info(
                "terminated_tenant_subdomain_recycled",
                extra={"tenant_id": tenant_id, "subdomain": name},
            )
        return tenant

    def _save(self, tenant: Tenant, report: Callable[[ProgressUpdate], None]) -> None:
        self._app.save(tenant)
        report(ProgressUpdate.of(tenant))
