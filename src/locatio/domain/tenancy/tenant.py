"""Tenant aggregate with provisioning state machine.

Event-sourced aggregate that takes a tenant from signup to a live website.
The first transition consumes a subdomain lease from the pool; the
remaining stages (configuration, seeding) are run by external collaborators
that report back through the transition commands.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import NAMESPACE_URL, UUID, uuid5

from eventsourcing.domain import event

from locatio.domain.tenancy.state_machine import (
    ACCESSIBLE_STATES,
    PROVISIONING_STATES,
    next_state,
    progress_for,
    status_message_for,
)
from locatio.foundation.domain.aggregates import BaseAggregate
from locatio.foundation.domain.exceptions import ConflictError, InvalidStateTransitionError
from locatio.foundation.domain.identifiers import TenantId
from locatio.foundation.domain.subdomain_value_objects import normalize_subdomain
from locatio.foundation.domain.tenant_value_objects import (
    OwnerEmail,
    ProvisioningEvent,
    ProvisioningState,
    SuspensionCategory,
)

if TYPE_CHECKING:
    from locatio.foundation.domain.ports import SubdomainAllocatorPort


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Tenant(BaseAggregate):
    """Event-sourced Tenant aggregate with provisioning state machine.

    State machine (see ``state_machine.TRANSITIONS``)::

        PENDING -> SUBDOMAIN_ALLOCATED -> CONFIGURING -> SEEDING -> READY -> LIVE
           |              |                    |            |         |       |
           +------fail----+--------------------+------------+    suspend  suspend
           v                                                          v       v
        FAILED --retry--> PENDING                                   SUSPENDED --reactivate--> LIVE
        FAILED | SUSPENDED --terminate--> TERMINATED

    The aggregate id is derived from ``tenant_id``, so a tenant can be
    loaded by its external identifier via ``Tenant.create_id(tenant_id)``.

    Attributes:
        tenant_id: External tenant identifier.
        owner_email: Normalized owner email; the identity reservations are held under.
        provisioning_state: Current state (ProvisioningState value).
        subdomain: Allocated subdomain name, kept across fail/retry.
        provisioning_started_at: First entry into SUBDOMAIN_ALLOCATED.
        provisioning_completed_at: Entry into READY.
        provisioning_failed_at: Most recent failure.
        provisioning_error: Most recent failure reason, cleared by retry.
        interrupted_from: State left by the latest fail or suspend.
        suspension_reason: Reason for the current suspension (if any).
        suspension_category: Machine-readable suspension category (if any).
        termination_reason: Reason for termination (if any).
    """

    @staticmethod
    def create_id(tenant_id: str) -> UUID:
        return uuid5(NAMESPACE_URL, f"/locatio/tenants/{tenant_id}")

    # -- Creation (records Tenant.Created event) -----------------------------

    @event("Created")
    def __init__(self, *, tenant_id: str, owner_email: str) -> None:
        """Create a new Tenant in PENDING state.

        Raises:
            ValueError: If tenant_id or owner_email fails validation.
        """
        self.tenant_id: str = TenantId(tenant_id).value
        self.owner_email: str = OwnerEmail(owner_email).value
        self.provisioning_state: str = ProvisioningState.PENDING.value
        self.subdomain: str | None = None
        self.provisioning_started_at: datetime | None = None
        self.provisioning_completed_at: datetime | None = None
        self.provisioning_failed_at: datetime | None = None
        self.provisioning_error: str | None = None
        self.interrupted_from: str | None = None
        self.suspension_reason: str | None = None
        self.suspension_category: str | None = None
        self.termination_reason: str | None = None

    # -- Queries ---------------------------------------------------------------

    @property
    def state(self) -> ProvisioningState:
        return ProvisioningState(self.provisioning_state)

    @property
    def is_provisioning(self) -> bool:
        return self.state in PROVISIONING_STATES

    @property
    def is_accessible(self) -> bool:
        return self.state in ACCESSIBLE_STATES

    def provisioning_progress(self) -> int:
        """Percentage (0-100) for progress displays."""
        return progress_for(self.provisioning_state, self.interrupted_from)

    def provisioning_status_message(self) -> str:
        return status_message_for(self.provisioning_state, self.provisioning_error)

    # -- Public command methods (validate then delegate) -----------------------

    def allocate_subdomain(
        self,
        pool: SubdomainAllocatorPort,
        *,
        reserved_by: str | None = None,
        name: str | None = None,
    ) -> str:
        """Take a subdomain from the pool. PENDING -> SUBDOMAIN_ALLOCATED.

        A tenant that already holds a subdomain (after fail + retry) keeps it
        and the pool is not contacted. Calling on a tenant already in
        SUBDOMAIN_ALLOCATED is a no-op.

        Args:
            pool: Allocator (normally the SubdomainPool).
            reserved_by: Identity whose reservation should be allocated.
            name: Explicit subdomain name to allocate instead.

        Returns:
            The allocated subdomain name.

        Raises:
            InvalidStateTransitionError: If the tenant is not PENDING.
            ConflictError: If ``name`` differs from the subdomain already held.
            ValueError: If a new allocation gets neither or both of
                ``reserved_by`` and ``name``.
            NotFoundError / InvalidSlotStateError: Propagated from the pool.
        """
        if self.state is ProvisioningState.SUBDOMAIN_ALLOCATED and self.subdomain:
            self._check_held_subdomain(name)
            return self.subdomain  # idempotent
        next_state(self.state, ProvisioningEvent.ALLOCATE_SUBDOMAIN)

        if self.subdomain is not None:
            self._check_held_subdomain(name)
            subdomain = self.subdomain
        else:
            if (reserved_by is None) == (name is None):
                msg = "Pass exactly one of reserved_by or name to allocate a subdomain"
                raise ValueError(msg)
            if reserved_by is not None:
                subdomain = pool.allocate_by_identity(reserved_by, self.tenant_id).name
            else:
                # Nothing can be ours yet; a slot already owned by this
                # tenant_id belongs to a concurrently created duplicate.
                subdomain = pool.allocate_by_name(
                    name,  # type: ignore[arg-type]
                    self.tenant_id,
                    exclusive=True,
                ).name

        self._apply_subdomain_allocated(
            subdomain=subdomain,
            started_at=self.provisioning_started_at or _utcnow(),
        )
        return subdomain

    def _check_held_subdomain(self, name: str | None) -> None:
        if name is not None and normalize_subdomain(name) != self.subdomain:
            raise ConflictError(
                f"Tenant {self.tenant_id} already holds subdomain '{self.subdomain}'",
                tenant_id=self.tenant_id,
                requested=name,
            )

    def start_configuring(self) -> None:
        """SUBDOMAIN_ALLOCATED -> CONFIGURING."""
        next_state(self.state, ProvisioningEvent.START_CONFIGURING)
        self._apply_configuring_started()

    def start_seeding(self) -> None:
        """CONFIGURING -> SEEDING."""
        next_state(self.state, ProvisioningEvent.START_SEEDING)
        self._apply_seeding_started()

    def mark_ready(self) -> None:
        """SEEDING -> READY. Stamps ``provisioning_completed_at``."""
        next_state(self.state, ProvisioningEvent.MARK_READY)
        self._apply_ready(completed_at=_utcnow())

    def go_live(self) -> None:
        """READY -> LIVE."""
        next_state(self.state, ProvisioningEvent.GO_LIVE)
        self._apply_live()

    def fail(self, reason: str) -> None:
        """Record a provisioning failure. Any pre-READY state -> FAILED.

        The subdomain is kept so that a retry resumes with the same name.
        """
        next_state(self.state, ProvisioningEvent.FAIL)
        self._apply_failed(
            reason=reason,
            interrupted_from=self.provisioning_state,
            failed_at=_utcnow(),
        )

    def retry(self) -> None:
        """FAILED -> PENDING. Clears the recorded error."""
        next_state(self.state, ProvisioningEvent.RETRY)
        self._apply_retried()

    def suspend(
        self,
        reason: str | None = None,
        category: SuspensionCategory | str | None = None,
    ) -> None:
        """READY | LIVE -> SUSPENDED. The subdomain stays allocated.

        Raises:
            ValueError: If ``category`` is not a SuspensionCategory value.
        """
        next_state(self.state, ProvisioningEvent.SUSPEND)
        self._apply_suspended(
            reason=reason or "",
            category=SuspensionCategory(category).value if category else "",
            interrupted_from=self.provisioning_state,
        )

    def reactivate(self) -> None:
        """SUSPENDED -> LIVE."""
        next_state(self.state, ProvisioningEvent.REACTIVATE)
        self._apply_reactivated()

    def terminate(self, reason: str | None = None) -> None:
        """SUSPENDED | FAILED -> TERMINATED (terminal).

        Does not release the subdomain; see ``release_subdomain``.
        """
        next_state(self.state, ProvisioningEvent.TERMINATE)
        self._apply_terminated(reason=reason or "")

    def release_subdomain(self, pool: SubdomainAllocatorPort) -> None:
        """Hand a terminated tenant's subdomain back to the pool.

        Idempotent: a tenant without a subdomain is left unchanged.

        Raises:
            InvalidStateTransitionError: If the tenant is not TERMINATED.
        """
        if self.state is not ProvisioningState.TERMINATED:
            raise InvalidStateTransitionError(
                "release_subdomain",
                self.provisioning_state,
                expected=ProvisioningState.TERMINATED.value,
                tenant_id=self.tenant_id,
            )
        if self.subdomain is None:
            return  # idempotent
        pool.release(self.subdomain)
        self._apply_subdomain_released(subdomain=self.subdomain)

    # -- Private @event mutators -----------------------------------------------

    @event("SubdomainAllocated")
    def _apply_subdomain_allocated(self, subdomain: str, started_at: datetime) -> None:
        self.provisioning_state = ProvisioningState.SUBDOMAIN_ALLOCATED.value
        self.subdomain = subdomain
        self.provisioning_started_at = started_at

    @event("ConfiguringStarted")
    def _apply_configuring_started(self) -> None:
        self.provisioning_state = ProvisioningState.CONFIGURING.value

    @event("SeedingStarted")
    def _apply_seeding_started(self) -> None:
        self.provisioning_state = ProvisioningState.SEEDING.value

    @event("Ready")
    def _apply_ready(self, completed_at: datetime) -> None:
        self.provisioning_state = ProvisioningState.READY.value
        self.provisioning_completed_at = completed_at

    @event("WentLive")
    def _apply_live(self) -> None:
        self.provisioning_state = ProvisioningState.LIVE.value

    @event("Failed")
    def _apply_failed(self, reason: str, interrupted_from: str, failed_at: datetime) -> None:
        self.provisioning_state = ProvisioningState.FAILED.value
        self.provisioning_error = reason
        self.provisioning_failed_at = failed_at
        self.interrupted_from = interrupted_from

    @event("Retried")
    def _apply_retried(self) -> None:
        self.provisioning_state = ProvisioningState.PENDING.value
        self.provisioning_error = None
        self.provisioning_failed_at = None
        self.interrupted_from = None

    @event("Suspended")
    def _apply_suspended(self, reason: str, category: str, interrupted_from: str) -> None:
        self.provisioning_state = ProvisioningState.SUSPENDED.value
        self.suspension_reason = reason if reason else None
        self.suspension_category = category if category else None
        self.interrupted_from = interrupted_from

    @event("Reactivated")
    def _apply_reactivated(self) -> None:
        self.provisioning_state = ProvisioningState.LIVE.value
        self.suspension_reason = None
        self.suspension_category = None
        self.interrupted_from = None

    @event("Terminated")
    def _apply_terminated(self, reason: str) -> None:
        self.provisioning_state = ProvisioningState.TERMINATED.value
        self.termination_reason = reason if reason else None

    @event("SubdomainReleased")
    def _apply_subdomain_released(self, subdomain: str) -> None:
        self.subdomain = None
