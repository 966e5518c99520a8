"""Provisioning state machine for tenants.

Transition table::

    pending --allocate_subdomain--> subdomain_allocated --start_configuring--> configuring
      --start_seeding--> seeding --mark_ready--> ready --go_live--> live

    ready | live                                    --suspend-->    suspended
    suspended                                       --reactivate--> live
    pending | subdomain_allocated | configuring | seeding --fail--> failed
    failed                                          --retry-->      pending
    suspended | failed                              --terminate-->  terminated

The table is the single source of truth; the Tenant aggregate asks it
before recording any event.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from locatio.foundation.domain.exceptions import InvalidStateTransitionError
from locatio.foundation.domain.tenant_value_objects import ProvisioningEvent, ProvisioningState

_S = ProvisioningState
_E = ProvisioningEvent

TRANSITIONS: Mapping[tuple[ProvisioningState, ProvisioningEvent], ProvisioningState] = (
    MappingProxyType(
        {
            (_S.PENDING, _E.ALLOCATE_SUBDOMAIN): _S.SUBDOMAIN_ALLOCATED,
            (_S.SUBDOMAIN_ALLOCATED, _E.START_CONFIGURING): _S.CONFIGURING,
            (_S.CONFIGURING, _E.START_SEEDING): _S.SEEDING,
            (_S.SEEDING, _E.MARK_READY): _S.READY,
            (_S.READY, _E.GO_LIVE): _S.LIVE,
            (_S.READY, _E.SUSPEND): _S.SUSPENDED,
            (_S.LIVE, _E.SUSPEND): _S.SUSPENDED,
            (_S.SUSPENDED, _E.REACTIVATE): _S.LIVE,
            (_S.PENDING, _E.FAIL): _S.FAILED,
            (_S.SUBDOMAIN_ALLOCATED, _E.FAIL): _S.FAILED,
            (_S.CONFIGURING, _E.FAIL): _S.FAILED,
            (_S.SEEDING, _E.FAIL): _S.FAILED,
            (_S.FAILED, _E.RETRY): _S.PENDING,
            (_S.SUSPENDED, _E.TERMINATE): _S.TERMINATED,
            (_S.FAILED, _E.TERMINATE): _S.TERMINATED,
        }
    )
)

PROGRESS: Mapping[ProvisioningState, int] = MappingProxyType(
    {
        _S.PENDING: 0,
        _S.SUBDOMAIN_ALLOCATED: 20,
        _S.CONFIGURING: 40,
        _S.SEEDING: 70,
        _S.READY: 95,
        _S.LIVE: 100,
        _S.TERMINATED: 0,
    }
)

STATUS_MESSAGES: Mapping[ProvisioningState, str] = MappingProxyType(
    {
        _S.PENDING: "Waiting to start...",
        _S.SUBDOMAIN_ALLOCATED: "Subdomain reserved",
        _S.CONFIGURING: "Configuring your website...",
        _S.SEEDING: "Adding sample content...",
        _S.READY: "Almost done! Finalizing...",
        _S.LIVE: "Your website is live!",
        _S.SUSPENDED: "Website suspended",
        _S.TERMINATED: "Website terminated",
    }
)

PROVISIONING_STATES: frozenset[ProvisioningState] = frozenset(
    {_S.PENDING, _S.SUBDOMAIN_ALLOCATED, _S.CONFIGURING, _S.SEEDING, _S.READY}
)
ACCESSIBLE_STATES: frozenset[ProvisioningState] = frozenset({_S.READY, _S.LIVE})


def can_transition(state: ProvisioningState | str, event: ProvisioningEvent) -> bool:
    return (ProvisioningState(state), event) in TRANSITIONS


def next_state(state: ProvisioningState | str, event: ProvisioningEvent) -> ProvisioningState:
    """Return the state ``event`` leads to from ``state``.

    Raises:
        InvalidStateTransitionError: If the table has no such edge.
    """
    current = ProvisioningState(state)
    try:
        return TRANSITIONS[(current, event)]
    except KeyError:
        raise InvalidStateTransitionError(event.value, current.value) from None


def progress_for(
    state: ProvisioningState | str,
    interrupted_from: ProvisioningState | str | None = None,
) -> int:
    """Percentage shown to the tenant.

    ``failed`` and ``suspended`` report the stage they interrupted.
    """
    current = ProvisioningState(state)
    if current in (_S.FAILED, _S.SUSPENDED):
        if interrupted_from is None:
            return 0
        return PROGRESS.get(ProvisioningState(interrupted_from), 0)
    return PROGRESS[current]


def status_message_for(state: ProvisioningState | str, error: str | None = None) -> str:
    current = ProvisioningState(state)
    if current is _S.FAILED:
        return f"Setup failed: {error or 'Unknown error'}"
    return STATUS_MESSAGES[current]
