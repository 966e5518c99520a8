"""Locatio Domain Tenancy -- tenant lifecycle and provisioning.

Public API:
- Tenant: event-sourced aggregate with the provisioning state machine
- TenantApplication: eventsourcing Application for Tenant persistence
- ProvisioningService: signup -> tenant creation -> live website
"""

from locatio.domain.tenancy.provisioning import (
    ProgressUpdate,
    ProvisioningResult,
    ProvisioningService,
)
from locatio.domain.tenancy.state_machine import (
    ACCESSIBLE_STATES,
    PROVISIONING_STATES,
    TRANSITIONS,
    can_transition,
    next_state,
    progress_for,
    status_message_for,
)
from locatio.domain.tenancy.tenant import Tenant
from locatio.domain.tenancy.tenant_app import TenantApplication

__all__ = [
    "ACCESSIBLE_STATES",
    "PROVISIONING_STATES",
    "TRANSITIONS",
    "ProgressUpdate",
    "ProvisioningResult",
    "ProvisioningService",
    "Tenant",
    "TenantApplication",
    "can_transition",
    "next_state",
    "progress_for",
    "status_message_for",
]
