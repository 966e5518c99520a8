"""Locatio Foundation Domain -- pure Python domain primitives.

This package provides the building blocks shared by the leasing and tenancy
contexts: identifiers, exceptions, aggregates, value objects and port
interfaces.
"""

from locatio.foundation.domain.aggregates import BaseAggregate
from locatio.foundation.domain.exceptions import (
    ConflictError,
    DomainError,
    InvalidStateTransitionError,
    NotFoundError,
    ValidationError,
)
from locatio.foundation.domain.identifiers import TenantId
from locatio.foundation.domain.ports import AllocatedSubdomain, SubdomainAllocatorPort
from locatio.foundation.domain.subdomain_value_objects import (
    BLOCKED_WORDS,
    MAX_SUBDOMAIN_LENGTH,
    MIN_SUBDOMAIN_LENGTH,
    RESERVED_SUBDOMAINS,
    SubdomainName,
    normalize_subdomain,
    subdomain_errors,
)
from locatio.foundation.domain.tenant_value_objects import (
    OwnerEmail,
    ProvisioningEvent,
    ProvisioningState,
    SuspensionCategory,
)

__all__ = [
    "BLOCKED_WORDS",
    "MAX_SUBDOMAIN_LENGTH",
    "MIN_SUBDOMAIN_LENGTH",
    "RESERVED_SUBDOMAINS",
    "AllocatedSubdomain",
    "BaseAggregate",
    "ConflictError",
    "DomainError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "OwnerEmail",
    "ProvisioningEvent",
    "ProvisioningState",
    "SubdomainAllocatorPort",
    "SubdomainName",
    "SuspensionCategory",
    "TenantId",
    "ValidationError",
    "normalize_subdomain",
    "subdomain_errors",
]
