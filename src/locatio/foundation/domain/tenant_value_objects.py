"""Value objects for the Tenant aggregate.

Immutable, validated domain primitives. All validation occurs at
construction time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ProvisioningState(StrEnum):
    """Tenant provisioning states.

    Happy path::

        PENDING -> SUBDOMAIN_ALLOCATED -> CONFIGURING -> SEEDING -> READY -> LIVE

    Side branches: FAILED (retry back to PENDING), SUSPENDED (from READY or
    LIVE, reactivates to LIVE) and TERMINATED (terminal).

    Uses StrEnum for native JSON serialization.
    """

    PENDING = "pending"
    SUBDOMAIN_ALLOCATED = "subdomain_allocated"
    CONFIGURING = "configuring"
    SEEDING = "seeding"
    READY = "ready"
    LIVE = "live"
    FAILED = "failed"
    SUSPENDED = "suspended"
    TERMINATED = "terminated"


class ProvisioningEvent(StrEnum):
    """Commands that drive the provisioning state machine."""

    ALLOCATE_SUBDOMAIN = "allocate_subdomain"
    START_CONFIGURING = "start_configuring"
    START_SEEDING = "start_seeding"
    MARK_READY = "mark_ready"
    GO_LIVE = "go_live"
    FAIL = "fail"
    RETRY = "retry"
    SUSPEND = "suspend"
    REACTIVATE = "reactivate"
    TERMINATE = "terminate"


class SuspensionCategory(StrEnum):
    """Machine-readable suspension categories accepted by ``Tenant.suspend``."""

    ADMIN_ACTION = "admin_action"
    BILLING_HOLD = "billing_hold"
    SECURITY_REVIEW = "security_review"
    TERMS_VIOLATION = "terms_violation"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class OwnerEmail:
    """Validated, normalized owner email address.

    The normalized value doubles as the identity that subdomain
    reservations are held under, so ``" Ana@Example.COM "`` and
    ``"ana@example.com"`` refer to the same reservation.

    Attributes:
        value: Stripped, lowercased email string.

    Raises:
        ValueError: If the email is empty, malformed, or exceeds 255 chars.
    """

    value: str

    def __post_init__(self) -> None:
        normalized = self.value.strip().lower()
        if not normalized:
            msg = "Owner email cannot be empty"
            raise ValueError(msg)
        if len(normalized) > 255:
            msg = f"Email too long: {len(normalized)} chars (max 255)"
            raise ValueError(msg)
        if not _EMAIL_PATTERN.match(normalized):
            msg = f"Invalid email format: '{self.value}'"
            raise ValueError(msg)
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        return self.value
