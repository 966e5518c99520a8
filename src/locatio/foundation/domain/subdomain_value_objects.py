"""Value objects for subdomain names.

Immutable, validated domain primitives. All validation occurs at
construction time, which for pool slots means at slot creation: names
already in the pool are never re-validated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

MIN_SUBDOMAIN_LENGTH = 5
MAX_SUBDOMAIN_LENGTH = 40

_NAME_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")

# Names used by platform infrastructure; never handed to a tenant.
RESERVED_SUBDOMAINS: frozenset[str] = frozenset(
    {
        "www",
        "api",
        "admin",
        "app",
        "mail",
        "ftp",
        "smtp",
        "pop",
        "imap",
        "ns1",
        "ns2",
        "localhost",
        "staging",
        "test",
        "support",
        "status",
        "billing",
        "dashboard",
        "webmail",
        "signup",
    }
)

BLOCKED_WORDS: frozenset[str] = frozenset(
    {
        "asshole",
        "bastard",
        "bitch",
        "cock",
        "cunt",
        "dick",
        "fuck",
        "nazi",
        "porn",
        "shit",
        "slut",
        "whore",
    }
)


def normalize_subdomain(raw: str) -> str:
    """Lowercase and strip a user-supplied subdomain."""
    return raw.strip().lower()


def subdomain_errors(name: str) -> list[str]:
    """Return every rule the name breaks (empty list when valid).

    Args:
        name: Already-normalized candidate name.

    Returns:
        Human-readable error fragments, e.g. ``"is reserved and cannot be used"``.
    """
    errors: list[str] = []
    if not name:
        return ["can't be blank"]
    if len(name) < MIN_SUBDOMAIN_LENGTH:
        errors.append(f"must be at least {MIN_SUBDOMAIN_LENGTH} characters")
    if len(name) > MAX_SUBDOMAIN_LENGTH:
        errors.append(f"must be {MAX_SUBDOMAIN_LENGTH} characters or less")
    if not _NAME_PATTERN.match(name):
        errors.append(
            "can only contain lowercase letters, numbers, and hyphens "
            "(cannot start or end with hyphen)"
        )
    if name in RESERVED_SUBDOMAINS:
        errors.append("is reserved and cannot be used")
    if any(word in BLOCKED_WORDS for word in name.split("-")):
        errors.append("contains inappropriate language")
    return errors


@dataclass(frozen=True, slots=True)
class SubdomainName:
    """Validated subdomain name (immutable after creation).

    Format: lowercase alphanumeric + hyphens, 5-40 chars, starting and
    ending with an alphanumeric character; not a reserved infrastructure
    name; no blocked word between hyphens.

    Attributes:
        value: The validated name string.

    Raises:
        ValueError: If the name breaks any rule. The message lists all of them.

    Example:
        >>> SubdomainName("amber-bay-42").value
        'amber-bay-42'
    """

    value: str

    def __post_init__(self) -> None:
        errors = subdomain_errors(self.value)
        if errors:
            msg = f"Invalid subdomain '{self.value}': " + "; ".join(errors)
            raise ValueError(msg)

    def __str__(self) -> str:
        return self.value
