"""Identifier value objects for type-safe identifier handling.

Example:
    >>> from locatio.foundation.domain import TenantId
    >>> TenantId("42")
    TenantId(value='42')
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class TenantId:
    """External tenant identifier with format validation.

    Tenants are addressed by the website builder's own identifier, which is
    a numeric id or a lowercase slug. The value is what slots record as
    ``owner_tenant_id``.

    Attributes:
        value: Lowercase alphanumeric identifier with optional inner hyphens.

    Raises:
        ValueError: If value doesn't match the identifier format.

    Example:
        >>> TenantId("acme-corp")
        TenantId(value='acme-corp')
        >>> TenantId("42")
        TenantId(value='42')
    """

    value: str

    _PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

    def __post_init__(self) -> None:
        """Validate tenant ID format on construction."""
        if len(self.value) > 255 or not self._PATTERN.match(self.value):
            msg = (
                f"Invalid tenant ID format: {self.value!r}. "
                "Must be lowercase alphanumeric with hyphens."
            )
            raise ValueError(msg)

    def __str__(self) -> str:
        """Return tenant ID string for serialization."""
        return self.value
