"""Errors raised by the subdomain pool."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from locatio.foundation.domain.exceptions import ConflictError, DomainError

if TYPE_CHECKING:
    from locatio.domain.leasing.slot import PoolStats


class PoolEmptyError(DomainError):
    """The pool holds no slots at all; it has never been populated."""

    error_code: str = "SUBDOMAIN_POOL_EMPTY"

    def __init__(self, **context: Any) -> None:
        super().__init__(
            "Subdomain pool is empty. Populate it before accepting signups.",
            context,
        )


class PoolExhaustedError(DomainError):
    """Every slot is reserved, allocated, released, or locked by a concurrent reserver.

    Attributes:
        stats: Per-state counts observed when the pick failed.
    """

    error_code: str = "SUBDOMAIN_POOL_EXHAUSTED"

    def __init__(self, stats: PoolStats, **extra_context: Any) -> None:
        self.stats = stats
        context = {**stats.as_dict(), **extra_context}
        super().__init__(f"All {stats.total} subdomains are in use", context)


class NameNotAvailableError(ConflictError):
    """A caller-chosen name is unknown to the pool or not in ``available`` state."""

    error_code: str = "SUBDOMAIN_NOT_AVAILABLE"

    def __init__(self, name: str, **context: Any) -> None:
        self.name = name
        super().__init__(f"Subdomain '{name}' is not available", name=name, **context)


class InvalidSlotStateError(ConflictError):
    """A slot transition was requested from a state that does not allow it."""

    error_code: str = "INVALID_SLOT_STATE"

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message, **context)
