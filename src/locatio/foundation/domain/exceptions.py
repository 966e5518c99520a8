"""Domain exception hierarchy for type-safe error handling.

This module provides the base exception hierarchy for all domain errors.
Exceptions carry a machine-readable error code and structured context so
that callers (signup flows, workers, admin tooling) can branch on the code
and log the context without parsing messages.

Example:
    >>> from locatio.foundation.domain.exceptions import NotFoundError
    >>> raise NotFoundError("SubdomainSlot", "amber-bay-42")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from uuid import UUID

__all__ = [
    "ConflictError",
    "DomainError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "ValidationError",
]


class DomainError(Exception):
    """Base class for all domain errors.

    Provides error code and structured context for debugging. All domain
    exceptions inherit from this class so that callers can catch one type
    and still log consistently.

    Attributes:
        error_code: Machine-readable error code for client handling.
        message: Human-readable error description.
        context: Structured debugging information (slot names, counts, states).

    Example:
        >>> raise DomainError("Operation failed", context={"name": "amber-bay-42"})
        DomainError: Operation failed (name=amber-bay-42)
    """

    error_code: str = "DOMAIN_ERROR"

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize domain error with message and optional context.

        Args:
            message: Human-readable error description.
            context: Structured debugging information. Keys should be snake_case.
                     Values are typically strings, UUIDs, or primitive types.
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """String representation including context for logging."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class NotFoundError(DomainError):
    """Raised when a requested resource does not exist.

    Use when a slot lookup by name fails, when an identity holds no
    reservation, or when a tenant cannot be found by identifier.

    Attributes:
        error_code: "RESOURCE_NOT_FOUND" (class constant).
        resource_type: Type of missing resource.
        resource_id: Identifier of missing resource.

    Example:
        >>> raise NotFoundError("SubdomainReservation", "ana@example.com")
        NotFoundError: SubdomainReservation not found: ana@example.com
    """

    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        resource_type: str,
        resource_id: UUID | str,
        **extra_context: Any,
    ) -> None:
        """Initialize not found error.

        Args:
            resource_type: Type of resource (e.g., "SubdomainSlot", "Tenant").
            resource_id: Identifier of missing resource. UUID is converted to string.
            **extra_context: Additional debugging context.
        """
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type} not found: {resource_id}"
        context = {
            "resource_type": resource_type,
            "resource_id": str(resource_id),
            **extra_context,
        }
        super().__init__(message, context)


class ValidationError(DomainError):
    """Raised when input fails domain validation rules.

    Attributes:
        error_code: "VALIDATION_ERROR" (class constant).
        field: Field path that failed validation.
        reason: Human-readable validation failure reason.

    Example:
        >>> raise ValidationError("name", "Subdomain must be at least 5 characters")
        ValidationError: Validation failed for 'name': Subdomain must be at least 5 characters
    """

    error_code: str = "VALIDATION_ERROR"

    def __init__(
        self,
        field: str,
        reason: str,
        **extra_context: Any,
    ) -> None:
        """Initialize validation error.

        Args:
            field: Field path that failed validation.
            reason: Human-readable validation failure reason.
            **extra_context: Additional debugging context.
        """
        self.field = field
        self.reason = reason
        message = f"Validation failed for '{field}': {reason}"
        context = {
            "field": field,
            "reason": reason,
            **extra_context,
        }
        super().__init__(message, context)


class ConflictError(DomainError):
    """Raised when operation conflicts with current system state.

    Use for concurrent updates rejected by the store, duplicate resource
    creation, or state transition conflicts.

    Attributes:
        error_code: "CONFLICT" (class constant).
        reason: Description of the conflict.

    Example:
        >>> raise ConflictError("Tenant already exists", tenant_id="42")
        ConflictError: Conflict: Tenant already exists (tenant_id=42)
    """

    error_code: str = "CONFLICT"

    def __init__(
        self,
        reason: str,
        **context: Any,
    ) -> None:
        """Initialize conflict error.

        Args:
            reason: Description of conflict.
            **context: Additional debugging context.
        """
        self.reason = reason
        message = f"Conflict: {reason}"
        super().__init__(message, context)


class InvalidStateTransitionError(ConflictError):
    """Raised when a lifecycle command is not allowed from the current state.

    Subclasses ConflictError so callers can treat it as a state conflict.

    Attributes:
        error_code: "INVALID_STATE_TRANSITION" (class constant).
        action: Command or event that was attempted (e.g. ``"go_live"``).
        current_state: State the aggregate was in.
        expected: State the command requires, when there is exactly one.

    Example:
        >>> raise InvalidStateTransitionError("go_live", "seeding")
        InvalidStateTransitionError: Conflict: Cannot go_live: current state is seeding (...)
    """

    error_code: str = "INVALID_STATE_TRANSITION"

    def __init__(
        self,
        action: str,
        current_state: str,
        *,
        expected: str | None = None,
        **context: Any,
    ) -> None:
        self.action = action
        self.current_state = current_state
        self.expected = expected
        reason = f"Cannot {action}: current state is {current_state}"
        if expected is not None:
            reason = f"{reason}, expected {expected}"
        super().__init__(reason, action=action, current_state=current_state, **context)
