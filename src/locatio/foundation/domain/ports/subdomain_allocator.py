"""Port interface for subdomain allocation.

The Tenant aggregate consumes a subdomain lease through this protocol so the
domain model never depends on the pool's storage adapters.

Example:
    >>> from locatio.foundation.domain.ports import SubdomainAllocatorPort
    >>> def claim(pool: SubdomainAllocatorPort, email: str, tenant_id: str) -> str:
    ...     return pool.allocate_by_identity(email, tenant_id).name
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AllocatedSubdomain(Protocol):
    """Anything exposing the allocated name."""

    @property
    def name(self) -> str: ...


@runtime_checkable
class SubdomainAllocatorPort(Protocol):
    """Port for converting reservations into allocations and releasing them.

    The protocol is runtime_checkable to enable isinstance() verification
    in tests and dependency injection validation.
    """

    def allocate_by_identity(self, identity: str, tenant_id: str) -> AllocatedSubdomain:
        """Allocate the slot currently reserved by ``identity`` to ``tenant_id``.

        Raises:
            NotFoundError: If the identity holds no reservation.
        """
        ...

    def allocate_by_name(
        self,
        name: str,
        tenant_id: str,
        *,
        exclusive: bool = False,
    ) -> AllocatedSubdomain:
        """Allocate the named slot (available or reserved) to ``tenant_id``.

        With ``exclusive`` a slot already owned by ``tenant_id`` is rejected.

        Raises:
            NotFoundError: If no slot has this name.
            InvalidSlotStateError: If the slot is allocated or released.
        """
        ...

    def release(self, name: str) -> None:
        """Release a reserved or allocated slot."""
        ...
