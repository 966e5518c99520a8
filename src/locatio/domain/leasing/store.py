"""Storage port for subdomain slots.

Every pool operation runs inside exactly one ``SlotStore.transaction()``.
The transaction commits when the ``with`` block exits normally and rolls
back when it raises. Rows returned by the locking lookups stay locked
against other transactions until the block exits.

Adapters:
    - ``SqlSlotStore``: SQLAlchemy, row locks via ``FOR UPDATE SKIP LOCKED``.
    - ``InMemorySlotStore``: per-row ``threading.Lock`` objects, for tests
      and single-process deployments.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from contextlib import AbstractContextManager
    from datetime import datetime

    from locatio.domain.leasing.slot import SlotState, SubdomainSlot


@runtime_checkable
class SlotTransaction(Protocol):
    """Unit of work over the slot table."""

    def get(self, name: str, *, for_update: bool = False) -> SubdomainSlot | None:
        """Load one slot by name, optionally locking its row."""
        ...

    def reservations_held_by(self, identity: str) -> list[SubdomainSlot]:
        """Lock and return every ``reserved`` slot whose ``reserved_by`` is ``identity``.

        Also serializes concurrent transactions working for the same identity.
        """
        ...

    def lock_random_available(self) -> SubdomainSlot | None:
        """Lock one ``available`` slot chosen uniformly at random.

        Returns ``None`` when no available row could be locked.
        """
        ...

    def lock_expired_reservations(self, now: datetime) -> list[SubdomainSlot]:
        """Lock every expired reservation not already locked elsewhere."""
        ...

    def save(self, slot: SubdomainSlot) -> None:
        """Persist a slot previously locked in this transaction."""
        ...

    def add_all(self, slots: Sequence[SubdomainSlot]) -> int:
        """Insert new slots, skipping names that already exist. Returns the insert count."""
        ...

    def existing_names(self, names: Iterable[str]) -> set[str]:
        """Return the subset of ``names`` already present in the pool."""
        ...

    def count_by_state(self) -> dict[SlotState, int]:
        """Return slot counts grouped by state."""
        ...


@runtime_checkable
class SlotStore(Protocol):
    """Factory for slot transactions."""

    def transaction(self) -> AbstractContextManager[SlotTransaction]:
        """Open a transaction. Commits on normal exit, rolls back on error.

        Raises:
            ConflictError: If the commit is rejected by a uniqueness constraint
                (e.g. a concurrent second live reservation for one identity).
        """
        ...
