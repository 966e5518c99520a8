"""Subdomain slot model and its lease state machine.

State machine::

                 reserve(by, ttl)              allocate(tenant)
    AVAILABLE -------------------> RESERVED -------------------> ALLOCATED
        |  ^                          |                              |
        |  |  make_available()        |  release()                   |  release()
        |  +------------ RELEASED <---+------------------------------+
        |
        +-- allocate(tenant) -----------------------------------> ALLOCATED

Re-reserving a slot that the same identity already holds (and that has not
expired) is an idempotent no-op handled by ``SubdomainSlot.reserve`` before
the table is consulted.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from enum import StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from locatio.domain.leasing.exceptions import InvalidSlotStateError

if TYPE_CHECKING:
    from datetime import datetime, timedelta


class SlotState(StrEnum):
    """Lease states of a pool slot."""

    AVAILABLE = "available"
    RESERVED = "reserved"
    ALLOCATED = "allocated"
    RELEASED = "released"


class SlotEvent(StrEnum):
    RESERVE = "reserve"
    ALLOCATE = "allocate"
    RELEASE = "release"
    MAKE_AVAILABLE = "make_available"


SLOT_TRANSITIONS: Mapping[tuple[SlotState, SlotEvent], SlotState] = MappingProxyType(
    {
        (SlotState.AVAILABLE, SlotEvent.RESERVE): SlotState.RESERVED,
        (SlotState.RESERVED, SlotEvent.ALLOCATE): SlotState.ALLOCATED,
        (SlotState.AVAILABLE, SlotEvent.ALLOCATE): SlotState.ALLOCATED,
        (SlotState.RESERVED, SlotEvent.RELEASE): SlotState.RELEASED,
        (SlotState.ALLOCATED, SlotEvent.RELEASE): SlotState.RELEASED,
        (SlotState.RELEASED, SlotEvent.MAKE_AVAILABLE): SlotState.AVAILABLE,
    }
)


def next_slot_state(state: SlotState, event: SlotEvent, *, name: str | None = None) -> SlotState:
    """Return the state ``event`` leads to from ``state``.

    Raises:
        InvalidSlotStateError: If the table has no such edge.
    """
    try:
        return SLOT_TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidSlotStateError(
            f"Cannot {event.value} subdomain in state {state.value}",
            name=name,
            state=state.value,
            event=event.value,
        ) from None


@dataclass(slots=True)
class SubdomainSlot:
    """One managed subdomain name and its lease.

    Reservation fields are populated only while ``RESERVED`` and
    ``owner_tenant_id`` only while ``ALLOCATED``; any other combination is
    rejected at construction.

    Attributes:
        name: Unique subdomain name (primary key, immutable).
        state: Current lease state.
        reserved_at: When the reservation was taken (UTC).
        reserved_until: When the reservation expires (UTC).
        reserved_by: Opaque identity holding the reservation, usually an email.
        owner_tenant_id: Tenant the slot is allocated to.
    """

    name: str
    state: SlotState = SlotState.AVAILABLE
    reserved_at: datetime | None = None
    reserved_until: datetime | None = None
    reserved_by: str | None = None
    owner_tenant_id: str | None = None

    def __post_init__(self) -> None:
        self.state = SlotState(self.state)
        reservation = (self.reserved_at, self.reserved_until, self.reserved_by)
        if self.state is SlotState.RESERVED:
            if any(value is None for value in reservation):
                msg = f"Reserved slot '{self.name}' is missing reservation fields"
                raise ValueError(msg)
        elif any(value is not None for value in reservation):
            msg = f"Slot '{self.name}' in state {self.state} cannot carry reservation fields"
            raise ValueError(msg)
        if (self.state is SlotState.ALLOCATED) != (self.owner_tenant_id is not None):
            msg = f"Slot '{self.name}' in state {self.state} has inconsistent owner_tenant_id"
            raise ValueError(msg)

    # -- Queries -----------------------------------------------------------

    def is_expired(self, now: datetime) -> bool:
        """True for a reservation whose ``reserved_until`` has passed."""
        return (
            self.state is SlotState.RESERVED
            and self.reserved_until is not None
            and self.reserved_until < now
        )

    def is_held_by(self, identity: str, now: datetime) -> bool:
        """True if ``identity`` holds a live reservation on this slot."""
        return (
            self.state is SlotState.RESERVED
            and self.reserved_by == identity
            and not self.is_expired(now)
        )

    def copy(self) -> SubdomainSlot:
        return replace(self)

    # -- Transitions -------------------------------------------------------

    def reserve(self, identity: str, ttl: timedelta, now: datetime) -> None:
        if self.is_held_by(identity, now):
            return  # idempotent
        self.state = next_slot_state(self.state, SlotEvent.RESERVE, name=self.name)
        self.reserved_at = now
        self.reserved_until = now + ttl
        self.reserved_by = identity

    def allocate(self, tenant_id: str) -> None:
        self.state = next_slot_state(self.state, SlotEvent.ALLOCATE, name=self.name)
        self.reserved_at = None
        self.reserved_until = None
        self.reserved_by = None
        self.owner_tenant_id = tenant_id

    def release(self) -> None:
        self.state = next_slot_state(self.state, SlotEvent.RELEASE, name=self.name)
        self.reserved_at = None
        self.reserved_until = None
        self.reserved_by = None
        self.owner_tenant_id = None

    def make_available(self) -> None:
        self.state = next_slot_state(self.state, SlotEvent.MAKE_AVAILABLE, name=self.name)


@dataclass(frozen=True, slots=True)
class PoolStats:
    """Slot counts per state."""

    available: int = 0
    reserved: int = 0
    allocated: int = 0
    released: int = 0

    @classmethod
    def from_counts(cls, counts: Mapping[SlotState, int]) -> PoolStats:
        return cls(**{state.value: counts.get(state, 0) for state in SlotState})

    @property
    def total(self) -> int:
        return self.available + self.reserved + self.allocated + self.released

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_count": self.total,
            "available_count": self.available,
            "reserved_count": self.reserved,
            "allocated_count": self.allocated,
            "released_count": self.released,
        }
