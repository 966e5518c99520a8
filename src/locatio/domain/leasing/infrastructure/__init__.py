"""Slot store adapters."""

from locatio.domain.leasing.infrastructure.memory_slot_store import (
    InMemorySlotStore,
    InMemorySlotTransaction,
)
from locatio.domain.leasing.infrastructure.sql_slot_store import (
    SqlSlotStore,
    SqlSlotTransaction,
    subdomain_slots,
)

__all__ = [
    "InMemorySlotStore",
    "InMemorySlotTransaction",
    "SqlSlotStore",
    "SqlSlotTransaction",
    "subdomain_slots",
]
