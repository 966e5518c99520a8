"""Locatio Domain Leasing -- the shared pool of subdomain names.

Public API:
- SubdomainPool: reserve, allocate, release and recycle subdomain slots
- SubdomainSlot / SlotState: the leased row and its states
- SlotStore / SlotTransaction: storage port
- SubdomainNameGenerator: Heroku-style name generation for pool population
"""

from locatio.domain.leasing.exceptions import (
    InvalidSlotStateError,
    NameNotAvailableError,
    PoolEmptyError,
    PoolExhaustedError,
)
from locatio.domain.leasing.generator import NameSpaceExhaustedError, SubdomainNameGenerator
from locatio.domain.leasing.pool import NameCheck, SubdomainPool
from locatio.domain.leasing.settings import SubdomainPoolSettings, get_pool_settings
from locatio.domain.leasing.slot import (
    SLOT_TRANSITIONS,
    PoolStats,
    SlotEvent,
    SlotState,
    SubdomainSlot,
    next_slot_state,
)
from locatio.domain.leasing.store import SlotStore, SlotTransaction

__all__ = [
    "SLOT_TRANSITIONS",
    "InvalidSlotStateError",
    "NameCheck",
    "NameNotAvailableError",
    "NameSpaceExhaustedError",
    "PoolEmptyError",
    "PoolExhaustedError",
    "PoolStats",
    "SlotEvent",
    "SlotState",
    "SlotStore",
    "SlotTransaction",
    "SubdomainNameGenerator",
    "SubdomainPool",
    "SubdomainPoolSettings",
    "SubdomainSlot",
    "get_pool_settings",
    "next_slot_state",
]
