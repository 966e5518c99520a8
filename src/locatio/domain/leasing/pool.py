"""Subdomain pool: leases unique subdomain names to signups and tenants.

Every operation runs in exactly one store transaction and locks only the
rows it touches, so concurrent signups contend on individual slots rather
than on the pool as a whole.

Reservation flow for an identity:
1. Reclaim the identity's own expired reservations (committed even if the
   call then fails)
2. Return the identity's live reservation, if any
3. Lock a random available slot and reserve it
4. Nothing pickable: PoolEmptyError / PoolExhaustedError, or a bounded
   retry when every available slot was locked by concurrent reservers
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from locatio.domain.leasing.exceptions import (
    NameNotAvailableError,
    PoolEmptyError,
    PoolExhaustedError,
)
from locatio.domain.leasing.generator import SubdomainNameGenerator
from locatio.domain.leasing.settings import SubdomainPoolSettings, get_pool_settings
from locatio.domain.leasing.slot import PoolStats, SlotState, SubdomainSlot
from locatio.foundation.domain.exceptions import ConflictError, NotFoundError, ValidationError
from locatio.foundation.domain.subdomain_value_objects import (
    SubdomainName,
    normalize_subdomain,
    subdomain_errors,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from locatio.domain.leasing.store import SlotStore, SlotTransaction

logger = logging.getLogger(__name__)

_STALLED_BATCH_LIMIT = 3


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class NameCheck:
    """Result of validating a user-chosen subdomain.

    Attributes:
        valid: True when the name passes format and availability checks.
        errors: Error fragments, e.g. ``("is already taken",)``.
        normalized: Lowercased, stripped form of the input.
    """

    valid: bool
    errors: tuple[str, ...]
    normalized: str


class SubdomainPool:
    """Application service over a ``SlotStore``.

    Args:
        store: Slot storage adapter.
        settings: Pool settings; defaults to the cached environment settings.
        clock: Returns the current UTC time; injectable for tests.
        generator: Name generator used by ``populate``.
    """

    def __init__(
        self,
        store: SlotStore,
        settings: SubdomainPoolSettings | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
        generator: SubdomainNameGenerator | None = None,
    ) -> None:
        self._store = store
        self._settings = settings or get_pool_settings()
        self._clock = clock or _utcnow
        self._generator = generator or SubdomainNameGenerator()

    @property
    def settings(self) -> SubdomainPoolSettings:
        return self._settings

    # -- Reservation ---------------------------------------------------------

    def reserve_for_identity(self, identity: str, ttl: timedelta | None = None) -> SubdomainSlot:
        """Reserve a random available name for ``identity``.

        Idempotent: an identity holding a live reservation gets it back
        unchanged (same name, same expiry).

        Args:
            identity: Opaque caller identity, usually a normalized email.
            ttl: Reservation lifetime; defaults to ``reservation_ttl_seconds``.

        Returns:
            The reserved slot.

        Raises:
            ValidationError: If identity is empty or ttl is not positive.
            PoolEmptyError: If the pool holds no slots.
            PoolExhaustedError: If no slot is available, or every available
                slot stayed locked by concurrent reservers.
        """
        self._check_identity(identity)
        ttl = self._resolve_ttl(ttl)
        attempts = self._settings.max_selection_attempts
        for attempt in range(attempts):
            try:
                slot = self._reserve_random_once(identity, ttl)
            except ConflictError:
                # Another transaction reserved for this identity first; the
                # next pass returns that reservation.
                logger.warning(
                    "subdomain_reservation_race_condition",
                    extra={"identity": identity, "attempt": attempt + 1},
                )
                slot = None
            if slot is not None:
                return slot
            if attempt + 1 < attempts:
                time.sleep(0.05 * (attempt + 1))

        stats = self.stats()
        logger.error(
            "subdomain_pool_contended",
            extra={"identity": identity, "attempts": attempts, **stats.as_dict()},
        )
        raise PoolExhaustedError(stats, identity=identity, attempts=attempts)

    def _reserve_random_once(self, identity: str, ttl: timedelta) -> SubdomainSlot | None:
        now = self._clock()
        with self._store.transaction() as tx:
            live = self._reclaim_expired(tx, identity, now)
            if live:
                logger.debug(
                    "subdomain_reservation_reused",
                    extra={"identity": identity, "subdomain": live[0].name},
                )
                return live[0]

            slot = tx.lock_random_available()
            if slot is not None:
                slot.reserve(identity, ttl, now)
                tx.save(slot)
                logger.info(
                    "subdomain_reserved",
                    extra={
                        "identity": identity,
                        "subdomain": slot.name,
                        "reserved_until": str(slot.reserved_until),
                    },
                )
                return slot
            stats = PoolStats.from_counts(tx.count_by_state())

        # Outside the transaction so the expired-reservation cleanup is kept.
        self._raise_if_depleted(stats, identity)
        return None

    def _raise_if_depleted(self, stats: PoolStats, identity: str) -> None:
        if stats.total == 0:
            logger.error("subdomain_pool_empty", extra={"identity": identity})
            raise PoolEmptyError(identity=identity)
        if stats.available == 0:
            logger.error(
                "subdomain_pool_exhausted",
                extra={"identity": identity, **stats.as_dict()},
            )
            raise PoolExhaustedError(stats, identity=identity)

    def reserve_specific(
        self,
        name: str,
        identity: str,
        ttl: timedelta | None = None,
    ) -> SubdomainSlot:
        """Reserve a caller-chosen name for ``identity``.

        A different live reservation held by the identity is handed back to
        the pool, keeping at most one live reservation per identity.

        Raises:
            NameNotAvailableError: If the name is not in the pool or its slot
                is not available (and not already held by this identity).
        """
        self._check_identity(identity)
        ttl = self._resolve_ttl(ttl)
        normalized = normalize_subdomain(name)
        now = self._clock()
        with self._store.transaction() as tx:
            live = self._reclaim_expired(tx, identity, now)
            slot = tx.get(normalized, for_update=True)
            if slot is not None and (
                slot.state is SlotState.AVAILABLE or slot.is_held_by(identity, now)
            ):
                for previous in live:
                    if previous.name == slot.name:
                        continue
                    previous.release()
                    previous.make_available()
                    tx.save(previous)
                    logger.info(
                        "subdomain_reservation_switched",
                        extra={"identity": identity, "previous": previous.name},
                    )
                slot.reserve(identity, ttl, now)
                tx.save(slot)
                logger.info(
                    "subdomain_reserved",
                    extra={"identity": identity, "subdomain": slot.name, "specific": True},
                )
                return slot
            state = slot.state.value if slot is not None else None

        raise NameNotAvailableError(normalized, state=state)

    def _reclaim_expired(
        self,
        tx: SlotTransaction,
        identity: str,
        now: datetime,
    ) -> list[SubdomainSlot]:
        """Return the identity's expired holds to the pool; return its live ones."""
        live: list[SubdomainSlot] = []
        for slot in tx.reservations_held_by(identity):
            if not slot.is_expired(now):
                live.append(slot)
                continue
            slot.release()
            slot.make_available()
            tx.save(slot)
            logger.info(
                "expired_reservation_reclaimed",
                extra={"identity": identity, "subdomain": slot.name},
            )
        return live

    # -- Allocation ----------------------------------------------------------

    def allocate_by_identity(self, identity: str, tenant_id: str) -> SubdomainSlot:
        """Convert the identity's reservation into an allocation for ``tenant_id``.

        A reservation past its expiry that the sweeper has not reclaimed yet
        still belongs to the identity and is allocated.

        Raises:
            NotFoundError: If the identity holds no reservation.
        """
        with self._store.transaction() as tx:
            held = tx.reservations_held_by(identity)
            if held:
                slot = held[0]
                slot.allocate(tenant_id)
                tx.save(slot)
                logger.info(
                    "subdomain_allocated",
                    extra={"subdomain": slot.name, "tenant_id": tenant_id, "identity": identity},
                )
                return slot
        raise NotFoundError("SubdomainReservation", identity)

    def allocate_by_name(
        self,
        name: str,
        tenant_id: str,
        *,
        exclusive: bool = False,
    ) -> SubdomainSlot:
        """Allocate the named slot to ``tenant_id``.

        Works on ``available`` (direct allocation) and ``reserved`` slots.
        Allocating a slot the same tenant already owns is a no-op unless
        ``exclusive`` is set, in which case it is rejected like any other
        allocated slot.

        Raises:
            NotFoundError: If no slot has this name.
            InvalidSlotStateError: If the slot is allocated to another tenant
                (or to any tenant when ``exclusive``) or released.
        """
        normalized = normalize_subdomain(name)
        with self._store.transaction() as tx:
            slot = tx.get(normalized, for_update=True)
            if slot is None:
                raise NotFoundError("SubdomainSlot", normalized)
            if (
                not exclusive
                and slot.state is SlotState.ALLOCATED
                and slot.owner_tenant_id == tenant_id
            ):
                return slot  # idempotent
            slot.allocate(tenant_id)
            tx.save(slot)
        logger.info(
            "subdomain_allocated",
            extra={"subdomain": normalized, "tenant_id": tenant_id},
        )
        return slot

    # -- Release & recycling ---------------------------------------------------

    def release(self, name: str) -> None:
        """Release a reserved or allocated slot.

        Raises:
            NotFoundError: If no slot has this name.
            InvalidSlotStateError: If the slot is available or already released.
        """
        normalized = normalize_subdomain(name)
        with self._store.transaction() as tx:
            slot = tx.get(normalized, for_update=True)
            if slot is None:
                raise NotFoundError("SubdomainSlot", normalized)
            previous_state = slot.state
            slot.release()
            tx.save(slot)
        logger.info(
            "subdomain_released",
            extra={"subdomain": normalized, "previous_state": previous_state.value},
        )

    def make_available(self, name: str) -> SubdomainSlot:
        """Return a released slot to the available set.

        Raises:
            NotFoundError: If no slot has this name.
            InvalidSlotStateError: If the slot is not released.
        """
        normalized = normalize_subdomain(name)
        with self._store.transaction() as tx:
            slot = tx.get(normalized, for_update=True)
            if slot is None:
                raise NotFoundError("SubdomainSlot", normalized)
            slot.make_available()
            tx.save(slot)
        logger.info("subdomain_made_available", extra={"subdomain": normalized})
        return slot

    def sweep_expired_reservations(self) -> int:
        """Release and recycle every expired reservation.

        Rows locked by in-flight transactions are skipped; they are picked
        up by the next sweep or reclaimed by their own identity.

        Returns:
            Number of reservations reclaimed.
        """
        now = self._clock()
        with self._store.transaction() as tx:
            expired = tx.lock_expired_reservations(now)
            for slot in expired:
                slot.release()
                slot.make_available()
                tx.save(slot)
        if expired:
            logger.info(
                "expired_reservations_swept",
                extra={"count": len(expired), "subdomains": [slot.name for slot in expired]},
            )
        return len(expired)

    # -- Queries ---------------------------------------------------------------

    def get(self, name: str) -> SubdomainSlot | None:
        with self._store.transaction() as tx:
            return tx.get(normalize_subdomain(name))

    def name_available(self, name: str) -> bool:
        """True if the name is unknown to the pool or its slot is available.

        Names outside the pool are reported available; uniqueness against
        names registered elsewhere is the caller's check.
        """
        slot = self.get(name)
        return slot is None or slot.state is SlotState.AVAILABLE

    def stats(self) -> PoolStats:
        with self._store.transaction() as tx:
            return PoolStats.from_counts(tx.count_by_state())

    def validate_custom_name(self, name: str, reserved_by: str | None = None) -> NameCheck:
        """Check a user-typed name for format and availability.

        A name reserved by ``reserved_by`` itself is acceptable.
        """
        normalized = normalize_subdomain(name)
        errors = subdomain_errors(normalized)
        if not errors:
            slot = self.get(normalized)
            if slot is not None:
                if slot.state is SlotState.ALLOCATED:
                    errors.append("is already taken")
                elif slot.state is SlotState.RESERVED:
                    if reserved_by is None or slot.reserved_by != reserved_by:
                        errors.append("is not available")
                elif slot.state is SlotState.RELEASED:
                    errors.append("is not available")
        return NameCheck(valid=not errors, errors=tuple(errors), normalized=normalized)

    # -- Population ------------------------------------------------------------

    def add_names(self, names: Iterable[str]) -> int:
        """Add explicit names to the pool as available slots.

        Names are validated here, once; existing names are skipped.

        Returns:
            Number of slots created.

        Raises:
            ValidationError: If any name breaks the naming rules. Nothing is added.
        """
        slots: list[SubdomainSlot] = []
        for raw in names:
            normalized = normalize_subdomain(raw)
            try:
                SubdomainName(normalized)
            except ValueError as exc:
                raise ValidationError("name", str(exc), name=normalized) from exc
            slots.append(SubdomainSlot(name=normalized))
        with self._store.transaction() as tx:
            added = tx.add_all(slots)
        logger.info("subdomain_names_added", extra={"requested": len(slots), "added": added})
        return added

    def populate(self, count: int) -> int:
        """Create ``count`` slots with generated names, in batches.

        Returns:
            Number of slots created (less than ``count`` only when the
            generator keeps colliding with existing names).
        """
        batch_size = self._settings.populate_batch_size
        created = 0
        stalled = 0
        while created < count:
            names = self._generator.generate_batch(min(batch_size, count - created))
            with self._store.transaction() as tx:
                added = tx.add_all([SubdomainSlot(name=name) for name in names])
            created += added
            logger.debug(
                "subdomain_pool_populate_progress",
                extra={"created": created, "requested": count},
            )
            stalled = stalled + 1 if added == 0 else 0
            if stalled >= _STALLED_BATCH_LIMIT:
                logger.warning(
                    "subdomain_pool_populate_stalled",
                    extra={"created": created, "requested": count},
                )
                break
        logger.info("subdomain_pool_populated", extra={"created": created, "requested": count})
        return created

    def ensure_minimum(self, minimum: int | None = None) -> int:
        """Top up the pool so at least ``minimum`` slots are available.

        Returns:
            Number of slots created (0 when already at or above the minimum).
        """
        target = self._settings.minimum_available if minimum is None else minimum
        available = self.stats().available
        if available >= target:
            return 0
        created = self.populate(target - available)
        logger.info(
            "subdomain_pool_replenished",
            extra={"previously_available": available, "created": created, "target": target},
        )
        return created

    # -- Helpers ---------------------------------------------------------------

    @staticmethod
    def _check_identity(identity: str) -> None:
        if not identity or not identity.strip():
            raise ValidationError("identity", "Reservation identity cannot be empty")

    def _resolve_ttl(self, ttl: timedelta | None) -> timedelta:
        if ttl is None:
            return self._settings.reservation_ttl
        if ttl <= timedelta(0):
            raise ValidationError("ttl", "Reservation TTL must be positive", ttl=str(ttl))
        return ttl
