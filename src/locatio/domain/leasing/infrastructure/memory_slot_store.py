"""Thread-safe in-memory adapter for the subdomain slot store.

Mirrors the locking behaviour of the SQL adapter inside one process:

- every row has its own ``threading.Lock``, held from the moment a
  transaction locks the row until the transaction ends;
- every identity has a lock, so transactions working on behalf of the same
  identity run one after another;
- changes are staged on copies and published on commit, so a transaction
  that raises leaves the store untouched.

There is no pool-wide lock; the registry lock below only guards the dicts
themselves and is never held while waiting on a row.
"""

from __future__ import annotations

import random
import threading
from collections import Counter
from contextlib import contextmanager
from typing import TYPE_CHECKING

from locatio.domain.leasing.settings import get_pool_settings
from locatio.domain.leasing.slot import SlotState, SubdomainSlot
from locatio.foundation.domain.exceptions import ConflictError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence
    from datetime import datetime


class InMemorySlotTransaction:
    """``SlotTransaction`` over an ``InMemorySlotStore``."""

    def __init__(self, store: InMemorySlotStore) -> None:
        self._store = store
        self._row_locks: dict[str, threading.Lock] = {}
        self._identity_locks: dict[str, threading.Lock] = {}
        self._staged: dict[str, SubdomainSlot] = {}
        self._inserted: dict[str, SubdomainSlot] = {}

    # -- Locking -------------------------------------------------------------

    def _acquire(self, lock: threading.Lock, what: str) -> None:
        if not lock.acquire(timeout=self._store.lock_timeout):
            raise ConflictError(f"Timed out waiting for lock on {what}", lock=what)

    def _lock_row(self, name: str) -> bool:
        """Block until the row lock is held. Returns True if newly acquired."""
        if name in self._row_locks:
            return False
        lock = self._store._row_lock(name)
        self._acquire(lock, f"slot '{name}'")
        self._row_locks[name] = lock
        return True

    def _try_lock_row(self, name: str) -> bool | None:
        """Non-blocking variant. Returns None when another transaction holds the row."""
        if name in self._row_locks:
            return False
        lock = self._store._row_lock(name)
        if not lock.acquire(blocking=False):
            return None
        self._row_locks[name] = lock
        return True

    def _unlock_row(self, name: str) -> None:
        self._staged.pop(name, None)
        self._row_locks.pop(name).release()

    def _lock_identity(self, identity: str) -> None:
        if identity in self._identity_locks:
            return
        lock = self._store._identity_lock(identity)
        self._acquire(lock, f"identity '{identity}'")
        self._identity_locks[identity] = lock

    # -- Views ---------------------------------------------------------------

    def _stage(self, name: str) -> SubdomainSlot | None:
        # Must only be called while holding the row lock.
        if name not in self._staged:
            committed = self._store._committed(name)
            if committed is None:
                return None
            self._staged[name] = committed.copy()
        return self._staged[name]

    def _view(self) -> list[SubdomainSlot]:
        rows = {slot.name: slot for slot in self._store._snapshot()}
        rows.update(self._staged)
        rows.update(self._inserted)
        return list(rows.values())

    # -- SlotTransaction -------------------------------------------------------

    def get(self, name: str, *, for_update: bool = False) -> SubdomainSlot | None:
        if name in self._inserted:
            return self._inserted[name].copy()
        if for_update:
            if self._store._committed(name) is None and name not in self._staged:
                return None
            self._lock_row(name)
            slot = self._stage(name)
        else:
            slot = self._staged.get(name) or self._store._committed(name)
        return slot.copy() if slot is not None else None

    def reservations_held_by(self, identity: str) -> list[SubdomainSlot]:
        self._lock_identity(identity)
        held: list[SubdomainSlot] = []
        for row in self._view():
            if row.state is not SlotState.RESERVED or row.reserved_by != identity:
                continue
            newly_locked = self._lock_row(row.name)
            slot = self._stage(row.name)
            if slot is not None and slot.state is SlotState.RESERVED and slot.reserved_by == identity:
                held.append(slot.copy())
            elif newly_locked:
                self._unlock_row(row.name)
        return sorted(held, key=lambda slot: slot.name)

    def lock_random_available(self) -> SubdomainSlot | None:
        skipped: set[str] = set()
        while True:
            candidates = [
                row.name
                for row in self._view()
                if row.state is SlotState.AVAILABLE
                and row.name not in skipped
                and row.name not in self._inserted
            ]
            if not candidates:
                return None
            name = self._store.rng.choice(candidates)
            # Blocks while another transaction holds the row, then re-checks it.
            newly_locked = self._lock_row(name)
            slot = self._stage(name)
            if slot is not None and slot.state is SlotState.AVAILABLE:
                return slot.copy()
            skipped.add(name)
            if newly_locked:
                self._unlock_row(name)

    def lock_expired_reservations(self, now: datetime) -> list[SubdomainSlot]:
        expired: list[SubdomainSlot] = []
        for row in self._view():
            if not row.is_expired(now):
                continue
            newly_locked = self._try_lock_row(row.name)
            if newly_locked is None:
                continue  # held by an in-flight transaction
            slot = self._stage(row.name)
            if slot is not None and slot.is_expired(now):
                expired.append(slot.copy())
            elif newly_locked:
                self._unlock_row(row.name)
        return sorted(expired, key=lambda slot: slot.name)

    def save(self, slot: SubdomainSlot) -> None:
        if slot.name in self._inserted:
            self._inserted[slot.name] = slot.copy()
            return
        if slot.name not in self._row_locks:
            msg = f"Slot '{slot.name}' must be locked in this transaction before saving"
            raise RuntimeError(msg)
        self._staged[slot.name] = slot.copy()

    def add_all(self, slots: Sequence[SubdomainSlot]) -> int:
        existing = self.existing_names(slot.name for slot in slots)
        added = 0
        for slot in slots:
            if slot.name in existing or slot.name in self._inserted:
                continue
            self._inserted[slot.name] = slot.copy()
            added += 1
        return added

    def existing_names(self, names: Iterable[str]) -> set[str]:
        wanted = set(names)
        return {row.name for row in self._view() if row.name in wanted}

    def count_by_state(self) -> dict[SlotState, int]:
        return dict(Counter(row.state for row in self._view()))

    # -- Lifecycle -------------------------------------------------------------

    def commit(self) -> None:
        self._store._publish(self._staged, self._inserted)

    def close(self) -> None:
        for lock in self._row_locks.values():
            lock.release()
        for lock in self._identity_locks.values():
            lock.release()
        self._row_locks.clear()
        self._identity_locks.clear()
        self._staged.clear()
        self._inserted.clear()


class InMemorySlotStore:
    """``SlotStore`` kept in process memory.

    Args:
        lock_timeout: Seconds a transaction waits for a row or identity lock
            before failing with ``ConflictError``; defaults to
            ``SUBDOMAIN_POOL_LOCK_TIMEOUT_SECONDS``.
        rng: Random source for slot selection (seed it for reproducible tests).
    """

    def __init__(
        self,
        *,
        lock_timeout: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.lock_timeout = (
            get_pool_settings().lock_timeout_seconds if lock_timeout is None else lock_timeout
        )
        self.rng = rng or random.Random()
        self._rows: dict[str, SubdomainSlot] = {}
        self._row_locks: dict[str, threading.Lock] = {}
        self._identity_locks: dict[str, threading.Lock] = {}
        self._registry = threading.Lock()

    def __len__(self) -> int:
        with self._registry:
            return len(self._rows)

    @contextmanager
    def transaction(self) -> Iterator[InMemorySlotTransaction]:
        tx = InMemorySlotTransaction(self)
        try:
            yield tx
            tx.commit()
        finally:
            tx.close()

    # -- Used by InMemorySlotTransaction -------------------------------------

    def _row_lock(self, name: str) -> threading.Lock:
        with self._registry:
            return self._row_locks.setdefault(name, threading.Lock())

    def _identity_lock(self, identity: str) -> threading.Lock:
        with self._registry:
            return self._identity_locks.setdefault(identity, threading.Lock())

    def _committed(self, name: str) -> SubdomainSlot | None:
        with self._registry:
            return self._rows.get(name)

    def _snapshot(self) -> list[SubdomainSlot]:
        with self._registry:
            return list(self._rows.values())

    def _publish(
        self,
        staged: dict[str, SubdomainSlot],
        inserted: dict[str, SubdomainSlot],
    ) -> None:
        with self._registry:
            duplicates = sorted(name for name in inserted if name in self._rows)
            if duplicates:
                raise ConflictError("Subdomain slots already exist", names=duplicates)
            self._rows.update(inserted)
            self._rows.update(staged)
