"""SQLAlchemy adapter for the subdomain slot store.

The pool table lives next to the application's other relational tables.
Concurrency control relies on PostgreSQL row locks:

- ``lock_random_available`` uses ``ORDER BY random() LIMIT 1 FOR UPDATE
  SKIP LOCKED`` so concurrent reservers never wait on, or double-book, the
  same row.
- A partial unique index on ``reserved_by WHERE state = 'reserved'`` keeps
  at most one reservation per identity; a violation surfaces as
  ``ConflictError``.

SQLite (used in tests) ignores ``FOR UPDATE`` and serializes writers on the
database file instead.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Index,
    MetaData,
    String,
    Table,
    func,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.exc import IntegrityError

from locatio.domain.leasing.slot import SlotState, SubdomainSlot
from locatio.foundation.domain.exceptions import ConflictError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence

    from sqlalchemy import Engine, RowMapping
    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

metadata = MetaData()

_RESERVED_ONLY = text("state = 'reserved'")

subdomain_slots = Table(
    "subdomain_slots",
    metadata,
    Column("name", String(40), primary_key=True),
    Column("state", String(16), nullable=False, server_default=SlotState.AVAILABLE.value),
    Column("reserved_at", DateTime(timezone=True), nullable=True),
    Column("reserved_until", DateTime(timezone=True), nullable=True),
    Column("reserved_by", String(255), nullable=True),
    Column("owner_tenant_id", String(255), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    CheckConstraint(
        "state IN ('available', 'reserved', 'allocated', 'released')",
        name="ck_subdomain_slots_state",
    ),
    Index("ix_subdomain_slots_state", "state"),
    Index(
        "ux_subdomain_slots_reserved_by",
        "reserved_by",
        unique=True,
        postgresql_where=_RESERVED_ONLY,
        sqlite_where=_RESERVED_ONLY,
    ),
    Index(
        "ix_subdomain_slots_reserved_until",
        "reserved_until",
        postgresql_where=_RESERVED_ONLY,
        sqlite_where=_RESERVED_ONLY,
    ),
)

_SLOT_COLUMNS = (
    subdomain_slots.c.name,
    subdomain_slots.c.state,
    subdomain_slots.c.reserved_at,
    subdomain_slots.c.reserved_until,
    subdomain_slots.c.reserved_by,
    subdomain_slots.c.owner_tenant_id,
)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; every stored timestamp is UTC.
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_slot(row: RowMapping) -> SubdomainSlot:
    return SubdomainSlot(
        name=row["name"],
        state=SlotState(row["state"]),
        reserved_at=_as_utc(row["reserved_at"]),
        reserved_until=_as_utc(row["reserved_until"]),
        reserved_by=row["reserved_by"],
        owner_tenant_id=row["owner_tenant_id"],
    )


def _to_values(slot: SubdomainSlot) -> dict[str, Any]:
    return {
        "state": slot.state.value,
        "reserved_at": slot.reserved_at,
        "reserved_until": slot.reserved_until,
        "reserved_by": slot.reserved_by,
        "owner_tenant_id": slot.owner_tenant_id,
    }


class SqlSlotTransaction:
    """``SlotTransaction`` bound to one SQLAlchemy session transaction."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _fetch(self, stmt: Any) -> list[SubdomainSlot]:
        return [_to_slot(row) for row in self._session.execute(stmt).mappings()]

    def get(self, name: str, *, for_update: bool = False) -> SubdomainSlot | None:
        stmt = select(*_SLOT_COLUMNS).where(subdomain_slots.c.name == name)
        if for_update:
            stmt = stmt.with_for_update()
        rows = self._fetch(stmt)
        return rows[0] if rows else None

    def reservations_held_by(self, identity: str) -> list[SubdomainSlot]:
        stmt = (
            select(*_SLOT_COLUMNS)
            .where(
                subdomain_slots.c.state == SlotState.RESERVED.value,
                subdomain_slots.c.reserved_by == identity,
            )
            .order_by(subdomain_slots.c.name)
            .with_for_update()
        )
        return self._fetch(stmt)

    def lock_random_available(self) -> SubdomainSlot | None:
        stmt = (
            select(*_SLOT_COLUMNS)
            .where(subdomain_slots.c.state == SlotState.AVAILABLE.value)
            .order_by(func.random())
            .limit(1)
            .with_for_update(skip_locked=True)
        )
        rows = self._fetch(stmt)
        return rows[0] if rows else None

    def lock_expired_reservations(self, now: datetime) -> list[SubdomainSlot]:
        stmt = (
            select(*_SLOT_COLUMNS)
            .where(
                subdomain_slots.c.state == SlotState.RESERVED.value,
                subdomain_slots.c.reserved_until < now,
            )
            .order_by(subdomain_slots.c.reserved_until)
            .with_for_update(skip_locked=True)
        )
        return self._fetch(stmt)

    def save(self, slot: SubdomainSlot) -> None:
        self._session.execute(
            update(subdomain_slots)
            .where(subdomain_slots.c.name == slot.name)
            .values(**_to_values(slot), updated_at=func.now())
        )

    def add_all(self, slots: Sequence[SubdomainSlot]) -> int:
        existing = self.existing_names(slot.name for slot in slots)
        rows: dict[str, dict[str, Any]] = {}
        for slot in slots:
            if slot.name in existing or slot.name in rows:
                continue
            rows[slot.name] = {"name": slot.name, **_to_values(slot)}
        if rows:
            self._session.execute(insert(subdomain_slots), list(rows.values()))
        return len(rows)

    def existing_names(self, names: Iterable[str]) -> set[str]:
        wanted = set(names)
        if not wanted:
            return set()
        stmt = select(subdomain_slots.c.name).where(subdomain_slots.c.name.in_(wanted))
        return set(self._session.scalars(stmt))

    def count_by_state(self) -> dict[SlotState, int]:
        stmt = select(subdomain_slots.c.state, func.count()).group_by(subdomain_slots.c.state)
        return {SlotState(state): count for state, count in self._session.execute(stmt)}


class SqlSlotStore:
    """``SlotStore`` backed by a SQLAlchemy session factory.

    Args:
        session_factory: Callable returning a new ``Session``, typically
            ``DatabaseManager.get_sync_session_factory()``.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    @classmethod
    def ensure_table_exists(cls, engine: Engine) -> None:
        """Create the ``subdomain_slots`` table and its indexes if missing.

        Called once at startup (worker boot, migrations job, or test setup).
        """
        metadata.create_all(engine, tables=[subdomain_slots])
        logger.info("subdomain_slots_table_ensured")

    @contextmanager
    def transaction(self) -> Iterator[SqlSlotTransaction]:
        try:
            with self._session_factory() as session, session.begin():
                yield SqlSlotTransaction(session)
        except IntegrityError as err:
            raise ConflictError(
                "Subdomain slot update rejected by a uniqueness constraint",
                detail=str(err.orig),
            ) from err
