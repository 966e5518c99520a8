"""Base aggregate classes for domain event sourcing.

BaseAggregate extends the eventsourcing library's Aggregate class with the
external tenant identifier every aggregate in this project carries.

Example:
    >>> from locatio.foundation.domain.aggregates import BaseAggregate
    >>> from eventsourcing.domain import event
    >>>
    >>> class Site(BaseAggregate):
    ...     @event('Created')
    ...     def __init__(self, *, title: str, tenant_id: str):
    ...         self.title = title
    ...         self.tenant_id = tenant_id
"""

from __future__ import annotations

from eventsourcing.domain import Aggregate


class BaseAggregate(Aggregate):
    """Base class for all domain aggregates.

    Attributes:
        tenant_id: External tenant identifier (required, immutable).
            Must be set by the subclass ``__init__`` method.

    Inherited from Aggregate (eventsourcing library):
        id: Aggregate identifier (UUID)
        version: Current version for optimistic concurrency
        created_on: Timestamp of first event
        modified_on: Timestamp of last event

    Usage Pattern:
        Subclasses must:
        1. Decorate __init__ with @event('Created') (or a domain name)
        2. Set self.tenant_id in __init__
        3. Keep state changes within @event decorated methods only

    Command Pattern (with validation):
        Public commands validate and raise, then delegate to a private
        mutator that records the event:

        >>> class Site(BaseAggregate):
        ...     def publish(self) -> None:
        ...         '''Public command with validation.'''
        ...         if self.published:
        ...             raise ValueError("Already published")
        ...         self._apply_publish()
        ...
        ...     @event('Published')
        ...     def _apply_publish(self) -> None:
        ...         '''Private mutator that triggers event.'''
        ...         self.published = True
    """

    # Must be set by subclass __init__
    tenant_id: str

    # The @event decorator on subclass __init__ methods handles
    # initialization and event creation, so __init__ is not overridden here.
