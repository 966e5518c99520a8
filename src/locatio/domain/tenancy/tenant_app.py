"""Application service for Tenant aggregate persistence.

Persistence is selected by the eventsourcing library's environment
variables: in-memory (POPO) by default, PostgreSQL in deployments via
``PERSISTENCE_MODULE=eventsourcing.postgres`` and the ``POSTGRES_*``
variables.
"""

from __future__ import annotations

from typing import ClassVar
from uuid import UUID

from eventsourcing.application import AggregateNotFoundError, Application

from locatio.domain.tenancy.tenant import Tenant
from locatio.foundation.domain.exceptions import NotFoundError


class TenantApplication(Application[UUID]):
    """Application service for Tenant aggregate persistence.

    Attributes:
        snapshotting_intervals: Snapshot every 50 events for Tenant.
    """

    snapshotting_intervals: ClassVar[dict[type, int]] = {Tenant: 50}

    def get_tenant(self, tenant_id: str) -> Tenant:
        """Load a tenant by its external identifier.

        Raises:
            NotFoundError: If no tenant with this identifier was saved.
        """
        try:
            tenant: Tenant = self.repository.get(Tenant.create_id(tenant_id))
        except AggregateNotFoundError:
            raise NotFoundError("Tenant", tenant_id) from None
        return tenant

    def tenant_exists(self, tenant_id: str) -> bool:
        return Tenant.create_id(tenant_id) in self.repository
