"""Domain port interfaces for hexagonal architecture.

Ports define abstract interfaces that the domain layer uses to interact
with collaborators. Implementations (adapters) live elsewhere.
"""

from locatio.foundation.domain.ports.subdomain_allocator import (
    AllocatedSubdomain,
    SubdomainAllocatorPort,
)

__all__ = ["AllocatedSubdomain", "SubdomainAllocatorPort"]
