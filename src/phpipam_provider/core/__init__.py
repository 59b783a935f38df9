"""
Address lifecycle core.

Provides:
- Name resolution (sections, subnets, addresses)
- Allocation guard (global or per-subnet)
- CRUD orchestration of a managed address
"""

from phpipam_provider.core.guard import (
    AllocationGuard,
    SubnetAllocationGuard,
    make_guard,
)
from phpipam_provider.core.lifecycle import DEFAULT_CLIENT_TAG, AddressLifecycle
from phpipam_provider.core.resolver import AddressResolver

__all__ = [
    "AddressLifecycle",
    "AddressResolver",
    "AllocationGuard",
    "SubnetAllocationGuard",
    "make_guard",
    "DEFAULT_CLIENT_TAG",
]
