"""
Declarative ``phpipam_address`` resource.

Provides:
- Resource schema (desired config and tracked state)
- Resource verbs bound to the address lifecycle
- Manifest/state files and plan/apply
"""

from phpipam_provider.resource.address import RESOURCE_TYPE, AddressResource
from phpipam_provider.resource.plan import (
    ApplyResult,
    PlannedChange,
    Provisioner,
    make_plan,
)
from phpipam_provider.resource.schema import AddressResourceConfig, AddressResourceState
from phpipam_provider.resource.store import StateStore, load_manifest

__all__ = [
    "RESOURCE_TYPE",
    "AddressResource",
    "AddressResourceConfig",
    "AddressResourceState",
    "ApplyResult",
    "PlannedChange",
    "Provisioner",
    "StateStore",
    "load_manifest",
    "make_plan",
]
