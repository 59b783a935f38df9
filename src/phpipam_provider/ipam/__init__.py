"""
phpIPAM API client subpackage.

Re-exports the client class and the protocol the lifecycle is typed against.
"""

from phpipam_provider.ipam._base import BaseClient
from phpipam_provider.ipam.client import IPAMClient, PhpIPAMClient

__all__ = [
    "BaseClient",
    "IPAMClient",
    "PhpIPAMClient",
]
