"""
Name to id resolution against phpIPAM listings.

Sections and subnets are addressed by humans through their name and
description; phpIPAM only accepts ids. Matching is exact and case-sensitive,
and the first match wins when names are duplicated.
"""

from phpipam_provider.exceptions import (
    OverAllocatedError,
    SectionNotFoundError,
    SubnetNotFoundError,
)
from phpipam_provider.ipam.client import IPAMClient
from phpipam_provider.models.records import Address


class AddressResolver:
    """Resolves human keys (section name, subnet description, hostname, ip)."""

    def __init__(self, client: IPAMClient):
        self.client = client

    def resolve_section(self, name: str) -> str:
        """Return the id of the section called ``name``."""
        for section in self.client.get_sections().data or []:
            if section.name == name:
                return section.id
        raise SectionNotFoundError(name)

    def resolve_subnet(self, section_id: str, description: str) -> str:
        """Return the id of the subnet described as ``description``."""
        for subnet in self.client.get_section_subnets(section_id).data or []:
            if subnet.description == description:
                return subnet.id
        raise SubnetNotFoundError(description, section_id)

    def find_by_hostname(self, hostname: str) -> tuple[int, list[Address]]:
        """
        Search addresses bound to ``hostname``.

        Returns the raw match count alongside the records; interpreting the
        count is up to the caller.
        """
        records = self.client.search_hostname(hostname).data or []
        return len(records), records

    def find_id_by_ip(self, ip: str) -> str:
        """Return the id of the single address record holding ``ip``."""
        records = self.client.search_ip(ip).data or []
        if len(records) != 1:
            raise OverAllocatedError(ip, len(records))
        return records[0].id
