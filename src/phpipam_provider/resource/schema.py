"""
Schema of the ``phpipam_address`` resource.

Fields:
    hostname, section, subnet: required, mutable (user input)
    ip_address, broadcast, gateway, bitmask: computed (read from phpIPAM)
"""

from pydantic import BaseModel, Field

from phpipam_provider.models.records import AddressInformation


class AddressResourceConfig(BaseModel):
    """Desired configuration of one address."""

    hostname: str = Field(..., min_length=1, description="Hostname bound to the address")
    section: str = Field(..., min_length=1, description="phpIPAM section name")
    subnet: str = Field(..., min_length=1, description="Subnet description")

    model_config = {"extra": "forbid"}


class AddressResourceState(AddressResourceConfig):
    """Last known state of one address."""

    # phpIPAM may hold an empty hostname; state mirrors what was read
    hostname: str = ""
    section: str = ""
    subnet: str = ""
    id: str = Field(..., description="phpIPAM address id")
    ip_address: str = Field(default="", description="Allocated IP (computed)")
    broadcast: str = Field(default="", description="Subnet broadcast (computed)")
    gateway: str = Field(default="", description="Subnet gateway (computed)")
    bitmask: str = Field(default="", description="Subnet prefix length (computed)")

    @classmethod
    def from_information(
        cls, address_id: str, info: AddressInformation
    ) -> "AddressResourceState":
        return cls(
            id=address_id,
            hostname=info.hostname,
            section=info.section,
            subnet=info.subnet,
            ip_address=info.ip,
            broadcast=info.broadcast,
            gateway=info.gateway,
            bitmask=info.bitmask,
        )

    def to_information(self) -> AddressInformation:
        return AddressInformation(
            hostname=self.hostname,
            ip=self.ip_address,
            section=self.section,
            subnet=self.subnet,
            broadcast=self.broadcast,
            gateway=self.gateway,
            bitmask=self.bitmask,
        )

    def config(self) -> AddressResourceConfig:
        return AddressResourceConfig(
            hostname=self.hostname, section=self.section, subnet=self.subnet
        )

    def changed_fields(self, desired: AddressResourceConfig) -> list[str]:
        """Names of user fields that differ from ``desired``."""
        return [
            name
            for name in AddressResourceConfig.model_fields
            if getattr(self, name) != getattr(desired, name)
        ]
