"""
Pydantic models for phpIPAM payloads and provider records.

phpIPAM wraps every response in an envelope::

    {"code": 200, "success": true, "message": "...", "data": ...}

The ``code`` inside the body is what callers inspect; it does not always
match the HTTP status. Record ids come back as strings on older servers and
as integers on newer ones, so every id is coerced to ``str``.

Model Categories:
    - Envelope: APIResponse
    - IPAM Records: Section, Subnet, Address, PingResult
    - Provider Records: AddressInformation
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


_RECORD_CONFIG = ConfigDict(
    coerce_numbers_to_str=True,
    populate_by_name=True,
    extra="ignore",
)


# =============================================================================
# Envelope
# =============================================================================


class APIResponse(BaseModel):
    """Response envelope returned by every phpIPAM endpoint."""

    model_config = _RECORD_CONFIG

    code: int = Field(..., description="Status code reported in the body")
    success: bool = Field(default=False)
    message: str | None = Field(default=None)
    data: Any = Field(default=None)
    id: str | None = Field(
        default=None,
        description="Id of a created object (first-free allocation)",
    )

    @property
    def ok(self) -> bool:
        """Whether the body reports a 2xx code."""
        return 200 <= self.code < 300

    def items(self) -> list:
        """Data as a list; empty when the call found nothing."""
        if not self.ok or self.data is None:
            return []
        if isinstance(self.data, list):
            return self.data
        return [self.data]


# =============================================================================
# IPAM Records
# =============================================================================


class Section(BaseModel):
    """A logical grouping of subnets."""

    model_config = _RECORD_CONFIG

    id: str
    name: str
    description: str | None = None


class SubnetGateway(BaseModel):
    model_config = _RECORD_CONFIG

    ip_addr: str | None = None
    id: str | None = None


class SubnetCalculation(BaseModel):
    """Subset of phpIPAM's subnet calculator output."""

    model_config = _RECORD_CONFIG

    broadcast: str | None = Field(default=None, alias="Broadcast")
    bitmask: str | None = Field(default=None, alias="Subnet bitmask")
    netmask: str | None = Field(default=None, alias="Subnet netmask")


class Subnet(BaseModel):
    """
    A CIDR block inside a section.

    Folders come back in subnet listings with ``subnet`` and ``mask`` set to
    null, so every descriptive field is optional.
    """

    model_config = _RECORD_CONFIG

    id: str
    section_id: str = Field(..., alias="sectionId")
    subnet: str | None = None
    mask: str | None = None
    description: str | None = None
    gateway: SubnetGateway | None = None
    calculation: SubnetCalculation | None = None

    @property
    def broadcast(self) -> str:
        return (self.calculation and self.calculation.broadcast) or ""

    @property
    def bitmask(self) -> str:
        if self.calculation and self.calculation.bitmask:
            return self.calculation.bitmask
        return self.mask or ""

    @property
    def gateway_ip(self) -> str:
        return (self.gateway and self.gateway.ip_addr) or ""


class Address(BaseModel):
    """A single IP entry bound to a hostname."""

    model_config = _RECORD_CONFIG

    id: str
    ip: str
    subnet_id: str = Field(..., alias="subnetId")
    hostname: str | None = None
    description: str | None = None


class PingResult(BaseModel):
    """Reachability probe result; online when the envelope code is 200."""

    model_config = _RECORD_CONFIG

    online: bool
    message: str | None = None


# =============================================================================
# Provider Records
# =============================================================================


class AddressInformation(BaseModel):
    """
    Denormalized view of a managed address.

    Assembled by reading the address, then its subnet, then the subnet's
    section.
    """

    hostname: str
    ip: str
    section: str
    subnet: str
    broadcast: str = ""
    gateway: str = ""
    bitmask: str = ""
