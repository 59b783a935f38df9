"""
phpIPAM REST API client.

Wraps the endpoints the address lifecycle needs. Every method returns the
decoded ``APIResponse``; list and record payloads are converted to pydantic
models so callers never touch raw dicts.
"""

from typing import Protocol

from pydantic import BaseModel, ValidationError

from phpipam_provider.exceptions import IPAMClientError
from phpipam_provider.ipam._base import BaseClient, logger
from phpipam_provider.models.records import (
    Address,
    APIResponse,
    PingResult,
    Section,
    Subnet,
)


class IPAMClient(Protocol):
    """Capability surface the lifecycle depends on."""

    def get_sections(self) -> APIResponse: ...

    def get_section(self, section_id: str) -> APIResponse: ...

    def get_section_subnets(self, section_id: str) -> APIResponse: ...

    def get_subnet(self, subnet_id: str) -> APIResponse: ...

    def search_hostname(self, hostname: str) -> APIResponse: ...

    def search_ip(self, ip: str) -> APIResponse: ...

    def get_address(self, address_id: str) -> APIResponse: ...

    def create_first_free(
        self, subnet_id: str, hostname: str, description: str
    ) -> APIResponse: ...

    def update_hostname(self, address_id: str, hostname: str) -> APIResponse: ...

    def ping_address(self, address_id: str) -> APIResponse: ...

    def delete_address(self, address_id: str) -> APIResponse: ...


def _check_found(response: APIResponse, context: str) -> None:
    """Pass 2xx and 404 (no match) through; raise on any other code."""
    if response.ok or response.code == 404:
        return
    detail = response.message or f"code {response.code}"
    logger.error(f"phpIPAM returned {response.code} on {context}: {detail}")
    raise IPAMClientError(
        f"phpIPAM returned {response.code} on {context}: {detail}",
        status_code=response.code,
        detail=detail,
    )


def _as_records(
    response: APIResponse, model: type[BaseModel], context: str
) -> APIResponse:
    _check_found(response, context)
    try:
        records = [model.model_validate(item) for item in response.items()]
    except ValidationError as e:
        raise IPAMClientError(f"Unexpected payload on {context}: {e}") from e
    return response.model_copy(update={"data": records})


def _as_record(response: APIResponse, model: type[BaseModel], context: str) -> APIResponse:
    _check_found(response, context)
    if not response.ok or not isinstance(response.data, dict):
        return response.model_copy(update={"data": None})
    try:
        record = model.model_validate(response.data)
    except ValidationError as e:
        raise IPAMClientError(f"Unexpected payload on {context}: {e}") from e
    return response.model_copy(update={"data": record})


class PhpIPAMClient(BaseClient):
    """Synchronous phpIPAM API client."""

    # =========================================================================
    # Sections
    # =========================================================================

    def get_sections(self) -> APIResponse:
        """List all sections."""
        response = self._request("get", "sections", "list sections")
        return _as_records(response, Section, "list sections")

    def get_section(self, section_id: str) -> APIResponse:
        response = self._request("get", f"sections/{section_id}", "get section")
        return _as_record(response, Section, "get section")

    # =========================================================================
    # Subnets
    # =========================================================================

    def get_section_subnets(self, section_id: str) -> APIResponse:
        """List the subnets of a section."""
        context = "list section subnets"
        response = self._request("get", f"sections/{section_id}/subnets", context)
        return _as_records(response, Subnet, context)

    def get_subnet(self, subnet_id: str) -> APIResponse:
        response = self._request("get", f"subnets/{subnet_id}", "get subnet")
        return _as_record(response, Subnet, "get subnet")

    # =========================================================================
    # Addresses
    # =========================================================================

    def search_hostname(self, hostname: str) -> APIResponse:
        """Search addresses by hostname (404 in the body means no match)."""
        context = "search hostname"
        response = self._request("get", f"addresses/search_hostname/{hostname}", context)
        return _as_records(response, Address, context)

    def search_ip(self, ip: str) -> APIResponse:
        """Search addresses by IP literal."""
        response = self._request("get", f"addresses/search/{ip}", "search ip")
        return _as_records(response, Address, "search ip")

    def get_address(self, address_id: str) -> APIResponse:
        response = self._request("get", f"addresses/{address_id}", "get address")
        return _as_record(response, Address, "get address")

    def create_first_free(
        self, subnet_id: str, hostname: str, description: str
    ) -> APIResponse:
        """
        Allocate the first free address in a subnet.

        On success ``data`` holds the allocated IP literal.
        """
        response = self._request(
            "post",
            f"addresses/first_free/{subnet_id}",
            "allocate first free address",
            json={"hostname": hostname, "description": description},
        )
        logger.debug(f"First free allocation in subnet {subnet_id}: {response.data}")
        return response

    def update_hostname(self, address_id: str, hostname: str) -> APIResponse:
        return self._request(
            "patch",
            f"addresses/{address_id}",
            "update address hostname",
            json={"hostname": hostname},
        )

    def ping_address(self, address_id: str) -> APIResponse:
        """Ask the server to probe an address; online when code is 200."""
        response = self._request("get", f"addresses/{address_id}/ping", "ping address")
        result = PingResult(online=response.code == 200, message=response.message)
        return response.model_copy(update={"data": result})

    def delete_address(self, address_id: str) -> APIResponse:
        return self._request("delete", f"addresses/{address_id}", "delete address")
