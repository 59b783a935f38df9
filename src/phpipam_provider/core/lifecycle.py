"""
Address lifecycle orchestration.

Create, read, update and delete of one managed address, composed from
resolver lookups and phpIPAM calls. Each verb runs its steps strictly in
order and stops at the first failure; nothing is retried and nothing is
rolled back.

Create:
    guard -> section id -> subnet id -> existing hostname records
    -> first-free allocation -> id of the allocated IP

Update:
    section and subnet unchanged -> rename in place (id kept)
    otherwise -> create(force_replace) then delete(force_release) of the
    old id; a failed delete leaves the old address allocated
    (``AddressLeakedError``)

Delete:
    liveness probe (unless forced) -> delete
"""

from phpipam_provider.core.guard import AllocationGuard
from phpipam_provider.core.resolver import AddressResolver
from phpipam_provider.exceptions import (
    AddressAlreadyAllocatedError,
    AddressLeakedError,
    AddressNotFoundError,
    AddressStillLiveError,
    AddressSubnetNotFoundError,
    IPAMClientError,
    IPAMError,
    LifecycleError,
    OverAllocatedError,
    SectionNotFoundError,
    SubnetNotFoundError,
    SubnetSectionNotFoundError,
)
from phpipam_provider.ipam.client import IPAMClient
from phpipam_provider.models.enums import LifecycleStep, LockPolicy
from phpipam_provider.models.records import AddressInformation, APIResponse
from phpipam_provider.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_CLIENT_TAG = "phpipam-provider"


def _failure(response: APIResponse) -> str:
    return response.message or f"phpIPAM returned code {response.code}"


class AddressLifecycle:
    """
    CRUD verbs for a managed address.

    Args:
        client: phpIPAM client (anything implementing ``IPAMClient``).
        guard: Allocation guard; a private global guard when omitted.
        client_tag: Description stored on every address this provider
            allocates.
    """

    def __init__(
        self,
        client: IPAMClient,
        guard: AllocationGuard | None = None,
        client_tag: str = DEFAULT_CLIENT_TAG,
    ):
        self.client = client
        self.resolver = AddressResolver(client)
        self.guard = guard or AllocationGuard()
        self.client_tag = client_tag

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self, section: str, subnet: str, hostname: str, force_replace: bool = False
    ) -> str:
        """
        Allocate the first free address of ``subnet`` for ``hostname``.

        Args:
            section: Section name.
            subnet: Subnet description within the section.
            hostname: Hostname the new address is bound to.
            force_replace: Allow allocation while the hostname already owns
                exactly one address (reallocation path of ``update``).

        Returns:
            Id of the new address.

        Raises:
            LifecycleError: A lookup or API call failed.
            AddressAlreadyAllocatedError: The hostname count forbids a new
                allocation.
        """
        if self.guard.policy == LockPolicy.GLOBAL:
            with self.guard.hold():
                section_id, subnet_id = self._resolve_target(section, subnet)
                return self._allocate(section_id, subnet_id, hostname, force_replace)

        # Lock order is always hostname then subnet
        with self.guard.hold(f"hostname:{hostname}"):
            section_id, subnet_id = self._resolve_target(section, subnet)
            with self.guard.hold(f"subnet:{subnet_id}"):
                return self._allocate(section_id, subnet_id, hostname, force_replace)

    def _resolve_target(self, section: str, subnet: str) -> tuple[str, str]:
        try:
            section_id = self.resolver.resolve_section(section)
        except (SectionNotFoundError, IPAMClientError) as e:
            raise LifecycleError(LifecycleStep.GET_SECTION_ID, e) from e

        try:
            subnet_id = self.resolver.resolve_subnet(section_id, subnet)
        except (SubnetNotFoundError, IPAMClientError) as e:
            raise LifecycleError(LifecycleStep.GET_SUBNET_ID, e) from e

        return section_id, subnet_id

    def _allocate(
        self, section_id: str, subnet_id: str, hostname: str, force_replace: bool
    ) -> str:
        try:
            total_found, _ = self.resolver.find_by_hostname(hostname)
        except IPAMClientError as e:
            raise LifecycleError(LifecycleStep.FIND_EXISTING_ADDRESSES, e) from e

        if not (total_found == 0 or (total_found == 1 and force_replace)):
            raise AddressAlreadyAllocatedError(hostname, total_found)

        logger.debug(f"New address section ID: {section_id}, subnet ID: {subnet_id}")
        try:
            response = self.client.create_first_free(
                subnet_id, hostname, self.client_tag
            )
        except IPAMClientError as e:
            raise LifecycleError(LifecycleStep.ALLOCATE_NEW_ADDRESS, e) from e
        if not response.ok or not response.data:
            raise LifecycleError(LifecycleStep.ALLOCATE_NEW_ADDRESS, _failure(response))

        ip = str(response.data)
        logger.debug(f"New address IP: {ip}")
        try:
            address_id = self.resolver.find_id_by_ip(ip)
        except (OverAllocatedError, IPAMClientError) as e:
            raise LifecycleError(LifecycleStep.GET_CREATED_ADDRESS_ID, e) from e

        logger.info(f"New address allocated: {ip}")
        return address_id

    # =========================================================================
    # Read
    # =========================================================================

    def read(self, address_id: str) -> AddressInformation:
        """
        Assemble the denormalized record of an address.

        Raises:
            AddressNotFoundError: The address does not exist.
            AddressSubnetNotFoundError: Its subnet does not exist.
            SubnetSectionNotFoundError: The subnet's section does not exist.
            LifecycleError: An API call failed.
        """
        try:
            address_response = self.client.get_address(address_id)
            if not address_response.ok or address_response.data is None:
                raise AddressNotFoundError(address_id)
            address = address_response.data

            subnet_response = self.client.get_subnet(address.subnet_id)
            if not subnet_response.ok or subnet_response.data is None:
                raise AddressSubnetNotFoundError(address.subnet_id)
            subnet = subnet_response.data

            section_response = self.client.get_section(subnet.section_id)
            if not section_response.ok or section_response.data is None:
                raise SubnetSectionNotFoundError(subnet.section_id)
            section = section_response.data
        except IPAMClientError as e:
            raise LifecycleError(LifecycleStep.READ_ADDRESS, e) from e

        return AddressInformation(
            hostname=address.hostname or "",
            ip=address.ip,
            section=section.name,
            subnet=subnet.description or "",
            broadcast=subnet.broadcast,
            gateway=subnet.gateway_ip,
            bitmask=subnet.bitmask,
        )

    # =========================================================================
    # Update
    # =========================================================================

    def update(
        self,
        address_id: str,
        section: str,
        subnet: str,
        hostname: str,
        current: AddressInformation | None = None,
    ) -> tuple[str, AddressInformation]:
        """
        Bring an address in line with the desired section/subnet/hostname.

        Args:
            address_id: Id of the managed address.
            section: Desired section name.
            subnet: Desired subnet description.
            hostname: Desired hostname.
            current: Last known record; read from phpIPAM when omitted.

        Returns:
            ``(address_id, information)``; the id changes only when the
            address had to be reallocated.

        Raises:
            AddressLeakedError: The new address exists but the old one could
                not be released.
        """
        if current is None:
            current = self.read(address_id)

        if current.section == section and current.subnet == subnet:
            if current.hostname != hostname:
                self.rename(address_id, hostname)
            return address_id, self.read(address_id)

        new_address_id = self.create(section, subnet, hostname, force_replace=True)
        try:
            self.delete(address_id, force_release=True)
        except IPAMError as e:
            logger.error(
                f"Old address {address_id} not released after reallocation "
                f"to {new_address_id}: {e}"
            )
            raise AddressLeakedError(new_address_id, address_id, e) from e

        return new_address_id, self.read(new_address_id)

    def rename(self, address_id: str, hostname: str) -> None:
        """Change the hostname of an address in place."""
        try:
            response = self.client.update_hostname(address_id, hostname)
        except IPAMClientError as e:
            raise LifecycleError(LifecycleStep.UPDATE_ADDRESS, e) from e
        if not response.ok:
            raise LifecycleError(LifecycleStep.UPDATE_ADDRESS, _failure(response))
        logger.info(f"Address updated: {hostname}")

    # =========================================================================
    # Delete
    # =========================================================================

    def check_live(self, address_id: str) -> bool:
        """Whether the address answers phpIPAM's reachability probe."""
        return self.client.ping_address(address_id).code == 200

    def delete(self, address_id: str, force_release: bool = False) -> None:
        """
        Release an address.

        Args:
            address_id: Id of the address to release.
            force_release: Skip the liveness probe.

        Raises:
            AddressStillLiveError: The address is reachable and not forced.
            LifecycleError: The probe or the delete call failed.
        """
        if not force_release:
            try:
                live = self.check_live(address_id)
            except IPAMClientError as e:
                raise LifecycleError(LifecycleStep.LIVENESS_CHECK, e) from e
            if live:
                raise AddressStillLiveError(address_id)

        try:
            response = self.client.delete_address(address_id)
        except IPAMClientError as e:
            raise LifecycleError(LifecycleStep.DELETE_ADDRESS, e) from e
        if not response.ok:
            raise LifecycleError(LifecycleStep.DELETE_ADDRESS, _failure(response))

        logger.info(f"Address removed: {address_id}")
