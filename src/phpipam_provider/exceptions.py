"""Exception classes for phpipam-provider."""

from phpipam_provider.models.enums import LifecycleStep


class IPAMError(Exception):
    """Base exception for all provider errors."""

    pass


# =============================================================================
# Transport
# =============================================================================


class IPAMClientError(IPAMError):
    """A phpIPAM call could not complete (network, HTTP or decoding failure)."""

    def __init__(
        self, message: str, status_code: int | None = None, detail: str | None = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class AuthenticationError(IPAMClientError):
    """phpIPAM rejected the configured credentials."""

    pass


# =============================================================================
# Not Found
# =============================================================================


class NotFoundError(IPAMError):
    """A named object does not exist in phpIPAM."""

    pass


class SectionNotFoundError(NotFoundError):
    def __init__(self, name: str):
        self.name = name
        super().__init__("Section Not Found")


class SubnetNotFoundError(NotFoundError):
    def __init__(self, description: str, section_id: str):
        self.description = description
        self.section_id = section_id
        super().__init__("Subnet Not Found")


class AddressNotFoundError(NotFoundError):
    def __init__(self, address_id: str):
        self.address_id = address_id
        super().__init__(f"Address Not Found: {address_id}")


# =============================================================================
# Conflicts
# =============================================================================


class ConflictError(IPAMError):
    """Response contents violate an allocation rule."""

    pass


class AddressAlreadyAllocatedError(ConflictError):
    """The hostname already owns an address (or several)."""

    def __init__(self, hostname: str, count: int):
        self.hostname = hostname
        self.count = count
        super().__init__(
            f"Error Address Already Allocated, Total Found Addresses: {count}"
        )


class OverAllocatedError(ConflictError):
    """An IP maps to zero or several address records instead of exactly one."""

    def __init__(self, ip: str, count: int):
        self.ip = ip
        self.count = count
        super().__init__("Address Over Allocated")


# =============================================================================
# Liveness
# =============================================================================


class AddressStillLiveError(IPAMError):
    """Release refused because the address answers the reachability probe."""

    def __init__(self, address_id: str):
        self.address_id = address_id
        super().__init__("Address Host is Still Live")


# =============================================================================
# Inconsistent State
# =============================================================================


class InconsistentStateError(IPAMError):
    """Objects referenced by an existing address have disappeared."""

    pass


class AddressSubnetNotFoundError(InconsistentStateError):
    def __init__(self, subnet_id: str):
        self.subnet_id = subnet_id
        super().__init__("Address Subnet Not Found")


class SubnetSectionNotFoundError(InconsistentStateError):
    def __init__(self, section_id: str):
        self.section_id = section_id
        super().__init__("Subnet Section Not Found")


# =============================================================================
# Lifecycle
# =============================================================================


class LifecycleError(IPAMError):
    """
    A lifecycle step failed.

    The original error is chained as ``__cause__`` and embedded in the
    message together with the step name.
    """

    def __init__(self, step: LifecycleStep, cause: Exception | str):
        self.step = step
        self.cause = cause
        super().__init__(f"Error {step.value}: {cause}")


class AddressLeakedError(IPAMError):
    """
    Reallocation created the new address but could not release the old one.

    The old address stays allocated in phpIPAM and needs manual cleanup.
    """

    def __init__(self, new_address_id: str, old_address_id: str, cause: Exception):
        self.new_address_id = new_address_id
        self.old_address_id = old_address_id
        self.cause = cause
        super().__init__(
            f"Address {old_address_id} leaked after reallocation to "
            f"{new_address_id}, manual cleanup required: {cause}"
        )


# =============================================================================
# Configuration / Resource
# =============================================================================


class ConfigError(IPAMError):
    """Provider configuration is incomplete or invalid."""

    pass


class ManifestError(IPAMError):
    """Manifest or state file cannot be loaded."""

    pass
