"""
The ``phpipam_address`` resource.

Maps resource verbs onto the address lifecycle and turns lifecycle results
into resource state. Create and update always end with a read so computed
fields reflect phpIPAM.
"""

from phpipam_provider.core.lifecycle import AddressLifecycle
from phpipam_provider.exceptions import AddressNotFoundError
from phpipam_provider.resource.schema import AddressResourceConfig, AddressResourceState
from phpipam_provider.utils.logger import get_logger

logger = get_logger(__name__)

RESOURCE_TYPE = "phpipam_address"


class AddressResource:
    """CRUD binding between resource state and the address lifecycle."""

    def __init__(self, lifecycle: AddressLifecycle):
        self.lifecycle = lifecycle

    def create(self, config: AddressResourceConfig) -> AddressResourceState:
        address_id = self.lifecycle.create(
            config.section, config.subnet, config.hostname
        )
        return self.import_id(address_id)

    def read(self, state: AddressResourceState) -> AddressResourceState | None:
        """Current state, or ``None`` when the address is gone from phpIPAM."""
        try:
            return self.import_id(state.id)
        except AddressNotFoundError:
            logger.warning(f"Address {state.id} ({state.hostname}) no longer exists")
            return None

    def update(
        self, state: AddressResourceState, config: AddressResourceConfig
    ) -> AddressResourceState:
        """
        Apply ``config`` to an existing address.

        The stored state is the baseline for change detection, so a section
        or subnet edit reallocates even if phpIPAM was changed out of band.
        """
        address_id, info = self.lifecycle.update(
            state.id,
            config.section,
            config.subnet,
            config.hostname,
            current=state.to_information(),
        )
        return AddressResourceState.from_information(address_id, info)

    def delete(self, state: AddressResourceState, force: bool = False) -> None:
        self.lifecycle.delete(state.id, force_release=force)

    def import_id(self, address_id: str) -> AddressResourceState:
        """Build state for an existing phpIPAM address id."""
        info = self.lifecycle.read(address_id)
        return AddressResourceState.from_information(address_id, info)
