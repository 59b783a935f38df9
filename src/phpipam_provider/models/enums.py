"""
Enumeration types for phpipam-provider.

This module defines the enumerations shared by the IPAM client, the lifecycle
orchestrator, the resource layer and configuration.
"""

from enum import Enum


# =============================================================================
# Lifecycle Enums
# =============================================================================


class LifecycleStep(str, Enum):
    """
    Named steps of the address lifecycle.

    Used to tag wrapped errors so the failing step is always visible in the
    message ("Error Getting Section ID: Section Not Found").
    """

    GET_SECTION_ID = "Getting Section ID"
    GET_SUBNET_ID = "Getting Subnet ID"
    FIND_EXISTING_ADDRESSES = "Finding Existing Addresses"
    ALLOCATE_NEW_ADDRESS = "Allocating New Address"
    GET_CREATED_ADDRESS_ID = "Getting Created Address ID"
    READ_ADDRESS = "Getting Address Information"
    UPDATE_ADDRESS = "Updating Address"
    LIVENESS_CHECK = "Checking Address Liveliness"
    DELETE_ADDRESS = "Deleting Address"


class LockPolicy(str, Enum):
    """
    Allocation guard granularity.

    - GLOBAL: one lock serializes every allocation (default)
    - SUBNET: one lock per target subnet id
    """

    GLOBAL = "global"
    SUBNET = "subnet"


# =============================================================================
# Resource Enums
# =============================================================================


class PlanAction(str, Enum):
    """
    Action planned for one resource when reconciling manifest and state.
    """

    CREATE = "create"  # In manifest, not in state
    UPDATE = "update"  # In both, fields differ
    DELETE = "delete"  # In state, not in manifest
    NOOP = "noop"  # In both, nothing to do


# =============================================================================
# Configuration Enums
# =============================================================================


class LogLevel(str, Enum):
    """
    Logging verbosity levels.

    Levels (from most to least verbose):
        - FULL: Trace output including HTTP transport logs
        - DEBUG: Debug messages and above
        - INFO: Informational messages and above
        - WARNING: Only warnings and errors
    """

    FULL = "full"
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
