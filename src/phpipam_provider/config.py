"""
Provider configuration for phpipam-provider.

This module defines the configuration dataclass used to build the phpIPAM
client and the address lifecycle.

Values are resolved in this order (first wins):
    1. Explicit values (CLI options, attribute assignment)
    2. YAML config file (``~/.phpipam-provider/config.yaml`` or ``--config``)
    3. Environment variables (``PHPIPAM_SERVER_URL``, ...)
    4. Defaults below

Usage:
    from phpipam_provider.config import ProviderConfig

    config = ProviderConfig.load(config_file="provider.yaml")
    lifecycle = config.build_lifecycle()
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

from phpipam_provider.exceptions import ConfigError
from phpipam_provider.models.enums import LockPolicy, LogLevel
from phpipam_provider.utils.logger import get_logger

logger = get_logger(__name__)


def get_default_config_dir() -> Path:
    """Get the default config directory path."""
    return Path.home() / ".phpipam-provider"


def get_default_config_file() -> Path:
    return get_default_config_dir() / "config.yaml"


# Attribute -> environment variable
ENV_VARS: dict[str, str] = {
    "SERVER_URL": "PHPIPAM_SERVER_URL",
    "USERNAME": "PHPIPAM_USERNAME",
    "PASSWORD": "PHPIPAM_PASSWORD",
    "APP_ID": "PHPIPAM_APP_ID",
    "CLIENT_TAG": "PHPIPAM_CLIENT_TAG",
    "VERIFY_TLS": "PHPIPAM_VERIFY_TLS",
    "ALLOCATION_LOCK": "PHPIPAM_ALLOCATION_LOCK",
    "LOG_LEVEL": "PHPIPAM_LOG_LEVEL",
    "STATE_FILE": "PHPIPAM_STATE_FILE",
}

REQUIRED = ("SERVER_URL", "USERNAME", "PASSWORD")


# =============================================================================
# Configuration Dataclass
# =============================================================================


@dataclass
class ProviderConfig:
    """
    Provider configuration.

    Attributes:
        SERVER_URL: phpIPAM server URL (without ``/api``).
        USERNAME: phpIPAM user.
        PASSWORD: phpIPAM password.
        APP_ID: API application id configured in phpIPAM.
        CLIENT_TAG: Description written on allocated addresses.
        REQUEST_TIMEOUT: HTTP timeout in seconds.
        VERIFY_TLS: Verify the server certificate.
        ALLOCATION_LOCK: Allocation guard policy (global or subnet).
        LOG_LEVEL: Logging verbosity level.
        STATE_FILE: Path of the resource state file.
    """

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    SERVER_URL: str = ""
    USERNAME: str = ""
    PASSWORD: str = ""
    APP_ID: str = "provider"
    REQUEST_TIMEOUT: float = 30.0
    VERIFY_TLS: bool = True

    # -------------------------------------------------------------------------
    # Allocation
    # -------------------------------------------------------------------------

    CLIENT_TAG: str = "phpipam-provider"
    ALLOCATION_LOCK: LockPolicy = LockPolicy.GLOBAL

    # -------------------------------------------------------------------------
    # Local files / logging
    # -------------------------------------------------------------------------

    STATE_FILE: str = "phpipam.state.json"
    LOG_LEVEL: LogLevel = LogLevel.WARNING

    def __post_init__(self):
        self.ALLOCATION_LOCK = LockPolicy(self.ALLOCATION_LOCK)
        self.LOG_LEVEL = LogLevel(self.LOG_LEVEL)
        self.REQUEST_TIMEOUT = float(self.REQUEST_TIMEOUT)
        if isinstance(self.VERIFY_TLS, str):
            self.VERIFY_TLS = self.VERIFY_TLS.strip().lower() not in ("0", "false", "no")

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def load(
        cls,
        config_file: str | Path | None = None,
        environ: dict[str, str] | None = None,
        **overrides,
    ) -> "ProviderConfig":
        """
        Build a config from defaults, environment, file and overrides.

        Args:
            config_file: YAML file; the default file is used when it exists.
            environ: Environment mapping (``os.environ`` when omitted).
            **overrides: Explicit values; ``None`` values are ignored.

        Raises:
            ConfigError: The file cannot be parsed or names unknown keys.
        """
        environ = os.environ if environ is None else environ
        values: dict = {}

        for attr, var in ENV_VARS.items():
            if environ.get(var):
                values[attr] = environ[var]

        values.update(cls._read_file(config_file))
        values.update({k: v for k, v in overrides.items() if v is not None})

        try:
            return cls(**values)
        except ValueError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    @classmethod
    def _read_file(cls, config_file: str | Path | None) -> dict:
        if config_file is None:
            path = get_default_config_file()
            if not path.exists():
                return {}
        else:
            path = Path(config_file).expanduser()
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        known = {f.name for f in fields(cls)}
        values = {str(k).upper(): v for k, v in data.items()}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys in {path}: {', '.join(unknown)}")
        return values

    # =========================================================================
    # Helper Methods
    # =========================================================================

    def validate(self) -> None:
        """Raise ``ConfigError`` naming every missing required value."""
        missing = [ENV_VARS[name] for name in REQUIRED if not getattr(self, name)]
        if missing:
            raise ConfigError(
                "Missing phpIPAM configuration (set option, config file or "
                f"environment): {', '.join(missing)}"
            )

    def build_client(self):
        """Construct the phpIPAM client."""
        from phpipam_provider.ipam.client import PhpIPAMClient

        self.validate()
        client = PhpIPAMClient(
            server_url=self.SERVER_URL,
            app_id=self.APP_ID,
            username=self.USERNAME,
            password=self.PASSWORD,
            timeout=self.REQUEST_TIMEOUT,
            verify=self.VERIFY_TLS,
        )
        logger.info(f"phpIPAM client configured for server {self.SERVER_URL}")
        return client

    def build_lifecycle(self, client=None):
        """Construct the address lifecycle with its own allocation guard."""
        from phpipam_provider.core import AddressLifecycle, make_guard

        return AddressLifecycle(
            client if client is not None else self.build_client(),
            guard=make_guard(self.ALLOCATION_LOCK),
            client_tag=self.CLIENT_TAG,
        )

    def masked(self) -> dict[str, str]:
        """Settings for display, with the password hidden."""
        shown = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "PASSWORD":
                value = "********" if value else ""
            shown[f.name] = value.value if hasattr(value, "value") else str(value)
        return shown
