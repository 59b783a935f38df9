"""
CLI session settings.

Module-level values set by the global options of ``phpipam-provider`` and
read by every command. ``None`` means "not given on the command line" so
the config file and environment still apply.
"""

from phpipam_provider.config import ProviderConfig
from phpipam_provider.utils.logger import configure_logging

SERVER_URL: str | None = None
USERNAME: str | None = None
PASSWORD: str | None = None
APP_ID: str | None = None
CONFIG_FILE: str | None = None
STATE_FILE: str | None = None
LOG_LEVEL: str | None = None


def load_provider_config() -> ProviderConfig:
    """Resolve the provider config from options, file and environment."""
    provider_config = ProviderConfig.load(
        config_file=CONFIG_FILE,
        SERVER_URL=SERVER_URL,
        USERNAME=USERNAME,
        PASSWORD=PASSWORD,
        APP_ID=APP_ID,
        STATE_FILE=STATE_FILE,
        LOG_LEVEL=LOG_LEVEL,
    )
    if LOG_LEVEL is None:
        # --log-level not given; the config file may still set one
        configure_logging(provider_config.LOG_LEVEL)
    return provider_config
