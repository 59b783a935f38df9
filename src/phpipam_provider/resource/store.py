"""
Manifest and state files.

Manifest (YAML, written by users)::

    addresses:
      web-01:
        hostname: web-01.example.com
        section: Production
        subnet: Web Servers

State (JSON, written by the provider)::

    {"version": 1, "resources": {"web-01": {"id": "42", "hostname": ...}}}
"""

import json
import os
import tempfile
from pathlib import Path

import yaml
from pydantic import ValidationError

from phpipam_provider.exceptions import ManifestError
from phpipam_provider.resource.schema import AddressResourceConfig, AddressResourceState

STATE_VERSION = 1


# =============================================================================
# Manifest
# =============================================================================


def load_manifest(path: str | Path) -> dict[str, AddressResourceConfig]:
    """Load and validate the desired address resources."""
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ManifestError(f"Manifest not found: {path}")
    except (OSError, yaml.YAMLError) as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e

    if not isinstance(data, dict):
        raise ManifestError(f"Manifest {path} must contain a mapping")

    addresses = data.get("addresses") or {}
    if not isinstance(addresses, dict):
        raise ManifestError(f"'addresses' in {path} must be a mapping of name to fields")

    resources = {}
    for name, fields in addresses.items():
        try:
            resources[str(name)] = AddressResourceConfig.model_validate(fields or {})
        except ValidationError as e:
            raise ManifestError(f"Invalid address '{name}' in {path}: {e}") from e
    return resources


# =============================================================================
# State
# =============================================================================


class StateStore:
    """
    JSON state file.

    Writes go to a temporary file in the same directory that then replaces
    the state file, so a crash never leaves a truncated state behind.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> dict[str, AddressResourceState]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ManifestError(f"Cannot read state {self.path}: {e}") from e

        if not isinstance(data, dict):
            raise ManifestError(f"State {self.path} must contain an object")

        version = data.get("version")
        if version != STATE_VERSION:
            raise ManifestError(
                f"Unsupported state version {version!r} in {self.path}"
            )

        try:
            return {
                name: AddressResourceState.model_validate(fields)
                for name, fields in (data.get("resources") or {}).items()
            }
        except ValidationError as e:
            raise ManifestError(f"Corrupt state {self.path}: {e}") from e

    def save(self, resources: dict[str, AddressResourceState]) -> None:
        payload = {
            "version": STATE_VERSION,
            "resources": {
                name: state.model_dump() for name, state in sorted(resources.items())
            },
        }
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(payload, f, indent=2)
                f.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise
