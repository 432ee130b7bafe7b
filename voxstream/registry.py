"""Client configuration and role preset loader.

Loads the [client] table and the [roles] presets from defaults.toml
(or a user override) into pydantic models, and resolves a role key or
free-form instruction to the text sent with each request.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from voxstream.schemas.session import ClientConfig, RolePreset

logger = logging.getLogger(__name__)

# Default config directory relative to the voxstream package
_CONFIG_DIR = Path(__file__).parent / "config"
DEFAULT_CONFIG = _CONFIG_DIR / "defaults.toml"

# Environment override for the chat endpoint
ENDPOINT_ENV = "VOXSTREAM_ENDPOINT"


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_client_config(config_path: Path | None = None) -> ClientConfig:
    """Load the client configuration from a TOML file.

    Args:
        config_path: Path to the TOML file. Defaults to voxstream/config/defaults.toml.

    Returns:
        ClientConfig with values from the file; ``VOXSTREAM_ENDPOINT``
        overrides the endpoint when set.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the [client] section is missing.
    """
    path = config_path or DEFAULT_CONFIG
    raw = _read_toml(path)

    client_section = raw.get("client")
    if not client_section or not isinstance(client_section, dict):
        raise ValueError(f"No [client] section found in {path}")

    config = ClientConfig(**client_section)
    endpoint = os.environ.get(ENDPOINT_ENV, "").strip()
    if endpoint:
        logger.debug("Endpoint overridden by %s", ENDPOINT_ENV)
        config = config.model_copy(update={"endpoint": endpoint})
    return config


def load_roles(config_path: Path | None = None) -> dict[str, RolePreset]:
    """Load role presets from a TOML file.

    Returns:
        Dictionary mapping role keys to RolePreset instances, in file order.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the [roles] section is missing or empty.
    """
    path = config_path or DEFAULT_CONFIG
    raw = _read_toml(path)

    roles_section = raw.get("roles")
    if not roles_section or not isinstance(roles_section, dict):
        raise ValueError(f"No [roles] section found in {path}")

    roles: dict[str, RolePreset] = {}
    for key, entry in roles_section.items():
        if not isinstance(entry, dict):
            continue
        roles[key] = RolePreset(key=key, **entry)
    return roles


def resolve_role(roles: dict[str, RolePreset], role: str) -> str:
    """Resolve a preset key to its instruction.

    Anything that is not a known key is taken as a literal instruction.

    Raises:
        ValueError: If ``role`` is blank.
    """
    role = role.strip()
    if not role:
        raise ValueError("Role must not be empty")
    preset = roles.get(role)
    return preset.instruction if preset else role
