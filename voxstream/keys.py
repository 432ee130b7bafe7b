"""API key loading for the chat client.

The chat service key is optional. When present it is forwarded in the
request body as ``apiKey``. Keys are loaded with this priority:
  1. Environment variables (highest, already set in shell)
  2. ~/.voxstream/keys.env (saved with ``save_keys``)
  3. .env in current directory (project-level)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from voxstream.schemas.session import ClientConfig

logger = logging.getLogger(__name__)

# Directory for user-level voxstream configuration
VOXSTREAM_HOME = Path.home() / ".voxstream"
KEYS_FILE = VOXSTREAM_HOME / "keys.env"
USER_CONFIG = VOXSTREAM_HOME / "config.toml"


def load_keys_env(keys_file: Path | None = None) -> None:
    """Load API keys from ~/.voxstream/keys.env and .env into os.environ.

    Existing env vars are NOT overwritten, and earlier files win over
    later ones.
    """
    files = [keys_file or KEYS_FILE, Path.cwd() / ".env"]
    for env_file in files:
        if env_file.is_file():
            _load_env_file(env_file)


def _read_env_file(path: Path) -> dict[str, str]:
    """Parse a simple KEY=VALUE .env file into a dict."""
    entries: dict[str, str] = {}
    try:
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            if key:
                entries[key] = value.strip().strip("'\"")
    except OSError:
        logger.debug("Could not read %s", path)
    return entries


def _load_env_file(path: Path) -> None:
    """Set vars from a .env file that aren't already set."""
    for key, value in _read_env_file(path).items():
        if not os.environ.get(key):
            os.environ[key] = value
            logger.debug("Loaded %s from %s", key, path)


def save_keys(keys: dict[str, str], keys_file: Path | None = None) -> Path:
    """Save API keys to ~/.voxstream/keys.env.

    Keys already in the file are kept unless ``keys`` replaces them.

    Args:
        keys: Mapping of env var name to key value (only non-empty saved).
        keys_file: Target file, for tests.

    Returns:
        Path to the saved file.
    """
    path = keys_file or KEYS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)

    merged = _read_env_file(path) if path.is_file() else {}
    merged.update(keys)

    lines = ["# voxstream API keys", ""]
    for env_var, value in merged.items():
        if value:
            lines.append(f"{env_var}={value}")

    path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    try:
        path.chmod(0o600)
    except OSError:
        pass

    return path


def get_api_key(config: ClientConfig) -> str | None:
    """Return the configured service key, or None when unset."""
    return os.environ.get(config.api_key_env, "").strip() or None
