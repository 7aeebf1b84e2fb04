"""
Configuration loader — reads gccforge.yml into a Settings model.

The file is optional: without one, every setting has a usable default
and the environment can still supply credentials. It reads YAML,
applies environment overrides, validates against the Pydantic schema,
and returns a typed Settings object.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from gccforge.core.config.settings import Settings

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "gccforge.yml"

# Environment variable → (section, key). Section None = top level.
# Applied in order, so GCCFORGE_TIMEZONE beats TZ.
ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "GCCFORGE_WORKDIR": (None, "workdir"),
    "GCCFORGE_BIND_ROOT": (None, "bind_root"),
    "GCCFORGE_TOOL_CACHE": (None, "tool_cache_dir"),
    "GCCFORGE_PATCHES_DIR": (None, "patches_dir"),
    "TZ": (None, "timezone"),
    "GCCFORGE_TIMEZONE": (None, "timezone"),
    "TG_BOT_API": ("notify", "bot_token"),
    "CHAT_ID": ("notify", "chat_id"),
    "CHANNEL_ID": ("notify", "channel_id"),
    "TOKEN_GITHUB": ("publish", "token"),
    "GCCFORGE_PUBLISH_REPO": ("publish", "repository"),
}


class ConfigError(Exception):
    """Raised when gccforge.yml is unreadable or invalid."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for gccforge.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to gccforge.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
    search: bool = True,
) -> Settings:
    """Load settings from YAML and the environment.

    Args:
        path: Explicit path to gccforge.yml. If None, searches upward
            (unless ``search`` is False).
        environ: Environment mapping (default: ``os.environ``).
        search: Whether to search for a config file when no path is given.

    Returns:
        Validated Settings model.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    env = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if path is None and search:
        path = find_config_file()

    if path is not None:
        data = _read_yaml(path)
        # Relative paths in the file are relative to the file itself
        if "workdir" not in data:
            data["workdir"] = str(path.parent.resolve())
        elif not Path(data["workdir"]).is_absolute():
            data["workdir"] = str((path.parent / data["workdir"]).resolve())

    for var, (section, key) in ENV_OVERRIDES.items():
        value = env.get(var)
        if not value:
            continue
        if section is None:
            data[key] = value
        else:
            block = data.get(section) or {}
            if not isinstance(block, dict):
                raise ConfigError(f"'{section}' must be a mapping in {path}")
            block[key] = value
            data[section] = block

    try:
        settings = Settings.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug("Settings resolved (workdir=%s)", settings.root)
    return settings


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "gccforge" key or be flat
    if "gccforge" in data and isinstance(data["gccforge"], dict):
        data = data["gccforge"]
    return data
