"""Configuration — gccforge.yml and environment overrides."""

from gccforge.core.config.loader import ConfigError, find_config_file, load_settings  # noqa: F401
from gccforge.core.config.settings import Settings  # noqa: F401
