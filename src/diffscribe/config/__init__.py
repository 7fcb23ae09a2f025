"""Configuration loading, schema, and defaults."""

from diffscribe.config.loader import CONFIG_FILENAME, ConfigError, load_config
from diffscribe.config.schema import MODES, DiffScribeConfig

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DiffScribeConfig",
    "MODES",
    "load_config",
]
