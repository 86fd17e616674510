"""Configuration management with Pydantic validation."""

from kubelens.core.config.models import (
    CONFIG_DIR,
    CONFIG_FILE,
    BrowserConfig,
    load_config,
)

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "BrowserConfig",
    "load_config",
]
