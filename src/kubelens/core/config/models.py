"""Browser configuration models."""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

# XDG-compliant config location
CONFIG_DIR = Path.home() / ".config" / "kubelens"
CONFIG_FILE = CONFIG_DIR / "config.yaml"

ENV_PREFIX = "KUBELENS_"


class BrowserConfig(BaseModel):
    """Settings for polling, redrawing, and rendering.

    Intervals and durations are in seconds.
    """

    model_config = ConfigDict(extra="forbid")

    poll_interval: float = 5.0
    redraw_interval: float = 1.0
    error_display_seconds: float = 10.0
    restart_warning_threshold: int = 5
    indent_width: int = 2
    kubectl_path: str | None = None
    kubectl_flags: list[str] = []
    command_timeout: float = 60.0
    prompt_timeout: float = 10.0
    namespace: str | None = None

    @field_validator("poll_interval", "redraw_interval", "command_timeout", "prompt_timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Validate intervals and timeouts are positive."""
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("error_display_seconds")
    @classmethod
    def validate_error_display(cls, v: float) -> float:
        """Validate the error display duration is non-negative."""
        if v < 0:
            raise ValueError("error_display_seconds must be non-negative")
        return v

    @field_validator("restart_warning_threshold")
    @classmethod
    def validate_threshold(cls, v: int) -> int:
        """Validate the restart threshold is at least 1."""
        if v < 1:
            raise ValueError("restart_warning_threshold must be at least 1")
        return v

    @field_validator("indent_width")
    @classmethod
    def validate_indent_width(cls, v: int) -> int:
        """Validate indentation width is non-negative."""
        if v < 0:
            raise ValueError("indent_width must be non-negative")
        return v

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> BrowserConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values.

        Supported environment variables:
            KUBELENS_POLL_INTERVAL: Seconds between fetch ticks
            KUBELENS_REDRAW_INTERVAL: Seconds between redraw ticks
            KUBELENS_ERROR_DISPLAY_SECONDS: Minimum time an error stays visible
            KUBELENS_RESTART_WARNING_THRESHOLD: Pod restarts that trigger a warning
            KUBELENS_INDENT_WIDTH: Spaces per indentation level
            KUBELENS_KUBECTL: Path to the kubectl binary
            KUBELENS_KUBECTL_FLAGS: Extra kubectl flags (shell-style string)
            KUBELENS_NAMESPACE: Namespace override
        """
        config_dict = base_config.copy() if base_config else {}

        float_vars = {
            "POLL_INTERVAL": "poll_interval",
            "REDRAW_INTERVAL": "redraw_interval",
            "ERROR_DISPLAY_SECONDS": "error_display_seconds",
            "COMMAND_TIMEOUT": "command_timeout",
            "PROMPT_TIMEOUT": "prompt_timeout",
        }
        for env_name, key in float_vars.items():
            if value := os.environ.get(ENV_PREFIX + env_name):
                config_dict[key] = float(value)

        if threshold := os.environ.get(ENV_PREFIX + "RESTART_WARNING_THRESHOLD"):
            config_dict["restart_warning_threshold"] = int(threshold)

        if indent := os.environ.get(ENV_PREFIX + "INDENT_WIDTH"):
            config_dict["indent_width"] = int(indent)

        if kubectl := os.environ.get(ENV_PREFIX + "KUBECTL"):
            config_dict["kubectl_path"] = kubectl

        if flags := os.environ.get(ENV_PREFIX + "KUBECTL_FLAGS"):
            config_dict["kubectl_flags"] = shlex.split(flags)

        if namespace := os.environ.get(ENV_PREFIX + "NAMESPACE"):
            config_dict["namespace"] = namespace

        return cls.model_validate(config_dict)


def load_config(path: Path | None = None) -> BrowserConfig:
    """Load configuration from YAML with environment overrides.

    A missing file yields the defaults (plus environment overrides).

    Args:
        path: Config file path. Defaults to ~/.config/kubelens/config.yaml.

    Raises:
        ValueError: If the file is not a YAML mapping.
        pydantic.ValidationError: If a setting is invalid.
    """
    config_path = path or CONFIG_FILE
    base: dict[str, Any] = {}
    if config_path.exists():
        loaded = yaml.safe_load(config_path.read_text()) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{config_path} must contain a YAML mapping")
        base = loaded
    return BrowserConfig.from_env(base)
