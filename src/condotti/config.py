"""Configuration loading and per-module settings lookup."""

from __future__ import annotations

import os
from typing import Any

import yaml

from condotti.errors import ConfigError, ConfigNotFoundError

__all__ = ["Config"]


class Config:
    """Configuration accessor with dot-path key support.

    Framework settings live in ordinary sections (``loader``, ``attach``).
    Per-module settings live under the ``modules`` section and are keyed by
    the full module name, which itself contains dots, so they are looked up
    verbatim through :meth:`module_config` rather than via :meth:`get`.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}

    @classmethod
    def load(cls, yaml_path: str) -> Config:
        """Load configuration from a YAML file.

        Raises:
            ConfigNotFoundError: If the file does not exist.
            ConfigError: If the YAML is invalid or not a mapping.
        """
        if not os.path.isfile(yaml_path):
            raise ConfigNotFoundError(config_path=yaml_path)

        with open(yaml_path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {yaml_path}: {e}") from e

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

        modules = data.get("modules")
        if modules is not None and not isinstance(modules, dict):
            raise ConfigError(f"'modules' must be a mapping, got {type(modules).__name__}")
        return cls(data)

    @classmethod
    def coerce(cls, config: Config | dict[str, Any] | None) -> Config:
        """Accept a Config, a plain dict or None."""
        if isinstance(config, Config):
            return config
        return cls(config)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dot-path key."""
        parts = key.split(".")
        current: Any = self._data
        for part in parts:
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def section(self, key: str) -> dict[str, Any]:
        """Return a mapping section, or an empty dict when absent."""
        value = self.get(key)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ConfigError(f"Configuration section '{key}' must be a mapping")
        return value

    def module_config(self, module_id: str) -> Any:
        """Return the settings of a single module, or None when absent."""
        modules = self._data.get("modules")
        if not isinstance(modules, dict):
            return None
        return modules.get(module_id)

    @property
    def data(self) -> dict[str, Any]:
        """The raw configuration mapping."""
        return self._data
