"""Built-in modules shipped with the framework."""

from __future__ import annotations

import logging
import logging.config
from typing import TYPE_CHECKING, Any

from condotti.errors import ConfigError

if TYPE_CHECKING:
    from condotti.context import AttachContext
    from condotti.registry import Registry

__all__ = ["LOGGING_MODULE", "attach_logging", "register_builtins"]

LOGGING_MODULE = "condotti.logging"


def attach_logging(context: AttachContext, config: dict[str, Any] | None) -> None:
    """Configure stdlib logging from the ``condotti.logging`` module settings.

    Recognized keys:
        dict_config: passed to :func:`logging.config.dictConfig`.
        level: level name or number for the ``condotti`` logger.

    Publishes ``get_logger`` and ``set_level`` under ``context.namespace("logging")``.
    """
    config = config or {}
    if not isinstance(config, dict):
        raise ConfigError(f"Settings of '{LOGGING_MODULE}' must be a mapping, got {type(config).__name__}")

    dict_config = config.get("dict_config")
    if dict_config:
        logging.config.dictConfig(dict_config)

    root = logging.getLogger("condotti")

    def set_level(level: int | str) -> None:
        root.setLevel(level.upper() if isinstance(level, str) else level)

    level = config.get("level")
    if level is not None:
        set_level(level)

    namespace = context.namespace("logging")
    namespace.get_logger = context.get_logger
    namespace.set_level = set_level


def register_builtins(registry: Registry) -> None:
    """Register the built-in modules that are not registered yet."""
    if not registry.has(LOGGING_MODULE):
        registry.add(
            LOGGING_MODULE,
            attach_logging,
            meta={"description": "Configure logging from module settings"},
        )
