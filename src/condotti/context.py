"""Attach context: the capability handle passed to module initializers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

from condotti.config import Config
from condotti.errors import NamespaceNotFoundError

if TYPE_CHECKING:
    from condotti.attacher import Attacher
    from condotti.registry import Registry

__all__ = ["AttachContext"]


@dataclass
class AttachContext:
    """Handle given to every initializer of one :class:`Attacher`.

    Modules publish what they provide through :meth:`namespace` on this
    object instead of mutating process-wide globals, so two attachers never
    see each other's exports.
    """

    attacher: Attacher
    registry: Registry
    config: Config
    exports: SimpleNamespace = field(default_factory=SimpleNamespace)
    data: dict[str, Any] = field(default_factory=dict)

    def namespace(self, path: str, create: bool = True) -> SimpleNamespace:
        """Return the export namespace at a dotted ``path``.

        Each missing segment is created as an empty namespace unless
        ``create`` is False, in which case NamespaceNotFoundError is raised.
        An empty path returns the root export namespace. Existing segments
        are left in place.
        """
        current = self.exports
        if not path:
            return current

        tokens = path.split(".")
        for index, token in enumerate(tokens):
            child = getattr(current, token, None)
            if child is None:
                if not create:
                    raise NamespaceNotFoundError(namespace=".".join(tokens[: index + 1]))
                child = SimpleNamespace()
                setattr(current, token, child)
            current = child
        return current

    def is_attached(self, module_id: str) -> bool:
        """Whether ``module_id`` has been attached by the owning attacher."""
        return self.attacher.is_attached(module_id)

    def get_logger(self, name: str) -> logging.Logger:
        """Return a stdlib logger below the ``condotti`` hierarchy."""
        if name == "condotti" or name.startswith("condotti."):
            return logging.getLogger(name)
        return logging.getLogger(f"condotti.{name}")
