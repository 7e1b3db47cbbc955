"""Central module registry: an append-only table of module descriptors."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterator, Sequence

from condotti.errors import (
    DuplicateModuleError,
    InvalidInputError,
    ModuleNotFoundError,
)
from condotti.registry.types import Initializer, ModuleDescriptor

logger = logging.getLogger(__name__)

__all__ = ["Registry", "REGISTRY_EVENTS"]

REGISTRY_EVENTS: tuple[str, ...] = ("register",)


class Registry:
    """Append-only table mapping unique module names to descriptors.

    A name is registered at most once: registering it again raises
    :class:`DuplicateModuleError` instead of overwriting. There is no
    removal; the table grows monotonically for its whole lifetime.
    """

    def __init__(self) -> None:
        self._modules: dict[str, ModuleDescriptor] = {}
        self._callbacks: dict[str, list[Callable[..., Any]]] = {event: [] for event in REGISTRY_EVENTS}
        self._write_lock = threading.RLock()

    # ----- Registration -----

    def register(self, descriptor: ModuleDescriptor) -> None:
        """Register a module descriptor.

        Raises:
            InvalidInputError: If the descriptor has an empty name.
            DuplicateModuleError: If the name is already registered.
        """
        if not descriptor.module_id:
            raise InvalidInputError(message="module_id must be a non-empty string")
        if not callable(descriptor.initializer):
            raise InvalidInputError(message=f"Initializer of module '{descriptor.module_id}' is not callable")

        with self._write_lock:
            if descriptor.module_id in self._modules:
                raise DuplicateModuleError(module_id=descriptor.module_id)
            self._modules[descriptor.module_id] = descriptor

        logger.debug(
            "Registered module '%s' %s requiring %s",
            descriptor.module_id,
            descriptor.version,
            list(descriptor.requires),
        )
        self._trigger_event("register", descriptor)

    def add(
        self,
        module_id: str,
        initializer: Initializer,
        version: str = "0.0.1",
        meta: dict[str, Any] | None = None,
        requires: Sequence[str] | None = None,
    ) -> ModuleDescriptor:
        """Build a descriptor and register it.

        Direct dependencies come from ``requires`` or, failing that, from
        ``meta["requires"]``. The whole ``meta`` mapping is kept as the
        descriptor's metadata.
        """
        meta = dict(meta or {})
        if requires is None:
            requires = meta.get("requires") or ()
        if isinstance(requires, str):
            raise InvalidInputError(message=f"requires of module '{module_id}' must be a list of names")

        descriptor = ModuleDescriptor(
            module_id=module_id,
            initializer=initializer,
            version=version,
            requires=tuple(requires),
            metadata=meta,
        )
        self.register(descriptor)
        return descriptor

    def module(
        self,
        module_id: str,
        *,
        version: str = "0.0.1",
        requires: Sequence[str] | None = None,
        meta: dict[str, Any] | None = None,
    ) -> Callable[[Initializer], Initializer]:
        """Decorator form of :meth:`add`. The function is returned unchanged."""

        def decorator(func: Initializer) -> Initializer:
            self.add(module_id, func, version=version, meta=meta, requires=requires)
            return func

        return decorator

    # ----- Query Methods -----

    def get(self, module_id: str) -> ModuleDescriptor | None:
        """Look up a descriptor by name. Returns None if not found."""
        with self._write_lock:
            return self._modules.get(module_id)

    def lookup(self, module_id: str) -> ModuleDescriptor:
        """Look up a descriptor by name.

        Raises:
            ModuleNotFoundError: If the name is not registered.
        """
        descriptor = self.get(module_id)
        if descriptor is None:
            raise ModuleNotFoundError(module_id=module_id)
        return descriptor

    def dependencies_of(self, module_id: str) -> tuple[str, ...]:
        """Return the direct dependencies of a registered module.

        Raises:
            ModuleNotFoundError: If the name is not registered.
        """
        return self.lookup(module_id).requires

    def has(self, module_id: str) -> bool:
        """Check whether a module is registered."""
        with self._write_lock:
            return module_id in self._modules

    def names(self) -> frozenset[str]:
        """Snapshot of all registered names."""
        with self._write_lock:
            return frozenset(self._modules)

    def list(self, prefix: str | None = None) -> list[str]:
        """Return sorted list of registered names, optionally filtered by prefix."""
        ids = self.names()
        if prefix is not None:
            ids = frozenset(mid for mid in ids if mid.startswith(prefix))
        return sorted(ids)

    def iter(self) -> Iterator[tuple[str, ModuleDescriptor]]:
        """Return an iterator of (module_id, descriptor) tuples (snapshot-based)."""
        with self._write_lock:
            items = list(self._modules.items())
        return iter(items)

    @property
    def count(self) -> int:
        """Number of registered modules."""
        with self._write_lock:
            return len(self._modules)

    def __contains__(self, module_id: object) -> bool:
        with self._write_lock:
            return module_id in self._modules

    def __len__(self) -> int:
        return self.count

    # ----- Event System -----

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        """Register an event callback.

        Args:
            event: Event name ('register').
            callback: Callable(module_id, descriptor) to invoke on the event.

        Raises:
            InvalidInputError: If event name is invalid.
        """
        with self._write_lock:
            if event not in self._callbacks:
                raise InvalidInputError(message=f"Invalid event: {event}. Must be one of {list(REGISTRY_EVENTS)}")
            self._callbacks[event].append(callback)

    def _trigger_event(self, event: str, descriptor: ModuleDescriptor) -> None:
        """Trigger all callbacks for an event. Errors are logged and swallowed."""
        with self._write_lock:
            callbacks = list(self._callbacks.get(event, []))
        for cb in callbacks:
            try:
                cb(descriptor.module_id, descriptor)
            except Exception as e:
                logger.error(
                    "Callback error for event '%s' on module '%s': %s",
                    event,
                    descriptor.module_id,
                    e,
                )
