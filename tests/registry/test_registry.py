"""Tests for the Registry class."""

from __future__ import annotations

import logging
import threading
from typing import Any
from unittest.mock import MagicMock

import pytest

from condotti.errors import (
    DuplicateModuleError,
    InvalidInputError,
    ModuleNotFoundError,
)
from condotti.registry.registry import Registry
from condotti.registry.types import ModuleDescriptor


def _init(context: Any, config: Any) -> None:
    return None


# ===== Registration =====


class TestRegister:
    def test_register_and_get(self, registry: Registry) -> None:
        """register() stores the descriptor under its name."""
        descriptor = ModuleDescriptor(module_id="a", initializer=_init)
        registry.register(descriptor)
        assert registry.get("a") is descriptor

    def test_duplicate_raises(self, registry: Registry) -> None:
        """Registering a known name raises DuplicateModuleError."""
        registry.register(ModuleDescriptor(module_id="a", initializer=_init))
        with pytest.raises(DuplicateModuleError) as exc_info:
            registry.register(ModuleDescriptor(module_id="a", initializer=lambda c, k: None))
        assert exc_info.value.module_id == "a"
        assert exc_info.value.code == "DUPLICATE_MODULE"

    def test_duplicate_does_not_overwrite(self, registry: Registry) -> None:
        """The first descriptor survives a rejected re-registration."""
        first = ModuleDescriptor(module_id="a", initializer=_init)
        registry.register(first)
        with pytest.raises(DuplicateModuleError):
            registry.register(ModuleDescriptor(module_id="a", initializer=_init, version="9.9.9"))
        assert registry.get("a") is first

    def test_empty_name_raises(self, registry: Registry) -> None:
        """An empty module name is rejected."""
        with pytest.raises(InvalidInputError):
            registry.register(ModuleDescriptor(module_id="", initializer=_init))

    def test_non_callable_initializer_raises(self, registry: Registry) -> None:
        """The initializer must be callable."""
        with pytest.raises(InvalidInputError, match="not callable"):
            registry.register(ModuleDescriptor(module_id="a", initializer="nope"))  # type: ignore[arg-type]


class TestAdd:
    def test_add_with_requires(self, registry: Registry) -> None:
        """add() builds a descriptor with the given dependencies."""
        descriptor = registry.add("web", _init, "1.0.0", requires=["db", "cache"])
        assert descriptor.requires == ("db", "cache")
        assert descriptor.version == "1.0.0"
        assert registry.dependencies_of("web") == ("db", "cache")

    def test_add_requires_from_meta(self, registry: Registry) -> None:
        """meta['requires'] feeds the dependency list when requires is omitted."""
        descriptor = registry.add("web", _init, meta={"requires": ["db"], "owner": "x"})
        assert descriptor.requires == ("db",)
        assert descriptor.metadata["owner"] == "x"

    def test_add_string_requires_rejected(self, registry: Registry) -> None:
        """A bare string is not accepted as a dependency list."""
        with pytest.raises(InvalidInputError):
            registry.add("web", _init, requires="db")  # type: ignore[arg-type]

    def test_module_decorator(self, registry: Registry) -> None:
        """@registry.module registers and returns the function unchanged."""

        @registry.module("deco", requires=["base"])
        def attach(context: Any, config: Any) -> None:
            return None

        assert registry.get("deco").initializer is attach
        assert registry.dependencies_of("deco") == ("base",)


# ===== Query Methods =====


class TestQueries:
    def test_get_unknown_returns_none(self, registry: Registry) -> None:
        """get() returns None for unknown names."""
        assert registry.get("nope") is None

    def test_lookup_unknown_raises(self, registry: Registry) -> None:
        """lookup() raises ModuleNotFoundError for unknown names."""
        with pytest.raises(ModuleNotFoundError) as exc_info:
            registry.lookup("nope")
        assert exc_info.value.module_id == "nope"

    def test_dependencies_of_unknown_raises(self, registry: Registry) -> None:
        """dependencies_of() raises ModuleNotFoundError for unknown names."""
        with pytest.raises(ModuleNotFoundError):
            registry.dependencies_of("nope")

    def test_names_and_has(self, registry: Registry) -> None:
        """names() is a snapshot of registered names."""
        registry.add("a", _init)
        registry.add("b", _init)
        names = registry.names()
        registry.add("c", _init)
        assert names == frozenset({"a", "b"})
        assert registry.has("c")
        assert "c" in registry
        assert not registry.has("d")

    def test_list_sorted_with_prefix(self, registry: Registry) -> None:
        """list() is sorted and filters by prefix."""
        for name in ("app.web", "app.db", "lib.x"):
            registry.add(name, _init)
        assert registry.list() == ["app.db", "app.web", "lib.x"]
        assert registry.list(prefix="app.") == ["app.db", "app.web"]

    def test_count_and_iter(self, registry: Registry) -> None:
        """count and iter() reflect registrations."""
        registry.add("a", _init)
        registry.add("b", _init)
        assert registry.count == 2
        assert len(registry) == 2
        assert [name for name, _ in registry.iter()] == ["a", "b"]


# ===== Event System =====


class TestEvents:
    def test_register_event_fires(self, registry: Registry) -> None:
        """'register' callbacks receive the name and descriptor."""
        callback = MagicMock()
        registry.on("register", callback)
        descriptor = registry.add("a", _init)
        callback.assert_called_once_with("a", descriptor)

    def test_invalid_event_raises(self, registry: Registry) -> None:
        """Unknown event names are rejected."""
        with pytest.raises(InvalidInputError, match="Invalid event"):
            registry.on("unregister", MagicMock())

    def test_callback_error_logged(self, registry: Registry, caplog: pytest.LogCaptureFixture) -> None:
        """A failing callback is logged and does not undo the registration."""
        registry.on("register", MagicMock(side_effect=RuntimeError("boom")))
        with caplog.at_level(logging.ERROR):
            registry.add("a", _init)
        assert registry.has("a")
        assert "boom" in caplog.text


# ===== Thread Safety =====


class TestThreadSafety:
    def test_concurrent_duplicate_registration(self, registry: Registry) -> None:
        """Of many threads registering one name, exactly one succeeds."""
        successes: list[int] = []
        duplicates: list[int] = []
        barrier = threading.Barrier(8)

        def worker(i: int) -> None:
            barrier.wait()
            try:
                registry.add("shared", _init)
                successes.append(i)
            except DuplicateModuleError:
                duplicates.append(i)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(successes) == 1
        assert len(duplicates) == 7
