"""Shared test fixtures for the condotti test suite."""

from __future__ import annotations

import pytest

from attach_helpers import Recorder
from condotti.attacher import Attacher
from condotti.registry import Registry


@pytest.fixture
def recorder() -> Recorder:
    """A fresh initializer call recorder."""
    return Recorder()


@pytest.fixture
def registry() -> Registry:
    """An empty registry."""
    return Registry()


@pytest.fixture
def chain_registry(registry: Registry, recorder: Recorder) -> Registry:
    """Registry with A -> [B], B -> [C], C -> []."""
    registry.register(recorder.descriptor("A", ["B"]))
    registry.register(recorder.descriptor("B", ["C"]))
    registry.register(recorder.descriptor("C"))
    return registry


@pytest.fixture
def attacher(registry: Registry) -> Attacher:
    """Attacher over the empty registry, without a loader or built-ins."""
    return Attacher(registry=registry, builtins=False)
