"""condotti registry and dependency resolution.

Provides module registration, dependency closure calculation and the
metadata helpers used by loaders.

Usage::

    from condotti.registry import Registry

    registry = Registry()
    registry.add("app.db", init_db)
    registry.add("app.web", init_web, requires=["app.db"])
"""

from __future__ import annotations

from condotti.registry.dependencies import DependencyCache, topological_sort
from condotti.registry.entry_point import load_module_file, resolve_initializer
from condotti.registry.metadata import load_metadata, merge_module_metadata
from condotti.registry.registry import REGISTRY_EVENTS, Registry
from condotti.registry.types import ModuleDescriptor, ModuleMeta

__all__ = [
    "DependencyCache",
    "ModuleDescriptor",
    "ModuleMeta",
    "REGISTRY_EVENTS",
    "Registry",
    "load_module_file",
    "load_metadata",
    "merge_module_metadata",
    "resolve_initializer",
    "topological_sort",
]
