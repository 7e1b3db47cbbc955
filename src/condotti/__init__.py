"""condotti - runtime module loading with dependency-ordered attachment."""

from __future__ import annotations

# Core
from condotti.attacher import Attacher
from condotti.context import AttachContext
from condotti.registry import DependencyCache, Registry, topological_sort
from condotti.registry.registry import REGISTRY_EVENTS
from condotti.registry.types import ModuleDescriptor, ModuleMeta

# Config
from condotti.config import Config

# Errors
from condotti.errors import (
    CircularDependencyError,
    ConfigError,
    ConfigNotFoundError,
    DuplicateModuleError,
    ErrorCodes,
    InvalidInputError,
    ModuleAttachError,
    ModuleError,
    ModuleFetchError,
    ModuleLoadError,
    ModuleNotFoundError,
    NamespaceNotFoundError,
)

# Loaders
from condotti.loaders import FileSystemLoader, Loader, LoaderSettings, MappingLoader

# Built-in modules
from condotti.builtins import LOGGING_MODULE, register_builtins

# Object factory
from condotti.factory import ObjectFactory, ObjectSpec, ParamSpec

__version__ = "0.1.0"

__all__ = [
    # Core
    "Attacher",
    "AttachContext",
    "Registry",
    "DependencyCache",
    "topological_sort",
    # Registry types
    "ModuleDescriptor",
    "ModuleMeta",
    "REGISTRY_EVENTS",
    # Config
    "Config",
    # Errors
    "ErrorCodes",
    "ModuleError",
    "CircularDependencyError",
    "ConfigError",
    "ConfigNotFoundError",
    "DuplicateModuleError",
    "InvalidInputError",
    "ModuleAttachError",
    "ModuleFetchError",
    "ModuleLoadError",
    "ModuleNotFoundError",
    "NamespaceNotFoundError",
    # Loaders
    "Loader",
    "FileSystemLoader",
    "LoaderSettings",
    "MappingLoader",
    # Built-in modules
    "LOGGING_MODULE",
    "register_builtins",
    # Object factory
    "ObjectFactory",
    "ObjectSpec",
    "ParamSpec",
]
