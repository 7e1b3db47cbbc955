"""Loading of module files and initializer resolution."""

from __future__ import annotations

import importlib.machinery
import importlib.util
from pathlib import Path
from types import ModuleType

from condotti.errors import ModuleLoadError
from condotti.registry.types import Initializer

__all__ = ["load_module_file", "resolve_initializer"]


def load_module_file(module_id: str, file_path: Path) -> ModuleType:
    """Import a module file as a fresh Python module object.

    The module is not inserted into ``sys.modules``; module names are
    owned by the registry, not by the import system. Any file suffix is
    accepted, the file is always treated as Python source.
    """
    module_name = "condotti_ext_" + module_id.replace(".", "_")
    loader = importlib.machinery.SourceFileLoader(module_name, str(file_path))
    spec = importlib.util.spec_from_file_location(module_name, str(file_path), loader=loader)
    if spec is None or spec.loader is None:
        raise ModuleLoadError(module_id=module_id, reason=f"Cannot create import spec for {file_path}")

    mod = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(mod)
    except Exception as exc:
        raise ModuleLoadError(module_id=module_id, reason=f"Failed to import {file_path}: {exc}") from exc
    return mod


def resolve_initializer(module_id: str, loaded: ModuleType, entry_point: str) -> Initializer:
    """Return the initializer function named ``entry_point``.

    ``entry_point`` may be given as ``"file:function"``; only the part after
    the colon is used.
    """
    func_name = entry_point.split(":")[-1]
    func = getattr(loaded, func_name, None)
    if func is None:
        raise ModuleLoadError(
            module_id=module_id,
            reason=f"Entry point '{func_name}' not found in {loaded.__file__}",
        )
    if not callable(func):
        raise ModuleLoadError(module_id=module_id, reason=f"Entry point '{func_name}' is not callable")
    return func
