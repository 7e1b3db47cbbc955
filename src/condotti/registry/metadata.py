"""Companion metadata loading for module files."""

from __future__ import annotations

import logging
from pathlib import Path
from types import ModuleType
from typing import Any

import pydantic
import yaml

from condotti.errors import ConfigError
from condotti.registry.types import ModuleMeta

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_ENTRY_POINT",
    "load_metadata",
    "merge_module_metadata",
    "meta_path_for",
]

DEFAULT_ENTRY_POINT = "attach"


def meta_path_for(file_path: Path) -> Path:
    """Return the companion metadata path of a module file."""
    return file_path.with_name(file_path.stem + "_meta.yaml")


def load_metadata(meta_path: Path) -> ModuleMeta:
    """Load a *_meta.yaml companion metadata file.

    Returns an empty ModuleMeta if the file does not exist (metadata is optional).
    """
    if not meta_path.exists():
        return ModuleMeta()

    content = meta_path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(message=f"Invalid YAML in metadata file: {meta_path}") from e

    if parsed is None:
        return ModuleMeta()
    if not isinstance(parsed, dict):
        raise ConfigError(message=f"Metadata file must be a YAML mapping: {meta_path}")

    try:
        return ModuleMeta.model_validate(parsed)
    except pydantic.ValidationError as e:
        raise ConfigError(message=f"Invalid metadata in {meta_path}: {e}") from e


def merge_module_metadata(module: ModuleType, meta: ModuleMeta) -> dict[str, Any]:
    """Merge YAML metadata over module-level attributes. YAML wins on conflicts."""
    code_requires = getattr(module, "requires", None) or []
    code_version = getattr(module, "version", None) or "0.0.1"
    code_description = getattr(module, "description", None) or (module.__doc__ or "").strip()
    code_entry_point = getattr(module, "entry_point", None) or DEFAULT_ENTRY_POINT

    if isinstance(code_requires, str):
        logger.warning("Ignoring 'requires' of %s: expected a list of names", module.__name__)
        code_requires = []

    extra = dict(meta.model_extra or {})
    return {
        "requires": list(meta.requires) if meta.requires is not None else list(code_requires),
        "version": meta.version or code_version,
        "description": meta.description or code_description,
        "entry_point": meta.entry_point or code_entry_point,
        "metadata": extra,
    }
