"""Loaders fetch modules that are not yet registered.

Usage::

    from condotti.loaders import FileSystemLoader

    loader = FileSystemLoader(base_dir="./modules", paths={"vendor": "../vendor"})
"""

from __future__ import annotations

from condotti.loaders.base import Loader
from condotti.loaders.filesystem import FileSystemLoader, LoaderSettings
from condotti.loaders.memory import MappingLoader

__all__ = [
    "FileSystemLoader",
    "Loader",
    "LoaderSettings",
    "MappingLoader",
]
