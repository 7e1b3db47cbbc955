"""Filesystem loader: fetch modules from Python source files on disk."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from condotti.errors import ConfigError, DuplicateModuleError, ModuleNotFoundError
from condotti.loaders.base import Loader
from condotti.registry.entry_point import load_module_file, resolve_initializer
from condotti.registry.metadata import load_metadata, merge_module_metadata, meta_path_for
from condotti.registry.types import ModuleDescriptor

if TYPE_CHECKING:
    from condotti.registry import Registry

logger = logging.getLogger(__name__)

__all__ = ["FileSystemLoader", "LoaderSettings"]


class LoaderSettings(BaseModel):
    """Settings of a :class:`FileSystemLoader`.

    Attributes:
        base_dir: Root directory for module lookups. Relative values are
            resolved against the current working directory.
        paths: Dotted name prefix to directory (or file stem) mappings.
            Relative values are resolved against ``base_dir``. A mapping is
            used whenever it covers a name, even if the name could also be
            found directly under ``base_dir``.
        suffix: File extension appended to the resolved path.
    """

    model_config = ConfigDict(extra="forbid")

    base_dir: str = "./"
    paths: dict[str, str] = Field(default_factory=dict)
    suffix: str = ".py"


class FileSystemLoader(Loader):
    """Load modules from ``<base_dir>/<dotted/name>.py`` files.

    A module file defines its initializer as a module-level function, named
    ``attach`` unless the file sets ``entry_point``. It may also set
    ``requires`` (list of names), ``version`` and ``description``; an
    optional ``<stem>_meta.yaml`` next to the file overrides them.

    Files are imported concurrently in worker threads; the resulting
    descriptors are registered in request order on the calling event loop.
    """

    def __init__(
        self,
        base_dir: str | Path = "./",
        paths: dict[str, str] | None = None,
        suffix: str = ".py",
    ) -> None:
        self._settings = self._validate(
            {"base_dir": str(base_dir), "paths": dict(paths or {}), "suffix": suffix}
        )
        self._base_dir = Path()
        self._mappings: dict[tuple[str, ...], Path] = {}
        self._initialize()

    @classmethod
    def from_settings(cls, settings: dict[str, Any]) -> FileSystemLoader:
        """Create a loader from a ``loader`` configuration section."""
        validated = cls._validate(settings)
        return cls(base_dir=validated.base_dir, paths=validated.paths, suffix=validated.suffix)

    @staticmethod
    def _validate(settings: dict[str, Any]) -> LoaderSettings:
        try:
            return LoaderSettings.model_validate(settings)
        except pydantic.ValidationError as e:
            raise ConfigError(f"Invalid loader settings: {e}") from e

    def _initialize(self) -> None:
        """Resolve the base directory and build the prefix mapping table."""
        self._base_dir = Path(self._settings.base_dir).expanduser().resolve()
        self._mappings = {}
        for prefix, raw_path in self._settings.paths.items():
            path = Path(raw_path).expanduser()
            if not path.is_absolute():
                path = self._base_dir / path
            self._mappings[tuple(prefix.split("."))] = path.resolve()

    @property
    def settings(self) -> LoaderSettings:
        """The current (validated) settings."""
        return self._settings

    def configure(self, **settings: Any) -> None:
        """Merge new settings into the current ones and rebuild the path table.

        ``paths`` entries are merged key by key; other settings replace the
        current values.
        """
        merged = self._settings.model_dump()
        paths = settings.pop("paths", None)
        if paths:
            merged["paths"].update(paths)
        merged.update(settings)
        self._settings = self._validate(merged)
        self._initialize()

    def resolve_path(self, module_id: str) -> Path:
        """Map a dotted module name to the file expected to define it.

        The deepest ``paths`` mapping covering a prefix of the name wins;
        the remaining name segments become sub directories below it.
        """
        tokens = module_id.split(".")
        root = self._base_dir
        rest = tokens
        for depth in range(len(tokens), 0, -1):
            mapped = self._mappings.get(tuple(tokens[:depth]))
            if mapped is not None:
                root, rest = mapped, tokens[depth:]
                break
        return Path(str(root.joinpath(*rest)) + self._settings.suffix)

    async def fetch(self, names: Sequence[str], registry: Registry) -> None:
        pending = [name for name in names if not registry.has(name)]
        if not pending:
            return

        descriptors = await asyncio.gather(
            *(asyncio.to_thread(_load_descriptor, name, self.resolve_path(name)) for name in pending)
        )

        for descriptor in descriptors:
            try:
                registry.register(descriptor)
            except DuplicateModuleError:
                logger.debug("Module '%s' was registered concurrently, keeping the first", descriptor.module_id)
                continue
            logger.debug("Loaded module '%s' from %s", descriptor.module_id, descriptor.metadata["file"])


def _load_descriptor(module_id: str, file_path: Path) -> ModuleDescriptor:
    """Import a module file and build its descriptor. Runs in a worker thread."""
    if not file_path.is_file():
        raise ModuleNotFoundError(module_id=module_id, paths=[str(file_path)])

    loaded = load_module_file(module_id, file_path)
    meta = load_metadata(meta_path_for(file_path))
    merged = merge_module_metadata(loaded, meta)
    initializer = resolve_initializer(module_id, loaded, merged["entry_point"])

    return ModuleDescriptor(
        module_id=module_id,
        initializer=initializer,
        version=merged["version"],
        requires=tuple(merged["requires"]),
        metadata={
            **merged["metadata"],
            "description": merged["description"],
            "file": str(file_path),
        },
    )
