"""In-memory loader backed by a mapping of module sources."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Mapping, Sequence, Union

from condotti.errors import DuplicateModuleError, ModuleNotFoundError
from condotti.loaders.base import Loader
from condotti.registry.types import ModuleDescriptor

if TYPE_CHECKING:
    from condotti.registry import Registry

logger = logging.getLogger(__name__)

__all__ = ["MappingLoader"]

ModuleSource = Union[ModuleDescriptor, Callable[["Registry"], None]]


class MappingLoader(Loader):
    """Serve modules from a mapping of name to source.

    A source is either a :class:`ModuleDescriptor`, registered as is, or a
    callable that receives the registry and registers the module itself.
    """

    def __init__(self, sources: Mapping[str, ModuleSource] | None = None) -> None:
        self._sources: dict[str, ModuleSource] = dict(sources or {})

    def add(self, module_id: str, source: ModuleSource) -> None:
        """Make another module available to this loader."""
        self._sources[module_id] = source

    def __contains__(self, module_id: object) -> bool:
        return module_id in self._sources

    async def fetch(self, names: Sequence[str], registry: Registry) -> None:
        for name in names:
            if registry.has(name):
                continue
            source = self._sources.get(name)
            if source is None:
                raise ModuleNotFoundError(module_id=name)
            if isinstance(source, ModuleDescriptor):
                try:
                    registry.register(source)
                except DuplicateModuleError:
                    logger.debug("Module '%s' was registered concurrently, keeping the first", name)
                    continue
            else:
                source(registry)
            logger.debug("Fetched module '%s' from memory", name)
