"""Loader protocol: the port through which missing modules are fetched."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:
    from condotti.registry import Registry

__all__ = ["Loader"]


class Loader(Protocol):
    """Protocol for module sources.

    On return from :meth:`fetch` every requested name must be registered in
    ``registry`` with its full descriptor; on failure the loader raises, and
    may leave a subset of the names registered.
    """

    async def fetch(self, names: Sequence[str], registry: Registry) -> None:
        """Obtain ``names`` and register them into ``registry``."""
        ...
