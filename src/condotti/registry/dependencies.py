"""Dependency closure calculation via iterative depth-first search."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Mapping, Sequence

from condotti.errors import CircularDependencyError

logger = logging.getLogger(__name__)

__all__ = ["DependencyCache", "topological_sort"]

EdgesOf = Callable[[str], Sequence[str]]

_GREY = 1
_BLACK = 2


def topological_sort(
    root: str,
    edges_of: EdgesOf,
    resolved: Mapping[str, Sequence[str]] | None = None,
) -> list[str]:
    """Calculate the dependency closure of ``root``, dependencies first.

    Every node reachable from ``root`` appears exactly once and strictly
    after all of its direct dependencies; ``root`` itself is the last
    element. Siblings keep their declaration order.

    Args:
        root: Name whose closure is calculated.
        edges_of: Returns the direct dependencies of a name. Errors it
            raises for unknown names propagate unchanged.
        resolved: Optional closures calculated earlier (each ending with its
            own key). Such nodes are spliced in instead of re-expanded.

    Returns:
        The ordered closure, including ``root``.

    Raises:
        CircularDependencyError: If a cycle is reachable from ``root``.
    """
    resolved = resolved or {}
    colors: dict[str, int] = {}
    result: list[str] = []
    stack: list[str] = [root]

    while stack:
        current = stack[-1]

        if current in colors:
            stack.pop()
            if colors[current] == _BLACK:
                continue
            colors[current] = _BLACK
            result.append(current)
            continue

        cached = resolved.get(current)
        if cached is not None:
            stack.pop()
            _splice(root, cached, colors, result)
            continue

        colors[current] = _GREY
        requires = edges_of(current)
        logger.debug("Dependencies of '%s': %s", current, list(requires))
        for dependency in reversed(requires):
            state = colors.get(dependency)
            if state == _GREY:
                raise CircularDependencyError(module_id=root, dependency=dependency)
            if state == _BLACK:
                continue
            stack.append(dependency)

    logger.debug("Dependency closure of '%s': %s", root, result)
    return result


def _splice(root: str, closure: Sequence[str], colors: dict[str, int], result: list[str]) -> None:
    """Append a previously calculated closure, skipping finished nodes."""
    for name in closure:
        state = colors.get(name)
        if state == _GREY:
            raise CircularDependencyError(module_id=root, dependency=name)
        if state == _BLACK:
            continue
        colors[name] = _BLACK
        result.append(name)


class DependencyCache:
    """Memoized dependency closures keyed by module name.

    A closure is stored only after it has been calculated completely, that
    is after every node in it was known to ``edges_of``. With append-only
    registration and immutable dependency lists a stored closure can never
    become stale, so entries are never invalidated.
    """

    def __init__(self, edges_of: EdgesOf) -> None:
        self._edges_of = edges_of
        self._closures: dict[str, tuple[str, ...]] = {}
        self._lock = threading.Lock()

    def resolve(self, name: str) -> tuple[str, ...]:
        """Return the closure of ``name``, calculating it on first use."""
        with self._lock:
            closure = self._closures.get(name)
            if closure is not None:
                return closure
            snapshot = dict(self._closures)

        closure = tuple(topological_sort(name, self._edges_of, resolved=snapshot))
        with self._lock:
            self._closures.setdefault(name, closure)
        return closure

    def get(self, name: str) -> tuple[str, ...] | None:
        """Return the cached closure of ``name`` without calculating it."""
        with self._lock:
            return self._closures.get(name)

    def clear(self) -> None:
        """Drop every cached closure."""
        with self._lock:
            self._closures.clear()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._closures

    def __len__(self) -> int:
        with self._lock:
            return len(self._closures)
