"""Attacher: fetches missing modules and runs initializers in dependency order."""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections import deque
from typing import Any, Awaitable, Callable, Iterable, Sequence

from condotti.builtins import register_builtins
from condotti.config import Config
from condotti.context import AttachContext
from condotti.errors import (
    InvalidInputError,
    ModuleAttachError,
    ModuleError,
    ModuleFetchError,
    ModuleNotFoundError,
)
from condotti.loaders import FileSystemLoader, Loader
from condotti.registry import DependencyCache, ModuleDescriptor, Registry

__all__ = ["AttachCallback", "Attacher"]

AttachCallback = Callable[[ModuleError | None, AttachContext], Any]

_logger = logging.getLogger(__name__)


def _noop_callback(error: ModuleError | None, context: AttachContext) -> None:
    return None


def _unique(names: Iterable[str]) -> list[str]:
    """Deduplicate names, keeping the first occurrence."""
    return list(dict.fromkeys(names))


class Attacher:
    """Attach modules, and everything they depend on, exactly once.

    ``attach_async`` runs the fetch-then-resolve loop: it asks the loader
    for every unregistered name reachable from the request, yields to the
    event loop, and repeats until the whole dependency graph is registered,
    because a freshly fetched module may require modules nobody has seen
    yet. It then calculates the dependency closure of each requested name
    and runs the initializers strictly in that order.

    The resolve-and-initialize phase has no suspension point and runs under
    a lock, so a module is never initialized twice even when overlapping
    calls require it, whether they are interleaved coroutines or threads.
    Failures are terminal for the call that hit them. Modules attached
    before the failure stay attached, and fetched modules stay registered.
    """

    def __init__(
        self,
        registry: Registry | None = None,
        loader: Loader | None = None,
        config: Config | dict[str, Any] | None = None,
        builtins: bool = True,
    ) -> None:
        """Initialize the Attacher.

        Args:
            registry: Module registry. A new empty one is created if omitted.
            loader: Loader used to fetch unregistered modules. Without one,
                requiring an unregistered module fails with ModuleFetchError.
            config: Configuration; per-module settings are read from its
                ``modules`` section.
            builtins: Register the built-in modules (``condotti.logging``).
        """
        self._registry = registry if registry is not None else Registry()
        self._loader = loader
        self._config = Config.coerce(config)
        self._dependencies = DependencyCache(self._registry.dependencies_of)
        self._attached: dict[str, None] = {}
        self._lock = threading.RLock()
        self._inflight: dict[str, asyncio.Future[BaseException | None]] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._tasks_lock = threading.Lock()
        self._context = AttachContext(attacher=self, registry=self._registry, config=self._config)

        if builtins:
            register_builtins(self._registry)

    @classmethod
    def from_config(
        cls,
        config: Config | dict[str, Any],
        registry: Registry | None = None,
        builtins: bool = True,
    ) -> Attacher:
        """Create an Attacher whose FileSystemLoader is built from the ``loader`` section."""
        config = Config.coerce(config)
        settings = config.section("loader")
        loader = FileSystemLoader.from_settings(settings) if settings else None
        return cls(registry=registry, loader=loader, config=config, builtins=builtins)

    # ----- Properties -----

    @property
    def registry(self) -> Registry:
        """Return the Registry instance."""
        return self._registry

    @property
    def loader(self) -> Loader | None:
        """Return the loader, if any."""
        return self._loader

    @property
    def config(self) -> Config:
        """Return the configuration."""
        return self._config

    @property
    def context(self) -> AttachContext:
        """The context handed to every initializer."""
        return self._context

    @property
    def attached(self) -> tuple[str, ...]:
        """Names of the attached modules, in the order they were attached."""
        with self._lock:
            return tuple(self._attached)

    def is_attached(self, module_id: str) -> bool:
        """Whether the initializer of ``module_id`` has completed."""
        with self._lock:
            return module_id in self._attached

    # ----- Resolution -----

    def resolve(self, module_id: str) -> list[str]:
        """Return the dependency closure of a registered module, itself last.

        Raises:
            ModuleNotFoundError: If the module or one of its dependencies is
                not registered.
            CircularDependencyError: If the closure contains a cycle.
        """
        return list(self._dependencies.resolve(module_id))

    # ----- Attaching -----

    def attach(self, *args: Any, callback: AttachCallback | None = None) -> asyncio.Task[None] | None:
        """Attach modules and report the outcome to a callback.

        Accepts ``attach("a", "b", cb)`` or ``attach(["a", "b"], cb)``; the
        callback may also be passed by keyword and defaults to a no-op. It
        is called as ``callback(error, context)`` with ``error`` None on
        success or the ModuleError that ended the call.

        Without a running event loop the call completes before returning,
        together with any ``attach`` issued by initializers meanwhile.
        Inside a running loop it is scheduled and the Task is returned; the
        Attacher keeps a reference to it until it is done.
        """
        names, positional_callback = _parse_attach_args(args)
        if callback is None:
            callback = positional_callback or _noop_callback
        elif positional_callback is not None:
            raise InvalidInputError(message="Callback given both positionally and by keyword")

        coro = self._attach_with_callback(names, callback)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            asyncio.run(self._run_settled(coro))
            return None

        task = loop.create_task(coro)
        with self._tasks_lock:
            self._tasks.add(task)
        task.add_done_callback(self._forget_task)
        return task

    async def settle(self) -> None:
        """Wait until every ``attach`` task started on this loop has finished.

        Tasks scheduled while waiting, such as requests made by
        initializers, are waited for as well.
        """
        loop = asyncio.get_running_loop()
        while True:
            with self._tasks_lock:
                pending = [task for task in self._tasks if task.get_loop() is loop and not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    async def _run_settled(self, coro: Awaitable[None]) -> None:
        await coro
        await self.settle()

    def _forget_task(self, task: asyncio.Task[None]) -> None:
        with self._tasks_lock:
            self._tasks.discard(task)

    async def _attach_with_callback(self, names: list[str], callback: AttachCallback) -> None:
        try:
            context = await self._attach_checked(names)
        except ModuleError as e:
            _logger.debug("Attaching %s failed: %s", names, e)
            callback(e, self._context)
            return
        callback(None, context)

    async def attach_async(self, *names: str) -> AttachContext:
        """Attach modules, fetching whatever is missing first.

        Returns:
            The attach context once every requested module and its whole
            dependency closure are attached.

        Raises:
            ModuleFetchError: If the loader failed to obtain a module.
            ModuleNotFoundError: If a dependency is unknown at resolution time.
            CircularDependencyError: If a dependency cycle is detected.
            ModuleAttachError: If an initializer failed.
        """
        _check_names(names)
        return await self._attach_checked(names)

    async def _attach_checked(self, names: Sequence[str]) -> AttachContext:
        pending = [name for name in _unique(names) if not self.is_attached(name)]
        if not pending:
            return self._context

        missing = self._missing(pending)
        rounds = 0
        while missing:
            rounds += 1
            _logger.debug("Fetch round %d for %s: %s", rounds, pending, missing)
            await self._fetch(missing)
            await asyncio.sleep(0)
            missing = self._missing(pending)

        self._attach_registered(pending)
        return self._context

    def _missing(self, names: Sequence[str]) -> list[str]:
        """Unregistered names reachable from ``names`` through registered modules."""
        missing: list[str] = []
        seen: set[str] = set()
        queue = deque(names)
        while queue:
            name = queue.popleft()
            if name in seen:
                continue
            seen.add(name)
            if self.is_attached(name):
                continue
            descriptor = self._registry.get(name)
            if descriptor is None:
                missing.append(name)
                continue
            queue.extend(descriptor.requires)
        return missing

    async def _fetch(self, names: list[str]) -> None:
        """Have the loader register ``names``, sharing fetches already in flight."""
        if self._loader is None:
            raise ModuleFetchError(module_ids=names, cause=ModuleNotFoundError(module_id=names[0]))

        loop = asyncio.get_running_loop()
        own: list[str] = []
        waiting: dict[int, asyncio.Future[BaseException | None]] = {}
        for name in names:
            future = self._inflight.get(name)
            if future is not None and not future.done() and future.get_loop() is loop:
                waiting[id(future)] = future
            else:
                own.append(name)

        if own:
            future = loop.create_future()
            for name in own:
                self._inflight[name] = future
            error: ModuleFetchError | None = None
            try:
                await self._loader.fetch(own, self._registry)
            except ModuleFetchError as e:
                error = e
            except Exception as e:
                error = ModuleFetchError(module_ids=own, cause=e)
            finally:
                for name in own:
                    if self._inflight.get(name) is future:
                        del self._inflight[name]
                if not future.done():
                    future.set_result(error)
            if error is not None:
                raise error from error.cause

        if waiting:
            for result in await asyncio.gather(*waiting.values()):
                if result is not None:
                    raise ModuleFetchError(module_ids=names, cause=result) from result

        unresolved = [name for name in names if not self._registry.has(name)]
        if unresolved:
            raise ModuleFetchError(
                module_ids=unresolved,
                cause=ModuleNotFoundError(module_id=unresolved[0]),
            )

    def _attach_registered(self, names: Sequence[str]) -> None:
        """Resolve and run initializers of registered modules, in closure order."""
        with self._lock:
            closure: dict[str, None] = {}
            for name in names:
                if name in self._attached:
                    continue
                for dependency in self._dependencies.resolve(name):
                    closure.setdefault(dependency, None)

            for name in closure:
                if name in self._attached:
                    continue
                self._initialize(self._registry.lookup(name))
                self._attached[name] = None

    def _initialize(self, descriptor: ModuleDescriptor) -> None:
        """Run one initializer, wrapping any failure in ModuleAttachError."""
        module_id = descriptor.module_id
        _logger.debug("Attaching module '%s' ...", module_id)
        try:
            result = descriptor.initializer(self._context, self._config.module_config(module_id))
        except Exception as e:
            _logger.debug("Initializer of module '%s' raised: %r", module_id, e)
            raise ModuleAttachError(module_id=module_id, cause=e) from e

        if isinstance(result, BaseException):
            raise ModuleAttachError(module_id=module_id, cause=result) from result
        if inspect.isawaitable(result):
            close = getattr(result, "close", None)
            if close is not None:
                close()
            cause = TypeError(f"Initializer of module '{module_id}' returned an awaitable; it must be synchronous")
            raise ModuleAttachError(module_id=module_id, cause=cause)
        _logger.debug("Module '%s' has been attached", module_id)


def _parse_attach_args(args: tuple[Any, ...]) -> tuple[list[str], AttachCallback | None]:
    """Split ``attach`` positional arguments into names and a trailing callback."""
    params = list(args)
    callback = None
    if params and callable(params[-1]):
        callback = params.pop()

    if params and isinstance(params[0], (list, tuple)):
        if len(params) > 1:
            raise InvalidInputError(message="Pass module names either as one list or as separate arguments")
        params = list(params[0])

    _check_names(params)
    return params, callback


def _check_names(names: Iterable[Any]) -> None:
    for name in names:
        if not isinstance(name, str) or not name:
            raise InvalidInputError(message=f"Module names must be non-empty strings, got {name!r}")
