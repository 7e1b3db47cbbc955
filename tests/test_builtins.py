"""Tests for the built-in condotti.logging module."""

from __future__ import annotations

import logging
from typing import Iterator

import pytest

from condotti.attacher import Attacher
from condotti.builtins import LOGGING_MODULE, register_builtins
from condotti.errors import ConfigError, ModuleAttachError
from condotti.registry import Registry


@pytest.fixture(autouse=True)
def restore_levels() -> Iterator[None]:
    """Keep logger levels from leaking into other tests."""
    names = ("condotti", "condotti.test")
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


class TestRegisterBuiltins:
    def test_idempotent(self, registry: Registry) -> None:
        """Registering the built-ins twice is harmless."""
        register_builtins(registry)
        register_builtins(registry)
        assert registry.list() == [LOGGING_MODULE]
        assert registry.get(LOGGING_MODULE).metadata["description"]


class TestLoggingModule:
    @pytest.mark.asyncio
    async def test_level_setting(self, registry: Registry) -> None:
        """The level setting applies to the condotti logger."""
        attacher = Attacher(registry=registry, config={"modules": {LOGGING_MODULE: {"level": "debug"}}})
        await attacher.attach_async(LOGGING_MODULE)
        assert logging.getLogger("condotti").level == logging.DEBUG

    @pytest.mark.asyncio
    async def test_publishes_helpers(self, registry: Registry) -> None:
        """get_logger and set_level are exported under 'logging'."""
        attacher = Attacher(registry=registry)
        await attacher.attach_async(LOGGING_MODULE)
        exported = attacher.context.namespace("logging", create=False)
        assert exported.get_logger("app").name == "condotti.app"
        exported.set_level(logging.ERROR)
        assert logging.getLogger("condotti").level == logging.ERROR

    @pytest.mark.asyncio
    async def test_dict_config(self, registry: Registry) -> None:
        """dict_config is handed to logging.config.dictConfig."""
        settings = {
            "dict_config": {
                "version": 1,
                "incremental": True,
                "loggers": {"condotti.test": {"level": "WARNING"}},
            }
        }
        attacher = Attacher(registry=registry, config={"modules": {LOGGING_MODULE: settings}})
        await attacher.attach_async(LOGGING_MODULE)
        assert logging.getLogger("condotti.test").level == logging.WARNING

    @pytest.mark.asyncio
    async def test_dependent_module_sees_logging(self, registry: Registry) -> None:
        """Modules requiring condotti.logging can use its exports."""
        names: list[str] = []

        def init(context: object, config: object) -> None:
            names.append(context.namespace("logging").get_logger("web").name)  # type: ignore[attr-defined]

        registry.add("web", init, requires=[LOGGING_MODULE])
        attacher = Attacher(registry=registry)
        await attacher.attach_async("web")
        assert names == ["condotti.web"]

    @pytest.mark.asyncio
    async def test_invalid_settings(self, registry: Registry) -> None:
        """Non-mapping settings fail the attach with a ConfigError cause."""
        attacher = Attacher(registry=registry, config={"modules": {LOGGING_MODULE: "loud"}})
        with pytest.raises(ModuleAttachError) as exc_info:
            await attacher.attach_async(LOGGING_MODULE)
        assert isinstance(exc_info.value.cause, ConfigError)
