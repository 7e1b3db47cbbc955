"""Configuration-driven object factory with dependency injection.

Objects are described by name in a mapping::

    {
        "db": {"type": "myapp.db:Database", "params": {"0": {"value": "sqlite://"}}},
        "users": {"type": "myapp.users:UserStore", "params": {"db": {"reference": "db"}}},
    }

Numeric parameter keys are positional arguments, other keys are keyword
arguments. ``reference`` parameters name other objects, which are created
first; the creation order is calculated with the same closure algorithm the
attacher uses for modules.
"""

from __future__ import annotations

import importlib
import logging
import threading
from typing import Any, Mapping

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from condotti.errors import ConfigError
from condotti.registry.dependencies import topological_sort

logger = logging.getLogger(__name__)

__all__ = ["ObjectFactory", "ObjectSpec", "ParamSpec"]


class ParamSpec(BaseModel):
    """A constructor parameter: either a literal value or a reference."""

    model_config = ConfigDict(extra="forbid")

    reference: str | None = None
    value: Any = None

    @model_validator(mode="after")
    def _exactly_one(self) -> ParamSpec:
        has_value = "value" in self.model_fields_set
        if (self.reference is None) == (not has_value):
            raise ValueError("a parameter needs exactly one of 'reference' or 'value'")
        return self


class ObjectSpec(BaseModel):
    """How to build one named object."""

    model_config = ConfigDict(extra="forbid")

    type: str
    params: dict[str, ParamSpec | None] = Field(default_factory=dict)

    @field_validator("params", mode="before")
    @classmethod
    def _stringify_keys(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {str(k): v for k, v in value.items()}
        return value

    def positional(self) -> list[tuple[int, ParamSpec | None]]:
        """Positional parameters sorted by index."""
        return sorted((int(k), p) for k, p in self.params.items() if k.isdigit())

    def keywords(self) -> dict[str, ParamSpec | None]:
        """Keyword parameters in declaration order."""
        return {k: p for k, p in self.params.items() if not k.isdigit()}

    def references(self) -> list[str]:
        """Names of referenced objects, positional first."""
        params = [p for _, p in self.positional()] + list(self.keywords().values())
        return [p.reference for p in params if p is not None and p.reference is not None]


class ObjectFactory:
    """Create and cache objects described by configuration.

    The factory registers itself under ``factory_id`` so that specs may
    reference it like any other object.
    """

    def __init__(self, config: Mapping[str, Any] | None = None, factory_id: str = "object-factory") -> None:
        self._specs: dict[str, ObjectSpec] = {}
        self._cache: dict[str, Any] = {}
        self._id = factory_id
        self._lock = threading.RLock()

        if config:
            self.configure(config)
        self.set(self._id, self)

    def configure(self, config: Mapping[str, Any]) -> None:
        """Merge object specs into the current configuration.

        Objects already created are not affected.

        Raises:
            ConfigError: If a spec is malformed.
        """
        parsed: dict[str, ObjectSpec] = {}
        for name, raw in config.items():
            try:
                parsed[name] = ObjectSpec.model_validate(raw)
            except pydantic.ValidationError as e:
                raise ConfigError(f"Invalid specification for object '{name}': {e}") from e
        with self._lock:
            self._specs.update(parsed)

    def get(self, name: str) -> Any:
        """Return the object named ``name``, creating it and its references first.

        Returns None, with a warning, when ``name`` has no specification.

        Raises:
            CircularDependencyError: If references form a cycle.
            ConfigError: If a type cannot be located or is not callable.
        """
        with self._lock:
            if name in self._cache:
                return self._cache[name]
            if name not in self._specs:
                logger.warning("Configuration for object '%s' does not exist", name)
                return None

            for dependency in topological_sort(name, self._references):
                if dependency not in self._cache:
                    self._create(dependency)
            return self._cache.get(name)

    def set(self, name: str, obj: Any) -> Any:
        """Store ``obj`` under ``name`` and return the object it replaced, if any."""
        with self._lock:
            previous = self._cache.get(name)
            self._cache[name] = obj
            return previous

    def _references(self, name: str) -> list[str]:
        if name in self._cache:
            return []
        spec = self._specs.get(name)
        if spec is None:
            logger.warning("Configuration for object '%s' does not exist", name)
            return []
        return spec.references()

    def _create(self, name: str) -> None:
        """Build one object; its references are assumed to be cached already."""
        spec = self._specs.get(name)
        if spec is None:
            return

        factory = _locate(name, spec.type)
        args: list[Any] = []
        for index, param in spec.positional():
            while len(args) < index:
                args.append(None)
            args.append(self._param_value(param))
        kwargs = {key: self._param_value(param) for key, param in spec.keywords().items()}

        logger.debug("Creating object '%s' of type %s", name, spec.type)
        self._cache[name] = factory(*args, **kwargs)

    def _param_value(self, param: ParamSpec | None) -> Any:
        if param is None:
            return None
        if param.reference is not None:
            return self._cache.get(param.reference)
        return param.value


def _locate(name: str, type_path: str) -> Any:
    """Resolve ``"pkg.mod:Attr"`` or ``"pkg.mod.Attr"`` to a callable."""
    if ":" in type_path:
        module_path, _, attr_path = type_path.partition(":")
    else:
        module_path, _, attr_path = type_path.rpartition(".")
    if not module_path or not attr_path:
        raise ConfigError(f"Type '{type_path}' of object '{name}' must be 'module:attribute'")

    try:
        target: Any = importlib.import_module(module_path)
    except ImportError as e:
        raise ConfigError(f"Type '{type_path}' of object '{name}' cannot be imported: {e}") from e

    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as e:
            raise ConfigError(f"Type '{type_path}' of object '{name}' does not exist") from e

    if not callable(target):
        raise ConfigError(f"Type '{type_path}' of object '{name}' is not callable")
    return target
