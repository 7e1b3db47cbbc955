"""Registry types: ModuleDescriptor and ModuleMeta."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, field_validator

__all__ = [
    "Initializer",
    "ModuleDescriptor",
    "ModuleMeta",
]

Initializer = Callable[[Any, Any], Any]


@dataclass(frozen=True)
class ModuleDescriptor:
    """Registered record of a module.

    Attributes:
        module_id: Unique module name.
        initializer: Callable invoked as ``initializer(context, config)``.
        version: Free-form version string, informational only.
        requires: Direct dependencies, in declaration order.
        metadata: Opaque metadata supplied at registration.
    """

    module_id: str
    initializer: Initializer
    version: str = "0.0.1"
    requires: tuple[str, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # Accept any sequence but store an immutable tuple.
        object.__setattr__(self, "requires", tuple(self.requires))


class ModuleMeta(BaseModel):
    """Companion metadata for a module file (``<stem>_meta.yaml``)."""

    model_config = ConfigDict(extra="allow")

    requires: list[str] | None = None
    version: str | None = None
    description: str | None = None
    entry_point: str | None = None

    @field_validator("requires", mode="before")
    @classmethod
    def _normalize_requires(cls, value: Any) -> Any:
        """Accept ``module_id`` mappings alongside plain names."""
        if value is None or not isinstance(value, list):
            return value
        names = []
        for item in value:
            if isinstance(item, dict):
                item = item.get("module_id")
            names.append(item)
        return names
