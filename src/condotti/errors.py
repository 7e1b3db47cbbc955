"""Error hierarchy for the condotti framework."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

__all__ = [
    "ModuleError",
    "ConfigNotFoundError",
    "ConfigError",
    "InvalidInputError",
    "DuplicateModuleError",
    "ModuleNotFoundError",
    "CircularDependencyError",
    "ModuleFetchError",
    "ModuleAttachError",
    "ModuleLoadError",
    "NamespaceNotFoundError",
    "ErrorCodes",
]


class ModuleError(Exception):
    """Base error for all condotti framework errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict[str, Any] = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ConfigNotFoundError(ModuleError):
    """Raised when a configuration file cannot be found."""

    def __init__(self, config_path: str, **kwargs: Any) -> None:
        super().__init__(
            code="CONFIG_NOT_FOUND",
            message=f"Configuration file not found: {config_path}",
            details={"config_path": config_path},
            **kwargs,
        )


class ConfigError(ModuleError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="CONFIG_INVALID", message=message, **kwargs)


class InvalidInputError(ModuleError):
    """Raised for invalid input."""

    def __init__(self, message: str = "Invalid input", **kwargs: Any) -> None:
        super().__init__(code="GENERAL_INVALID_INPUT", message=message, **kwargs)


class DuplicateModuleError(ModuleError):
    """Raised when a module name is registered a second time."""

    def __init__(self, module_id: str, **kwargs: Any) -> None:
        super().__init__(
            code="DUPLICATE_MODULE",
            message=f"Module already registered: {module_id}",
            details={"module_id": module_id},
            **kwargs,
        )

    @property
    def module_id(self) -> str:
        """The module name that was registered twice."""
        return self.details["module_id"]


class ModuleNotFoundError(ModuleError):
    """Raised when a module cannot be found."""

    def __init__(self, module_id: str, paths: list[str] | None = None, **kwargs: Any) -> None:
        message = f"Module not found: {module_id}"
        if paths:
            message += f" (searched: {', '.join(paths)})"
        super().__init__(
            code="MODULE_NOT_FOUND",
            message=message,
            details={"module_id": module_id, "paths": list(paths or [])},
            **kwargs,
        )

    @property
    def module_id(self) -> str:
        """The module name that could not be found."""
        return self.details["module_id"]


class CircularDependencyError(ModuleError):
    """Raised when a cycle is detected while calculating a dependency closure.

    ``module_id`` is the name whose closure was requested and ``dependency``
    is the node that closed the cycle. The two are not necessarily adjacent.
    """

    def __init__(self, module_id: str, dependency: str, **kwargs: Any) -> None:
        super().__init__(
            code="CIRCULAR_DEPENDENCY",
            message=(
                f"Circular dependency on module '{dependency}' detected "
                f"when calculating dependencies of '{module_id}'"
            ),
            details={"module_id": module_id, "dependency": dependency},
            **kwargs,
        )

    @property
    def module_id(self) -> str:
        """The root name whose closure was being calculated."""
        return self.details["module_id"]

    @property
    def dependency(self) -> str:
        """The node on which the cycle was detected."""
        return self.details["dependency"]


class ModuleFetchError(ModuleError):
    """Raised when the loader fails to obtain one or more modules."""

    def __init__(self, module_ids: list[str], cause: BaseException | None = None, **kwargs: Any) -> None:
        reason = f": {cause}" if cause is not None else ""
        super().__init__(
            code="MODULE_FETCH_ERROR",
            message=f"Failed to fetch modules {', '.join(module_ids)}{reason}",
            details={"module_ids": list(module_ids)},
            cause=cause,
            **kwargs,
        )

    @property
    def module_ids(self) -> list[str]:
        """The names requested from the loader."""
        return self.details["module_ids"]


class ModuleAttachError(ModuleError):
    """Raised when a module initializer raises or returns an error."""

    def __init__(self, module_id: str, cause: BaseException | None = None, **kwargs: Any) -> None:
        reason = f": {cause}" if cause is not None else ""
        super().__init__(
            code="MODULE_ATTACH_ERROR",
            message=f"Attaching module '{module_id}' failed{reason}",
            details={"module_id": module_id},
            cause=cause,
            **kwargs,
        )

    @property
    def module_id(self) -> str:
        """The module whose initializer failed."""
        return self.details["module_id"]


class ModuleLoadError(ModuleError):
    """Raised when a module file cannot be read or executed."""

    def __init__(self, module_id: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            code="MODULE_LOAD_ERROR",
            message=f"Failed to load module '{module_id}': {reason}",
            details={"module_id": module_id, "reason": reason},
            **kwargs,
        )


class NamespaceNotFoundError(ModuleError):
    """Raised when a context namespace is looked up without creating it."""

    def __init__(self, namespace: str, **kwargs: Any) -> None:
        super().__init__(
            code="NAMESPACE_NOT_FOUND",
            message=f"Namespace not found: {namespace}",
            details={"namespace": namespace},
            **kwargs,
        )


class ErrorCodes:
    """All framework error codes as constants.

    Example:
        if error.code == ErrorCodes.CIRCULAR_DEPENDENCY:
            report_cycle(error.details)
    """

    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    GENERAL_INVALID_INPUT = "GENERAL_INVALID_INPUT"
    DUPLICATE_MODULE = "DUPLICATE_MODULE"
    MODULE_NOT_FOUND = "MODULE_NOT_FOUND"
    CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"
    MODULE_FETCH_ERROR = "MODULE_FETCH_ERROR"
    MODULE_ATTACH_ERROR = "MODULE_ATTACH_ERROR"
    MODULE_LOAD_ERROR = "MODULE_LOAD_ERROR"
    NAMESPACE_NOT_FOUND = "NAMESPACE_NOT_FOUND"

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("ErrorCodes is immutable")
