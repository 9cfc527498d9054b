"""Exception hierarchy raised while provisioning application resources."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Union

PathLike = Union[str, Path]


class ProvisioningError(Exception):
    """Base class for every failure surfaced by the provisioner.

    ``resource_dir`` and ``operation`` are filled in by the orchestrator when
    the error bubbles out of a step, so callers can always tell which resource
    and which call failed.
    """

    error_code = "PROVISIONING"

    def __init__(
        self,
        message: str,
        *,
        resource_dir: Optional[PathLike] = None,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.resource_dir = str(resource_dir) if resource_dir is not None else None
        self.operation = operation
        self.details = dict(details or {})

    def add_context(
        self, *, resource_dir: Optional[PathLike] = None, operation: Optional[str] = None
    ) -> "ProvisioningError":
        """Fill in missing context without overwriting what is already known."""

        if self.resource_dir is None and resource_dir is not None:
            self.resource_dir = str(resource_dir)
        if self.operation is None and operation is not None:
            self.operation = operation
        return self

    def __str__(self) -> str:
        context = []
        if self.operation:
            context.append(f"operation={self.operation}")
        if self.resource_dir:
            context.append(f"resource={self.resource_dir}")
        suffix = f" ({', '.join(context)})" if context else ""
        return f"[{self.error_code}] {self.message}{suffix}"


class MissingConfigError(ProvisioningError):
    """The resource directory has no ``config.json``."""

    error_code = "MISSING_CONFIG"


class InvalidConfigError(ProvisioningError):
    """``config.json`` exists but is not a JSON object."""

    error_code = "INVALID_CONFIG"


class StateCorruptError(ProvisioningError):
    """A state file exists but cannot be parsed into a record."""

    error_code = "STATE_CORRUPT"

    def __init__(self, message: str, *, path: PathLike, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.path = str(path)
        self.details["path"] = self.path


class StateWriteError(ProvisioningError):
    """A state or policy file could not be written."""

    error_code = "STATE_WRITE"

    def __init__(self, message: str, *, path: PathLike, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.path = str(path)
        self.details["path"] = self.path


class FieldNotFoundError(ProvisioningError):
    """A state record does not contain the requested field."""

    error_code = "FIELD_NOT_FOUND"

    def __init__(self, message: str, *, field_path: str, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.field_path = field_path
        self.details["field_path"] = field_path


class DependencyUnresolvedError(ProvisioningError):
    """An identifier needed by a dependent step could not be resolved."""

    error_code = "DEPENDENCY_UNRESOLVED"


class RemoteCallError(ProvisioningError):
    """A provider call failed after botocore exhausted its retries."""

    error_code = "REMOTE_CALL"

    def __init__(
        self, message: str, *, provider_code: Optional[str] = None, **kwargs: Any
    ) -> None:
        super().__init__(message, **kwargs)
        self.provider_code = provider_code
        self.details["provider_code"] = provider_code


__all__ = [
    "DependencyUnresolvedError",
    "FieldNotFoundError",
    "InvalidConfigError",
    "MissingConfigError",
    "ProvisioningError",
    "RemoteCallError",
    "StateCorruptError",
    "StateWriteError",
]
