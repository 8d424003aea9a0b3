from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class NamingException(Exception):
    """Base class for naming and discovery exceptions with a canonical error shape."""

    code: int
    message: str
    data: Any | None = None
    cause: Exception | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", (self.message,))
        if self.cause is not None:
            object.__setattr__(self, "__cause__", self.cause)
            object.__setattr__(self, "__suppress_context__", True)

    def to_error_dict(self) -> dict[str, Any]:
        """Return a dict with the code, message and data of the error."""
        return {"code": self.code, "message": self.message, "data": self.data}


@dataclass(frozen=True)
class RegistryConfigurationError(NamingException):
    """Raised when a resolver builder is registered twice or is missing.

    This signals a programming mistake at startup and is not meant to be caught.
    """

    code: int = 1000
    message: str = "Invalid resolver registration"


@dataclass(frozen=True)
class InvalidTargetError(NamingException):
    """Raised when a target or URI cannot be parsed."""

    code: int = 2000
    message: str = "Invalid target"


@dataclass(frozen=True)
class ResolverNotFoundError(NamingException):
    """Raised when no builder is registered for the URI scheme."""

    code: int = 4000
    message: str = "Resolver not found"


@dataclass(frozen=True)
class ServiceNotFoundError(NamingException):
    """Raised when the discovery agent has no instance of the service."""

    code: int = 4002
    message: str = "Service does not exist"


@dataclass(frozen=True)
class AlreadyRegisteredError(NamingException):
    """Raised when an instance ID is already present in the catalogue."""

    code: int = 4010
    message: str = "Service already registered"


@dataclass(frozen=True)
class WatcherClosedError(NamingException):
    """Raised by ``next()`` once a watcher has been closed."""

    code: int = 4020
    message: str = "Watcher closed"


@dataclass(frozen=True)
class UnsupportedOperationError(NamingException):
    """Raised when an update carries an operation the transport cannot map."""

    code: int = 5001
    message: str = "Unsupported naming operation"


@dataclass(frozen=True)
class ScopeCancelledError(NamingException):
    """Raised when a scope ends while an operation is guarded by it."""

    code: int = 5003
    message: str = "Scope cancelled"


@dataclass(frozen=True)
class ConfigError(NamingException):
    """Raised when configuration loading fails."""

    code: int = 6000
    message: str = "Configuration error"
