"""
Typed error taxonomy for the Billow sync layer.

Every failure that can reach a page is one of these classes, so callers
catch by type and render by ``kind`` instead of parsing messages:

    SyncError (base)
    +-- NetworkError     timeout or connection failure      retryable
    +-- AuthError        missing or rejected identity       not retryable
    +-- ServerError      non-2xx response                   retryable
    +-- DecodeError      malformed or mis-shaped payload    not retryable
    +-- ValidationError  local form validation failure      never sent

Errors are also data: pages keep them on entries and coordinators and
render them through ``to_dict()``.
"""

from enum import Enum
from typing import Any, Mapping


class ErrorKind(str, Enum):
    """Machine-readable error classification."""

    NETWORK = "NetworkError"
    AUTH = "AuthError"
    SERVER = "ServerError"
    DECODE = "DecodeError"
    VALIDATION = "ValidationError"


class SyncError(Exception):
    """
    Base class for classified sync-layer failures.

    Attributes:
        kind: Classification of the failure.
        message: Human readable message suitable for display.
        retryable: Whether retrying the same request may succeed.
    """

    kind: ErrorKind
    retryable: bool = False

    def __init__(self, message: str, *, retryable: bool | None = None) -> None:
        super().__init__(message)
        self.message = message
        if retryable is not None:
            self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the structured error shape rendered by pages."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, retryable={self.retryable})"


class NetworkError(SyncError):
    """Timeout or connection failure."""

    kind = ErrorKind.NETWORK
    retryable = True


class AuthError(SyncError):
    """Missing or invalid identity; needs re-authentication."""

    kind = ErrorKind.AUTH
    retryable = False


class ServerError(SyncError):
    """The backend answered with a non-2xx status."""

    kind = ErrorKind.SERVER
    retryable = True

    def __init__(
        self, message: str, *, status_code: int, retryable: bool | None = None
    ) -> None:
        super().__init__(message, retryable=retryable)
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        return data


class DecodeError(SyncError):
    """The payload could not be decoded into the expected shape."""

    kind = ErrorKind.DECODE
    retryable = False


class ValidationError(SyncError):
    """
    Local form validation failure.

    Attributes:
        field_errors: Mapping of field name to message.
    """

    kind = ErrorKind.VALIDATION
    retryable = False

    def __init__(self, field_errors: Mapping[str, str]) -> None:
        self.field_errors = dict(field_errors)
        fields = ", ".join(sorted(self.field_errors))
        super().__init__(f"Invalid fields: {fields}")

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["field_errors"] = dict(self.field_errors)
        return data
