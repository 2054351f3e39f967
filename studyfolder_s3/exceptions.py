"""
Error taxonomy for study folder storage.

Every error carries a :class:`StorageErrorKind` so callers can tell a missing
object from a transport failure or a policy rejection without parsing
messages.
"""

from enum import Enum
from typing import Any


class StorageErrorKind(str, Enum):
    """Coarse classification carried by every storage error."""

    INVALID_ARGUMENT = "invalid_argument"
    UNSAFE_OBJECT = "unsafe_object"
    TRANSPORT = "transport"
    NOT_FOUND = "not_found"
    UNSUPPORTED = "unsupported"
    POLICY = "policy"


class StorageError(Exception):
    """Base exception for storage operations."""

    kind: StorageErrorKind = StorageErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}


class InvalidArgumentError(StorageError):
    """Caller supplied a malformed argument; raised before any I/O."""

    kind = StorageErrorKind.INVALID_ARGUMENT


class UnsafeObjectError(StorageError):
    """A parsed object contains a disallowed key."""

    kind = StorageErrorKind.UNSAFE_OBJECT


class StorageTransportError(StorageError):
    """The HTTP exchange failed or returned a non-success status."""

    kind = StorageErrorKind.TRANSPORT


class NotFoundError(StorageTransportError):
    """The requested object does not exist."""

    kind = StorageErrorKind.NOT_FOUND


class StorageListError(StorageTransportError):
    """Listing objects failed."""

    pass


class UnsupportedOperationError(StorageError):
    """The requested operation has no implementation (e.g. unknown file extension)."""

    kind = StorageErrorKind.UNSUPPORTED


class PolicyViolationError(StorageError):
    """An upload was rejected by the pre-upload policy."""

    kind = StorageErrorKind.POLICY


