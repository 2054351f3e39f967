"""
Input and payload validation for study folder storage.

This module provides the safe-object check applied to every structured value
crossing from storage into this process, and the argument checks applied to
caller input before any network I/O.
"""

import re
from collections.abc import Callable, Mapping
from typing import Any

from ..exceptions import InvalidArgumentError, UnsafeObjectError


# Configuration and Constants


class ValidationConfig:
    """Configuration for validation parameters."""

    # Keys that alter object behaviour in the runtimes consuming these payloads
    FORBIDDEN_KEYS = frozenset({"__proto__", "constructor", "prototype"})
    DUNDER_PATTERN = re.compile(r"^__.+__$")

    MAX_NESTING_DEPTH = 256
    MAX_FILE_NAME_LENGTH = 1024


# Standardized Error Messages


class ErrorMessages:
    """Standardized error messages for consistent caller experience."""

    UNSAFE_KEY = "Unsafe key {key!r} found at {path}"
    TOO_DEEP = "Object nesting exceeds {depth} levels at {path}"
    NOT_CALLABLE = "Expected {field} to be a function, got: {type}"
    NAME_REQUIRED = "{field}[string] required"
    NAME_INVALID = "{field} {name!r} is not a valid file name"


# Safe Object Validation


class ObjectValidator:
    """Rejects parsed objects that carry prototype-pollution style keys."""

    @staticmethod
    def is_unsafe_key(key: Any) -> bool:
        if not isinstance(key, str):
            return False
        return key in ValidationConfig.FORBIDDEN_KEYS or bool(ValidationConfig.DUNDER_PATTERN.match(key))

    @staticmethod
    def expect_safe_object(value: Any) -> Any:
        """
        Validate a decoded value and return it unchanged.

        Mappings and sequences are walked recursively; scalars are always safe.

        Raises:
            UnsafeObjectError: If any key anywhere in the value is disallowed
        """
        ObjectValidator._walk(value, "$", 0)
        return value

    @staticmethod
    def _walk(value: Any, path: str, depth: int) -> None:
        if depth > ValidationConfig.MAX_NESTING_DEPTH:
            raise UnsafeObjectError(
                ErrorMessages.TOO_DEEP.format(depth=ValidationConfig.MAX_NESTING_DEPTH, path=path),
                error_code="TOO_DEEP",
            )

        if isinstance(value, Mapping):
            for key, item in value.items():
                if ObjectValidator.is_unsafe_key(key):
                    raise UnsafeObjectError(
                        ErrorMessages.UNSAFE_KEY.format(key=key, path=path),
                        error_code="UNSAFE_KEY",
                        details={"key": key, "path": path},
                    )
                ObjectValidator._walk(item, f"{path}.{key}", depth + 1)
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                ObjectValidator._walk(item, f"{path}[{index}]", depth + 1)


def expect_safe_object(value: Any) -> Any:
    """Module-level shortcut for :meth:`ObjectValidator.expect_safe_object`."""
    return ObjectValidator.expect_safe_object(value)


# Argument Validation


class ArgumentValidator:
    """Validates caller-supplied arguments before any I/O happens."""

    @staticmethod
    def require_callable(value: Any, field: str, optional: bool = False) -> Callable | None:
        if value is None and optional:
            return None
        if not callable(value):
            raise InvalidArgumentError(
                ErrorMessages.NOT_CALLABLE.format(field=field, type=type(value).__name__),
                error_code="NOT_CALLABLE",
                details={"field": field},
            )
        return value

    @staticmethod
    def require_file_name(name: Any, field: str = "name") -> str:
        """
        Validate a file name relative to a folder.

        Raises:
            InvalidArgumentError: If the name is not a non-empty string or
                would escape the folder namespace
        """
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(ErrorMessages.NAME_REQUIRED.format(field=field), error_code="NAME_REQUIRED")

        if (
            len(name) > ValidationConfig.MAX_FILE_NAME_LENGTH
            or name.startswith("/")
            or ".." in name.split("/")
            or re.search(r"[\x00-\x1F\x7F]", name)
        ):
            raise InvalidArgumentError(
                ErrorMessages.NAME_INVALID.format(field=field, name=name),
                error_code="NAME_INVALID",
            )

        return name


__all__ = [
    "ValidationConfig",
    "ErrorMessages",
    "ObjectValidator",
    "ArgumentValidator",
    "expect_safe_object",
]
