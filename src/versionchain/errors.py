"""Version chain error taxonomy.

This module defines the error hierarchy for the version chain,
providing structured error handling with specific error codes
and context information.

All errors here are configuration or programmer errors: they surface at
startup or in tests, are raised synchronously to the caller, and are
never retried.
"""

from __future__ import annotations

from typing import Any


class VersionChainError(Exception):
    """Base exception for all version chain errors.

    Attributes:
        code: Error code following the versionchain:<area>/<reason> pattern
        message: Human-readable error message
        details: Optional additional error context
    """

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to ``{code, message, details}`` dict."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class UnknownVersionError(VersionChainError):
    """Raised when a referenced version tag is not registered.

    Attributes:
        version: The version tag that could not be found
    """

    def __init__(self, version: str, details: dict[str, Any] | None = None) -> None:
        message = f"Unknown API version: {version}"
        super().__init__(
            code="versionchain:version/unknown",
            message=message,
            details={"version": version, **(details or {})},
        )
        self.version = version


class DuplicateVersionError(VersionChainError):
    """Raised when registering a version tag that already exists."""

    def __init__(self, version: str, details: dict[str, Any] | None = None) -> None:
        message = f"API version already registered: {version}"
        super().__init__(
            code="versionchain:version/duplicate",
            message=message,
            details={"version": version, **(details or {})},
        )
        self.version = version


class DuplicateOverrideError(VersionChainError):
    """Raised when a version overrides the same operation twice.

    Attributes:
        version: The version layer holding the existing override
        operation: The operation name that was overridden twice
    """

    def __init__(
        self, version: str, operation: str, details: dict[str, Any] | None = None
    ) -> None:
        message = f"Operation '{operation}' is already overridden in version {version}"
        super().__init__(
            code="versionchain:operation/duplicate_override",
            message=message,
            details={"version": version, "operation": operation, **(details or {})},
        )
        self.version = version
        self.operation = operation


class UnresolvedOperationError(VersionChainError):
    """Raised when no layer of the chain implements an operation.

    Every operation must be defined at least at the root version; reaching
    the root without a match indicates a configuration defect.

    Attributes:
        version: The version resolution started from
        operation: The operation name that could not be resolved
    """

    def __init__(
        self, version: str, operation: str, details: dict[str, Any] | None = None
    ) -> None:
        message = f"Operation '{operation}' is not implemented by {version} or any predecessor"
        super().__init__(
            code="versionchain:operation/unresolved",
            message=message,
            details={"version": version, "operation": operation, **(details or {})},
        )
        self.version = version
        self.operation = operation


class InvalidVersionTagError(VersionChainError):
    """Raised when a value cannot be parsed as a version tag.

    Attributes:
        value: The rejected raw value
        reason: Why the value was rejected
    """

    def __init__(self, value: str, reason: str, details: dict[str, Any] | None = None) -> None:
        message = f"Invalid version tag {value!r}: {reason}"
        super().__init__(
            code="versionchain:version/invalid_tag",
            message=message,
            details={"value": value, "reason": reason, **(details or {})},
        )
        self.value = value
        self.reason = reason


class InvalidChainError(VersionChainError):
    """Raised when a registration would break the linear version ladder.

    This covers a second root, a successor that does not order after its
    predecessor, and a second successor of the same version.
    """

    def __init__(self, version: str, reason: str, details: dict[str, Any] | None = None) -> None:
        message = f"Cannot register version {version}: {reason}"
        super().__init__(
            code="versionchain:chain/invalid",
            message=message,
            details={"version": version, "reason": reason, **(details or {})},
        )
        self.version = version
        self.reason = reason


class ChainFrozenError(VersionChainError):
    """Raised when mutating a resolver after freeze() was called."""

    def __init__(self, operation: str, details: dict[str, Any] | None = None) -> None:
        message = f"Version chain is frozen; cannot {operation}"
        super().__init__(
            code="versionchain:chain/frozen",
            message=message,
            details={"operation": operation, **(details or {})},
        )
        self.operation = operation
