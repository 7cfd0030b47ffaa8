"""Exception hierarchy for the LendingPool indexer.

Every error carries a short machine-readable `code` and an optional
`details` mapping that is passed straight into structured log lines.
Event handlers never raise or catch these; they belong to the
decoding, delivery and configuration layers around them.
"""

from __future__ import annotations

from typing import Any


class LendindError(Exception):
    """Base class for all indexer errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(LendindError):
    """Raised when a config object holds an invalid value."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "CONFIGURATION_ERROR", details)


class RPCError(LendindError):
    """Raised when a JSON-RPC node answers with an error payload."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "RPC_ERROR", details)


class DecodeError(LendindError):
    """Raised when a matched log cannot be turned into a typed event."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "DECODE_ERROR", details)


class UnknownEventError(LendindError):
    """Raised when no handler is registered for an event name."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "UNKNOWN_EVENT", details)
