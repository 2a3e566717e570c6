"""Exception hierarchy for the JLC EDA silkscreen server.

Typed exceptions let tool handlers turn failures into structured error
responses instead of leaking tracebacks to the MCP client.
"""

from __future__ import annotations

from typing import Any


class JlcedaMcpError(Exception):
    """Base exception for all jlceda-mcp errors."""

    error_code: str = ""

    def __init__(self, message: str, error_code: str | None = None, **kwargs: Any):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.__dict__.update(kwargs)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to a serializable dict."""
        result: dict[str, Any] = {
            "error": self.message,
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
        }
        result.update(
            {k: v for k, v in self.__dict__.items() if k not in ["message", "error_code"]}
        )
        return result


class ValidationError(JlcedaMcpError):
    """Raised when tool input validation fails."""

    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: str | None = None, **kwargs: Any):
        super().__init__(message, "VALIDATION_ERROR", field=field, **kwargs)


class BackendError(JlcedaMcpError):
    """Raised when a host document operation fails."""

    error_code = "BACKEND_ERROR"

    def __init__(
        self,
        message: str,
        backend_name: str | None = None,
        error_code: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(
            message, error_code or "BACKEND_ERROR", backend_name=backend_name, **kwargs
        )


class BridgeError(BackendError):
    """Raised when the editor bridge rejects or fails a command."""

    error_code = "BRIDGE_ERROR"

    def __init__(self, message: str, action: str | None = None, **kwargs: Any):
        kwargs.setdefault("error_code", self.error_code)
        super().__init__(message, "bridge", action=action, **kwargs)


class BridgeTimeoutError(BridgeError):
    """Raised when a bridge command gets no result in time."""

    error_code = "BRIDGE_TIMEOUT"


class BridgeConnectionError(BridgeError):
    """Raised when the bridge gateway cannot be reached or drops the connection."""

    error_code = "BRIDGE_CONNECTION_ERROR"


class CapabilityMissingError(BackendError):
    """Raised when the host lacks a query or mutation the operation needs."""

    error_code = "CAPABILITY_MISSING"

    def __init__(self, message: str, capability: str | None = None, **kwargs: Any):
        backend_name = kwargs.pop("backend_name", None)
        super().__init__(
            message,
            backend_name,
            "CAPABILITY_MISSING",
            capability=capability,
            **kwargs,
        )


class SnapshotError(BackendError):
    """Raised when a board snapshot cannot be read or written."""

    error_code = "SNAPSHOT_ERROR"

    def __init__(self, message: str, path: str | None = None, **kwargs: Any):
        super().__init__(message, "snapshot", "SNAPSHOT_ERROR", path=path, **kwargs)


__all__ = [
    "BackendError",
    "BridgeConnectionError",
    "BridgeError",
    "BridgeTimeoutError",
    "CapabilityMissingError",
    "JlcedaMcpError",
    "SnapshotError",
    "ValidationError",
]
