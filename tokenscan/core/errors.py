"""Scan error taxonomy.

Every failure that can leave the scan pipeline is one of these. Each carries
a stable ``code`` and a coarse ``status`` (validation / timeout / internal)
that callers map onto a response; raw exception text never leaves the
service through ``public_message``.
"""

from __future__ import annotations

from typing import Any, Optional

STATUS_VALIDATION = "validation"
STATUS_TIMEOUT = "timeout"
STATUS_INTERNAL = "internal"


class ScanError(Exception):
    """Base exception for all scan errors."""

    code = "INTERNAL_ERROR"
    status = STATUS_INTERNAL
    public_message = "Internal error while scanning token"

    def __init__(
        self,
        message: Optional[str] = None,
        request_id: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message
        self.request_id = request_id
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Caller-safe representation."""
        return {
            "error": self.public_message,
            "code": self.code,
            "status": self.status,
            "request_id": self.request_id,
        }

    def __str__(self) -> str:
        parts = [f"{self.__class__.__name__}: {self.message}"]
        if self.request_id:
            parts.append(f"[request_id={self.request_id}]")
        return " ".join(parts)


class ValidationError(ScanError):
    """Malformed input; no provider is called."""

    code = "VALIDATION_ERROR"
    status = STATUS_VALIDATION
    public_message = "Invalid scan request"

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        # Validation messages describe the caller's own input and are safe to echo.
        data["error"] = self.message
        return data


class UnsupportedChainError(ValidationError):
    """Chain id normalized to something no descriptor exists for."""

    code = "UNSUPPORTED_CHAIN"
    public_message = "Unsupported chain"


class ProviderError(ScanError):
    """Unexpected provider fault. Adapters turn this into an Error result."""

    code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.provider = provider
        self.status_code = status_code


class PersistenceError(ScanError):
    """A single table write failed. Non-fatal to sibling writes."""

    code = "PERSISTENCE_ERROR"

    def __init__(self, message: str, table: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.table = table


class ScanTimeoutError(ScanError):
    """The end-to-end scan deadline expired."""

    code = "TIMEOUT"
    status = STATUS_TIMEOUT
    public_message = "Token scan timed out"


class NoDataError(ScanError):
    """Not a single provider returned data for the token."""

    code = "NO_DATA"
    public_message = "No data could be fetched for this token"


class InternalError(ScanError):
    """Anything unexpected, converted at the guard boundary."""

    code = "INTERNAL_ERROR"
