"""Custom exception hierarchy for TextSynth client errors."""

from __future__ import annotations

from typing import Any, Optional


class SynthTextError(Exception):
    """Base exception for all client errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error code for programmatic handling
        details: Additional context about the error
    """

    def __init__(
        self,
        message: str,
        error_code: str = "SYNTHTEXT_ERROR",
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for JSON serialization."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(SynthTextError):
    """Raised when a parameter violates its bounds before any request is sent."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        if field and not details:
            details = {"field": field}
        elif field and details:
            details["field"] = field

        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=details,
        )
        self.field = field


class RequestConsumedError(ValidationError):
    """Raised when a completion request is executed a second time."""

    def __init__(self, message: str = "completion request was already executed") -> None:
        super().__init__(message=message, field="request")


class ConfigError(SynthTextError):
    """Raised when configuration cannot be read, parsed or written."""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        if path and not details:
            details = {"path": path}
        elif path and details:
            details["path"] = path

        super().__init__(
            message=message,
            error_code="CONFIG_ERROR",
            details=details,
        )


class ExecutionError(SynthTextError):
    """Base for failures while a request is being executed.

    ``stage`` names the layer that failed (``connect``, ``parse`` or
    ``semantic``) and ``retryable`` tells the caller whether re-issuing the
    whole request can help.
    """

    stage = "execute"
    retryable = False

    def __init__(
        self,
        message: str,
        error_code: str = "EXECUTION_ERROR",
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        details = dict(details or {})
        details["stage"] = self.stage
        if cause is not None:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )
        self.__cause__ = cause


class TransportError(ExecutionError):
    """Raised when the API could not be reached or the connection broke."""

    stage = "connect"
    retryable = True

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        details = {"url": url} if url else None
        super().__init__(
            message=message,
            error_code="TRANSPORT_ERROR",
            details=details,
            cause=cause,
        )
        self.url = url


class ApiError(ExecutionError):
    """Raised when the server answers with an error payload."""

    stage = "semantic"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = dict(details or {})
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            message=message,
            error_code="API_ERROR",
            details=details,
        )
        self.status_code = status_code


class DecodeError(ExecutionError):
    """Raised when a successful payload does not have the expected shape."""

    stage = "parse"

    def __init__(
        self,
        message: str,
        payload: Optional[str | bytes] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        details = None
        if payload is not None:
            if isinstance(payload, bytes):
                payload = payload.decode("utf-8", errors="replace")
            details = {"payload": payload[:500]}
        super().__init__(
            message=message,
            error_code="DECODE_ERROR",
            details=details,
            cause=cause,
        )
