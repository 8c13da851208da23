"""Utility modules for the client."""

from synthtext.utils.exceptions import (
    ApiError,
    ConfigError,
    DecodeError,
    ExecutionError,
    RequestConsumedError,
    SynthTextError,
    TransportError,
    ValidationError,
)

__all__ = [
    "ApiError",
    "ConfigError",
    "DecodeError",
    "ExecutionError",
    "RequestConsumedError",
    "SynthTextError",
    "TransportError",
    "ValidationError",
]
