"""Decoding of JSON bodies and stream records into typed payloads."""

from __future__ import annotations

import json
from typing import Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from synthtext.schemas.completion import ErrorPayload
from synthtext.utils.exceptions import ApiError, DecodeError, ExecutionError

_P = TypeVar("_P", bound=BaseModel)


def decode_payload(raw: bytes, model: Type[_P], status_code: Optional[int] = None) -> _P:
    """Decode ``raw`` into ``model``.

    Raises:
        DecodeError: If ``raw`` is not JSON or does not match ``model``
        ApiError: If ``raw`` is a well-formed error payload
    """
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise DecodeError(
            "failed to parse output from the textsynth api as json",
            payload=raw,
            cause=exc,
        ) from exc

    if _is_error_record(data):
        raise _api_error_from(data, raw, status_code)

    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        raise DecodeError(
            f"output from the textsynth api did not match the expected {model.__name__} shape",
            payload=raw,
            cause=exc,
        ) from exc


def decode_error_body(raw: bytes, status_code: int) -> ApiError:
    """Build an :class:`ApiError` for a non-success response.

    The server message is used verbatim when the body is an error payload;
    otherwise the raw body text is.
    """
    try:
        data = json.loads(raw)
    except ValueError:
        data = None
    if _is_error_record(data):
        error = _api_error_from(data, raw, status_code)
        if isinstance(error, ApiError):
            return error

    text = raw.decode("utf-8", errors="replace").strip()
    return ApiError(text or f"request failed with status {status_code}", status_code=status_code)


def _is_error_record(data: object) -> bool:
    return isinstance(data, dict) and data.get("error") is not None


def _api_error_from(data: dict, raw: bytes, status_code: Optional[int]) -> ExecutionError:
    """``ApiError`` for a well-formed error payload, ``DecodeError`` otherwise."""
    try:
        error = ErrorPayload.model_validate(data)
    except PydanticValidationError as exc:
        return DecodeError("malformed error payload from the textsynth api", payload=raw, cause=exc)
    return ApiError(error.error, status_code=error.status if error.status is not None else status_code)
