"""Self-validating sampling parameters.

Every type here is a frozen pydantic model wrapping a single value. ``new``
takes an already-typed value, ``parse`` takes raw command-line text. Both
raise :class:`~synthtext.utils.exceptions.ValidationError` naming the field
and the offending input when a bound is violated.
"""

from __future__ import annotations

from typing import Any, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from synthtext.schemas.engine import EngineDefinition
from synthtext.utils.exceptions import ValidationError

TOP_K_MAX = 1000
STOP_MAX_ITEMS = 5

_M = TypeVar("_M", bound=BaseModel)


def _validated(model: Type[_M], field: str, message: str, **values: Any) -> _M:
    try:
        return model(**values)
    except PydanticValidationError as exc:
        raise ValidationError(message, field=field, details={"input": _printable(values)}) from exc


def _printable(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value if isinstance(value, (int, float, str)) else repr(value) for key, value in values.items()}


class TopK(BaseModel):
    """Number of most likely candidates the next token is sampled from."""

    model_config = ConfigDict(frozen=True)

    value: int = Field(..., ge=0, le=TOP_K_MAX, strict=True)

    @classmethod
    def new(cls, value: int) -> "TopK":
        return _validated(
            cls,
            "top_k",
            f"the number {value!r} wasn't in the required bound of 0..={TOP_K_MAX}",
            value=value,
        )

    @classmethod
    def parse(cls, text: str) -> "TopK":
        try:
            number = int(text)
        except ValueError as exc:
            raise ValidationError(f"the given string {text!r} wasn't a valid number", field="top_k") from exc
        return cls.new(number)


class TopP(BaseModel):
    """Cumulative probability threshold for nucleus sampling."""

    model_config = ConfigDict(frozen=True)

    value: float = Field(..., ge=0.0, le=1.0, allow_inf_nan=False)

    @classmethod
    def new(cls, value: float) -> "TopP":
        return _validated(
            cls,
            "top_p",
            f"the number {value!r} wasn't in the required bound of 0.0..=1.0",
            value=value,
        )

    @classmethod
    def parse(cls, text: str) -> "TopP":
        try:
            number = float(text)
        except ValueError as exc:
            raise ValidationError(f"the given string {text!r} wasn't a valid float", field="top_p") from exc
        return cls.new(number)


class MaxTokens(BaseModel):
    """Requested generation length, bounded by a specific engine's context length."""

    model_config = ConfigDict(frozen=True)

    value: int = Field(..., ge=1, strict=True)
    engine_max_tokens: int = Field(..., gt=0)

    @model_validator(mode="after")
    def _fits_engine(self) -> "MaxTokens":
        if self.value > self.engine_max_tokens:
            raise ValueError(f"{self.value} exceeds the engine maximum of {self.engine_max_tokens}")
        return self

    @classmethod
    def new(cls, value: int, engine: EngineDefinition) -> "MaxTokens":
        ceiling = engine.max_tokens
        return _validated(
            cls,
            "max_tokens",
            (
                f"the maximum number of tokens given, {value!r}, does not fit the engine definition "
                f"(supported range for {engine.engine_id} is 1..={ceiling})"
            ),
            value=value,
            engine_max_tokens=ceiling,
        )

    @classmethod
    def parse(cls, text: str, engine: EngineDefinition) -> "MaxTokens":
        try:
            number = int(text)
        except ValueError as exc:
            raise ValidationError(f"the given string {text!r} wasn't a valid number", field="max_tokens") from exc
        return cls.new(number, engine)


class NonEmptyString(BaseModel):
    """A string that must contain at least one character."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., min_length=1, strict=True)

    @classmethod
    def new(cls, value: str, field: str = "value") -> "NonEmptyString":
        return _validated(cls, field, f"given string {value!r} was empty", value=value)

    @classmethod
    def parse(cls, text: str, field: str = "value") -> "NonEmptyString":
        return cls.new(text, field=field)

    def __str__(self) -> str:
        return self.value


class Stop(BaseModel):
    """Up to five stop sequences; generation halts before the first one found."""

    model_config = ConfigDict(frozen=True)

    sequences: Tuple[str, ...] = Field(default=(), max_length=STOP_MAX_ITEMS)

    @classmethod
    def new(cls, sequences: Sequence[str]) -> "Stop":
        if isinstance(sequences, (str, bytes)):
            raise ValidationError(
                "stop sequences must be a list of strings, not a single string",
                field="stop",
                details={"input": repr(sequences)},
            )
        items = tuple(sequences)
        return _validated(
            cls,
            "stop",
            f"passed overflowing stop sequences; expected <= {STOP_MAX_ITEMS} items but got {len(items)}",
            sequences=items,
        )

    def as_list(self) -> list[str]:
        return list(self.sequences)
