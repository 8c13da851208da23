"""Engine definitions: which hosted model to target and how much context it accepts."""

from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from synthtext.utils.exceptions import ValidationError


class EnginePreset(str, Enum):
    """Engines with a fixed, well-known context length."""

    GPTJ_6B = "gptj_6B"
    BORIS_6B = "boris_6B"
    FAIRSEQ_GPT_13B = "fairseq_gpt_13B"

    @property
    def engine_id(self) -> str:
        return self.value

    @property
    def max_tokens(self) -> int:
        return _PRESET_MAX_TOKENS[self]


_PRESET_MAX_TOKENS = {
    EnginePreset.GPTJ_6B: 2048,
    EnginePreset.BORIS_6B: 2048,
    EnginePreset.FAIRSEQ_GPT_13B: 1024,
}

# Short names accepted on the command line.
_PRESET_ALIASES = {
    "gptj6b": EnginePreset.GPTJ_6B,
    "boris6b": EnginePreset.BORIS_6B,
    "fairseqgpt13b": EnginePreset.FAIRSEQ_GPT_13B,
}


class CustomEngineDefinition(BaseModel):
    """A caller-supplied engine id paired with its maximum context length."""

    model_config = ConfigDict(frozen=True)

    engine_id: str = Field(..., min_length=1, description="Engine identifier used in the API path")
    max_tokens: int = Field(..., gt=0, description="Maximum context length of the engine")

    @classmethod
    def new(cls, engine_id: str, max_tokens: int) -> "CustomEngineDefinition":
        try:
            return cls(engine_id=engine_id, max_tokens=max_tokens)
        except PydanticValidationError as exc:
            raise ValidationError(
                f"invalid custom engine definition {engine_id!r} with max tokens {max_tokens!r}",
                field="engine_definition",
            ) from exc


EngineDefinition = Union[EnginePreset, CustomEngineDefinition]


def parse_engine_definition(text: str) -> EngineDefinition:
    """Parse ``gptj6b``/``boris6b``/``fairseqgpt13b`` or ``<id>,<max_tokens>``.

    Preset ids such as ``boris_6B`` are accepted as well.
    """
    engine_id, sep, max_tokens = text.partition(",")
    if not sep:
        preset = _PRESET_ALIASES.get(engine_id)
        if preset is None and engine_id in {p.value for p in EnginePreset}:
            preset = EnginePreset(engine_id)
        if preset is None:
            raise ValidationError(
                f"unknown engine {engine_id!r}; expected delimiter ',' to separate id and max tokens",
                field="engine_definition",
            )
        return preset

    try:
        ceiling = int(max_tokens)
    except ValueError as exc:
        raise ValidationError(
            f"max tokens must be a valid number, got {max_tokens!r}",
            field="engine_definition",
        ) from exc
    return CustomEngineDefinition.new(engine_id, ceiling)
