"""Wire payloads returned by the API and the results handed back to callers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CompletionPayload(BaseModel):
    """Body of a blocking completion, or one record of a streamed completion."""

    model_config = ConfigDict(extra="ignore")

    text: str
    reached_end: bool = False
    truncated_prompt: bool = False
    total_tokens: Optional[int] = Field(default=None, ge=0)


class LogProbabilitiesPayload(BaseModel):
    """Body of a log-probability response."""

    model_config = ConfigDict(extra="ignore")

    logprob: float
    is_greedy: bool
    total_tokens: int = Field(..., ge=0)


class ErrorPayload(BaseModel):
    """Error body sent by the server, either as a response or inside a stream."""

    model_config = ConfigDict(extra="ignore")

    error: str
    status: Optional[int] = None


@dataclass(slots=True, frozen=True)
class CompletionResult:
    """Terminal output of a blocking completion.

    ``truncated_prompt`` is informational: the server dropped the beginning
    of a prompt that did not fit the engine's context length.
    """

    text: str
    truncated_prompt: bool
    total_tokens: Optional[int]
    reached_end: bool = False

    @classmethod
    def from_payload(cls, payload: CompletionPayload) -> "CompletionResult":
        return cls(
            text=payload.text,
            truncated_prompt=payload.truncated_prompt,
            total_tokens=payload.total_tokens,
            reached_end=payload.reached_end,
        )


@dataclass(slots=True, frozen=True)
class CompletionFragment:
    """One increment of a streamed completion, in generation order."""

    text: str
    reached_end: bool = False
    truncated_prompt: bool = False
    total_tokens: Optional[int] = None

    @property
    def is_last(self) -> bool:
        return self.reached_end

    @classmethod
    def from_payload(cls, payload: CompletionPayload) -> "CompletionFragment":
        return cls(
            text=payload.text,
            reached_end=payload.reached_end,
            truncated_prompt=payload.truncated_prompt,
            total_tokens=payload.total_tokens,
        )


@dataclass(slots=True, frozen=True)
class LogProbabilities:
    """Log probability of a continuation and whether greedy sampling would produce it."""

    log_probability: float
    is_greedy: bool
    total_tokens: int
