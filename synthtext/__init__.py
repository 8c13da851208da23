"""Client for the TextSynth text completion API."""

from synthtext.config.settings import Settings, get_settings
from synthtext.schemas.completion import CompletionFragment, CompletionResult, LogProbabilities
from synthtext.schemas.engine import (
    CustomEngineDefinition,
    EngineDefinition,
    EnginePreset,
    parse_engine_definition,
)
from synthtext.schemas.parameters import MaxTokens, NonEmptyString, Stop, TopK, TopP
from synthtext.services.client import TextSynthClient
from synthtext.services.completion import (
    CompletionRequest,
    build_request,
    execute_now,
    execute_stream,
    log_probabilities,
)
from synthtext.services.transport import HttpxTransport, Transport
from synthtext.utils.exceptions import (
    ApiError,
    ConfigError,
    DecodeError,
    ExecutionError,
    SynthTextError,
    TransportError,
    ValidationError,
)
from synthtext.utils.streaming import FragmentStream

__version__ = "0.3.0"

__all__ = [
    "ApiError",
    "CompletionFragment",
    "CompletionRequest",
    "CompletionResult",
    "ConfigError",
    "CustomEngineDefinition",
    "DecodeError",
    "EngineDefinition",
    "EnginePreset",
    "ExecutionError",
    "FragmentStream",
    "HttpxTransport",
    "LogProbabilities",
    "MaxTokens",
    "NonEmptyString",
    "Settings",
    "Stop",
    "SynthTextError",
    "TextSynthClient",
    "TopK",
    "TopP",
    "Transport",
    "TransportError",
    "ValidationError",
    "build_request",
    "execute_now",
    "execute_stream",
    "get_settings",
    "log_probabilities",
    "parse_engine_definition",
]
