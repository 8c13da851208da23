"""Completion request builder and its two execution modes.

A :class:`CompletionRequest` is validated field by field as it is built, so
an invalid request never reaches the transport. It is then consumed by
exactly one call to :func:`execute_now` or :func:`execute_stream`.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Optional, Sequence, Union

from synthtext.schemas.completion import (
    CompletionPayload,
    CompletionResult,
    LogProbabilities,
    LogProbabilitiesPayload,
)
from synthtext.schemas.engine import EngineDefinition
from synthtext.schemas.parameters import MaxTokens, NonEmptyString, Stop, TopK, TopP
from synthtext.services.transport import ApiRequest, RawResponse, Transport
from synthtext.utils.exceptions import RequestConsumedError, ValidationError
from synthtext.utils.payloads import decode_error_body, decode_payload
from synthtext.utils.streaming import FragmentStream

logger = logging.getLogger(__name__)

COMPLETIONS_ENDPOINT = "completions"
LOGPROB_ENDPOINT = "logprob"

StopLike = Union[Stop, Sequence[str]]


class CompletionRequest:
    """Prompt plus optional sampling parameters for one engine.

    Unset sampling fields are left out of the request body so the server
    defaults apply.
    """

    def __init__(self, prompt: str, engine: EngineDefinition) -> None:
        self.prompt = prompt
        self.engine = engine
        self.max_tokens: Optional[MaxTokens] = None
        self.temperature: Optional[float] = None
        self.top_k: Optional[TopK] = None
        self.top_p: Optional[TopP] = None
        self.stop: Optional[Stop] = None
        self._consumed = False

    def __repr__(self) -> str:
        return (
            f"CompletionRequest(engine={self.engine.engine_id!r}, prompt_chars={len(self.prompt)}, "
            f"max_tokens={_value(self.max_tokens)}, temperature={self.temperature}, "
            f"top_k={_value(self.top_k)}, top_p={_value(self.top_p)}, consumed={self._consumed})"
        )

    @property
    def consumed(self) -> bool:
        return self._consumed

    def set_max_tokens(self, value: Union[int, str, MaxTokens, None]) -> "CompletionRequest":
        """Bound-check ``value`` against this request's engine."""
        if isinstance(value, MaxTokens):
            value = value.value
        if isinstance(value, str):
            self.max_tokens = MaxTokens.parse(value, self.engine)
        elif value is not None:
            self.max_tokens = MaxTokens.new(value, self.engine)
        else:
            self.max_tokens = None
        return self

    def set_temperature(self, value: Union[float, str, None]) -> "CompletionRequest":
        if isinstance(value, str):
            try:
                value = float(value)
            except ValueError as exc:
                raise ValidationError(
                    f"the given string {value!r} wasn't a valid float",
                    field="temperature",
                ) from exc
        if value is not None and not math.isfinite(value):
            raise ValidationError(f"temperature must be a finite number, got {value!r}", field="temperature")
        self.temperature = value
        return self

    def set_top_k(self, value: Union[int, str, TopK, None]) -> "CompletionRequest":
        if isinstance(value, str):
            value = TopK.parse(value)
        elif value is not None and not isinstance(value, TopK):
            value = TopK.new(value)
        self.top_k = value
        return self

    def set_top_p(self, value: Union[float, str, TopP, None]) -> "CompletionRequest":
        if isinstance(value, str):
            value = TopP.parse(value)
        elif value is not None and not isinstance(value, TopP):
            value = TopP.new(value)
        self.top_p = value
        return self

    def set_stop(self, value: Optional[StopLike]) -> "CompletionRequest":
        self.stop = _as_stop(value)
        return self

    def to_payload(self, *, stream: bool, stop: Optional[Stop] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"prompt": self.prompt}
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens.value
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.top_k is not None:
            payload["top_k"] = self.top_k.value
        if self.top_p is not None:
            payload["top_p"] = self.top_p.value
        stop = stop or self.stop
        if stop is not None and stop.sequences:
            payload["stop"] = stop.as_list()
        if stream:
            payload["stream"] = True
        return payload

    def _consume(self) -> None:
        if self._consumed:
            raise RequestConsumedError()
        self._consumed = True


def build_request(
    prompt: str,
    engine: EngineDefinition,
    *,
    max_tokens: Union[int, str, MaxTokens, None] = None,
    temperature: Union[float, str, None] = None,
    top_k: Union[int, str, TopK, None] = None,
    top_p: Union[float, str, TopP, None] = None,
    stop: Optional[StopLike] = None,
) -> CompletionRequest:
    """Validate every parameter and compose a :class:`CompletionRequest`.

    Raw strings are parsed the same way command-line arguments are.

    Raises:
        ValidationError: If any parameter is outside its bounds
    """
    return (
        CompletionRequest(prompt, engine)
        .set_max_tokens(max_tokens)
        .set_temperature(temperature)
        .set_top_k(top_k)
        .set_top_p(top_p)
        .set_stop(stop)
    )


async def execute_now(
    request: CompletionRequest,
    transport: Transport,
    stop: Optional[StopLike] = None,
) -> CompletionResult:
    """Run a blocking completion and return the full text.

    ``stop`` overrides any stop set stored on the request.

    Raises:
        ValidationError: If ``stop`` is too long or the request was already executed
        TransportError: If the API could not be reached
        ApiError: If the server returned an error payload
        DecodeError: If the response body has an unexpected shape
    """
    stop_set = _as_stop(stop)
    request._consume()
    api_request = ApiRequest(
        engine_id=request.engine.engine_id,
        endpoint=COMPLETIONS_ENDPOINT,
        payload=request.to_payload(stream=False, stop=stop_set),
    )
    logger.debug("Requesting completion: %r", request)

    response = await transport.send(api_request)
    payload = _decode_response(response, CompletionPayload)
    result = CompletionResult.from_payload(payload)

    if result.truncated_prompt:
        logger.warning(
            "prompt was truncated; it was larger than the maximum context length of %s",
            request.engine.engine_id,
        )
    logger.debug("Completion finished: %d chars, total_tokens=%s", len(result.text), result.total_tokens)
    return result


async def execute_stream(
    request: CompletionRequest,
    transport: Transport,
    stop: Optional[StopLike] = None,
) -> FragmentStream:
    """Open a streamed completion.

    Errors while connecting (or an error status from the server) are raised
    here; errors after the stream is open are raised while iterating the
    returned :class:`FragmentStream`.
    """
    stop_set = _as_stop(stop)
    request._consume()
    api_request = ApiRequest(
        engine_id=request.engine.engine_id,
        endpoint=COMPLETIONS_ENDPOINT,
        payload=request.to_payload(stream=True, stop=stop_set),
    )
    logger.debug("Opening completion stream: %r", request)

    source = await transport.open_stream(api_request)
    if source.status_code >= 400:
        try:
            body = await source.aread()
        finally:
            await source.aclose()
        raise decode_error_body(body, source.status_code)

    return FragmentStream(source)


async def log_probabilities(
    engine: EngineDefinition,
    transport: Transport,
    context: str,
    continuation: Union[str, NonEmptyString],
) -> LogProbabilities:
    """Log probability that ``continuation`` follows ``context``.

    An empty ``context`` stands for the end-of-text token.
    """
    if not isinstance(continuation, NonEmptyString):
        continuation = NonEmptyString.new(continuation, field="continuation")

    api_request = ApiRequest(
        engine_id=engine.engine_id,
        endpoint=LOGPROB_ENDPOINT,
        payload={"context": context, "continuation": continuation.value},
    )
    response = await transport.send(api_request)
    payload = _decode_response(response, LogProbabilitiesPayload)
    return LogProbabilities(
        log_probability=payload.logprob,
        is_greedy=payload.is_greedy,
        total_tokens=payload.total_tokens,
    )


def _decode_response(response: RawResponse, model):
    if response.is_error:
        raise decode_error_body(response.body, response.status_code)
    return decode_payload(response.body, model, response.status_code)


def _as_stop(value: Optional[StopLike]) -> Optional[Stop]:
    if value is None or isinstance(value, Stop):
        return value
    return Stop.new(value)


def _value(param: Any) -> Any:
    return None if param is None else param.value
