"""High-level client bound to one configured engine."""

from __future__ import annotations

import logging
from typing import Any, Optional

from synthtext.config.settings import Settings
from synthtext.schemas.completion import CompletionResult, LogProbabilities
from synthtext.schemas.engine import EngineDefinition
from synthtext.services import completion
from synthtext.services.completion import CompletionRequest, StopLike
from synthtext.services.transport import HttpxTransport, Transport
from synthtext.utils.streaming import FragmentStream

logger = logging.getLogger(__name__)


class TextSynthClient:
    """Lifecycle owner for the transport plus shortcuts for each operation.

    Settings and the engine are passed in explicitly; the client holds no
    module-level state.

    Usage:
        async with TextSynthClient(settings) as client:
            result = await client.complete("Once upon a time", max_tokens=64)
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[Transport] = None,
        engine: Optional[EngineDefinition] = None,
    ) -> None:
        self._settings = settings
        self._engine = engine or settings.engine_definition
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpxTransport(settings)

    @property
    def engine(self) -> EngineDefinition:
        return self._engine

    @property
    def transport(self) -> Transport:
        return self._transport

    async def startup(self) -> None:
        if self._owns_transport:
            await self._transport.startup()  # type: ignore[attr-defined]

    async def shutdown(self) -> None:
        if self._owns_transport:
            await self._transport.shutdown()  # type: ignore[attr-defined]

    async def __aenter__(self) -> "TextSynthClient":
        await self.startup()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    def request(self, prompt: str, **params: Any) -> CompletionRequest:
        """Build a validated request for the configured engine."""
        return completion.build_request(prompt, self._engine, **params)

    async def complete(self, prompt: str, *, stop: Optional[StopLike] = None, **params: Any) -> CompletionResult:
        return await completion.execute_now(self.request(prompt, **params), self._transport, stop=stop)

    async def stream(self, prompt: str, *, stop: Optional[StopLike] = None, **params: Any) -> FragmentStream:
        return await completion.execute_stream(self.request(prompt, **params), self._transport, stop=stop)

    async def log_probabilities(self, context: str, continuation: str) -> LogProbabilities:
        return await completion.log_probabilities(self._engine, self._transport, context, continuation)
