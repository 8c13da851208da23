"""HTTP transport for the TextSynth API.

The completion services only depend on the :class:`Transport` protocol:
``send`` for a single buffered response and ``open_stream`` for a chunked
one. :class:`HttpxTransport` is the production implementation; anything
that raises :class:`~synthtext.utils.exceptions.TransportError` for
connectivity failures can stand in for it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional, Protocol

import httpx

from synthtext.config.settings import Settings
from synthtext.utils.exceptions import ConfigError, TransportError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ApiRequest:
    """Transport-level description of one API call."""

    engine_id: str
    endpoint: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def path(self) -> str:
        return f"/v1/engines/{self.engine_id}/{self.endpoint}"


@dataclass(slots=True, frozen=True)
class RawResponse:
    """Fully buffered response body."""

    status_code: int
    body: bytes
    url: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400


class ChunkSource(Protocol):
    """Open streamed response yielding raw byte chunks until exhausted."""

    status_code: int

    def __aiter__(self) -> AsyncIterator[bytes]: ...

    async def aread(self) -> bytes: ...

    async def aclose(self) -> None: ...


class Transport(Protocol):
    async def send(self, request: ApiRequest) -> RawResponse: ...

    async def open_stream(self, request: ApiRequest) -> ChunkSource: ...


class HttpxChunkSource:
    """Adapts a streamed ``httpx.Response`` to :class:`ChunkSource`."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._chunks: Optional[AsyncIterator[bytes]] = None

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def url(self) -> str:
        return str(self._response.request.url)

    def __aiter__(self) -> "HttpxChunkSource":
        return self

    async def __anext__(self) -> bytes:
        if self._chunks is None:
            self._chunks = self._response.aiter_bytes()
        try:
            return await self._chunks.__anext__()
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise TransportError(
                "connection to the textsynth api failed while streaming",
                url=self.url,
                cause=exc,
            ) from exc

    async def aread(self) -> bytes:
        try:
            return await self._response.aread()
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise TransportError(
                "failed to read response from the textsynth api",
                url=self.url,
                cause=exc,
            ) from exc

    async def aclose(self) -> None:
        await self._response.aclose()


class HttpxTransport:
    """Adapter used to talk to a TextSynth deployment over HTTP."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._client_lock = asyncio.Lock()

    async def startup(self) -> None:
        """Initialise the HTTP client."""

        timeout = httpx.Timeout(self._settings.timeout_seconds)
        self._client = httpx.AsyncClient(
            base_url=self._settings.api_base,
            timeout=timeout,
            headers=self._auth_headers(),
            transport=self._transport,
        )
        logger.debug(
            "Initialised TextSynth client for %s with timeout %.1fs",
            self._settings.api_base,
            self._settings.timeout_seconds,
        )

    async def shutdown(self) -> None:
        """Close the HTTP client."""

        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None

    @property
    def is_ready(self) -> bool:
        return self._client is not None

    async def send(self, request: ApiRequest) -> RawResponse:
        client = await self._require_client()
        logger.debug("POST %s", request.path)
        try:
            response = await client.post(request.path, json=request.payload)
        except httpx.HTTPError as exc:
            raise TransportError(
                "failed to connect to the textsynth api",
                url=self._url_for(request),
                cause=exc,
            ) from exc
        return RawResponse(
            status_code=response.status_code,
            body=response.content,
            url=str(response.url),
        )

    async def open_stream(self, request: ApiRequest) -> HttpxChunkSource:
        client = await self._require_client()
        logger.debug("POST %s (streaming)", request.path)
        http_request = client.build_request("POST", request.path, json=request.payload)
        try:
            response = await client.send(http_request, stream=True)
        except httpx.HTTPError as exc:
            raise TransportError(
                "failed to connect to the textsynth api",
                url=self._url_for(request),
                cause=exc,
            ) from exc
        return HttpxChunkSource(response)

    async def _require_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                await self.startup()
            assert self._client is not None
            return self._client

    def _auth_headers(self) -> Dict[str, str]:
        if not self._settings.api_key:
            raise ConfigError("no API key configured; set SYNTHTEXT_API_KEY or generate a config file")
        return {"Authorization": f"Bearer {self._settings.api_key}"}

    def _url_for(self, request: ApiRequest) -> str:
        return f"{self._settings.api_base}{request.path}"
