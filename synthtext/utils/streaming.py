"""Streaming utilities: turn a chunked completion response into fragments."""

from __future__ import annotations

import logging
from typing import Optional

from synthtext.schemas.completion import CompletionFragment, CompletionPayload
from synthtext.services.transport import ChunkSource
from synthtext.utils.exceptions import ExecutionError
from synthtext.utils.payloads import decode_payload

logger = logging.getLogger(__name__)

RECORD_DELIMITER = b"\n"


class FragmentStream:
    """Cancellable, order-preserving async iterator of completion fragments.

    The server sends one JSON object per line (records are separated by a
    blank line). Network chunks do not line up with records, so bytes are
    buffered until a full line is available; a trailing record without a
    newline is decoded once the source is exhausted.

    Any :class:`ExecutionError` (transport, API or decode) is raised exactly
    once from the pull that hit it. The connection is released before the
    error propagates, and every later pull ends the iteration. Stopping
    early is done with :meth:`aclose` or by leaving ``async with``; a pull
    interrupted by cancellation (e.g. ``asyncio.wait_for``) also closes it.

    Usage:
        async with await execute_stream(request, transport) as stream:
            async for fragment in stream:
                print(fragment.text, end="")
    """

    def __init__(self, source: ChunkSource) -> None:
        self._source = source
        self._chunks = source.__aiter__()
        self._buffer = bytearray()
        self._source_exhausted = False
        self._closed = False
        self._delivered = 0

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def delivered(self) -> int:
        """Number of fragments yielded so far."""
        return self._delivered

    def __aiter__(self) -> "FragmentStream":
        return self

    async def __anext__(self) -> CompletionFragment:
        if self._closed:
            raise StopAsyncIteration

        try:
            record = await self._next_record()
            fragment = None
            if record is not None:
                fragment = CompletionFragment.from_payload(decode_payload(record, CompletionPayload))
        except ExecutionError as exc:
            logger.error("Completion stream failed after %d fragment(s): %s", self._delivered, exc.message)
            await self.aclose()
            raise
        except BaseException:
            # Cancelled or timed out by the caller mid-read.
            logger.debug("Completion stream interrupted after %d fragment(s)", self._delivered)
            await self.aclose()
            raise

        if fragment is None:
            await self.aclose()
            raise StopAsyncIteration

        self._delivered += 1
        return fragment

    async def aclose(self) -> None:
        """Release the underlying connection; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        await self._source.aclose()
        logger.debug("Completion stream closed after %d fragment(s)", self._delivered)

    async def __aenter__(self) -> "FragmentStream":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _next_record(self) -> Optional[bytes]:
        while True:
            line = self._pop_line()
            if line is not None:
                if line.strip():
                    return line
                continue

            if self._source_exhausted:
                remainder = bytes(self._buffer).strip()
                self._buffer.clear()
                return remainder or None

            try:
                chunk = await self._chunks.__anext__()
            except StopAsyncIteration:
                self._source_exhausted = True
                continue
            self._buffer.extend(chunk)

    def _pop_line(self) -> Optional[bytes]:
        index = self._buffer.find(RECORD_DELIMITER)
        if index < 0:
            return None
        line = bytes(self._buffer[:index])
        del self._buffer[: index + 1]
        return line
