"""
Shared pytest fixtures and stubs for the synthtext test suite.

This module provides settings fixtures and an in-memory transport that
records every call, so tests can assert exactly how often (and with what)
the network would have been hit.
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

import pytest

# Ensure the package is importable without an editable install
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Drop any real configuration BEFORE importing package modules
for _name in list(os.environ):
    if _name.startswith("SYNTHTEXT_"):
        del os.environ[_name]

from synthtext.config.settings import Settings
from synthtext.schemas.engine import CustomEngineDefinition, EnginePreset
from synthtext.services.transport import ApiRequest, RawResponse


def create_test_settings(**kwargs: Any) -> Settings:
    """Create Settings for tests, bypassing env file loading."""
    kwargs.setdefault("api_key", "test-key")
    return Settings(_env_file=None, **kwargs)  # type: ignore[call-arg]


def record(text: str, **fields: Any) -> bytes:
    """Encode one newline-terminated stream record."""
    return (json.dumps({"text": text, **fields}) + "\n\n").encode("utf-8")


# ============================================================================
# Stub Transport
# ============================================================================

class StubChunkSource:
    """In-memory chunk source; exceptions in ``items`` are raised when pulled."""

    def __init__(
        self,
        items: Sequence[Union[bytes, BaseException]],
        status_code: int = 200,
        body: bytes = b"",
    ) -> None:
        self._items = list(items)
        self.status_code = status_code
        self._body = body
        self.pulls = 0
        self.closed = False
        self.read_called = False

    def __aiter__(self) -> "StubChunkSource":
        return self

    async def __anext__(self) -> bytes:
        if self.closed:
            raise AssertionError("chunk source pulled after it was closed")
        if self.pulls >= len(self._items):
            raise StopAsyncIteration
        item = self._items[self.pulls]
        self.pulls += 1
        if isinstance(item, BaseException):
            raise item
        return item

    async def aread(self) -> bytes:
        self.read_called = True
        return self._body

    async def aclose(self) -> None:
        self.closed = True


class StubTransport:
    """Transport double recording every request it receives."""

    def __init__(
        self,
        response: Optional[RawResponse] = None,
        source: Optional[StubChunkSource] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        self.response = response or RawResponse(
            status_code=200,
            body=b'{"text": " world", "reached_end": true, "truncated_prompt": false, "total_tokens": 7}',
        )
        self.source = source
        self.error = error
        self.sent: List[ApiRequest] = []
        self.opened: List[ApiRequest] = []

    @property
    def invocations(self) -> int:
        return len(self.sent) + len(self.opened)

    async def send(self, request: ApiRequest) -> RawResponse:
        self.sent.append(request)
        if self.error is not None:
            raise self.error
        return self.response

    async def open_stream(self, request: ApiRequest) -> StubChunkSource:
        self.opened.append(request)
        if self.error is not None:
            raise self.error
        assert self.source is not None, "no chunk source configured"
        return self.source


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings with a dummy API key and no .env file."""
    return create_test_settings(log_level="DEBUG")


@pytest.fixture
def custom_engine() -> CustomEngineDefinition:
    return CustomEngineDefinition(engine_id="custom_model", max_tokens=2048)


@pytest.fixture
def preset_engine() -> EnginePreset:
    return EnginePreset.GPTJ_6B


@pytest.fixture
def stub_transport() -> StubTransport:
    return StubTransport()
