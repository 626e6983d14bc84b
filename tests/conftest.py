"""Shared test fixtures for reqwrap.

Provides in-memory stand-ins for the external collaborators (cache store,
transport) plus fixtures that isolate global output state and environment
variables. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Union

import pytest

from reqwrap.cache import CacheClient, CacheService
from reqwrap.client.base import BaseClient
from reqwrap.models import (
    CacheBackend,
    CacheServiceConfig,
    ClientConfig,
    RedisConfig,
    RequestOptions,
    Response,
)
from reqwrap.output import OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _quiet_output() -> None:
    """Install a quiet, colourless OutputManager for every test."""
    set_output(OutputManager(no_color=True, quiet=True))
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear REQWRAP_* environment variables that would leak into tests."""
    for var in ["REQWRAP_ENV", "REQWRAP_REQUEST_LOG"]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def loud_output() -> OutputManager:
    """A non-quiet, verbose output manager writing plain text to stderr."""
    output = OutputManager(no_color=True, quiet=False, verbose=True)
    set_output(output)
    return output


# ---------------------------------------------------------------------------
# In-memory cache store
# ---------------------------------------------------------------------------


class MemoryCacheClient(CacheClient):
    """Dict-backed :class:`CacheClient` that records every call."""

    def __init__(self, store: Optional[dict[str, str]] = None) -> None:
        self.store: dict[str, str] = dict(store or {})
        self.get_calls: list[str] = []
        self.set_calls: list[tuple[str, str, int]] = []
        self.closed = False

    @property
    def backend(self) -> CacheBackend:
        return CacheBackend.REDIS

    async def get(self, key: str) -> Optional[str]:
        self.get_calls.append(key)
        return self.store.get(key)

    async def set(self, key: str, value: str, ttl: int) -> None:
        self.set_calls.append((key, value, ttl))
        self.store[key] = value

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def memory_cache() -> MemoryCacheClient:
    return MemoryCacheClient()


@pytest.fixture
def cache_service(memory_cache: MemoryCacheClient) -> CacheService:
    """A CacheService bound to the in-memory store."""
    return CacheService(CacheServiceConfig(redis=RedisConfig()), client=memory_cache)


# ---------------------------------------------------------------------------
# Scripted transport
# ---------------------------------------------------------------------------


Outcome = Union[Response, BaseException]


class ScriptedClient(BaseClient):
    """BaseClient whose transport plays back a list of outcomes.

    Each call to :meth:`send` consumes the next outcome; the last one is
    repeated once the script runs out. Exceptions are raised, responses
    returned.
    """

    def __init__(
        self,
        outcomes: Sequence[Outcome],
        config: Union[ClientConfig, dict[str, Any], None] = None,
        cache_service: Optional[CacheService] = None,
    ) -> None:
        super().__init__(config, cache_service=cache_service)
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, RequestOptions]] = []

    async def send(self, url: str, options: RequestOptions) -> Response:
        self.calls.append((url, options))
        index = min(len(self.calls) - 1, len(self.outcomes) - 1)
        outcome = self.outcomes[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def scripted():
    """Factory for :class:`ScriptedClient` instances."""

    def _make(
        *outcomes: Outcome,
        config: Union[ClientConfig, dict[str, Any], None] = None,
        cache_service: Optional[CacheService] = None,
    ) -> ScriptedClient:
        return ScriptedClient(outcomes, config=config, cache_service=cache_service)

    return _make
