"""Shared test fixtures for the dicebox test suite.

Random sources
--------------
make_rng
    Factory for a SequenceRandom that replays the given values in order
    (cycling when exhausted). Use it to force exact dice faces.

max_rng
    A random source that always returns the highest face.

HTTP
----
registry
    A fresh TableRegistry per test, wired to a QueueSink so tests can
    inspect what would have been sent to chat.

client
    AsyncClient bound to an app built around ``registry``.
"""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dicebox.events import QueueSink, RollChannel
from dicebox.main import create_app
from dicebox.tables import TableRegistry


class SequenceRandom:
    """Random source that replays fixed values and records each call."""

    def __init__(self, values):
        self._values = list(values)
        self._index = 0
        self.calls: list[tuple[int, int]] = []

    def randint(self, a, b):
        self.calls.append((a, b))
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value


class MaxRandom:
    def randint(self, a, b):
        return b


@pytest.fixture
def make_rng():
    return SequenceRandom


@pytest.fixture
def max_rng():
    return MaxRandom()


@pytest.fixture
def sink():
    return QueueSink()


@pytest.fixture
def registry(sink):
    return TableRegistry(RollChannel([sink]), seed=1234)


@pytest_asyncio.fixture
async def client(registry):
    app = create_app(registry)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
