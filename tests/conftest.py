"""
Shared fixtures for the coach server tests.

Fakes
-----
- FakeGenerator : scripted GenerationBackend that records every call and
                  tracks how many calls overlap.
- FlakyStorage  : MemoryStorageBackend whose writes can be made to fail.
"""

import asyncio
import random
from typing import List

import pytest

from coach_server.core.config import Settings
from coach_server.core.errors import GenerationError, StorageError
from coach_server.core.generate import GenerationBackend
from coach_server.runtime_state import MemoryStorageBackend, SessionRouter


class FakeGenerator(GenerationBackend):
    name = "fake"

    def __init__(self, reply: str = "Tell me about your last project.", delay: float = 0.0):
        self.reply = reply
        self.delay = delay
        self.fail = False
        self.calls: List[list] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate(self, messages, params):
        self.calls.append([dict(m) for m in messages])
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail:
                raise GenerationError("backend down")
            return self.reply
        finally:
            self.in_flight -= 1


class FlakyStorage(MemoryStorageBackend):
    def __init__(self):
        super().__init__()
        self.fail_writes = False
        self.fail_reads = False

    async def get(self, key):
        if self.fail_reads:
            raise StorageError("disk unavailable")
        return await super().get(key)

    async def put(self, key, record):
        if self.fail_writes:
            raise StorageError("disk full")
        await super().put(key, record)


def build_settings(**overrides) -> Settings:
    values = dict(
        environment="test",
        storage_backend="memory",
        coach_mode="conversation",
        tier1_enabled=False,
        tier2_enabled=False,
        workflow_seed=1234,
        generation_timeout_s=2.0,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings_factory():
    return build_settings


@pytest.fixture
def test_settings() -> Settings:
    return build_settings()


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def storage() -> FlakyStorage:
    return FlakyStorage()


@pytest.fixture
def session_router(test_settings, storage, generator) -> SessionRouter:
    return SessionRouter(test_settings, storage, generator)


@pytest.fixture
def workflow_router(settings_factory, storage, generator) -> SessionRouter:
    cfg = settings_factory(coach_mode="workflow")
    return SessionRouter(cfg, storage, generator, rng_factory=lambda: random.Random(7))
