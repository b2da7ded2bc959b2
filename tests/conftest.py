from typing import Any, Dict

import pytest

from seqthink.config import ThinkingConfig, load_prompts
from seqthink.core.pacing import PacingGate
from seqthink.core.prompts import PromptAssembler
from seqthink.core.server import SequentialThinkingServer
from tests.fakes import FakeBackend, FakeClock


@pytest.fixture(scope="session")
def templates() -> Dict[str, Any]:
    return load_prompts("prompts")["sequential"]


@pytest.fixture(scope="session")
def thinker_templates() -> Dict[str, Any]:
    return load_prompts("prompts")["thinker"]


@pytest.fixture
def thinking_config() -> ThinkingConfig:
    return ThinkingConfig(min_interval_ms=2000, previous_thoughts=2, default_reasoning_mode="analytical")


@pytest.fixture
def assembler(templates, thinking_config) -> PromptAssembler:
    return PromptAssembler(templates, thinking_config)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def pacing_factory(clock, thinking_config):
    def _factory() -> PacingGate:
        return PacingGate(thinking_config.min_interval_ms, clock=clock, sleep=clock.sleep)

    return _factory


@pytest.fixture
def server_factory(assembler, pacing_factory, clock):
    def _factory(backend: FakeBackend = None, **backend_kwargs) -> SequentialThinkingServer:
        if backend is None:
            backend_kwargs.setdefault("clock", clock)
            backend = FakeBackend(**backend_kwargs)
        return SequentialThinkingServer(backend, assembler, pacing_factory())

    return _factory
