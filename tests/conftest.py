import pytest

from resume_annex.infrastructure.data import SessionStore
from resume_annex.interview import IntakeOrchestrator
from resume_annex.interview.testing import MockLLMClient, create_test_config


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config():
    return create_test_config()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def llm():
    return MockLLMClient(default_response="What revenue growth did you drive?")


@pytest.fixture
def orchestrator(config, llm, clock):
    store = SessionStore(ttl_seconds=config.session_ttl_seconds, clock=clock)
    return IntakeOrchestrator(config, llm_client=llm, session_store=store)
