"""
Testing infrastructure with mock services for the intake engine.
"""
from typing import Dict, Any, List, Optional, Sequence, Mapping

from .models import ROLE_ASSISTANT, ROLE_USER, Turn
from ..config import Config
from ..infrastructure.llm import ServiceUnavailable


class MockLLMClient:
    """Mock generation client that replays canned replies and records every request."""

    def __init__(self, mock_responses: Optional[List[str]] = None, default_response: str = "Mock reply?"):
        self.mock_responses = list(mock_responses or [])
        self.default_response = default_response
        self.current_response_idx = 0
        self.request_history: List[Dict[str, Any]] = []

    def generate(self, messages: Sequence[Mapping[str, str]], temperature: float = 0.0, **kwargs) -> str:
        """Return the next mock reply."""
        self.request_history.append({
            "messages": [dict(m) for m in messages],
            "temperature": temperature,
            "kwargs": kwargs
        })

        if self.current_response_idx < len(self.mock_responses):
            response = self.mock_responses[self.current_response_idx]
            self.current_response_idx += 1
            return response
        return self.default_response

    def generate_content(self, prompt_text: str, temperature: float = 0.0, **kwargs) -> str:
        return self.generate([{"role": ROLE_USER, "content": prompt_text}], temperature=temperature, **kwargs)

    @property
    def call_count(self) -> int:
        return len(self.request_history)

    @property
    def last_messages(self) -> List[Dict[str, str]]:
        return self.request_history[-1]["messages"] if self.request_history else []


class FailingLLMClient(MockLLMClient):
    """Mock generation client whose calls always fail."""

    def __init__(self, error: Optional[Exception] = None):
        super().__init__()
        self.error = error or ServiceUnavailable("Mock generation outage")

    def generate(self, messages: Sequence[Mapping[str, str]], temperature: float = 0.0, **kwargs) -> str:
        self.request_history.append({
            "messages": [dict(m) for m in messages],
            "temperature": temperature,
            "kwargs": kwargs
        })
        raise self.error


def create_test_config(**overrides: Any) -> Config:
    """Config with a fake project and defaults suitable for tests."""
    values: Dict[str, Any] = {"google_cloud_project": "test-project"}
    values.update(overrides)
    return Config(**values)


def create_test_dialogue(answers: Sequence[str]) -> List[Turn]:
    """Alternating assistant question / user answer turns, one pair per answer."""
    history: List[Turn] = []
    for idx, answer in enumerate(answers, start=1):
        history.append(Turn(ROLE_ASSISTANT, f"Question {idx}: what was the measurable impact?"))
        history.append(Turn(ROLE_USER, answer))
    return history


SAMPLE_RESUME_TEXT = """Jane Doe
jane.doe@example.com | Austin, TX

Experience
Sales Manager, Acme Corp (2019 - 2024)
- Led the regional sales team
- Managed key accounts

Education
B.A. Economics, University of Texas, 2015

Skills
Negotiation, CRM, Forecasting
"""
