"""
Data models for the intake interview.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
DIALOGUE_ROLES = (ROLE_USER, ROLE_ASSISTANT)


@dataclass(frozen=True)
class Turn:
    """One exchange in the dialogue history. Never mutated once created."""
    role: str
    content: str

    def __post_init__(self):
        if self.role not in DIALOGUE_ROLES:
            raise ValueError(f"Turn role must be 'user' or 'assistant', got {self.role!r}")
        if not isinstance(self.content, str):
            raise ValueError("Turn content must be a string")

    def to_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class AssistantTurn:
    """Result of advancing the dialogue by one ACTIVE turn."""
    turn: Turn
    question_count: int  # counter value after this turn


@dataclass(frozen=True)
class GeneratedArtifact:
    """The synthesized resume, fence-stripped, plus the plan's closing message."""
    content: str
    closing_message: str


@dataclass
class UploadResult:
    """Outcome of starting an interview from an uploaded document."""
    reply: str
    context: Any  # InterviewContext
    session_id: Optional[str]
    question_count: int
    source_chars: int


@dataclass
class ChatOutcome:
    """Outcome of one chat call."""
    reply: str
    is_complete: bool
    question_count: int
    generated_resume: Optional[str] = None


def last_user_turn(history: Sequence[Turn]) -> Optional[Turn]:
    """Most recent user turn, or None if the user has not spoken yet."""
    for turn in reversed(history):
        if turn.role == ROLE_USER:
            return turn
    return None


def history_from_messages(messages: Sequence[Dict[str, Any]]) -> List[Turn]:
    """
    Build a dialogue history from raw {role, content} dicts.

    Raises:
        ValueError: If an entry has an unknown role or non-string content
    """
    history = []
    for idx, message in enumerate(messages):
        if not isinstance(message, dict):
            raise ValueError(f"Message {idx} is not an object")
        try:
            history.append(Turn(role=message.get("role"), content=message.get("content")))
        except ValueError as e:
            raise ValueError(f"Message {idx}: {e}")
    return history
