"""
Structured data models and schemas for the interview state machine.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple
from enum import Enum

from .models import ROLE_SYSTEM, DIALOGUE_ROLES


class InterviewState(str, Enum):
    """States of the intake state machine. TERMINAL is absorbing."""
    ACTIVE = "active"
    TERMINAL = "terminal"


class TerminationPlan(str, Enum):
    """Plan tier; selects the closing message shown at termination."""
    CORE = "core"
    PRO = "pro"
    EXECUTIVE = "executive"
    DEFAULT = "default"

    @classmethod
    def parse(cls, value: Optional[str]) -> 'TerminationPlan':
        """Unknown or missing plan names fall back to DEFAULT."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.DEFAULT


class TerminationReason(str, Enum):
    """Why the evaluator moved to TERMINAL."""
    BUDGET_EXHAUSTED = "budget_exhausted"
    USER_FINISHED = "user_finished"


@dataclass(frozen=True)
class ContextSegment:
    """One role-tagged instruction segment."""
    role: str
    content: str


@dataclass(frozen=True)
class InterviewContext:
    """
    The opening instruction block of an interview.

    An ordered, immutable tuple of role-tagged segments built once from the
    extracted source text. It is supplied first, unmodified, on every
    generation call of the session.
    """
    segments: Tuple[ContextSegment, ...]
    source_text: str

    @property
    def has_source(self) -> bool:
        return bool(self.source_text.strip())

    def to_messages(self) -> List[Dict[str, str]]:
        return [{"role": s.role, "content": s.content} for s in self.segments]

    def to_payload(self) -> Dict[str, Any]:
        """Serializable form handed to the client in stateless mode."""
        return {"segments": self.to_messages(), "sourceText": self.source_text}

    @classmethod
    def from_payload(cls, payload: Any) -> 'InterviewContext':
        """
        Rebuild a context returned by to_payload.

        Raises:
            ValueError: If the payload is not in the expected shape
        """
        if not isinstance(payload, dict):
            raise ValueError("initialContext must be an object")
        raw_segments = payload.get("segments")
        source_text = payload.get("sourceText", "")
        if not isinstance(raw_segments, list) or not raw_segments:
            raise ValueError("initialContext.segments must be a non-empty list")
        if not isinstance(source_text, str):
            raise ValueError("initialContext.sourceText must be a string")
        return cls(segments=_segments_from_messages(raw_segments), source_text=source_text)

    @classmethod
    def from_system_messages(cls, messages: Sequence[Dict[str, Any]]) -> 'InterviewContext':
        """Wrap caller-supplied system messages (historical stateless clients)."""
        segments = _segments_from_messages(messages)
        return cls(segments=segments, source_text="\n\n".join(s.content for s in segments))


def _segments_from_messages(messages: Sequence[Any]) -> Tuple[ContextSegment, ...]:
    segments = []
    for idx, message in enumerate(messages):
        if not isinstance(message, dict):
            raise ValueError(f"Context segment {idx} is not an object")
        role, content = message.get("role"), message.get("content")
        if role != ROLE_SYSTEM and role not in DIALOGUE_ROLES:
            raise ValueError(f"Context segment {idx} has unknown role {role!r}")
        if not isinstance(content, str):
            raise ValueError(f"Context segment {idx} content must be a string")
        segments.append(ContextSegment(role=role, content=content))
    return tuple(segments)


@dataclass(frozen=True)
class Evaluation:
    """Result of one Turn Evaluator run."""
    state: InterviewState
    question_count: int
    reason: Optional[TerminationReason] = None

    @property
    def is_terminal(self) -> bool:
        return self.state is InterviewState.TERMINAL
