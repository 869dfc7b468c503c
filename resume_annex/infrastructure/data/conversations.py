"""
Interview session records.
Holds everything a server-held interview needs between HTTP calls.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class InterviewSessionRecord:
    """Complete record of a single interview session."""
    # Basic metadata
    session_id: str
    created_at: str  # ISO format timestamp
    plan: str  # core | pro | executive | default, fixed at creation

    # Conversation state
    context: Any  # InterviewContext, never modified after creation
    history: List[Any] = field(default_factory=list)  # Turn objects, append-only
    question_count: int = 0  # maintained by the server, never by the caller

    # Terminal outcome
    artifact: Optional[str] = None  # generated resume, written exactly once
    closing_message: Optional[str] = None
    completed_at: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return self.artifact is not None
