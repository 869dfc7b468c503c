"""
Event-driven architecture for the intake engine.
"""
import logging
import threading
from abc import ABC
from typing import Dict, Any, List, Callable, Optional
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger("events")


class EventType(str, Enum):
    """Types of interview events."""
    INTERVIEW_STARTED = "interview_started"
    DECISION_MADE = "decision_made"
    QUESTION_ASKED = "question_asked"
    INTERVIEW_COMPLETED = "interview_completed"
    ERROR_OCCURRED = "error_occurred"


@dataclass
class InterviewEvent(ABC):
    """Base class for all interview events."""
    event_type: EventType
    session_id: str
    timestamp: float
    data: Dict[str, Any]


@dataclass
class InterviewStartedEvent(InterviewEvent):
    """Event fired when a document is uploaded and an interview begins."""
    def __init__(self, session_id: str, timestamp: float, source_chars: int, plan: str):
        super().__init__(
            event_type=EventType.INTERVIEW_STARTED,
            session_id=session_id,
            timestamp=timestamp,
            data={"source_chars": source_chars, "plan": plan}
        )


@dataclass
class DecisionMadeEvent(InterviewEvent):
    """Event fired when the turn evaluator decides the state of a chat call."""
    def __init__(self, session_id: str, timestamp: float, state: str,
                 question_count: int, reason: Optional[str]):
        super().__init__(
            event_type=EventType.DECISION_MADE,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "state": state,
                "question_count": question_count,
                "reason": reason
            }
        )


@dataclass
class QuestionAskedEvent(InterviewEvent):
    """Event fired when an ACTIVE turn produced the next question."""
    def __init__(self, session_id: str, timestamp: float, question_count: int):
        super().__init__(
            event_type=EventType.QUESTION_ASKED,
            session_id=session_id,
            timestamp=timestamp,
            data={"question_count": question_count}
        )


@dataclass
class InterviewCompletedEvent(InterviewEvent):
    """Event fired when the final resume has been synthesized."""
    def __init__(self, session_id: str, timestamp: float, question_count: int,
                 plan: str, artifact_chars: int):
        super().__init__(
            event_type=EventType.INTERVIEW_COMPLETED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "question_count": question_count,
                "plan": plan,
                "artifact_chars": artifact_chars
            }
        )


@dataclass
class ErrorOccurredEvent(InterviewEvent):
    """Event fired when an upload or chat call fails."""
    def __init__(self, session_id: str, timestamp: float, error_type: str,
                 error_message: str, component: str):
        super().__init__(
            event_type=EventType.ERROR_OCCURRED,
            session_id=session_id,
            timestamp=timestamp,
            data={
                "error_type": error_type,
                "error_message": error_message,
                "component": component
            }
        )


EventHandler = Callable[[InterviewEvent], None]


class InterviewEventBus:
    """Event bus for intake engine communication."""

    def __init__(self):
        self._handlers: Dict[EventType, List[EventHandler]] = {}
        self._global_handlers: List[EventHandler] = []

    def subscribe(self, event_type: EventType, handler: EventHandler) -> None:
        """
        Subscribe to specific event type.

        Args:
            event_type: Type of event to listen for
            handler: Function to call when event occurs
        """
        if event_type not in self._handlers:
            self._handlers[event_type] = []
        self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed handler to {event_type}")

    def subscribe_all(self, handler: EventHandler) -> None:
        """
        Subscribe to all events.

        Args:
            handler: Function to call for any event
        """
        self._global_handlers.append(handler)
        logger.debug("Subscribed global handler")

    def emit(self, event: InterviewEvent) -> None:
        """
        Emit an event to all subscribers.

        A failing handler is logged and never breaks the caller.
        """
        logger.debug(f"Emitting event: {event.event_type} for session {event.session_id}")

        # Call specific handlers
        for handler in self._handlers.get(event.event_type, []):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in event handler for {event.event_type}: {e}")

        # Call global handlers
        for handler in self._global_handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in global event handler: {e}")


class EventLogger:
    """Logs all events for debugging and analysis."""

    def __init__(self, log_level: int = logging.INFO):
        self.logger = logging.getLogger("event_logger")
        self.log_level = log_level

    def handle_event(self, event: InterviewEvent) -> None:
        """Log event details."""
        self.logger.log(
            self.log_level,
            f"Event: {event.event_type.value} | Session: {event.session_id} | Data: {event.data}"
        )


class InterviewMetrics:
    """Collects metrics from interview events. Safe to share across request threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def handle_event(self, event: InterviewEvent) -> None:
        """Update metrics based on event."""
        with self._lock:
            if event.event_type == EventType.INTERVIEW_STARTED:
                self.interviews_started += 1
            elif event.event_type == EventType.DECISION_MADE:
                self.decisions_made += 1
            elif event.event_type == EventType.QUESTION_ASKED:
                self.questions_asked += 1
            elif event.event_type == EventType.INTERVIEW_COMPLETED:
                self.interviews_completed += 1
            elif event.event_type == EventType.ERROR_OCCURRED:
                self.errors_occurred += 1

    def get_metrics(self) -> Dict[str, int]:
        """Get current metrics snapshot."""
        with self._lock:
            return {
                "interviews_started": self.interviews_started,
                "decisions_made": self.decisions_made,
                "questions_asked": self.questions_asked,
                "interviews_completed": self.interviews_completed,
                "errors_occurred": self.errors_occurred
            }

    def reset(self) -> None:
        """Reset all metrics to zero."""
        with self._lock:
            self.interviews_started = 0
            self.decisions_made = 0
            self.questions_asked = 0
            self.interviews_completed = 0
            self.errors_occurred = 0
