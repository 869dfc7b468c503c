"""Intake interview components.

This module contains the business logic of the conversational intake engine:
context building, the turn-evaluating state machine, the dialogue driver,
final synthesis, and the orchestrator that wires them together.
"""

# Core orchestrator class
from .orchestrator import IntakeOrchestrator

# Data models
from .models import Turn, AssistantTurn, GeneratedArtifact, UploadResult, ChatOutcome

# Structured schemas and state
from .schemas import (
    InterviewState, TerminationPlan, TerminationReason,
    InterviewContext, ContextSegment, Evaluation
)

# Context builder
from .context_builder import build_context

# Decision engine
from .decision_engine import TurnEvaluator, detects_termination

# Service classes
from .services import DialogueDriver, Synthesizer, SynthesisError, strip_fences

# Event system
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    EventType, InterviewEvent, InterviewStartedEvent,
    DecisionMadeEvent, QuestionAskedEvent,
    InterviewCompletedEvent, ErrorOccurredEvent
)

__all__ = [
    # Orchestrator
    "IntakeOrchestrator",

    # Data models
    "Turn", "AssistantTurn", "GeneratedArtifact", "UploadResult", "ChatOutcome",

    # Schemas and state
    "InterviewState", "TerminationPlan", "TerminationReason",
    "InterviewContext", "ContextSegment", "Evaluation",

    # Context builder
    "build_context",

    # Decision engine
    "TurnEvaluator", "detects_termination",

    # Services
    "DialogueDriver", "Synthesizer", "SynthesisError", "strip_fences",

    # Events
    "InterviewEventBus", "EventLogger", "InterviewMetrics",
    "EventType", "InterviewEvent", "InterviewStartedEvent",
    "DecisionMadeEvent", "QuestionAskedEvent",
    "InterviewCompletedEvent", "ErrorOccurredEvent",
]
