"""
Intake orchestrator: wires extraction, context building, the turn evaluator,
the dialogue driver and the synthesizer into upload and chat operations.
"""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import (
    ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_USER, ChatOutcome, Turn, UploadResult, history_from_messages
)
from .schemas import Evaluation, InterviewContext, TerminationPlan
from .context_builder import build_context
from .decision_engine import TurnEvaluator
from .services import DialogueDriver, Synthesizer
from .prompts import InterviewPrompts
from .events import (
    InterviewEventBus, EventLogger, InterviewMetrics,
    InterviewStartedEvent, DecisionMadeEvent, QuestionAskedEvent,
    InterviewCompletedEvent, ErrorOccurredEvent
)
from ..config import Config, OPTIMIZE_TEMPERATURE
from ..infrastructure.documents import extract_text
from ..infrastructure.llm import VertexRestClient, ServiceUnavailable
from ..infrastructure.data import SessionStore

logger = logging.getLogger("orchestrator")

STATELESS_SESSION = "stateless"


class IntakeOrchestrator:
    """
    Conversational intake engine.

    Holds no per-interview state of its own: each call receives (or looks up)
    the context, history and question count, evaluates the state machine once,
    and either asks the next question or synthesizes the final resume.
    """

    def __init__(self,
                 config: Config,
                 llm_client: Optional[Any] = None,
                 session_store: Optional[SessionStore] = None):
        self.config = config

        # Initialize event system
        self.event_bus = InterviewEventBus()
        self.event_logger = EventLogger()
        self.metrics = InterviewMetrics()

        # Subscribe to events
        self.event_bus.subscribe_all(self.event_logger.handle_event)
        self.event_bus.subscribe_all(self.metrics.handle_event)

        # Initialize generation client; a missing project only fails AI calls
        if llm_client is None:
            llm_client = VertexRestClient(
                project=config.google_cloud_project,
                location=config.vertex_location,
                model=config.model_name,
                credentials_json=config.google_application_credentials,
                timeout=config.llm_timeout,
                max_output_tokens=config.max_output_tokens,
            )
        self.llm_client = llm_client

        self.session_store = session_store or SessionStore(ttl_seconds=config.session_ttl_seconds)

        self.evaluator = TurnEvaluator(
            question_budget=config.question_budget,
            termination_tokens=config.termination_tokens,
            match=config.termination_match,
        )
        self.driver = DialogueDriver(self.llm_client)
        self.synthesizer = Synthesizer(self.llm_client, closing_messages=config.closing_messages)

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def start_interview(self,
                        data: bytes,
                        declared_type: Optional[str] = None,
                        filename: Optional[str] = None,
                        plan: Optional[str] = None) -> UploadResult:
        """
        Start an interview from an uploaded document.

        Args:
            data: Uploaded file bytes
            declared_type: Client-declared content type
            filename: Original filename
            plan: Plan tier, fixed for the whole session

        Returns:
            UploadResult with the first reply, the context and a new session id

        Raises:
            ExtractionError: If the document cannot be read
            ServiceUnavailable / ConfigurationError: If the first question cannot be generated
        """
        try:
            text = extract_text(data, declared_type, filename, budget=self.config.source_char_budget)
            context = build_context(text, budget=self.config.source_char_budget)
            tier = TerminationPlan.parse(plan)

            history: List[Turn] = []
            question_count = 0
            if context.has_source:
                # Empty history: the driver opens with a question from the context alone
                assistant = self.driver.advance(context, history, question_count)
                history.append(assistant.turn)
                question_count = assistant.question_count
                reply = assistant.turn.content
            else:
                logger.info("Upload produced no text; asking the candidate to paste it")
                reply = InterviewPrompts.fallback_messages()["paste_text"]
                # Kept in the history so the model knows it already asked for pasted text
                history.append(Turn(ROLE_ASSISTANT, reply))

            # Only persist once the first reply exists
            self.session_store.sweep_expired()
            record = self.session_store.create(context, tier.value)
            record.history.extend(history)
            record.question_count = question_count

        except Exception as e:
            self._emit_error(STATELESS_SESSION, e, "upload")
            raise

        now = time.time()
        self.event_bus.emit(InterviewStartedEvent(
            record.session_id, now, len(context.source_text), tier.value
        ))
        if question_count:
            self.event_bus.emit(QuestionAskedEvent(record.session_id, now, question_count))

        return UploadResult(
            reply=reply,
            context=context,
            session_id=record.session_id,
            question_count=question_count,
            source_chars=len(context.source_text),
        )

    # ------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------

    def chat(self,
             messages: Optional[Sequence[Dict[str, Any]]] = None,
             message: Optional[str] = None,
             session_id: Optional[str] = None,
             question_count: Optional[int] = None,
             plan: Optional[str] = None,
             initial_context: Optional[Dict[str, Any]] = None) -> ChatOutcome:
        """
        Handle one chat call.

        With a session_id the server-held context, history, plan and question
        count are authoritative and caller-supplied values are ignored.
        Without one, the caller carries everything (stateless mode).

        Raises:
            ValueError: If the request is malformed
            SessionNotFound: If session_id is unknown or expired
            ServiceUnavailable / SynthesisError / ConfigurationError: On generation failure
        """
        try:
            if session_id:
                return self._chat_with_session(session_id, messages, message)
            return self._chat_stateless(messages, message, question_count, plan, initial_context)
        except Exception as e:
            self._emit_error(session_id or STATELESS_SESSION, e, "chat")
            raise

    def _chat_with_session(self,
                           session_id: str,
                           messages: Optional[Sequence[Dict[str, Any]]],
                           message: Optional[str]) -> ChatOutcome:
        with self.session_store.locked(session_id) as record:
            if record.is_complete:
                # TERMINAL is absorbing: hand back the artifact created at the transition
                logger.info(f"Session {session_id} already complete; returning stored resume")
                return ChatOutcome(
                    reply=record.closing_message,
                    is_complete=True,
                    question_count=record.question_count,
                    generated_resume=record.artifact,
                )

            user_text = message if message is not None else _last_user_content(messages)
            if user_text is None or not user_text.strip():
                raise ValueError("No message provided")
            user_turn = Turn(ROLE_USER, user_text)
            history = list(record.history) + [user_turn]

            outcome, assistant_turn = self._run_turn(
                session_id, record.context, history, record.question_count,
                TerminationPlan.parse(record.plan),
            )

            # Commit only after the generation call succeeded
            record.history.append(user_turn)
            if assistant_turn is not None:
                record.history.append(assistant_turn)
            record.question_count = outcome.question_count
            if outcome.is_complete:
                record.artifact = outcome.generated_resume
                record.closing_message = outcome.reply
                record.completed_at = datetime.now(timezone.utc).isoformat()
            return outcome

    def _chat_stateless(self,
                        messages: Optional[Sequence[Dict[str, Any]]],
                        message: Optional[str],
                        question_count: Optional[int],
                        plan: Optional[str],
                        initial_context: Optional[Dict[str, Any]]) -> ChatOutcome:
        if messages is None and message is None:
            raise ValueError("No messages provided")
        raw = list(messages or [])
        if message is not None:
            raw.append({"role": ROLE_USER, "content": message})

        system_messages, dialogue = _split_leading_system(raw)
        if initial_context is not None:
            context = InterviewContext.from_payload(initial_context)
            if system_messages:
                logger.debug("Ignoring %d leading system messages; initialContext supplied", len(system_messages))
        elif system_messages:
            context = InterviewContext.from_system_messages(system_messages)
        else:
            context = build_context("", budget=self.config.source_char_budget)

        history = history_from_messages(dialogue)
        for idx, turn in enumerate(history):
            if not turn.content.strip():
                raise ValueError(f"Message {idx} is empty")
        count = question_count or 0
        if count < 0:
            raise ValueError("questionCount must be non-negative")

        outcome, _ = self._run_turn(
            STATELESS_SESSION, context, history, count, TerminationPlan.parse(plan)
        )
        return outcome

    def _run_turn(self,
                  session_id: str,
                  context: InterviewContext,
                  history: Sequence[Turn],
                  question_count: int,
                  plan: TerminationPlan) -> Tuple[ChatOutcome, Optional[Turn]]:
        """Evaluate the state machine once, then drive or synthesize."""
        evaluation: Evaluation = self.evaluator.evaluate(history, question_count)
        reason = evaluation.reason.value if evaluation.reason else None

        logger.info(
            f"Session {session_id}: {evaluation.state.value} at question "
            f"{question_count}/{self.evaluator.question_budget}, "
            f"{self.evaluator.remaining_questions(question_count)} left (reason={reason})"
        )
        self.event_bus.emit(DecisionMadeEvent(
            session_id, time.time(), evaluation.state.value, question_count, reason
        ))

        if evaluation.is_terminal:
            artifact = self.synthesizer.synthesize(context, history, plan)
            self.event_bus.emit(InterviewCompletedEvent(
                session_id, time.time(), question_count, plan.value, len(artifact.content)
            ))
            outcome = ChatOutcome(
                reply=artifact.closing_message,
                is_complete=True,
                question_count=question_count,
                generated_resume=artifact.content,
            )
            return outcome, None

        assistant = self.driver.advance(context, history, question_count)
        self.event_bus.emit(QuestionAskedEvent(session_id, time.time(), assistant.question_count))
        outcome = ChatOutcome(
            reply=assistant.turn.content,
            is_complete=False,
            question_count=assistant.question_count,
        )
        return outcome, assistant.turn

    # ------------------------------------------------------------------
    # Optimize
    # ------------------------------------------------------------------

    def optimize(self, text: Optional[str]) -> str:
        """Single-shot rewrite of one resume bullet; no state machine involved."""
        if not text or not text.strip():
            raise ValueError("No content")
        messages = [
            {"role": ROLE_SYSTEM, "content": InterviewPrompts.optimize_directive()},
            {"role": ROLE_USER, "content": InterviewPrompts.optimize_request(text.strip())},
        ]
        try:
            enhanced = self.llm_client.generate(messages, temperature=OPTIMIZE_TEMPERATURE)
        except Exception as e:
            self._emit_error(STATELESS_SESSION, e, "optimize")
            raise
        if not enhanced or not enhanced.strip():
            raise ServiceUnavailable("Generation returned an empty reply")
        return enhanced.strip()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _emit_error(self, session_id: str, error: Exception, component: str) -> None:
        logger.error("%s failed for session %s: %s: %s", component, session_id, type(error).__name__, error)
        self.event_bus.emit(ErrorOccurredEvent(
            session_id, time.time(), type(error).__name__, str(error), component
        ))

    def get_metrics(self) -> Dict[str, int]:
        """Get current event metrics."""
        return self.metrics.get_metrics()

    def reset_metrics(self):
        """Reset event metrics."""
        self.metrics.reset()


def _split_leading_system(messages: Sequence[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    idx = 0
    while idx < len(messages) and isinstance(messages[idx], dict) and messages[idx].get("role") == ROLE_SYSTEM:
        idx += 1
    return list(messages[:idx]), list(messages[idx:])


def _last_user_content(messages: Optional[Sequence[Dict[str, Any]]]) -> Optional[str]:
    for message in reversed(list(messages or [])):
        if isinstance(message, dict) and message.get("role") == ROLE_USER:
            content = message.get("content")
            return content if isinstance(content, str) else None
    return None
