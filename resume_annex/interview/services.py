"""
Service classes for the intake interview: dialogue turns and final synthesis.
"""
import re
import logging
from typing import Dict, List, Sequence

from .models import ROLE_ASSISTANT, ROLE_USER, AssistantTurn, GeneratedArtifact, Turn
from .prompts import InterviewPrompts
from .schemas import InterviewContext, TerminationPlan
from ..config import CHAT_TEMPERATURE, SYNTHESIS_TEMPERATURE, CLOSING_MESSAGES, DEFAULT_PLAN
from ..infrastructure.llm import ServiceUnavailable

logger = logging.getLogger("services")

# A whole line that is only a fence marker, with or without a language tag
_FENCE_LINE = re.compile(r"^[ \t]*```[ \t]*[\w.+#-]*[ \t]*$", re.MULTILINE)
# An opening marker sharing its line with content ("```html<h1>...")
_OPENING_FENCE = re.compile(r"\A\s*```[\w.+#-]*[ \t]*")
_CLOSING_FENCE = re.compile(r"[ \t]*```\s*\Z")
_FENCE = "```"


class SynthesisError(ServiceUnavailable):
    """Final synthesis failed; no artifact was produced and the session is unchanged."""


def strip_fences(text: str) -> str:
    """
    Remove code-fence markers wrapping (or embedded in) a generated document.

    Idempotent: the loop runs to a fixed point, so a second call changes nothing.
    """
    cleaned = text
    while True:
        stripped = _FENCE_LINE.sub("", cleaned)
        stripped = _OPENING_FENCE.sub("", stripped)
        stripped = _CLOSING_FENCE.sub("", stripped)
        stripped = stripped.replace(_FENCE, "").strip()
        if stripped == cleaned:
            return cleaned
        cleaned = stripped


def build_messages(context: InterviewContext, history: Sequence[Turn]) -> List[Dict[str, str]]:
    """Context segments first, then the dialogue in chronological order."""
    return context.to_messages() + [turn.to_message() for turn in history]


class DialogueDriver:
    """Advances an ACTIVE interview by one assistant question."""

    def __init__(self, llm_client, temperature: float = CHAT_TEMPERATURE):
        self.llm_client = llm_client
        self.temperature = temperature

    def advance(self,
                context: InterviewContext,
                history: Sequence[Turn],
                question_count: int) -> AssistantTurn:
        """
        Ask the generation service for the next question.

        Args:
            context: The session's interview context, supplied first and unmodified
            history: Dialogue so far (may be empty on the first turn); not modified
            question_count: Questions posed before this turn

        Returns:
            AssistantTurn with the reply and the incremented counter

        Raises:
            ServiceUnavailable: If generation fails; the counter is not advanced
        """
        messages = build_messages(context, history)
        reply = self.llm_client.generate(messages, temperature=self.temperature)
        if not reply or not reply.strip():
            raise ServiceUnavailable("Generation returned an empty reply")

        # Every successful ACTIVE turn counts as one question posed
        new_count = question_count + 1
        logger.info(f"Posed question {new_count} ({len(history)} prior turns)")
        return AssistantTurn(turn=Turn(ROLE_ASSISTANT, reply.strip()), question_count=new_count)


class Synthesizer:
    """Folds the source document and every answer into the final resume."""

    def __init__(self,
                 llm_client,
                 closing_messages: Dict[str, str] = None,
                 temperature: float = SYNTHESIS_TEMPERATURE):
        self.llm_client = llm_client
        self.closing_messages = dict(closing_messages or CLOSING_MESSAGES)
        self.temperature = temperature

    def closing_message(self, plan: TerminationPlan) -> str:
        """Fixed closing message of a plan tier, independent of the dialogue."""
        if plan.value in self.closing_messages:
            return self.closing_messages[plan.value]
        return self.closing_messages.get(DEFAULT_PLAN, CLOSING_MESSAGES[DEFAULT_PLAN])

    def synthesize(self,
                   context: InterviewContext,
                   history: Sequence[Turn],
                   plan: TerminationPlan) -> GeneratedArtifact:
        """
        Generate the final resume.

        The synthesis directive is appended for this call only and never
        becomes part of the dialogue history.

        Raises:
            SynthesisError: If generation fails or yields nothing usable
        """
        messages = build_messages(context, history)
        messages.append({"role": ROLE_USER, "content": InterviewPrompts.synthesis_directive()})

        try:
            raw = self.llm_client.generate(messages, temperature=self.temperature)
        except SynthesisError:
            raise
        except ServiceUnavailable as e:
            raise SynthesisError(f"Synthesis call failed: {e}") from e

        content = strip_fences(raw or "")
        if not content:
            raise SynthesisError("Synthesis returned an empty document")

        logger.info(f"Synthesized resume ({len(content)} characters, plan={plan.value})")
        return GeneratedArtifact(content=content, closing_message=self.closing_message(plan))
