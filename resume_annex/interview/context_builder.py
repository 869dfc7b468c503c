"""
Builds the opening instruction context of an interview from extracted resume text.
"""
import logging

from .models import ROLE_SYSTEM
from .prompts import InterviewPrompts
from .schemas import ContextSegment, InterviewContext
from ..config import SOURCE_CHAR_BUDGET
from ..infrastructure.documents import truncate_text

logger = logging.getLogger("context_builder")


def build_context(text: str, budget: int = SOURCE_CHAR_BUDGET) -> InterviewContext:
    """
    Produce the interview context for a session.

    Over-long text is truncated to budget characters rather than rejected.
    The persona directive comes first, followed by the delimited source text,
    or by a notice telling the assistant to ask for pasted text when there is none.
    """
    source_text = truncate_text(text or "", budget)

    segments = [ContextSegment(ROLE_SYSTEM, InterviewPrompts.persona_directive())]
    if source_text.strip():
        segments.append(ContextSegment(ROLE_SYSTEM, InterviewPrompts.source_block(source_text)))
    else:
        segments.append(ContextSegment(ROLE_SYSTEM, InterviewPrompts.empty_source_notice()))

    logger.debug(f"Built interview context with {len(source_text)} source characters")
    return InterviewContext(segments=tuple(segments), source_text=source_text)
