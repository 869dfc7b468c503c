"""
Interview decision engine: decides whether the intake continues or terminates.
"""
import re
import logging
from typing import Iterable, Optional, Sequence, Tuple

from .models import Turn, last_user_turn
from .schemas import Evaluation, InterviewState, TerminationReason
from ..config import QUESTION_BUDGET, TERMINATION_TOKENS, TERMINATION_MATCH

logger = logging.getLogger("decision_engine")

MATCH_WORD = "word"
MATCH_SUBSTRING = "substring"


def detects_termination(text: Optional[str],
                        tokens: Iterable[str] = TERMINATION_TOKENS,
                        match: str = TERMINATION_MATCH) -> bool:
    """
    Classify a user message as a request to stop the interview.

    Matching is case-insensitive. In "word" mode a token must stand on its own
    ("No.", "I'm done" match; "know", "nobody" do not). In "substring" mode any
    containment matches, e.g. "I know" matches "no".
    """
    if not text:
        return False
    lowered = text.lower()
    for token in tokens:
        token = token.strip().lower()
        if not token:
            continue
        if match == MATCH_SUBSTRING:
            if token in lowered:
                return True
        elif re.search(rf"(?<!\w){re.escape(token)}(?!\w)", lowered):
            return True
    return False


class TurnEvaluator:
    """
    The intake state machine.

    Evaluated once per chat call, before any generation. Deterministic in
    (history, question_count): the question budget is an unconditional
    backstop, the termination classifier an early exit.
    """

    def __init__(self,
                 question_budget: int = QUESTION_BUDGET,
                 termination_tokens: Sequence[str] = TERMINATION_TOKENS,
                 match: str = TERMINATION_MATCH):
        if question_budget < 1:
            raise ValueError("question_budget must be at least 1")
        if match not in (MATCH_WORD, MATCH_SUBSTRING):
            raise ValueError(f"Unknown termination match mode: {match!r}")
        self.question_budget = question_budget
        self.termination_tokens: Tuple[str, ...] = tuple(t.lower() for t in termination_tokens)
        self.match = match

    def evaluate(self, history: Sequence[Turn], question_count: int) -> Evaluation:
        """
        Decide the state for this call.

        Args:
            history: Dialogue so far, oldest first
            question_count: Questions already posed in this interview

        Returns:
            Evaluation with ACTIVE or TERMINAL and, if terminal, why
        """
        if question_count < 0:
            raise ValueError("question_count must be non-negative")

        if question_count >= self.question_budget:
            logger.info(f"Question budget exhausted ({question_count}/{self.question_budget})")
            return Evaluation(InterviewState.TERMINAL, question_count, TerminationReason.BUDGET_EXHAUSTED)

        # No user turn yet: nothing to inspect, stay ACTIVE
        user_turn = last_user_turn(history)
        if user_turn is None:
            return Evaluation(InterviewState.ACTIVE, question_count)

        if detects_termination(user_turn.content, self.termination_tokens, self.match):
            logger.info(f"User signalled completion after {question_count} question(s)")
            return Evaluation(InterviewState.TERMINAL, question_count, TerminationReason.USER_FINISHED)

        return Evaluation(InterviewState.ACTIVE, question_count)

    def remaining_questions(self, question_count: int) -> int:
        return max(0, self.question_budget - question_count)
