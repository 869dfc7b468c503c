import pytest

from resume_annex.interview import InterviewState, TerminationReason, TurnEvaluator, Turn, detects_termination
from resume_annex.interview.testing import create_test_dialogue


@pytest.fixture
def evaluator():
    return TurnEvaluator(question_budget=4)


def test_budget_is_an_unconditional_backstop(evaluator):
    history = create_test_dialogue(["We grew revenue 40%", "Twelve engineers", "About $2M", "Yes, in 2023"])
    evaluation = evaluator.evaluate(history, 4)
    assert evaluation.state is InterviewState.TERMINAL
    assert evaluation.reason is TerminationReason.BUDGET_EXHAUSTED


def test_budget_wins_even_without_user_turn(evaluator):
    assert evaluator.evaluate([], 7).is_terminal


def test_empty_history_stays_active(evaluator):
    evaluation = evaluator.evaluate([], 0)
    assert evaluation.state is InterviewState.ACTIVE
    assert evaluation.reason is None


@pytest.mark.parametrize("answer", ["No", "no.", "I'm DONE", "Nothing else to add", "none"])
def test_termination_tokens_end_the_interview(evaluator, answer):
    evaluation = evaluator.evaluate(create_test_dialogue([answer]), 1)
    assert evaluation.state is InterviewState.TERMINAL
    assert evaluation.reason is TerminationReason.USER_FINISHED


def test_only_the_latest_user_turn_counts(evaluator):
    history = create_test_dialogue(["no", "We cut costs by 15%"])
    assert evaluator.evaluate(history, 2).state is InterviewState.ACTIVE


def test_trailing_assistant_turn_does_not_hide_user_answer(evaluator):
    history = create_test_dialogue(["done"]) + [Turn("assistant", "Anything else?")]
    assert evaluator.evaluate(history, 1).is_terminal


def test_word_mode_ignores_tokens_inside_words(evaluator):
    history = create_test_dialogue(["I know the pipeline grew; nobody else owned it"])
    assert evaluator.evaluate(history, 1).state is InterviewState.ACTIVE


def test_substring_mode_keeps_historical_behaviour():
    evaluator = TurnEvaluator(question_budget=4, match="substring")
    history = create_test_dialogue(["I know the pipeline grew"])
    assert evaluator.evaluate(history, 1).is_terminal


def test_evaluation_is_deterministic(evaluator):
    history = create_test_dialogue(["We shipped three products"])
    assert evaluator.evaluate(history, 2) == evaluator.evaluate(history, 2)


def test_negative_count_is_rejected(evaluator):
    with pytest.raises(ValueError):
        evaluator.evaluate([], -1)


def test_invalid_construction():
    with pytest.raises(ValueError):
        TurnEvaluator(question_budget=0)
    with pytest.raises(ValueError):
        TurnEvaluator(match="fuzzy")


def test_remaining_questions(evaluator):
    assert evaluator.remaining_questions(1) == 3
    assert evaluator.remaining_questions(9) == 0


def test_detects_termination_custom_tokens():
    assert detects_termination("That's all, finished", tokens=("finished",))
    assert not detects_termination("", tokens=("no",))
    assert not detects_termination(None)
