import pytest

from resume_annex.infrastructure.llm import ServiceUnavailable
from resume_annex.interview import (
    DialogueDriver, SynthesisError, Synthesizer, TerminationPlan, build_context, strip_fences,
)
from resume_annex.interview.prompts import InterviewPrompts
from resume_annex.interview.testing import (
    FailingLLMClient, MockLLMClient, SAMPLE_RESUME_TEXT, create_test_dialogue,
)
from resume_annex.config import CLOSING_MESSAGES


@pytest.fixture
def context():
    return build_context(SAMPLE_RESUME_TEXT)


@pytest.mark.parametrize("raw, expected", [
    ("```html\n<h1>Jane</h1>\n```", "<h1>Jane</h1>"),
    ("```\n<h1>Jane</h1>\n```", "<h1>Jane</h1>"),
    ("<h1>Jane</h1>", "<h1>Jane</h1>"),
    ("  ```HTML\n<p>a</p>```  ", "<p>a</p>"),
    ("``````", ""),
    ("```html<h1>Jane</h1>```", "<h1>Jane</h1>"),
    ("```html <h1>Jane</h1>\n<p>x</p>\n```", "<h1>Jane</h1>\n<p>x</p>"),
])
def test_strip_fences(raw, expected):
    assert strip_fences(raw) == expected


@pytest.mark.parametrize("raw", [
    "```html\n<h1>Jane</h1>\n```",
    "```` nested ```` ```",
    "```html<h1>Jane</h1>```",
    "``html\n```\n<p>x</p>",
    "plain",
])
def test_strip_fences_is_idempotent(raw):
    once = strip_fences(raw)
    assert strip_fences(once) == once
    assert "```" not in once


def test_driver_puts_context_first_and_counts(context):
    llm = MockLLMClient(["  What % growth did you drive?  "])
    history = create_test_dialogue(["I led sales"])
    turn = DialogueDriver(llm).advance(context, history, 1)

    assert turn.turn.role == "assistant"
    assert turn.turn.content == "What % growth did you drive?"
    assert turn.question_count == 2
    sent = llm.last_messages
    assert sent[:2] == context.to_messages()
    assert sent[2:] == [t.to_message() for t in history]
    # the caller's history is untouched
    assert len(history) == 2


def test_driver_opens_with_empty_history(context):
    llm = MockLLMClient()
    turn = DialogueDriver(llm).advance(context, [], 0)
    assert turn.question_count == 1
    assert llm.last_messages == context.to_messages()


def test_driver_failure_does_not_advance(context):
    with pytest.raises(ServiceUnavailable):
        DialogueDriver(FailingLLMClient()).advance(context, [], 0)


def test_driver_rejects_empty_reply(context):
    with pytest.raises(ServiceUnavailable):
        DialogueDriver(MockLLMClient(["   "])).advance(context, [], 0)


def test_synthesis_appends_directive_for_that_call_only(context):
    llm = MockLLMClient(["```html\n<h1>Jane Doe</h1>\n```"])
    history = create_test_dialogue(["Revenue grew 40%"])
    artifact = Synthesizer(llm).synthesize(context, history, TerminationPlan.PRO)

    assert artifact.content == "<h1>Jane Doe</h1>"
    assert artifact.closing_message == CLOSING_MESSAGES["pro"]
    sent = llm.last_messages
    assert sent[-1] == {"role": "user", "content": InterviewPrompts.synthesis_directive()}
    assert sent[:-1] == context.to_messages() + [t.to_message() for t in history]
    assert len(history) == 2


def test_closing_message_depends_only_on_plan(context):
    synthesizer = Synthesizer(MockLLMClient(["<h1>A</h1>", "<h1>B</h1>"]))
    first = synthesizer.synthesize(context, create_test_dialogue(["done"]), TerminationPlan.EXECUTIVE)
    second = synthesizer.synthesize(context, create_test_dialogue(["x", "y", "no"]), TerminationPlan.EXECUTIVE)
    assert first.closing_message == second.closing_message == CLOSING_MESSAGES["executive"]


def test_custom_closing_messages_fall_back_to_default():
    synthesizer = Synthesizer(MockLLMClient(), closing_messages={"default": "Bye"})
    assert synthesizer.closing_message(TerminationPlan.CORE) == "Bye"


def test_synthesis_failure_is_typed(context):
    with pytest.raises(SynthesisError):
        Synthesizer(FailingLLMClient()).synthesize(context, [], TerminationPlan.DEFAULT)


def test_synthesis_of_only_fences_is_an_error(context):
    with pytest.raises(SynthesisError):
        Synthesizer(MockLLMClient(["```\n```"])).synthesize(context, [], TerminationPlan.DEFAULT)
