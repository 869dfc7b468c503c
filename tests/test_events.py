from resume_annex.interview import (
    EventType, InterviewEventBus, InterviewMetrics, QuestionAskedEvent, ErrorOccurredEvent,
)


def test_typed_subscription_only_sees_its_events():
    bus = InterviewEventBus()
    seen = []
    bus.subscribe(EventType.QUESTION_ASKED, seen.append)

    bus.emit(QuestionAskedEvent("s1", 1.0, 2))
    bus.emit(ErrorOccurredEvent("s1", 2.0, "ServiceUnavailable", "down", "chat"))

    assert [e.event_type for e in seen] == [EventType.QUESTION_ASKED]
    assert seen[0].data == {"question_count": 2}


def test_failing_handler_does_not_break_emit():
    bus = InterviewEventBus()
    metrics = InterviewMetrics()

    def broken(event):
        raise RuntimeError("handler bug")

    bus.subscribe(EventType.QUESTION_ASKED, broken)
    bus.subscribe_all(metrics.handle_event)
    bus.emit(QuestionAskedEvent("s1", 1.0, 1))

    assert metrics.get_metrics()["questions_asked"] == 1
