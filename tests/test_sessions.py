import threading

import pytest

from resume_annex.infrastructure.data import SessionNotFound, SessionStore
from resume_annex.interview import build_context


@pytest.fixture
def store(clock):
    return SessionStore(ttl_seconds=60, clock=clock)


def test_create_and_get(store):
    record = store.create(build_context("Jane Doe"), "pro")
    assert store.get(record.session_id) is record
    assert record.plan == "pro"
    assert record.question_count == 0
    assert not record.is_complete
    assert len(store) == 1


def test_unknown_session(store):
    with pytest.raises(SessionNotFound):
        store.get("missing")
    with pytest.raises(KeyError):
        with store.locked("missing"):
            pass


def test_ttl_is_sliding(store, clock):
    record = store.create(build_context("Jane"), "default")
    clock.advance(50)
    store.get(record.session_id)
    clock.advance(50)
    assert store.get(record.session_id) is record
    clock.advance(61)
    with pytest.raises(SessionNotFound):
        store.get(record.session_id)
    assert len(store) == 0


def test_sweep_expired(store, clock):
    store.create(build_context("a"), "default")
    store.create(build_context("b"), "default")
    clock.advance(30)
    keep = store.create(build_context("c"), "default")
    clock.advance(31)
    assert store.sweep_expired() == 2
    assert store.get(keep.session_id) is keep


def test_discard(store):
    record = store.create(build_context("a"), "default")
    assert store.discard(record.session_id) is record
    assert store.discard(record.session_id) is None


def test_locked_serializes_access(store):
    record = store.create(build_context("a"), "default")
    entered = threading.Event()
    release = threading.Event()
    order = []

    def first():
        with store.locked(record.session_id):
            entered.set()
            release.wait(5)
            order.append("first")

    def second():
        entered.wait(5)
        with store.locked(record.session_id):
            order.append("second")

    t1 = threading.Thread(target=first)
    t2 = threading.Thread(target=second)
    t1.start()
    t2.start()
    entered.wait(5)
    release.set()
    t1.join(5)
    t2.join(5)
    assert order == ["first", "second"]
