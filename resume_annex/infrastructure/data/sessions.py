"""
In-memory interview session store.
"""
import time
import uuid
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, Optional

from .conversations import InterviewSessionRecord

logger = logging.getLogger("sessions")


class SessionNotFound(KeyError):
    """The session id is unknown or its TTL has lapsed."""


class SessionStore:
    """
    Process-local interview sessions with:
    - sliding TTL (expires ttl_seconds after last touch)
    - one lock per session, so at most one chat call evaluates a session at a time
    - a store-wide lock guarding the index itself

    Sessions do not survive a restart and are not shared between processes.
    """

    def __init__(self, ttl_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # session_id -> {"record": InterviewSessionRecord, "lock": Lock, "expires_at": float}
        self._items: Dict[str, Dict[str, Any]] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def create(self, context: Any, plan: str) -> InterviewSessionRecord:
        """Create and index a new session for an uploaded document."""
        record = InterviewSessionRecord(
            session_id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc).isoformat(),
            plan=plan,
            context=context,
        )
        with self._lock:
            self._items[record.session_id] = {
                "record": record,
                "lock": threading.Lock(),
                "expires_at": self._clock() + self.ttl_seconds,
            }
        logger.info(f"Created session {record.session_id} (plan={plan})")
        return record

    def _get_item_unlocked(self, session_id: str) -> Dict[str, Any]:
        item = self._items.get(session_id)
        if item is None:
            raise SessionNotFound(session_id)
        now = self._clock()
        if item["expires_at"] <= now:
            del self._items[session_id]
            logger.info(f"Session {session_id} expired")
            raise SessionNotFound(session_id)
        item["expires_at"] = now + self.ttl_seconds
        return item

    def get(self, session_id: str) -> InterviewSessionRecord:
        """Look up a live session and refresh its TTL."""
        with self._lock:
            return self._get_item_unlocked(str(session_id))["record"]

    @contextmanager
    def locked(self, session_id: str) -> Iterator[InterviewSessionRecord]:
        """
        Hold the session's own lock for the duration of one evaluation.

        Callers mutate the yielded record only after the generation call has
        succeeded, so an exception inside the block leaves the session as it was.
        """
        with self._lock:
            item = self._get_item_unlocked(str(session_id))
        with item["lock"]:
            yield item["record"]

    def discard(self, session_id: str) -> Optional[InterviewSessionRecord]:
        """Drop a session; returns the record if it existed."""
        with self._lock:
            item = self._items.pop(str(session_id), None)
        return item["record"] if item else None

    def sweep_expired(self) -> int:
        """
        Delete expired sessions.
        Returns how many entries were removed.
        """
        now = self._clock()
        removed = 0
        with self._lock:
            expired = [k for k, v in self._items.items() if v["expires_at"] <= now]
            for k in expired:
                del self._items[k]
                removed += 1
        if removed:
            logger.info(f"Swept {removed} expired sessions")
        return removed
