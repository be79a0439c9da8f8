"""In-memory store of live disambiguation sessions.

Every session owns a re-entrant lock. Mutations of one session go through
``locked()`` so concurrent requests for the same session are applied one at a
time, while different sessions proceed independently.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from brewmatch.domain.model import CleanupReason

from .cleanup import SessionCleanupGuard
from .errors import SessionNotFound

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import timedelta

    from .session import DisambiguationSession

log = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(self, *, guard: SessionCleanupGuard | None = None) -> None:
        self._guard = guard or SessionCleanupGuard()
        self._sessions: dict[str, DisambiguationSession] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._mutex = threading.Lock()

    @property
    def guard(self) -> SessionCleanupGuard:
        return self._guard

    def __len__(self) -> int:
        with self._mutex:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._mutex:
            return session_id in self._sessions

    def session_ids(self) -> list[str]:
        with self._mutex:
            return list(self._sessions)

    def add(self, session: DisambiguationSession) -> DisambiguationSession:
        with self._mutex:
            if session.session_id in self._sessions:
                raise ValueError(f"Session {session.session_id} is already registered")
            self._sessions[session.session_id] = session
            self._locks[session.session_id] = threading.RLock()
        log.debug("Registered session %s (%d entities)", session.session_id, len(session.entities))
        return session

    def get(self, session_id: str) -> DisambiguationSession:
        with self._mutex:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(f"Unknown session {session_id}", session_id=session_id)
        return session

    @contextmanager
    def locked(self, session_id: str) -> Iterator[DisambiguationSession]:
        """Hold the session's lock for the duration of the block."""

        with self._mutex:
            lock = self._locks.get(session_id)
        if lock is None:
            raise SessionNotFound(f"Unknown session {session_id}", session_id=session_id)
        with lock:
            # the session may have been released while this caller waited
            session = self.get(session_id)
            yield session

    def discard(self, session_id: str) -> DisambiguationSession | None:
        """Drop a session and its lock; return it if it was registered."""

        with self._mutex:
            session = self._sessions.pop(session_id, None)
            self._locks.pop(session_id, None)
        if session is not None:
            log.debug("Released session %s (%s)", session_id, session.status)
        return session

    def cleanup(self, session_id: str, reason: CleanupReason | str) -> bool:
        """Abandon and release a session if the cleanup guard allows it."""

        try:
            with self.locked(session_id) as session:
                if not self._guard.can_cleanup(session, reason):
                    return False
                session.abandon()
                self.discard(session_id)
        except SessionNotFound:
            log.debug("Cleanup (%s) requested for unknown session %s", reason, session_id)
            return False
        log.info("Session %s cleaned up (reason=%s)", session_id, reason)
        return True

    def sweep_expired(self, max_age: timedelta, now: datetime | None = None) -> list[str]:
        """Clean up sessions idle for longer than ``max_age``.

        Sessions awaiting a human answer are kept; ``TIMEOUT`` is not an
        allow-listed reason by default.
        """

        current = now or datetime.now(UTC)
        removed: list[str] = []
        for session_id in self.session_ids():
            try:
                session = self.get(session_id)
            except SessionNotFound:
                continue
            last_activity = session.updated_at or session.created_at
            if current - last_activity <= max_age:
                continue
            if self.cleanup(session_id, CleanupReason.TIMEOUT):
                removed.append(session_id)
        if removed:
            log.info("Swept %d expired sessions", len(removed))
        return removed
