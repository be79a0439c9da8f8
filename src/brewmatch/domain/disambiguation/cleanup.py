"""Policy deciding when a live session may be torn down."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from brewmatch.domain.model import CleanupReason

if TYPE_CHECKING:
    from .session import DisambiguationSession

log = logging.getLogger(__name__)

DEFAULT_ALLOWED_REASONS: frozenset[CleanupReason] = frozenset(
    {CleanupReason.LOGOUT, CleanupReason.ROLE_CHANGE, CleanupReason.MANUAL_ADMIN}
)


def parse_reason(reason: CleanupReason | str) -> CleanupReason | None:
    """Return the known reason for ``reason`` or ``None`` for unknown strings."""

    if isinstance(reason, CleanupReason):
        return reason
    try:
        return CleanupReason(reason)
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class SessionCleanupGuard:
    """Protects sessions that are waiting on a human answer.

    A session with an entity awaiting a human response survives every cleanup
    trigger except the allow-listed ones.
    """

    allowed: frozenset[CleanupReason] = field(default=DEFAULT_ALLOWED_REASONS)

    def can_cleanup(self, session: DisambiguationSession, reason: CleanupReason | str) -> bool:
        if not session.awaiting_human():
            return True
        known = parse_reason(reason)
        if known is not None and known in self.allowed:
            return True
        log.info(
            "Cleanup of session %s blocked (reason=%s): %d entities await a response",
            session.session_id,
            reason,
            len(session.awaiting_human()),
        )
        return False
