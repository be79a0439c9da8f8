"""Human-in-the-loop disambiguation of extracted entities.

``session`` holds the per-batch state machine, ``workflow`` applies user
actions and commits, ``registry`` serialises access per session and
``cleanup`` decides when a live session may be dropped.
"""

from __future__ import annotations

from .choices import (
    PENDING,
    Confirmed,
    ManuallyCompleted,
    Pending,
    RejectedCreateNew,
    UserChoice,
    UserResolution,
)
from .cleanup import DEFAULT_ALLOWED_REASONS, SessionCleanupGuard
from .completion import CompletionResult, merge_completion, validate_completion
from .errors import (
    DisambiguationError,
    IncompleteSession,
    InvalidCompletion,
    InvalidTransition,
    SessionNotFound,
    StaleSession,
    UpstreamUnavailable,
)
from .registry import SessionRegistry
from .session import DisambiguationSession, EntitySlot, SessionProgress, new_session_id
from .views import CandidateView, EntityView, SessionView, describe_session
from .workflow import ConfirmationWorkflow, build_batch

__all__ = [
    "DEFAULT_ALLOWED_REASONS",
    "PENDING",
    "CandidateView",
    "CompletionResult",
    "ConfirmationWorkflow",
    "Confirmed",
    "DisambiguationError",
    "DisambiguationSession",
    "EntitySlot",
    "EntityView",
    "IncompleteSession",
    "InvalidCompletion",
    "InvalidTransition",
    "ManuallyCompleted",
    "Pending",
    "RejectedCreateNew",
    "SessionCleanupGuard",
    "SessionNotFound",
    "SessionProgress",
    "SessionRegistry",
    "SessionView",
    "StaleSession",
    "UpstreamUnavailable",
    "UserChoice",
    "UserResolution",
    "build_batch",
    "describe_session",
    "merge_completion",
    "new_session_id",
    "validate_completion",
]
