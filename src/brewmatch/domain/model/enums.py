"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    BREWERY = "brewery"
    BEER = "beer"


class ResolutionStatus(StrEnum):
    """Classifier verdict for one extracted entity."""

    AUTO_MATCH = "auto_match"
    CONFIRM_SINGLE = "confirm_single"
    DISAMBIGUATE_MULTI = "disambiguate_multi"
    NO_MATCH = "no_match"


class AmbiguityReason(StrEnum):
    MULTIPLE_SIMILAR_MATCHES = "multiple_similar_matches"
    MULTIPLE_KEYWORD_MATCHES = "multiple_keyword_matches"


class UserResolutionKind(StrEnum):
    """Human (or automatic) outcome recorded against one session entity."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED_CREATE_NEW = "rejected_create_new"
    MANUALLY_COMPLETED = "manually_completed"


class SessionStatus(StrEnum):
    ACTIVE = "active"
    COMMITTING = "committing"
    COMMITTED = "committed"
    ABANDONED = "abandoned"


class CleanupReason(StrEnum):
    """Reasons a client or background job may ask to drop a session."""

    REVIEW_COMPLETED = "review_completed"
    REVIEW_ERROR = "review_error"
    USER_NAVIGATION = "user_navigation"
    ROLE_CHANGE = "role_change"
    LOGOUT = "logout"
    TIMEOUT = "timeout"
    MANUAL = "manual"
    MANUAL_ADMIN = "manual_admin"
