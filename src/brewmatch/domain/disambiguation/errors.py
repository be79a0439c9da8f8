"""Errors raised by the disambiguation workflow."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class DisambiguationError(RuntimeError):
    """Base class for workflow errors."""

    def __init__(self, message: str, *, session_id: str | None = None) -> None:
        super().__init__(message)
        self.session_id = session_id


class SessionNotFound(DisambiguationError):  # noqa: N818
    """Raised when no live session exists for an identifier."""


class InvalidTransition(DisambiguationError):  # noqa: N818
    """Raised when a choice or operation does not fit the current state.

    No state is changed when this is raised.
    """

    def __init__(
        self,
        message: str,
        *,
        session_id: str | None = None,
        bottle_index: int | None = None,
    ) -> None:
        super().__init__(message, session_id=session_id)
        self.bottle_index = bottle_index


class IncompleteSession(DisambiguationError):  # noqa: N818
    """Raised when a commit is attempted while entities still await resolution."""

    def __init__(
        self,
        message: str,
        *,
        session_id: str | None = None,
        outstanding: Sequence[int] = (),
    ) -> None:
        super().__init__(message, session_id=session_id)
        self.outstanding = tuple(outstanding)


class StaleSession(DisambiguationError):  # noqa: N818
    """Raised when a write was prepared against an outdated session version."""

    def __init__(self, message: str, *, session_id: str, expected: int, actual: int) -> None:
        super().__init__(message, session_id=session_id)
        self.expected = expected
        self.actual = actual


class UpstreamUnavailable(DisambiguationError):  # noqa: N818
    """Raised when the analysis service or the persistence layer fails.

    The session stays ACTIVE; retrying is the caller's decision.
    """

    def __init__(self, message: str, *, session_id: str | None = None, service: str) -> None:
        super().__init__(message, session_id=session_id)
        self.service = service


class InvalidCompletion(DisambiguationError, ValueError):  # noqa: N818
    """Raised when manually completed fields miss required values."""

    def __init__(
        self,
        message: str,
        *,
        session_id: str | None = None,
        bottle_index: int | None = None,
        missing_fields: Sequence[str] = (),
    ) -> None:
        super().__init__(message, session_id=session_id)
        self.bottle_index = bottle_index
        self.missing_fields = tuple(missing_fields)
