"""Per-entity resolution states recorded in a disambiguation session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from brewmatch.domain.model import UserResolutionKind

if TYPE_CHECKING:
    from brewmatch.domain.model import CatalogRecord


@dataclass(frozen=True, slots=True)
class Pending:
    kind: Literal[UserResolutionKind.PENDING] = UserResolutionKind.PENDING

    @property
    def is_terminal(self) -> bool:
        return False


@dataclass(frozen=True, slots=True, kw_only=True)
class Confirmed:
    """Entity is an existing catalog record.

    ``automatic`` marks auto-matches that no human has looked at yet; those stay
    overridable until the session starts committing.
    """

    record: CatalogRecord
    automatic: bool = False
    kind: Literal[UserResolutionKind.CONFIRMED] = UserResolutionKind.CONFIRMED

    @property
    def is_terminal(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class RejectedCreateNew:
    """User declined every candidate; a new record is created downstream."""

    kind: Literal[UserResolutionKind.REJECTED_CREATE_NEW] = UserResolutionKind.REJECTED_CREATE_NEW

    @property
    def is_terminal(self) -> bool:
        return True


@dataclass(frozen=True, slots=True, kw_only=True)
class ManuallyCompleted:
    """User supplied the fields the label analysis could not provide.

    ``record`` is set when the user completed gaps of a confirmed match rather
    than describing a brand new entity.
    """

    fields: dict[str, str] = field(default_factory=dict[str, str])
    record: CatalogRecord | None = None
    kind: Literal[UserResolutionKind.MANUALLY_COMPLETED] = UserResolutionKind.MANUALLY_COMPLETED

    @property
    def is_terminal(self) -> bool:
        return True


type UserResolution = Pending | Confirmed | RejectedCreateNew | ManuallyCompleted
type UserChoice = Confirmed | RejectedCreateNew | ManuallyCompleted

PENDING = Pending()


def same_outcome(current: UserResolution, choice: UserChoice) -> bool:
    """Whether ``choice`` describes the outcome already recorded in ``current``."""

    if isinstance(current, Confirmed) and isinstance(choice, Confirmed):
        return _same_record(current.record, choice.record)
    if isinstance(current, RejectedCreateNew) and isinstance(choice, RejectedCreateNew):
        return True
    if isinstance(current, ManuallyCompleted) and isinstance(choice, ManuallyCompleted):
        return current.fields == choice.fields and _same_record(current.record, choice.record)
    return False


def _same_record(left: CatalogRecord | None, right: CatalogRecord | None) -> bool:
    if left is None or right is None:
        return left is right
    return left.id == right.id and left.kind is right.kind
