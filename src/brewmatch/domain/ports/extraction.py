"""Inbound port for the label-analysis service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from brewmatch.domain.model import ExtractedEntity


@dataclass(frozen=True, slots=True, kw_only=True)
class ExtractionResult:
    """Entities read from one photo.

    ``entities`` is ordered by bottle, breweries before beers within a bottle.
    """

    entities: tuple[ExtractedEntity, ...] = ()
    success: bool = True
    message: str | None = None
    confidence: float | None = None
    bottle_count: int = 0
    warnings: tuple[str, ...] = ()


@runtime_checkable
class LabelExtractor(Protocol):
    """Analyse a bottle photo and return the extracted entities."""

    def __call__(self, image: bytes, mime_type: str) -> ExtractionResult: ...
