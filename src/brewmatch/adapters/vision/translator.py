"""Translate label-analysis payloads into extracted entities."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from brewmatch.domain.matching import normalize
from brewmatch.domain.model import AuxiliaryFields, EntityKind, ExtractedEntity
from brewmatch.domain.ports import ExtractionResult

if TYPE_CHECKING:
    from .schema import AnalysisResponse, BottlePayload, BreweryPayload

log = getLogger(__name__)


def translate_analysis(payload: AnalysisResponse) -> ExtractionResult:
    """Build one brewery and one beer entity per readable bottle.

    Brewery hints (website, email, address) come from the ``breweries`` section
    and are attached to the bottle whose brewery name they share.
    """

    if not payload.success:
        log.warning("Label analysis reported failure: %s", payload.message)
        return ExtractionResult(success=False, message=payload.message)

    breweries = {
        normalize(brewery.label_name): brewery
        for brewery in payload.breweries
        if brewery.label_name is not None
    }
    entities: list[ExtractedEntity] = []
    warnings: list[str] = []

    for index, bottle in enumerate(payload.bottles):
        brewery_name = _brewery_name(bottle, payload.breweries)
        if brewery_name is not None:
            visible = breweries.get(normalize(brewery_name))
            entities.append(
                ExtractedEntity(
                    kind=EntityKind.BREWERY,
                    raw_label=brewery_name,
                    bottle_index=index,
                    auxiliary_fields=_brewery_hints(visible),
                )
            )
        else:
            warnings.append(f"bottle {index}: brewery name not readable")

        label = bottle.label_data
        if label.beer_name is not None:
            entities.append(
                ExtractedEntity(
                    kind=EntityKind.BEER,
                    raw_label=label.beer_name,
                    bottle_index=index,
                    auxiliary_fields=AuxiliaryFields(
                        beer_type=label.beer_style,
                        abv=label.alcohol_content,
                    ),
                    brewery_label=brewery_name,
                )
            )
        else:
            warnings.append(f"bottle {index}: beer name not readable")

    for warning in warnings:
        log.info("Label analysis: %s", warning)

    confidence = payload.summary.average_confidence if payload.summary else None
    return ExtractionResult(
        entities=tuple(entities),
        success=True,
        message=payload.message,
        confidence=confidence,
        bottle_count=len(payload.bottles),
        warnings=tuple(warnings),
    )


def _brewery_name(bottle: BottlePayload, breweries: list[BreweryPayload]) -> str | None:
    if bottle.label_data.brewery_name is not None:
        return bottle.label_data.brewery_name
    if len(breweries) == 1:
        return breweries[0].label_name
    return None


def _brewery_hints(brewery: BreweryPayload | None) -> AuxiliaryFields:
    if brewery is None:
        return AuxiliaryFields()
    visible = brewery.visible_data
    return AuxiliaryFields(
        website=visible.website,
        email=visible.email,
        address=visible.address,
    )
