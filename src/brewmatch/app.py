"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from brewmatch.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    is_started,
    startup,
)
from brewmatch.adapters.vision import LabelAnalysisError, VisionLabelExtractor
from brewmatch.config import get_matching_config, get_session_config, get_vision_config
from brewmatch.domain.disambiguation import (
    ConfirmationWorkflow,
    SessionRegistry,
    UpstreamUnavailable,
)
from brewmatch.domain.model import BeerRecord, BreweryRecord, parse_abv
from brewmatch.domain.submission import open_session, resolve_submission

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from brewmatch.config import MatchingConfig, SessionConfig
    from brewmatch.domain.disambiguation import DisambiguationSession
    from brewmatch.domain.matching import ResolutionDecision
    from brewmatch.domain.model import ExtractedEntity
    from brewmatch.domain.ports import CatalogUnitOfWork, ExtractionResult, LabelExtractor

type UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ImportResult:
    breweries: int
    beers: int


def ensure_started() -> None:
    if not is_started():
        startup()


def build_workflow(
    *,
    registry: SessionRegistry | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ConfirmationWorkflow:
    """Wire a confirmation workflow to the SQLAlchemy catalog by default."""

    if unit_of_work_factory is None:
        ensure_started()
    return ConfirmationWorkflow(
        registry or SessionRegistry(),
        unit_of_work_factory or SqlAlchemyCatalogUnitOfWork,
    )


def analyze_label(
    image: bytes,
    mime_type: str,
    *,
    extractor: LabelExtractor | None = None,
) -> ExtractionResult:
    """Run label analysis; transport failures surface as ``UpstreamUnavailable``."""

    effective_extractor = extractor or VisionLabelExtractor.from_config(get_vision_config())
    try:
        return effective_extractor(image, mime_type)
    except (httpx.HTTPError, LabelAnalysisError) as exc:
        log.exception("Label analysis failed")
        raise UpstreamUnavailable(f"Label analysis failed: {exc}", service="vision") from exc


def resolve_entities(
    entities: Iterable[ExtractedEntity],
    *,
    matching: MatchingConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> list[tuple[ExtractedEntity, ResolutionDecision]]:
    """Classify entities against the catalog without opening a session."""

    config = matching or get_matching_config()
    if unit_of_work_factory is None:
        ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyCatalogUnitOfWork
    with effective_uow() as uow:
        return resolve_submission(
            entities,
            uow.repositories.catalog,
            policy=config.policy,
            keywords=config.keywords,
        )


def submit_entities(
    entities: Iterable[ExtractedEntity],
    workflow: ConfirmationWorkflow,
    *,
    matching: MatchingConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    now: datetime | None = None,
) -> DisambiguationSession:
    """Resolve extracted entities and open a disambiguation session for them."""

    config = matching or get_matching_config()
    if unit_of_work_factory is None:
        ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyCatalogUnitOfWork
    with effective_uow() as uow:
        return open_session(
            entities,
            uow.repositories.catalog,
            workflow.registry,
            policy=config.policy,
            keywords=config.keywords,
            now=now,
        )


def submit_photo(
    image: bytes,
    mime_type: str,
    workflow: ConfirmationWorkflow,
    *,
    extractor: LabelExtractor | None = None,
    matching: MatchingConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> DisambiguationSession | None:
    """Analyse a bottle photo and open a session; ``None`` if nothing was read."""

    result = analyze_label(image, mime_type, extractor=extractor)
    if not result.success or not result.entities:
        log.warning("No entities extracted from photo: %s", result.message or "empty result")
        return None
    return submit_entities(
        result.entities,
        workflow,
        matching=matching,
        unit_of_work_factory=unit_of_work_factory,
    )


def sweep_sessions(
    registry: SessionRegistry,
    *,
    config: SessionConfig | None = None,
    now: datetime | None = None,
) -> list[str]:
    effective = config or get_session_config()
    return registry.sweep_expired(effective.ttl, now=now)


def import_catalog(
    payload: Mapping[str, object],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> ImportResult:
    """Seed the catalog from ``{"breweries": [...], "beers": [...]}``."""

    breweries = [_brewery_record(item) for item in _items(payload, "breweries")]
    beers = [_beer_record(item) for item in _items(payload, "beers")]
    if unit_of_work_factory is None:
        ensure_started()
    effective_uow = unit_of_work_factory or SqlAlchemyCatalogUnitOfWork
    with effective_uow() as uow:
        for record in [*breweries, *beers]:
            uow.repositories.catalog.add(record)
        uow.commit()
    log.info("Imported %d breweries and %d beers", len(breweries), len(beers))
    return ImportResult(breweries=len(breweries), beers=len(beers))


def _items(payload: Mapping[str, object], key: str) -> list[Mapping[str, object]]:
    raw = payload.get(key, [])
    if not isinstance(raw, list):
        raise ValueError(f"'{key}' must be a list")
    items: list[Mapping[str, object]] = []
    for item in raw:
        if not isinstance(item, dict) or not item.get("id") or not item.get("name"):
            raise ValueError(f"Every entry of '{key}' needs an id and a name")
        items.append(item)
    return items


def _optional_str(item: Mapping[str, object], key: str) -> str | None:
    value = item.get(key)
    return str(value) if value is not None else None


def _brewery_record(item: Mapping[str, object]) -> BreweryRecord:
    return BreweryRecord(
        id=str(item["id"]),
        name=str(item["name"]),
        website=_optional_str(item, "website"),
        email=_optional_str(item, "email"),
        address=_optional_str(item, "address"),
    )


def _beer_record(item: Mapping[str, object]) -> BeerRecord:
    return BeerRecord(
        id=str(item["id"]),
        name=str(item["name"]),
        brewery_id=_optional_str(item, "brewery_id"),
        beer_type=_optional_str(item, "beer_type"),
        abv=parse_abv(item.get("abv")),
    )
