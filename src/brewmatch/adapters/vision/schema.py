"""Pydantic models describing the label-analysis service payload."""

from __future__ import annotations

import logging
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from brewmatch.domain.model import parse_abv

log = logging.getLogger(__name__)


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class VisionBaseModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    def model_post_init(self, _context: object, /) -> None:
        extras = self.__pydantic_extra__
        if not extras:
            return
        new_keys = set(extras).difference(self._logged_extra_keys)
        if not new_keys:
            return
        self._logged_extra_keys.update(new_keys)
        log.debug(
            "Label analysis %s: unmodeled keys: %s",
            type(self).__name__,
            ", ".join(sorted(new_keys)),
        )


class LabelData(VisionBaseModel):
    beer_name: str | None = Field(default=None, alias="beerName")
    brewery_name: str | None = Field(default=None, alias="breweryName")
    alcohol_content: float | None = Field(default=None, alias="alcoholContent")
    beer_style: str | None = Field(default=None, alias="beerStyle")
    location: str | None = None

    @field_validator("beer_name", "brewery_name", "beer_style", "location", mode="before")
    @classmethod
    def _normalize_text(cls, value: object) -> object:
        return _blank_to_none(value)

    @field_validator("alcohol_content", mode="before")
    @classmethod
    def _parse_abv(cls, value: object) -> float | None:
        return parse_abv(value)


class BottlePayload(VisionBaseModel):
    id: int | None = None
    label_data: LabelData = Field(default_factory=LabelData, alias="labelData")
    extraction_confidence: float | None = Field(default=None, alias="extractionConfidence")


class VisibleData(VisionBaseModel):
    location: str | None = None
    website: str | None = None
    email: str | None = None
    address: str | None = None

    @field_validator("location", "website", "email", "address", mode="before")
    @classmethod
    def _normalize_text(cls, value: object) -> object:
        return _blank_to_none(value)


class BreweryPayload(VisionBaseModel):
    id: int | None = None
    label_name: str | None = Field(default=None, alias="labelName")
    visible_data: VisibleData = Field(default_factory=VisibleData, alias="visibleData")
    extraction_confidence: float | None = Field(default=None, alias="extractionConfidence")

    @field_validator("label_name", mode="before")
    @classmethod
    def _normalize_name(cls, value: object) -> object:
        return _blank_to_none(value)


class AnalysisSummary(VisionBaseModel):
    average_confidence: float | None = Field(default=None, alias="averageConfidence")
    status: str | None = None


class AnalysisResponse(VisionBaseModel):
    success: bool = True
    message: str | None = None
    image_quality: str | None = Field(default=None, alias="imageQuality")
    total_bottles_found: int | None = Field(default=None, alias="totalBottlesFound")
    bottles: list[BottlePayload] = Field(default_factory=list)
    breweries: list[BreweryPayload] = Field(default_factory=list)
    summary: AnalysisSummary | None = None
