"""``LabelExtractor`` backed by the label-analysis HTTP service."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from .client import VisionClient
from .translator import translate_analysis

if TYPE_CHECKING:
    from brewmatch.config.vision import VisionConfig
    from brewmatch.domain.ports import ExtractionResult

log = getLogger(__name__)


@dataclass(slots=True)
class VisionLabelExtractor:
    client: VisionClient

    @classmethod
    def from_config(cls, config: VisionConfig) -> VisionLabelExtractor:
        return cls(client=VisionClient(config=config))

    def __call__(self, image: bytes, mime_type: str) -> ExtractionResult:
        payload = self.client.analyze(image=image, mime_type=mime_type)
        result = translate_analysis(payload)
        log.info(
            "Label analysis found %d bottles, %d entities",
            result.bottle_count,
            len(result.entities),
        )
        return result
