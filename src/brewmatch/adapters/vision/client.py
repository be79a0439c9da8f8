"""HTTP client for the label-analysis service."""

from __future__ import annotations

import asyncio
import base64
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from brewmatch.adapters.http_resilience import ResilientClient

from .schema import AnalysisResponse

if TYPE_CHECKING:
    from collections.abc import Callable

    from brewmatch.config.http_resilience import ResilienceConfig
    from brewmatch.config.vision import VisionConfig

log = getLogger(__name__)


class LabelAnalysisError(RuntimeError):
    """Raised when the analysis service answers with an unusable payload."""


class VisionClient:
    """Low-level HTTP client for the label-analysis API."""

    def __init__(
        self,
        *,
        config: VisionConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient

    def analyze(self, *, image: bytes, mime_type: str) -> AnalysisResponse:
        if not image:
            raise ValueError("Cannot analyse an empty image")
        return asyncio.run(self._analyze_async(image=image, mime_type=mime_type))

    async def _analyze_async(self, *, image: bytes, mime_type: str) -> AnalysisResponse:
        body = {
            "image": base64.b64encode(image).decode("ascii"),
            "mimeType": mime_type,
        }
        headers = {"Authorization": f"Bearer {self._config.api_key}"}
        async with self._client_factory(self._resilience) as client:
            response = await client.post_json(self._config.analyze_path, body, headers=headers)
        response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as exc:
            raise LabelAnalysisError("Label analysis response is not JSON") from exc
        if not isinstance(payload, dict):
            raise LabelAnalysisError("Unexpected label analysis response payload")
        try:
            return AnalysisResponse.model_validate(payload)
        except ValidationError as exc:
            log.warning("Label analysis payload failed validation: %s", exc)
            raise LabelAnalysisError("Label analysis payload failed validation") from exc
