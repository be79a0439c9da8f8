"""Public interface for the label-analysis adapter."""

from __future__ import annotations

from .client import LabelAnalysisError, VisionClient
from .extractor import VisionLabelExtractor
from .schema import AnalysisResponse, BottlePayload, BreweryPayload
from .translator import translate_analysis

__all__ = [
    "AnalysisResponse",
    "BottlePayload",
    "BreweryPayload",
    "LabelAnalysisError",
    "VisionClient",
    "VisionLabelExtractor",
    "translate_analysis",
]
