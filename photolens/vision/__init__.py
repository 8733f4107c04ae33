"""Vision model integration for image analysis."""

from photolens.vision.base import (
    VisionModel,
    AnalysisRecord,
    AnalysisOutcome,
    Authenticity,
    ImageCategory,
    FaceEmotion,
)
from photolens.vision.ollama import OllamaVisionModel
from photolens.vision.factory import VisionModelFactory
from photolens.vision.schema import ANALYSIS_SCHEMA, parse_analysis_response
from photolens.vision.exceptions import (
    VisionModelError,
    VisionModelConnectionError,
    VisionModelTimeoutError,
    VisionModelInvalidResponseError,
    VisionModelImageError,
    VisionModelConfigurationError,
)

__all__ = [
    "VisionModel",
    "AnalysisRecord",
    "AnalysisOutcome",
    "Authenticity",
    "ImageCategory",
    "FaceEmotion",
    "OllamaVisionModel",
    "VisionModelFactory",
    "ANALYSIS_SCHEMA",
    "parse_analysis_response",
    "VisionModelError",
    "VisionModelConnectionError",
    "VisionModelTimeoutError",
    "VisionModelInvalidResponseError",
    "VisionModelImageError",
    "VisionModelConfigurationError",
]
