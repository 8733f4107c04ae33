"""Response schema for the structured image analysis and its validator."""

import json
import logging
from numbers import Real
from typing import Any, Dict, List

from photolens.vision.base import (
    MAX_DOMINANT_COLORS,
    AnalysisRecord,
    Authenticity,
    FaceEmotion,
    ImageCategory,
)
from photolens.vision.exceptions import VisionModelInvalidResponseError

logger = logging.getLogger(__name__)

IMAGE_CATEGORIES = [category.value for category in ImageCategory]
FACE_EMOTIONS = [emotion.value for emotion in FaceEmotion]

REQUIRED_FIELDS = [
    "objects",
    "peopleCount",
    "sceneType",
    "imageCategory",
    "dominantColors",
    "faceEmotion",
    "isSafe",
    "authenticity",
    "ocrText",
]

# Passed as the ``format`` of the chat request so the model answers in JSON.
ANALYSIS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "objects": {
            "type": "array",
            "items": {"type": "string"},
            "description": "List of detected objects in the image",
        },
        "peopleCount": {
            "type": "integer",
            "minimum": 0,
            "description": "Count of people detected",
        },
        "sceneType": {
            "type": "string",
            "description": "The environment or setting of the image",
        },
        "imageCategory": {
            "type": "string",
            "enum": IMAGE_CATEGORIES,
            "description": "Category of the image",
        },
        "dominantColors": {
            "type": "array",
            "items": {"type": "string"},
            "maxItems": MAX_DOMINANT_COLORS,
            "description": "Top 5 dominant colors as hex codes or names",
        },
        "faceEmotion": {
            "type": "string",
            "enum": FACE_EMOTIONS,
            "description": "Dominant facial emotion if applicable",
        },
        "isSafe": {
            "type": "boolean",
            "description": "Whether the image is considered safe (SFW)",
        },
        "authenticity": {
            "type": "object",
            "properties": {
                "isLikelyEdited": {"type": "boolean"},
                "reason": {"type": "string"},
                "score": {
                    "type": "number",
                    "minimum": 0,
                    "maximum": 100,
                    "description": "0 to 100 likelihood score",
                },
            },
            "required": ["isLikelyEdited", "reason", "score"],
        },
        "ocrText": {
            "type": "string",
            "description": "All text extracted from the image",
        },
    },
    "required": REQUIRED_FIELDS,
}


def _invalid(message: str) -> VisionModelInvalidResponseError:
    return VisionModelInvalidResponseError(f"Invalid analysis response: {message}")


def _require_str(data: Dict[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise _invalid(f"'{key}' must be a string, got {type(value).__name__}")
    return value


def _require_bool(data: Dict[str, Any], key: str) -> bool:
    value = data[key]
    if not isinstance(value, bool):
        raise _invalid(f"'{key}' must be a boolean, got {type(value).__name__}")
    return value


def _require_str_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise _invalid(f"'{key}' must be a list of strings")
    return value


def _require_people_count(value: Any) -> int:
    # bool is a subclass of int and must not pass as a count
    if isinstance(value, bool) or not isinstance(value, Real):
        raise _invalid(f"'peopleCount' must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise _invalid(f"'peopleCount' must be an integer, got {value!r}")
        value = int(value)
    if value < 0:
        raise _invalid(f"'peopleCount' must be non-negative, got {value}")
    return int(value)


def _require_score(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise _invalid(f"'authenticity.score' must be a number, got {value!r}")
    if not 0 <= value <= 100:
        raise _invalid(f"'authenticity.score' must be within 0-100, got {value}")
    return int(round(value))


def _require_enum(value: Any, enum_cls, key: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise _invalid(f"'{key}' must be one of {allowed}, got {value!r}") from None


def parse_analysis_response(text: str) -> AnalysisRecord:
    """Parse and validate the model's JSON answer.

    Every field of the schema is required. Unknown enum values, wrong
    types and out-of-range numbers invalidate the whole response.

    Args:
        text: Raw response text from the model

    Returns:
        Fully populated AnalysisRecord

    Raises:
        VisionModelInvalidResponseError: If the text is empty, not JSON,
            or does not match the schema
    """
    if not text or not text.strip():
        raise _invalid("empty response text")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise _invalid(f"not valid JSON ({e})") from e

    if not isinstance(data, dict):
        raise _invalid("top-level value must be an object")

    missing = [key for key in REQUIRED_FIELDS if key not in data]
    if missing:
        raise _invalid(f"missing required field(s): {', '.join(missing)}")

    authenticity = data["authenticity"]
    if not isinstance(authenticity, dict):
        raise _invalid("'authenticity' must be an object")
    missing = [
        key for key in ("isLikelyEdited", "reason", "score")
        if key not in authenticity
    ]
    if missing:
        raise _invalid(f"missing authenticity field(s): {', '.join(missing)}")

    colors = _require_str_list(data, "dominantColors")
    if len(colors) > MAX_DOMINANT_COLORS:
        logger.debug(
            f"Model returned {len(colors)} dominant colors, keeping first "
            f"{MAX_DOMINANT_COLORS}"
        )
        colors = colors[:MAX_DOMINANT_COLORS]

    return AnalysisRecord(
        objects=_require_str_list(data, "objects"),
        people_count=_require_people_count(data["peopleCount"]),
        scene_type=_require_str(data, "sceneType"),
        image_category=_require_enum(data["imageCategory"], ImageCategory, "imageCategory"),
        dominant_colors=colors,
        face_emotion=_require_enum(data["faceEmotion"], FaceEmotion, "faceEmotion"),
        is_safe=_require_bool(data, "isSafe"),
        authenticity=Authenticity(
            is_likely_edited=_require_bool(authenticity, "isLikelyEdited"),
            reason=_require_str(authenticity, "reason"),
            score=_require_score(authenticity["score"]),
        ),
        ocr_text=_require_str(data, "ocrText"),
    )
