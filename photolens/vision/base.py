"""Abstract base class for vision models and the analysis result types."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

MAX_DOMINANT_COLORS = 5


class ImageCategory(str, Enum):
    """Closed set of image categories the model may report."""
    SELFIE = "Selfie"
    DOCUMENT = "Document"
    SCREENSHOT = "Screenshot"
    PHOTO = "Photo"
    OTHER = "Other"


class FaceEmotion(str, Enum):
    """Closed set of facial emotions; NONE when no face is visible."""
    HAPPY = "Happy"
    NEUTRAL = "Neutral"
    SAD = "Sad"
    ANGRY = "Angry"
    SURPRISED = "Surprised"
    NONE = "None"


@dataclass(frozen=True)
class Authenticity:
    """Edit-likelihood assessment for an image.

    Attributes:
        is_likely_edited: Whether the model thinks the image was manipulated
        reason: Short natural-language justification
        score: Confidence score from 0 to 100
    """
    is_likely_edited: bool
    reason: str
    score: int


@dataclass(frozen=True)
class AnalysisRecord:
    """Structured semantic analysis of one image.

    A record is either fully populated from a valid model response or is
    the fixed fallback record returned by ``AnalysisRecord.fallback()``.

    Attributes:
        objects: Labels of the visible objects
        people_count: Number of people in the image
        scene_type: Short environment label (Indoor, Outdoor, ...)
        image_category: One of the ImageCategory values
        dominant_colors: Up to five hex codes or color names
        face_emotion: One of the FaceEmotion values
        is_safe: Whether the content is safe for work
        authenticity: Edit-likelihood assessment
        ocr_text: All visible text, empty when there is none
    """
    objects: Tuple[str, ...]
    people_count: int
    scene_type: str
    image_category: ImageCategory
    dominant_colors: Tuple[str, ...]
    face_emotion: FaceEmotion
    is_safe: bool
    authenticity: Authenticity
    ocr_text: str

    def __post_init__(self):
        # Lists from a parsed response are frozen along with the record
        object.__setattr__(self, "objects", tuple(self.objects))
        object.__setattr__(self, "dominant_colors", tuple(self.dominant_colors))

    @classmethod
    def fallback(cls) -> "AnalysisRecord":
        """Return the placeholder record used whenever analysis fails."""
        return cls(
            objects=(),
            people_count=0,
            scene_type="Unknown",
            image_category=ImageCategory.OTHER,
            dominant_colors=(),
            face_emotion=FaceEmotion.NONE,
            is_safe=True,
            authenticity=Authenticity(
                is_likely_edited=False,
                reason="Analysis failed",
                score=0,
            ),
            ocr_text="",
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase dictionary used on the wire and in the UI."""
        return {
            "objects": list(self.objects),
            "peopleCount": self.people_count,
            "sceneType": self.scene_type,
            "imageCategory": self.image_category.value,
            "dominantColors": list(self.dominant_colors),
            "faceEmotion": self.face_emotion.value,
            "isSafe": self.is_safe,
            "authenticity": {
                "isLikelyEdited": self.authenticity.is_likely_edited,
                "reason": self.authenticity.reason,
                "score": self.authenticity.score,
            },
            "ocrText": self.ocr_text,
        }


@dataclass(frozen=True)
class AnalysisOutcome:
    """Tagged result of one analysis call.

    ``record`` is always usable; ``succeeded`` tells a real answer apart
    from the fallback so callers can observe service failures.
    """
    record: AnalysisRecord
    succeeded: bool
    model_used: str = ""
    processing_time: float = 0.0
    error: Optional[str] = None


class VisionModel(ABC):
    """Abstract base class for vision models.

    Subclasses implement ``_request_analysis`` to obtain a validated
    ``AnalysisRecord`` from their service. The public ``analyze`` methods
    turn every failure into the fallback record, so analysis never raises
    to the pipeline.

    Attributes:
        model_name: Name identifier for the model
        endpoint: API endpoint URL for the model service
    """

    def __init__(self, model_name: str, endpoint: Optional[str] = None) -> None:
        """Initialize the vision model.

        Args:
            model_name: Name identifier for the model
            endpoint: Optional API endpoint URL (for local/remote services)
        """
        self.model_name = model_name
        self.endpoint = endpoint
        logger.info(f"Initialized {self.__class__.__name__} with model: {model_name}")

    @abstractmethod
    async def _request_analysis(self, image_base64: str) -> AnalysisRecord:
        """Submit one base64 image and return the validated analysis.

        Args:
            image_base64: Base64-encoded image bytes without data-URL prefix

        Returns:
            Validated AnalysisRecord

        Raises:
            VisionModelError: If the request or the response is unusable
        """
        pass

    async def analyze_with_outcome(self, image_base64: str) -> AnalysisOutcome:
        """Analyze an image and report whether the service really answered.

        Args:
            image_base64: Base64-encoded image bytes

        Returns:
            AnalysisOutcome carrying either the real record or the fallback
        """
        import time

        start_time = time.time()
        try:
            record = await self._request_analysis(image_base64)
        except Exception as e:
            logger.error(f"Analysis with {self.model_name} failed: {e}", exc_info=True)
            return AnalysisOutcome(
                record=AnalysisRecord.fallback(),
                succeeded=False,
                model_used=self.model_name,
                processing_time=time.time() - start_time,
                error=str(e),
            )

        processing_time = time.time() - start_time
        logger.info(
            f"Analysis with {self.model_name} finished in {processing_time:.2f}s: "
            f"{record.image_category.value}, {len(record.objects)} object(s)"
        )
        return AnalysisOutcome(
            record=record,
            succeeded=True,
            model_used=self.model_name,
            processing_time=processing_time,
        )

    async def analyze(self, image_base64: str) -> AnalysisRecord:
        """Analyze an image, returning the fallback record on any failure."""
        outcome = await self.analyze_with_outcome(image_base64)
        return outcome.record
