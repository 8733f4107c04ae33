"""Exceptions raised while talking to a vision model.

None of these reach the processing pipeline: ``VisionModel.analyze`` turns
them into the fallback analysis. They surface only where a model is built
(missing credential, unknown model) or when callers use the request layer
directly.
"""

from typing import Optional


class VisionModelError(Exception):
    """Base exception for vision model errors.

    Attributes:
        model_name: Model the failing request or construction was for
    """

    def __init__(self, message: str, model_name: Optional[str] = None) -> None:
        super().__init__(message)
        self.model_name = model_name


class VisionModelConnectionError(VisionModelError):
    """The model service could not be reached."""


class VisionModelTimeoutError(VisionModelError):
    """The model did not answer within the configured timeout."""


class VisionModelInvalidResponseError(VisionModelError):
    """The answer was empty, not JSON, or violated the analysis schema."""


class VisionModelImageError(VisionModelError):
    """The image payload was unusable (e.g. empty)."""


class VisionModelConfigurationError(VisionModelError):
    """The model cannot be built, typically because no API key is set."""
