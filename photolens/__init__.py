"""photolens - image metadata extraction, AI analysis and privacy cleaning.

Reads the EXIF metadata of a single image, asks a multimodal vision model
for a structured description of it, and produces metadata-free copies for
safe sharing.
"""

from photolens._version import __version__, __version_info__
from photolens.assets import ImageAsset
from photolens.config import ConfigManager
from photolens.processing import ProcessingOrchestrator, ImageRecord, ProcessingState

__license__ = "MIT"
__all__ = [
    "__version__",
    "__version_info__",
    "ImageAsset",
    "ConfigManager",
    "ProcessingOrchestrator",
    "ImageRecord",
    "ProcessingState",
]
