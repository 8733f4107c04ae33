"""Utility functions for photolens."""

from photolens.utils.exif import (
    extract_metadata,
    format_capture_time,
    MetadataRecord,
)
from photolens.utils.encoding import encode_asset
from photolens.utils.sanitize import strip_metadata, SUPPORTED_FORMATS
from photolens.utils.exceptions import (
    ImageProcessingError,
    AssetEncodingError,
    SanitizationError,
)

__all__ = [
    "extract_metadata",
    "format_capture_time",
    "MetadataRecord",
    "encode_asset",
    "strip_metadata",
    "SUPPORTED_FORMATS",
    "ImageProcessingError",
    "AssetEncodingError",
    "SanitizationError",
]
