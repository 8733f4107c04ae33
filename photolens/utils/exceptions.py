"""Custom exceptions for image processing operations."""


class ImageProcessingError(Exception):
    """Base exception for image processing errors."""
    pass


class AssetEncodingError(ImageProcessingError):
    """Raised when an asset cannot be read or converted to a transport payload."""
    pass


class SanitizationError(ImageProcessingError):
    """Raised when a metadata-free copy of an image cannot be produced."""
    pass
