"""Processing module for orchestrating image metadata and analysis."""

from .models import CleanImage, ImageRecord, ProcessingState, RecordStateError
from .orchestrator import ProcessingOrchestrator, PROCESSING_FAILED_MESSAGE
from .previews import PreviewHandle, PreviewStore

__all__ = [
    "CleanImage",
    "ImageRecord",
    "ProcessingState",
    "RecordStateError",
    "ProcessingOrchestrator",
    "PROCESSING_FAILED_MESSAGE",
    "PreviewHandle",
    "PreviewStore",
]
