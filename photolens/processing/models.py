"""Data models for the image processing pipeline."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from photolens.assets import ImageAsset
from photolens.processing.previews import PreviewHandle
from photolens.utils.exceptions import ImageProcessingError
from photolens.utils.exif import MetadataRecord
from photolens.vision.base import AnalysisRecord


class RecordStateError(ImageProcessingError):
    """Raised when a record is moved or merged out of order."""
    pass


class ProcessingState(str, Enum):
    """Lifecycle states of an ImageRecord."""
    IDLE = "idle"
    EXTRACTING_METADATA = "extracting_metadata"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    DEGRADED = "degraded"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingState.COMPLETE, ProcessingState.DEGRADED)


_TRANSITIONS = {
    ProcessingState.IDLE: (ProcessingState.EXTRACTING_METADATA,),
    ProcessingState.EXTRACTING_METADATA: (ProcessingState.ANALYZING,),
    ProcessingState.ANALYZING: (ProcessingState.COMPLETE, ProcessingState.DEGRADED),
    ProcessingState.COMPLETE: (),
    ProcessingState.DEGRADED: (),
}


@dataclass
class ImageRecord:
    """The unit of work: one image and everything learned about it.

    Stages are append-only: metadata and analysis are each set at most once
    and a terminal state is never left.

    Attributes:
        asset: The original image
        id: Unique identifier, stable for the record's lifetime
        preview: Display handle, released when the record is retired
        metadata: Extracted container metadata (None if absent)
        analysis: Semantic analysis (real or fallback)
        state: Current processing state
        error: Failure detail, only set in the DEGRADED state
        analysis_failed: Whether the analysis is the fallback record
        created_at: When the record was created
    """
    asset: ImageAsset
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    preview: Optional[PreviewHandle] = None
    metadata: Optional[MetadataRecord] = None
    analysis: Optional[AnalysisRecord] = None
    state: ProcessingState = ProcessingState.IDLE
    error: Optional[str] = None
    analysis_failed: bool = False
    created_at: datetime = field(default_factory=datetime.now)
    _metadata_set: bool = field(default=False, repr=False)

    @property
    def is_processing(self) -> bool:
        return not self.state.is_terminal

    def transition(self, new_state: ProcessingState) -> None:
        """Move to ``new_state``.

        Raises:
            RecordStateError: If the transition is not allowed
        """
        if new_state not in _TRANSITIONS[self.state]:
            raise RecordStateError(
                f"Record {self.id}: cannot move from {self.state.value} "
                f"to {new_state.value}"
            )
        self.state = new_state

    def set_metadata(self, metadata: Optional[MetadataRecord]) -> None:
        """Merge the extraction result (None means no metadata found)."""
        if self._metadata_set:
            raise RecordStateError(f"Record {self.id}: metadata already set")
        self.metadata = metadata
        self._metadata_set = True

    def set_analysis(self, analysis: AnalysisRecord, failed: bool = False) -> None:
        """Merge the analysis result."""
        if self.analysis is not None:
            raise RecordStateError(f"Record {self.id}: analysis already set")
        self.analysis = analysis
        self.analysis_failed = failed

    def fail(self, error: str) -> None:
        """Move to DEGRADED with an error detail."""
        self.transition(ProcessingState.DEGRADED)
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "filename": self.asset.filename,
            "mime_type": self.asset.mime_type,
            "state": self.state.value,
            "is_processing": self.is_processing,
            "has_preview": self.preview is not None and self.preview.is_live,
            "exif": self.metadata.to_dict() if self.metadata else None,
            "ai_analysis": self.analysis.to_dict() if self.analysis else None,
            "analysis_failed": self.analysis_failed,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class CleanImage:
    """Metadata-free copy of an image ready for download.

    Attributes:
        filename: Download name (original name with the clean prefix)
        data: Encoded image bytes
        mime_type: MIME type of ``data``
    """
    filename: str
    data: bytes
    mime_type: str
