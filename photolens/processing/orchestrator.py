"""Pipeline that owns the active image record."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional

from photolens.assets import ImageAsset
from photolens.config import ConfigManager
from photolens.processing.models import CleanImage, ImageRecord, ProcessingState
from photolens.processing.previews import PreviewStore
from photolens.utils.encoding import encode_asset
from photolens.utils.exceptions import SanitizationError
from photolens.utils.exif import extract_metadata
from photolens.utils.sanitize import (
    DEFAULT_QUALITY,
    SUPPORTED_FORMATS,
    normalize_format,
    strip_metadata,
)
from photolens.vision.base import VisionModel
from photolens.vision.factory import VisionModelFactory

logger = logging.getLogger(__name__)

PROCESSING_FAILED_MESSAGE = "Failed to process image fully."

RecordListener = Callable[[ImageRecord], None]


class ProcessingOrchestrator:
    """Sequences extraction, encoding and analysis for one image at a time.

    The orchestrator is the only writer of the active ImageRecord. Starting
    a new record retires the previous one and releases its preview. An
    analysis that finishes after its record was retired is dropped.

    Stages:
    - Metadata extraction (failure leaves metadata empty, pipeline continues)
    - Transport encoding (failure moves the record to DEGRADED)
    - Analysis (never fails; falls back to a placeholder record)

    Attributes:
        vision: Model used for the semantic analysis
        previews: Store creating the preview files
        clean_prefix: Prefix of downloaded clean file names
        clean_quality: Encoder quality for clean copies
    """

    def __init__(
        self,
        vision: VisionModel,
        previews: Optional[PreviewStore] = None,
        clean_prefix: str = "clean_",
        clean_quality: int = DEFAULT_QUALITY
    ) -> None:
        """Initialize the orchestrator.

        Args:
            vision: Vision model for analysis
            previews: Preview store (a temporary one is created if not provided)
            clean_prefix: Prefix for clean download names
            clean_quality: Quality used when re-encoding clean copies
        """
        self.vision = vision
        self.previews = previews or PreviewStore()
        self.clean_prefix = clean_prefix
        self.clean_quality = clean_quality
        self._active: Optional[ImageRecord] = None
        self._listeners: List[RecordListener] = []

        logger.info(f"ProcessingOrchestrator initialized: model={vision.model_name}")

    @classmethod
    def from_config(
        cls,
        config: ConfigManager,
        vision: Optional[VisionModel] = None
    ) -> "ProcessingOrchestrator":
        """Build an orchestrator from configuration.

        Args:
            config: Configuration manager
            vision: Vision model (created from ``vision.*`` if not provided)

        Raises:
            VisionModelError: If the model cannot be created (e.g. missing
                API key)
        """
        if vision is None:
            vision = VisionModelFactory.create(
                model_name=config.get("vision.model", "qwen3-vl:8b"),
                endpoint=config.get("vision.endpoint"),
                api_key=config.get("vision.api_key"),
                timeout=config.get("vision.timeout", 120),
                temperature=config.get("vision.temperature", 0.2),
                prompt=config.get("prompts.analysis"),
            )

        return cls(
            vision=vision,
            previews=PreviewStore(config.get("processing.preview_dir")),
            clean_prefix=config.get("privacy.clean_prefix", "clean_"),
            clean_quality=config.get("privacy.quality", DEFAULT_QUALITY),
        )

    @property
    def active(self) -> Optional[ImageRecord]:
        """The record currently owned by the pipeline, if any."""
        return self._active

    def subscribe(self, listener: RecordListener) -> None:
        """Register a callback invoked after every change to the active record."""
        self._listeners.append(listener)

    def _notify(self, record: ImageRecord) -> None:
        for listener in self._listeners:
            try:
                listener(record)
            except Exception as e:
                logger.warning(f"Record listener {listener!r} failed: {e}", exc_info=True)

    def _is_active(self, record: ImageRecord) -> bool:
        return self._active is not None and self._active.id == record.id

    def _retire_active(self) -> None:
        previous = self._active
        self._active = None
        if previous is None:
            return
        if previous.preview is not None:
            previous.preview.release()
        logger.debug(f"Retired record {previous.id} ({previous.state.value})")

    def start_new(self, asset: ImageAsset) -> ImageRecord:
        """Install a new active record for an asset.

        The previous record, if any, is retired and its preview released.

        Args:
            asset: Image from upload, drop or camera capture

        Returns:
            The new record, in the EXTRACTING_METADATA state
        """
        self._retire_active()

        record = ImageRecord(asset=asset)
        record.preview = self.previews.create(record.id, asset)
        self._active = record
        logger.info(f"Started record {record.id} for {asset.filename}")

        record.transition(ProcessingState.EXTRACTING_METADATA)
        self._notify(record)
        return record

    async def process(self, record: ImageRecord) -> ImageRecord:
        """Run the pipeline stages for a record created by ``start_new``.

        Metadata extraction completes before encoding starts. If the record
        is retired while a stage is running, the stage result is dropped
        and the record is returned unchanged.

        Args:
            record: Record in the EXTRACTING_METADATA state

        Returns:
            The record (COMPLETE or DEGRADED unless it was retired)
        """
        metadata = await asyncio.to_thread(extract_metadata, record.asset)
        if not self._is_active(record):
            logger.info(f"Discarding metadata for retired record {record.id}")
            return record
        record.set_metadata(metadata)
        record.transition(ProcessingState.ANALYZING)
        self._notify(record)

        try:
            payload = await encode_asset(record.asset)
            outcome = await self.vision.analyze_with_outcome(payload)
        except Exception as e:
            if not self._is_active(record):
                logger.info(f"Ignoring failure of retired record {record.id}: {e}")
                return record
            logger.error(f"Processing {record.asset.filename} failed: {e}", exc_info=True)
            record.fail(PROCESSING_FAILED_MESSAGE)
            self._notify(record)
            return record

        if not self._is_active(record):
            logger.info(f"Discarding analysis for retired record {record.id}")
            return record

        if not outcome.succeeded:
            logger.warning(
                f"Analysis of {record.asset.filename} fell back to placeholder: "
                f"{outcome.error}"
            )
        record.set_analysis(outcome.record, failed=not outcome.succeeded)
        record.transition(ProcessingState.COMPLETE)
        self._notify(record)
        return record

    async def submit(self, asset: ImageAsset) -> ImageRecord:
        """Start a new record for an asset and process it to completion."""
        record = self.start_new(asset)
        return await self.process(record)

    def discard(self) -> None:
        """Drop the active record and release its preview."""
        self._retire_active()

    def _clean_filename(self, filename: str, target_format: str) -> str:
        name = Path(filename)
        suffix = name.suffix.lower().lstrip(".")
        try:
            same_format = normalize_format(suffix) == target_format
        except SanitizationError:
            same_format = False
        if suffix and not same_format:
            filename = name.with_suffix(SUPPORTED_FORMATS[target_format][2]).name
        return f"{self.clean_prefix}{filename}"

    async def privacy_clean(self, target_format: str = "jpeg") -> Optional[CleanImage]:
        """Produce a metadata-free copy of the active record's image.

        This is independent of the record's processing state.

        Args:
            target_format: Output format (jpeg, png or webp)

        Returns:
            CleanImage, or None when there is no record with a live preview

        Raises:
            SanitizationError: If the clean copy cannot be produced
        """
        record = self._active
        if record is None or record.preview is None or not record.preview.is_live:
            logger.debug("Privacy clean requested without a loaded preview")
            return None

        target_format = normalize_format(target_format)
        data = await strip_metadata(record.preview.path, target_format, self.clean_quality)
        clean = CleanImage(
            filename=self._clean_filename(record.asset.filename, target_format),
            data=data,
            mime_type=SUPPORTED_FORMATS[target_format][1],
        )
        logger.info(f"Created clean copy {clean.filename} ({len(data)} bytes)")
        return clean

    def close(self) -> None:
        """Discard the active record and clean up previews."""
        self.discard()
        self.previews.close()
