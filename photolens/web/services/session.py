"""Bridge between the threaded Flask server and the asyncio pipeline.

The orchestrator is only ever touched from one background event loop, so
the single-active-record rules hold no matter how many request threads
Flask uses.
"""

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Set

from ...assets import ImageAsset
from ...processing import CleanImage, ProcessingOrchestrator

logger = logging.getLogger(__name__)

DEFAULT_CALL_TIMEOUT = 60.0


class ImageSessionService:
    """Runs a ProcessingOrchestrator on a dedicated event loop thread.

    Attributes:
        orchestrator: The pipeline owning the active record
    """

    def __init__(
        self,
        orchestrator: ProcessingOrchestrator,
        call_timeout: float = DEFAULT_CALL_TIMEOUT
    ) -> None:
        """Initialize the service and start its event loop thread.

        Args:
            orchestrator: Pipeline to drive
            call_timeout: Seconds to wait for a loop call to finish
        """
        self.orchestrator = orchestrator
        self.call_timeout = call_timeout
        self._tasks: Set[asyncio.Task] = set()
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="photolens-pipeline",
            daemon=True,
        )
        self._thread.start()
        logger.info("Image session service started")

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def _call(self, coro) -> Any:
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout=self.call_timeout)

    def submit(self, asset: ImageAsset) -> Dict[str, Any]:
        """Make ``asset`` the active image and start processing it.

        Returns as soon as the record exists; processing continues in the
        background.

        Returns:
            The new record as a dictionary
        """
        async def start() -> Dict[str, Any]:
            record = self.orchestrator.start_new(asset)
            task = self._loop.create_task(self.orchestrator.process(record))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return record.to_dict()

        return self._call(start())

    def current(self) -> Optional[Dict[str, Any]]:
        """The active record as a dictionary, or None."""
        async def snapshot() -> Optional[Dict[str, Any]]:
            record = self.orchestrator.active
            return record.to_dict() if record else None

        return self._call(snapshot())

    def preview(self) -> Optional[tuple]:
        """Path and MIME type of the active preview, or None."""
        async def lookup() -> Optional[tuple]:
            record = self.orchestrator.active
            if record is None or record.preview is None or not record.preview.is_live:
                return None
            return Path(record.preview.path), record.asset.mime_type

        return self._call(lookup())

    def clean(self, target_format: str = "jpeg") -> Optional[CleanImage]:
        """Create a clean copy of the active image.

        Raises:
            SanitizationError: If the copy cannot be produced
        """
        return self._call(self.orchestrator.privacy_clean(target_format))

    def discard(self) -> None:
        """Drop the active record."""
        async def drop() -> None:
            self.orchestrator.discard()

        self._call(drop())

    def wait_for_pending(self, timeout: Optional[float] = None) -> None:
        """Block until all background processing has finished."""
        async def settle() -> None:
            while self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)

        future = asyncio.run_coroutine_threadsafe(settle(), self._loop)
        future.result(timeout=timeout or self.call_timeout)

    def shutdown(self) -> None:
        """Stop the event loop and release the active record."""
        if not self._loop.is_running():
            return

        async def stop() -> None:
            for task in list(self._tasks):
                task.cancel()
            self.orchestrator.close()

        try:
            self._call(stop())
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=5)
            logger.info("Image session service stopped")
