"""Preview files backing the display handle of the active record."""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class PreviewHandle:
    """Revocable display handle for one record's image.

    The handle owns a file inside the preview directory. ``release()``
    deletes it; a second release is a no-op.

    Attributes:
        record_id: Identifier of the owning record
        path: Location of the preview file
        released: Whether the handle has been released
    """

    def __init__(self, store: "PreviewStore", record_id: str, path: Path) -> None:
        self._store = store
        self.record_id = record_id
        self.path = path
        self.released = False

    @property
    def is_live(self) -> bool:
        """Whether the handle can still be used for display."""
        return not self.released and self.path.exists()

    def release(self) -> bool:
        """Delete the preview file.

        Returns:
            True if this call released the handle, False if it was
            already released
        """
        if self.released:
            logger.debug(f"Preview for {self.record_id} already released")
            return False

        self.released = True
        try:
            self.path.unlink()
        except FileNotFoundError:
            logger.debug(f"Preview file already gone: {self.path}")
        except OSError as e:
            logger.warning(f"Could not remove preview file {self.path}: {e}")
        self._store._forget(self)
        logger.debug(f"Released preview for record {self.record_id}")
        return True

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"<PreviewHandle {self.record_id} {state}>"


class PreviewStore:
    """Creates and tracks preview files on local disk.

    Attributes:
        preview_dir: Directory holding preview files
    """

    def __init__(self, preview_dir: Optional[str] = None) -> None:
        """Initialize preview store.

        Args:
            preview_dir: Directory for preview files (a temporary directory
                is created when not given)
        """
        if preview_dir:
            self.preview_dir = Path(preview_dir).expanduser()
            self._owns_dir = False
        else:
            self.preview_dir = Path(tempfile.mkdtemp(prefix="photolens-previews-"))
            self._owns_dir = True

        self.preview_dir.mkdir(parents=True, exist_ok=True)
        self._live: Dict[str, PreviewHandle] = {}

        logger.info(f"Preview store initialized: {self.preview_dir}")

    def create(self, record_id: str, asset) -> Optional[PreviewHandle]:
        """Write a preview file for an asset.

        Args:
            record_id: Identifier of the record the preview belongs to
            asset: ImageAsset to preview

        Returns:
            PreviewHandle, or None if the asset could not be read
        """
        path = self.preview_dir / f"preview_{record_id}{asset.suffix}"
        try:
            path.write_bytes(asset.read())
        except OSError as e:
            logger.warning(f"Could not create preview for {asset.filename}: {e}")
            return None

        handle = PreviewHandle(self, record_id, path)
        self._live[record_id] = handle
        logger.debug(f"Created preview {path.name}")
        return handle

    @property
    def live_count(self) -> int:
        """Number of previews that have not been released."""
        return len(self._live)

    def _forget(self, handle: PreviewHandle) -> None:
        self._live.pop(handle.record_id, None)

    def close(self) -> None:
        """Release every live preview and remove a self-created directory."""
        for handle in list(self._live.values()):
            handle.release()
        if self._owns_dir and self.preview_dir.exists():
            shutil.rmtree(self.preview_dir)
            logger.debug(f"Removed {self.preview_dir}")
