"""Raw image assets supplied by upload, drag-drop or camera capture."""

import mimetypes
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class ImageAsset:
    """Immutable handle to the raw bytes of one user-supplied image.

    An asset is backed either by in-memory bytes (uploads, captures) or by
    a file path that is read lazily.

    Attributes:
        filename: Original file name, used to name derived downloads
        mime_type: Declared MIME type of the content
        data: Raw bytes for in-memory assets
        path: Source file for path-backed assets
    """
    filename: str
    mime_type: str = "application/octet-stream"
    data: Optional[bytes] = None
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path) -> "ImageAsset":
        """Create an asset that reads from a file on demand."""
        path = Path(path).expanduser()
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            mime_type=mime_type or "application/octet-stream",
            path=path,
        )

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        filename: str,
        mime_type: Optional[str] = None
    ) -> "ImageAsset":
        """Create an asset from uploaded or dropped bytes."""
        if mime_type is None:
            mime_type, _ = mimetypes.guess_type(filename)
        return cls(
            filename=filename,
            mime_type=mime_type or "application/octet-stream",
            data=data,
        )

    @classmethod
    def from_capture(cls, jpeg_bytes: bytes) -> "ImageAsset":
        """Create an asset from one JPEG-encoded camera frame."""
        return cls(
            filename=f"capture_{int(time.time() * 1000)}.jpg",
            mime_type="image/jpeg",
            data=jpeg_bytes,
        )

    @property
    def suffix(self) -> str:
        """Lower-case file extension including the dot."""
        return Path(self.filename).suffix.lower()

    def read(self) -> bytes:
        """Return the full content of the asset.

        Raises:
            OSError: If a path-backed asset cannot be read
        """
        if self.data is not None:
            return self.data
        if self.path is None:
            raise OSError(f"Asset {self.filename} has no data source")
        return self.path.read_bytes()

    def __str__(self) -> str:
        """Return string representation of the asset."""
        return f"ImageAsset({self.filename}, {self.mime_type})"
