"""Metadata stripping by re-rasterizing the decoded pixels."""

import asyncio
import io
import logging
from pathlib import Path
from typing import Union

from PIL import Image, ImageOps

from photolens.utils.exceptions import SanitizationError

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = 95

# target format -> (Pillow format, MIME type, file extension)
SUPPORTED_FORMATS = {
    "jpeg": ("JPEG", "image/jpeg", ".jpg"),
    "png": ("PNG", "image/png", ".png"),
    "webp": ("WEBP", "image/webp", ".webp"),
}

# Formats that cannot store an alpha channel
OPAQUE_FORMATS = ("jpeg",)


def normalize_format(target_format: str) -> str:
    """Map a format name or MIME type (``image/jpeg``, ``jpg``) to a key."""
    key = target_format.lower().strip()
    if key.startswith("image/"):
        key = key[len("image/"):]
    if key == "jpg":
        key = "jpeg"
    if key not in SUPPORTED_FORMATS:
        supported = ", ".join(SUPPORTED_FORMATS)
        raise SanitizationError(
            f"Unsupported target format: {target_format}. Supported: {supported}"
        )
    return key


def _rasterize(source: Union[str, Path], target_format: str, quality: int) -> bytes:
    key = normalize_format(target_format)
    pil_format = SUPPORTED_FORMATS[key][0]

    try:
        with Image.open(source) as img:
            img.load()
            # Pixels as a viewer shows them; the Orientation tag itself is not carried
            decoded = ImageOps.exif_transpose(img)
    except Exception as e:
        raise SanitizationError(f"Could not decode image {source}: {e}") from e

    opaque = key in OPAQUE_FORMATS
    has_alpha = decoded.mode in ("RGBA", "LA") or (
        decoded.mode == "P" and "transparency" in decoded.info
    )
    if opaque:
        surface_mode = "RGB"
    else:
        surface_mode = "RGBA" if has_alpha else "RGB"

    try:
        # Fresh surface: nothing from the source container is attached to it
        surface = Image.new(surface_mode, decoded.size, (255, 255, 255, 0)[:len(surface_mode)])
    except Exception as e:
        raise SanitizationError(f"Could not allocate a {decoded.size} raster surface: {e}") from e

    if has_alpha and opaque:
        rgba = decoded.convert("RGBA")
        surface.paste(rgba, (0, 0), mask=rgba.split()[3])
    else:
        surface.paste(decoded.convert(surface_mode), (0, 0))

    output = io.BytesIO()
    save_options = {"quality": quality} if pil_format in ("JPEG", "WEBP") else {}
    try:
        surface.save(output, format=pil_format, **save_options)
    except Exception as e:
        raise SanitizationError(f"Could not encode clean image as {key}: {e}") from e

    data = output.getvalue()
    if not data:
        raise SanitizationError(f"Encoding clean image as {key} produced no data")

    logger.debug(
        f"Rasterized {source} to {key} ({decoded.size[0]}x{decoded.size[1]}, {len(data)} bytes)"
    )
    return data


async def strip_metadata(
    image_path: Union[str, Path],
    target_format: str = "jpeg",
    quality: int = DEFAULT_QUALITY
) -> bytes:
    """Produce a metadata-free copy of a displayable image.

    The image is fully decoded and turned upright according to its EXIF
    Orientation, then drawn at (0, 0) onto a new raster surface of
    exactly the decoded size and re-encoded from that surface. Only pixels
    travel to the output, so no auxiliary container data survives.

    Args:
        image_path: Path of the decodable image (e.g. a preview file)
        target_format: Output format: jpeg, png or webp
        quality: Encoder quality for lossy formats (95 matches 0.95)

    Returns:
        Encoded bytes of the clean image

    Raises:
        SanitizationError: If decoding, surface allocation or encoding fails
    """
    return await asyncio.to_thread(_rasterize, image_path, target_format, quality)
