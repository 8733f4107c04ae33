"""Conversion of image assets into transport-safe payloads."""

import asyncio
import base64
import logging

from photolens.utils.exceptions import AssetEncodingError

logger = logging.getLogger(__name__)


def _encode_bytes(asset) -> str:
    try:
        data = asset.read()
    except OSError as e:
        raise AssetEncodingError(f"Failed to read {asset.filename}: {e}") from e

    if not isinstance(data, (bytes, bytearray)):
        raise AssetEncodingError(
            f"Failed to convert {asset.filename} to base64: "
            f"expected binary content, got {type(data).__name__}"
        )
    if not data:
        raise AssetEncodingError(f"Failed to convert {asset.filename} to base64: empty file")

    encoded = base64.b64encode(bytes(data)).decode("ascii")
    logger.debug(f"Encoded {asset.filename} ({len(data)} bytes -> {len(encoded)} chars)")
    return encoded


async def encode_asset(asset) -> str:
    """Read a whole asset and return its raw bytes as base64 text.

    The result carries no data-URL prefix.

    Args:
        asset: ImageAsset to encode

    Returns:
        Base64-encoded content

    Raises:
        AssetEncodingError: If the asset cannot be read or is not binary
    """
    return await asyncio.to_thread(_encode_bytes, asset)
