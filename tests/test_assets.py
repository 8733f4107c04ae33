import asyncio
import base64
import re

import pytest

from photolens.assets import ImageAsset
from photolens.processing import PreviewStore
from photolens.utils.encoding import encode_asset
from photolens.utils.exceptions import AssetEncodingError


def test_from_bytes_guesses_mime_type():
    asset = ImageAsset.from_bytes(b"\x89PNG", "Screenshot.PNG")

    assert asset.mime_type == "image/png"
    assert asset.suffix == ".png"
    assert asset.read() == b"\x89PNG"


def test_from_capture_names_the_frame():
    asset = ImageAsset.from_capture(b"\xff\xd8frame")

    assert re.fullmatch(r"capture_\d+\.jpg", asset.filename)
    assert asset.mime_type == "image/jpeg"


def test_from_path_reads_lazily(tmp_path):
    path = tmp_path / "photo.jpg"
    asset = ImageAsset.from_path(path)
    path.write_bytes(b"later")

    assert asset.mime_type == "image/jpeg"
    assert asset.read() == b"later"


def test_encode_asset_returns_plain_base64(jpeg_bytes):
    encoded = asyncio.run(encode_asset(ImageAsset.from_bytes(jpeg_bytes, "a.jpg")))

    assert not encoded.startswith("data:")
    assert base64.b64decode(encoded) == jpeg_bytes


def test_encode_empty_asset_fails():
    with pytest.raises(AssetEncodingError):
        asyncio.run(encode_asset(ImageAsset.from_bytes(b"", "empty.jpg")))


def test_encode_unreadable_asset_fails(tmp_path):
    with pytest.raises(AssetEncodingError):
        asyncio.run(encode_asset(ImageAsset.from_path(tmp_path / "missing.jpg")))


def test_preview_release_is_idempotent(preview_store, jpeg_bytes):
    handle = preview_store.create("r1", ImageAsset.from_bytes(jpeg_bytes, "a.jpg"))

    assert handle.is_live
    assert handle.path.name == "preview_r1.jpg"
    assert preview_store.live_count == 1

    assert handle.release() is True
    assert handle.release() is False
    assert not handle.path.exists()
    assert not handle.is_live
    assert preview_store.live_count == 0


def test_preview_of_unreadable_asset_is_none(preview_store, tmp_path):
    assert preview_store.create("r2", ImageAsset.from_path(tmp_path / "nope.jpg")) is None


def test_temporary_store_removes_its_directory(jpeg_bytes):
    store = PreviewStore()
    handle = store.create("r3", ImageAsset.from_bytes(jpeg_bytes, "a.jpg"))

    store.close()

    assert handle.released
    assert not store.preview_dir.exists()
