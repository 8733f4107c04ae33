import asyncio
import io

import pytest
from PIL import Image, ImageChops

from conftest import make_camera_exif, make_image_bytes
from photolens.utils.exceptions import SanitizationError
from photolens.utils.sanitize import normalize_format, strip_metadata


def _open(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


@pytest.fixture
def exif_jpeg(tmp_path):
    path = tmp_path / "photo.jpg"
    path.write_bytes(make_image_bytes(size=(80, 60), exif=make_camera_exif()))
    return path


def test_clean_copy_has_no_exif(exif_jpeg):
    assert len(_open(exif_jpeg.read_bytes()).getexif()) > 0

    clean = _open(asyncio.run(strip_metadata(exif_jpeg)))

    assert clean.format == "JPEG"
    assert clean.size == (80, 60)
    assert len(clean.getexif()) == 0
    assert "exif" not in clean.info


def test_cleaning_twice_is_stable(exif_jpeg, tmp_path):
    once = asyncio.run(strip_metadata(exif_jpeg))
    once_path = tmp_path / "once.jpg"
    once_path.write_bytes(once)

    twice = _open(asyncio.run(strip_metadata(once_path)))

    assert twice.size == (80, 60)
    assert len(twice.getexif()) == 0


def test_clean_pixels_match_source(tmp_path):
    path = tmp_path / "fractal.jpg"
    Image.effect_mandelbrot((64, 48), (-2.0, -1.5, 1.0, 1.5), 100).convert("RGB").save(
        path, format="JPEG", quality=95
    )
    source = _open(path.read_bytes()).convert("RGB")

    clean = _open(asyncio.run(strip_metadata(path))).convert("RGB")

    assert clean.size == source.size
    extrema = ImageChops.difference(source, clean).getextrema()
    assert max(high for _, high in extrema) <= 8


def test_orientation_is_applied_to_pixels(tmp_path):
    img = Image.new("RGB", (80, 60), (0, 0, 255))
    img.paste((255, 0, 0), (0, 0, 40, 60))
    exif = Image.Exif()
    exif[0x0112] = 6  # stored sideways, rotate 90 degrees clockwise to view
    path = tmp_path / "sideways.jpg"
    img.save(path, format="JPEG", quality=95, exif=exif)

    clean = _open(asyncio.run(strip_metadata(path)))

    assert clean.size == (60, 80)
    assert len(clean.getexif()) == 0
    red, _, blue = clean.getpixel((30, 10))
    assert red > 200 and blue < 60
    red, _, blue = clean.getpixel((30, 70))
    assert blue > 200 and red < 60


def test_png_keeps_transparency(tmp_path):
    path = tmp_path / "overlay.png"
    path.write_bytes(make_image_bytes(size=(10, 10), image_format="PNG", mode="RGBA"))

    clean = _open(asyncio.run(strip_metadata(path, "png")))

    assert clean.format == "PNG"
    assert clean.mode == "RGBA"
    assert clean.getpixel((0, 0))[3] == 128


def test_jpeg_flattens_transparency_onto_white(tmp_path):
    path = tmp_path / "clear.png"
    path.write_bytes(
        make_image_bytes(size=(10, 10), color=(0, 0, 0, 0), image_format="PNG", mode="RGBA")
    )

    clean = _open(asyncio.run(strip_metadata(path, "jpeg")))

    assert clean.mode == "RGB"
    assert all(channel > 245 for channel in clean.getpixel((5, 5)))


def test_webp_output(exif_jpeg):
    clean = _open(asyncio.run(strip_metadata(exif_jpeg, "image/webp")))

    assert clean.format == "WEBP"
    assert clean.size == (80, 60)


def test_undecodable_source_raises(tmp_path):
    path = tmp_path / "notes.jpg"
    path.write_text("not pixels")

    with pytest.raises(SanitizationError):
        asyncio.run(strip_metadata(path))


def test_unsupported_format_raises(exif_jpeg):
    with pytest.raises(SanitizationError):
        asyncio.run(strip_metadata(exif_jpeg, "gif"))


@pytest.mark.parametrize("name,expected", [
    ("jpeg", "jpeg"),
    ("JPG", "jpeg"),
    ("image/jpeg", "jpeg"),
    ("image/png", "png"),
    (" webp ", "webp"),
])
def test_normalize_format(name, expected):
    assert normalize_format(name) == expected
