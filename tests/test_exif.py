from datetime import datetime

import pytest
from PIL import Image
from PIL.TiffImagePlugin import IFDRational

from conftest import GPS_IFD, MODEL, make_camera_exif, make_image_bytes
from photolens.assets import ImageAsset
from photolens.utils.exif import (
    MetadataRecord,
    _convert_to_decimal_degrees,
    extract_metadata,
    format_capture_time,
)


def test_no_exif_returns_none(jpeg_bytes):
    assert extract_metadata(ImageAsset.from_bytes(jpeg_bytes, "plain.jpg")) is None


def test_undecodable_bytes_return_none():
    asset = ImageAsset.from_bytes(b"definitely not an image", "broken.jpg")
    assert extract_metadata(asset) is None


def test_missing_file_returns_none(tmp_path):
    assert extract_metadata(ImageAsset.from_path(tmp_path / "gone.jpg")) is None


def test_camera_fields_and_location(photo_asset):
    metadata = extract_metadata(photo_asset)

    assert metadata.make == "Google"
    assert metadata.model == "Pixel 8"
    assert metadata.software == "HDR+ 1.0"
    assert metadata.iso == 200
    assert metadata.width == 64
    assert metadata.height == 48
    assert metadata.latitude == pytest.approx(37.7749, abs=1e-4)
    assert metadata.longitude == pytest.approx(-122.4194, abs=1e-4)
    assert metadata.has_location
    assert metadata.location_display == "37.7749, -122.4194"


def test_capture_time_is_formatted_and_parsed(photo_asset):
    metadata = extract_metadata(photo_asset)

    expected = datetime(2023, 10, 27, 14, 30, 0)
    assert metadata.captured_at == expected
    assert metadata.date_time_original == expected.strftime("%x, %X")


def test_location_requires_both_coordinates():
    exif = make_camera_exif(with_gps=False)
    exif[GPS_IFD] = {1: "N", 2: (37.0, 46.0, 29.64)}
    asset = ImageAsset.from_bytes(make_image_bytes(exif=exif), "half.jpg")

    metadata = extract_metadata(asset)

    assert metadata.model == "Pixel 8"
    assert metadata.latitude is None
    assert metadata.longitude is None
    assert not metadata.has_location
    assert metadata.location_display is None


def test_zero_denominator_gps_is_discarded():
    exif = make_camera_exif(with_gps=False)
    exif[GPS_IFD] = {
        1: "N",
        2: (IFDRational(0, 0), 0, 0),
        3: "W",
        4: (IFDRational(0, 0), 0, 0),
    }
    asset = ImageAsset.from_bytes(make_image_bytes(exif=exif), "nofix.jpg")

    metadata = extract_metadata(asset)

    assert metadata.model == "Pixel 8"
    assert metadata.latitude is None
    assert metadata.longitude is None
    assert not metadata.has_location
    assert metadata.location_display is None
    assert "latitude" not in metadata.to_dict()


def test_only_whitelisted_tags_count():
    exif = Image.Exif()
    exif[0x010E] = "ImageDescription is not extracted"
    asset = ImageAsset.from_bytes(make_image_bytes(exif=exif), "described.jpg")

    assert extract_metadata(asset) is None


def test_single_tag_is_enough():
    exif = Image.Exif()
    exif[MODEL] = "iPhone 15 Pro"
    metadata = extract_metadata(ImageAsset.from_bytes(make_image_bytes(exif=exif), "a.jpg"))

    assert metadata == MetadataRecord(model="iPhone 15 Pro")


def test_to_dict_omits_absent_fields():
    metadata = MetadataRecord(model="Pixel 8", latitude=1.5, longitude=-2.25, iso=100)

    assert metadata.to_dict() == {
        "model": "Pixel 8",
        "iso": 100,
        "latitude": 1.5,
        "longitude": -2.25,
    }


def test_unparseable_timestamp_is_kept_raw():
    assert format_capture_time("sometime in 2023") == ("sometime in 2023", None)


@pytest.mark.parametrize("ref,expected", [
    ("N", 37.7749),
    ("S", -37.7749),
])
def test_decimal_degrees(ref, expected):
    assert _convert_to_decimal_degrees((37, 46, 29.64), ref) == pytest.approx(expected, abs=1e-4)
