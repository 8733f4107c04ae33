"""EXIF metadata extraction for image assets."""

import io
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from PIL import Image
from PIL.ExifTags import GPSTAGS, TAGS

# Register HEIF/HEIC support if available
try:
    from pillow_heif import register_heif_opener
    register_heif_opener()
    HEIC_SUPPORT = True
except ImportError:
    HEIC_SUPPORT = False

logger = logging.getLogger(__name__)

EXIF_IFD = 0x8769
GPS_IFD = 0x8825

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"
HEIC_SUFFIXES = (".heic", ".heif")

# Whitelisted tags per namespace, mapped to MetadataRecord fields
TIFF_FIELDS = {
    "Make": "make",
    "Model": "model",
    "Software": "software",
}
EXIF_FIELDS = {
    "DateTimeOriginal": "date_time_original",
    "ExposureTime": "exposure_time",
    "FNumber": "f_number",
    "ISOSpeedRatings": "iso",
    "FocalLength": "focal_length",
    "ExifImageWidth": "width",
    "ExifImageHeight": "height",
}
FLOAT_FIELDS = ("exposure_time", "f_number", "focal_length")
INT_FIELDS = ("iso", "width", "height")


@dataclass
class MetadataRecord:
    """Normalized subset of the container metadata of one image.

    Every field is optional; ``None`` means the tag was not present in the
    source, not that extraction failed.

    Attributes:
        make: Camera manufacturer
        model: Camera model
        date_time_original: Capture time as a locale-formatted display string
        captured_at: Parsed capture time (naive, camera local time)
        exposure_time: Exposure time in seconds
        f_number: Aperture f-number
        iso: ISO speed rating
        focal_length: Focal length in millimetres
        latitude: Latitude in decimal degrees
        longitude: Longitude in decimal degrees
        software: Software that wrote the file
        width: Pixel width recorded in EXIF
        height: Pixel height recorded in EXIF
    """
    make: Optional[str] = None
    model: Optional[str] = None
    date_time_original: Optional[str] = None
    captured_at: Optional[datetime] = None
    exposure_time: Optional[float] = None
    f_number: Optional[float] = None
    iso: Optional[int] = None
    focal_length: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    software: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def has_location(self) -> bool:
        """Whether both GPS coordinates are available."""
        return self.latitude is not None and self.longitude is not None

    @property
    def location_display(self) -> Optional[str]:
        """Coordinates rounded to four decimals, e.g. ``37.7749, -122.4194``."""
        if not self.has_location:
            return None
        return f"{self.latitude:.4f}, {self.longitude:.4f}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a camelCase dictionary, omitting absent fields."""
        values = {
            "make": self.make,
            "model": self.model,
            "dateTimeOriginal": self.date_time_original,
            "exposureTime": self.exposure_time,
            "fNumber": self.f_number,
            "iso": self.iso,
            "focalLength": self.focal_length,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "software": self.software,
            "width": self.width,
            "height": self.height,
        }
        return {key: value for key, value in values.items() if value is not None}


def _convert_to_decimal_degrees(
    degrees: Tuple[float, float, float], ref: str
) -> float:
    """Convert GPS coordinates from degrees/minutes/seconds to decimal.

    Args:
        degrees: Tuple of (degrees, minutes, seconds)
        ref: Reference direction ('N', 'S', 'E', 'W')

    Returns:
        Decimal degrees (negative for South/West)
    """
    decimal = float(degrees[0]) + float(degrees[1]) / 60.0 + float(degrees[2]) / 3600.0

    if ref in ('S', 'W'):
        decimal = -decimal

    return decimal


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).replace("\x00", "").strip()
    return text or None


def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, (tuple, list)):
        if len(value) == 2 and not isinstance(value[0], (tuple, list)):
            numerator, denominator = value
            return float(numerator) / float(denominator) if denominator else None
        value = value[0] if value else None
    if value is None:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    # IFDRational with a zero denominator converts to nan
    return None if result != result else result


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, (tuple, list)):
        value = value[0] if value else None
    result = _to_float(value)
    return int(result) if result is not None else None


def format_capture_time(raw: str) -> Tuple[str, Optional[datetime]]:
    """Render an EXIF timestamp for display and keep the parsed instant.

    Args:
        raw: Timestamp in EXIF form (``YYYY:MM:DD HH:MM:SS``)

    Returns:
        Tuple of (locale-formatted display string, parsed datetime). When
        the value cannot be parsed the raw text is displayed unchanged.
    """
    try:
        captured_at = datetime.strptime(raw.strip(), EXIF_DATETIME_FORMAT)
    except ValueError:
        logger.debug(f"Unrecognized EXIF timestamp: {raw!r}")
        return raw, None
    return captured_at.strftime("%x, %X"), captured_at


def _read_tiff_tags(exif: Image.Exif) -> Dict[str, Any]:
    """Read the whitelisted IFD0 (TIFF) tags."""
    found = {}
    for tag_id, value in exif.items():
        name = TAGS.get(tag_id)
        if name in TIFF_FIELDS:
            found[TIFF_FIELDS[name]] = _to_text(value)
    return found


def _read_exif_tags(exif: Image.Exif) -> Dict[str, Any]:
    """Read the whitelisted tags of the Exif sub-IFD."""
    items = dict(exif.items())
    try:
        items.update(exif.get_ifd(EXIF_IFD))
    except (KeyError, AttributeError, TypeError) as e:
        logger.debug(f"Exif IFD not readable: {e}")

    found: Dict[str, Any] = {}
    for tag_id, value in items.items():
        name = TAGS.get(tag_id)
        if name not in EXIF_FIELDS:
            continue
        field_name = EXIF_FIELDS[name]
        if field_name in FLOAT_FIELDS:
            found[field_name] = _to_float(value)
        elif field_name in INT_FIELDS:
            found[field_name] = _to_int(value)
        else:
            text = _to_text(value)
            if text:
                display, captured_at = format_capture_time(text)
                found["date_time_original"] = display
                found["captured_at"] = captured_at
    return found


def _read_gps_tags(exif: Image.Exif) -> Dict[str, float]:
    """Read GPS coordinates; returns both or nothing."""
    try:
        gps_info = exif.get_ifd(GPS_IFD)
    except (KeyError, AttributeError, TypeError) as e:
        logger.debug(f"GPS IFD not readable: {e}")
        return {}

    if not gps_info:
        return {}

    gps = {GPSTAGS.get(key, key): value for key, value in gps_info.items()}
    return _coordinates_from_parts(
        gps.get("GPSLatitude"),
        _to_text(gps.get("GPSLatitudeRef")),
        gps.get("GPSLongitude"),
        _to_text(gps.get("GPSLongitudeRef")),
    )


def _coordinates_from_parts(latitude, lat_ref, longitude, lon_ref) -> Dict[str, float]:
    if not (latitude and longitude and lat_ref and lon_ref):
        logger.debug(
            f"Incomplete GPS data (lat: {latitude}, lon: {longitude}, "
            f"refs: {lat_ref}/{lon_ref})"
        )
        return {}

    try:
        lat = _convert_to_decimal_degrees(tuple(latitude), lat_ref.upper())
        lon = _convert_to_decimal_degrees(tuple(longitude), lon_ref.upper())
    except (ValueError, TypeError, IndexError, ZeroDivisionError) as e:
        logger.warning(f"Failed to convert GPS coordinates: {e}")
        return {}

    # 0/0 rationals (written by some devices without a fix) decode to NaN
    if not (math.isfinite(lat) and math.isfinite(lon)):
        logger.warning(f"Discarding non-finite GPS coordinates ({lat}, {lon})")
        return {}
    return {"latitude": lat, "longitude": lon}


def _read_gps_with_exifread(data: bytes) -> Dict[str, float]:
    """Read GPS coordinates with exifread.

    This is often more reliable for HEIC files than Pillow.
    """
    import exifread

    tags = exifread.process_file(io.BytesIO(data), details=False)

    def dms(tag_name: str):
        tag = tags.get(tag_name)
        if tag is None or not hasattr(tag, "values") or len(tag.values) < 3:
            return None
        return tuple(float(part) for part in tag.values[:3])

    lat_ref = tags.get("GPS GPSLatitudeRef")
    lon_ref = tags.get("GPS GPSLongitudeRef")
    return _coordinates_from_parts(
        dms("GPS GPSLatitude"),
        _to_text(lat_ref) if lat_ref is not None else None,
        dms("GPS GPSLongitude"),
        _to_text(lon_ref) if lon_ref is not None else None,
    )


def extract_metadata(asset) -> Optional[MetadataRecord]:
    """Extract the whitelisted container metadata from an image asset.

    Reads three namespaces: TIFF (IFD0), Exif and GPS. Latitude and
    longitude are only reported together. This function never raises:
    unreadable or unsupported containers are logged and reported as
    ``None``.

    Args:
        asset: ImageAsset to inspect

    Returns:
        MetadataRecord, or None if the image carries no usable metadata

    Examples:
        >>> metadata = extract_metadata(ImageAsset.from_path("photo.jpg"))
        >>> if metadata and metadata.has_location:
        ...     print(f"Photo taken at: {metadata.location_display}")
    """
    try:
        data = asset.read()
        is_heic = asset.suffix in HEIC_SUFFIXES
        if is_heic and not HEIC_SUPPORT:
            logger.warning(
                "HEIC format detected but pillow-heif not installed. "
                "EXIF extraction may fail. Install with: pip install pillow-heif"
            )

        with Image.open(io.BytesIO(data)) as img:
            exif = img.getexif()

        if exif is None or len(exif) == 0:
            logger.debug(f"No EXIF data found in {asset.filename}")
            return None

        fields: Dict[str, Any] = {}
        fields.update(_read_tiff_tags(exif))
        fields.update(_read_exif_tags(exif))

        location = _read_gps_tags(exif)
        if not location and is_heic:
            try:
                location = _read_gps_with_exifread(data)
            except Exception as e:
                logger.debug(f"exifread extraction failed: {e}")
        fields.update(location)

        fields = {key: value for key, value in fields.items() if value is not None}
        if not fields:
            logger.debug(f"No whitelisted EXIF fields in {asset.filename}")
            return None

        metadata = MetadataRecord(**fields)
        logger.debug(f"Extracted {len(fields)} EXIF field(s) from {asset.filename}")
        if metadata.has_location:
            logger.info(f"Found GPS coordinates in {asset.filename}: {metadata.location_display}")
        return metadata

    except Exception as e:
        logger.warning(f"Failed to extract EXIF from {asset.filename}: {e}")
        return None
