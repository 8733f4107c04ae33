"""Plain-text rendering of an image record."""

import re
from typing import List

from photolens.processing.models import ImageRecord, ProcessingState

UNKNOWN = "Unknown"
NO_EXIF_MESSAGE = "No EXIF data found"
NO_TEXT_MESSAGE = "No text detected"
ANALYZING_MESSAGE = "Analyzing image..."


def _label(key: str) -> str:
    """Turn a camelCase key into a display label (``fNumber`` -> ``F Number``)."""
    spaced = re.sub(r"([A-Z])", r" \1", key).strip()
    return spaced[:1].upper() + spaced[1:]


def _status_lines(record: ImageRecord) -> List[str]:
    if record.state is ProcessingState.DEGRADED:
        return [record.error or "Processing failed."]
    if record.is_processing:
        return [ANALYZING_MESSAGE]
    return []


def format_overview(record: ImageRecord) -> str:
    """Date, camera, AI insights and the location banner."""
    metadata = record.metadata
    lines = [
        f"Date Taken: {(metadata and metadata.date_time_original) or UNKNOWN}",
        f"Camera: {(metadata and metadata.model) or UNKNOWN}",
    ]

    analysis = record.analysis
    if analysis is not None:
        insights = [
            analysis.scene_type,
            analysis.image_category.value,
            f"{analysis.people_count} Person(s)",
        ]
        insights.extend(analysis.objects[:5])
        lines.append(f"AI Insights: {', '.join(insights)}")

    if metadata is not None and metadata.has_location:
        lines.append(f"Location Data Found: {metadata.location_display}")

    lines.extend(_status_lines(record))
    return "\n".join(lines)


def format_metadata(record: ImageRecord) -> str:
    """Every extracted EXIF field, one per line."""
    if record.metadata is None:
        return NO_EXIF_MESSAGE
    rows = record.metadata.to_dict()
    if not rows:
        return NO_EXIF_MESSAGE
    width = max(len(_label(key)) for key in rows)
    return "\n".join(f"{_label(key):<{width}}  {value}" for key, value in rows.items())


def format_analysis(record: ImageRecord) -> str:
    """Authenticity, safety, emotion and color details."""
    analysis = record.analysis
    if analysis is None:
        return "\n".join(_status_lines(record)) or ANALYZING_MESSAGE

    authenticity = analysis.authenticity
    verdict = "Edited" if authenticity.is_likely_edited else "Original"
    lines = [
        f"Authenticity Check: {verdict} ({authenticity.score}/100)",
        f"  {authenticity.reason}",
        f"Content Safety: {'Safe' if analysis.is_safe else 'NSFW / Unsafe'}",
        f"Emotion: {analysis.face_emotion.value}",
        f"Dominant Colors: {', '.join(analysis.dominant_colors) or UNKNOWN}",
    ]
    return "\n".join(lines)


def format_ocr(record: ImageRecord) -> str:
    """Text found in the image."""
    if record.analysis is None:
        return "\n".join(_status_lines(record)) or ANALYZING_MESSAGE
    return record.analysis.ocr_text or NO_TEXT_MESSAGE


def format_record(record: ImageRecord) -> str:
    """All sections of a record, separated by headings."""
    sections = [
        ("Overview", format_overview(record)),
        ("EXIF", format_metadata(record)),
        ("AI Analysis", format_analysis(record)),
        ("Text (OCR)", format_ocr(record)),
    ]
    parts = [f"Image: {record.asset.filename}"]
    for title, body in sections:
        parts.append("")
        parts.append(f"== {title} ==")
        parts.append(body)
    return "\n".join(parts)
