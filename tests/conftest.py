"""Shared fixtures for the photolens test suite."""

import io
from typing import List, Optional

import pytest
from PIL import Image

from photolens.assets import ImageAsset
from photolens.processing import PreviewStore, ProcessingOrchestrator
from photolens.vision.base import (
    AnalysisRecord,
    Authenticity,
    FaceEmotion,
    ImageCategory,
    VisionModel,
)

# Tag ids used to build test EXIF blocks
MAKE = 0x010F
MODEL = 0x0110
SOFTWARE = 0x0131
EXIF_IFD = 0x8769
GPS_IFD = 0x8825
DATETIME_ORIGINAL = 0x9003
ISO_SPEED = 0x8827
EXIF_WIDTH = 0xA002
EXIF_HEIGHT = 0xA003

SAN_FRANCISCO_GPS = {
    1: "N",
    2: (37.0, 46.0, 29.64),
    3: "W",
    4: (122.0, 25.0, 9.84),
}


def sample_analysis(**overrides) -> AnalysisRecord:
    values = dict(
        objects=["Laptop", "Coffee Mug", "Notebook"],
        people_count=1,
        scene_type="Office",
        image_category=ImageCategory.PHOTO,
        dominant_colors=["#FFFFFF", "#333333"],
        face_emotion=FaceEmotion.HAPPY,
        is_safe=True,
        authenticity=Authenticity(
            is_likely_edited=False,
            reason="Lighting and shadows are consistent",
            score=12,
        ),
        ocr_text="QUARTERLY REPORT",
    )
    values.update(overrides)
    return AnalysisRecord(**values)


def make_image_bytes(
    size=(64, 48),
    color=(200, 30, 30),
    image_format: str = "JPEG",
    mode: str = "RGB",
    exif: Optional[Image.Exif] = None
) -> bytes:
    """Encode a solid-color test image, optionally with an EXIF block."""
    if mode == "RGBA" and len(color) == 3:
        color = color + (128,)
    img = Image.new(mode, size, color)
    output = io.BytesIO()
    if exif is not None:
        img.save(output, format=image_format, exif=exif)
    else:
        img.save(output, format=image_format)
    return output.getvalue()


def make_camera_exif(with_gps: bool = True) -> Image.Exif:
    """EXIF block resembling a phone photo taken in San Francisco."""
    exif = Image.Exif()
    exif[MAKE] = "Google"
    exif[MODEL] = "Pixel 8"
    exif[SOFTWARE] = "HDR+ 1.0"
    exif[EXIF_IFD] = {
        DATETIME_ORIGINAL: "2023:10:27 14:30:00",
        ISO_SPEED: 200,
        EXIF_WIDTH: 64,
        EXIF_HEIGHT: 48,
    }
    if with_gps:
        exif[GPS_IFD] = dict(SAN_FRANCISCO_GPS)
    return exif


class FakeVisionModel(VisionModel):
    """In-process vision model returning a canned analysis.

    ``gate`` blocks the next request until the event is set, which lets
    tests hold an analysis in flight.
    """

    def __init__(self, record: Optional[AnalysisRecord] = None, error: Optional[Exception] = None):
        super().__init__("fake-vl:1b")
        self.record = record or sample_analysis()
        self.error = error
        self.gate = None
        self.calls: List[str] = []

    async def _request_analysis(self, image_base64: str) -> AnalysisRecord:
        self.calls.append(image_base64)
        gate, self.gate = self.gate, None
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        return self.record


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image_bytes()


@pytest.fixture
def camera_jpeg_bytes() -> bytes:
    return make_image_bytes(exif=make_camera_exif())


@pytest.fixture
def photo_asset(camera_jpeg_bytes) -> ImageAsset:
    return ImageAsset.from_bytes(camera_jpeg_bytes, "photo.jpg")


@pytest.fixture
def fake_vision() -> FakeVisionModel:
    return FakeVisionModel()


@pytest.fixture
def preview_store(tmp_path) -> PreviewStore:
    store = PreviewStore(str(tmp_path / "previews"))
    yield store
    store.close()


@pytest.fixture
def orchestrator(fake_vision, preview_store) -> ProcessingOrchestrator:
    return ProcessingOrchestrator(vision=fake_vision, previews=preview_store)


@pytest.fixture(autouse=True)
def no_ambient_api_key(monkeypatch):
    """Keep a developer's real credentials out of the tests."""
    monkeypatch.delenv("OLLAMA_API_KEY", raising=False)
    monkeypatch.delenv("OLLAMA_HOST", raising=False)
