import io

import pytest
from PIL import Image

from photolens.processing import ProcessingOrchestrator
from photolens.web import create_app
from photolens.web.cli import describe_routes


@pytest.fixture
def app(fake_vision, preview_store):
    orchestrator = ProcessingOrchestrator(vision=fake_vision, previews=preview_store)
    app = create_app(orchestrator=orchestrator)
    app.config["TESTING"] = True
    yield app
    app.config["PHOTOLENS_SESSION"].shutdown()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session(app):
    return app.config["PHOTOLENS_SESSION"]


def upload(client, data, filename="photo.jpg", mimetype="image/jpeg"):
    return client.post(
        "/api/image",
        data={"file": (io.BytesIO(data), filename, mimetype)},
        content_type="multipart/form-data",
    )


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.get_json() == {"ok": True, "model": "fake-vl:1b"}


def test_no_image_loaded(client):
    assert client.get("/api/image").status_code == 404
    assert client.get("/api/image/preview").status_code == 404
    assert client.post("/api/image/clean").status_code == 204


def test_upload_processes_in_background(client, session, camera_jpeg_bytes):
    response = upload(client, camera_jpeg_bytes)

    assert response.status_code == 202
    body = response.get_json()
    assert body["filename"] == "photo.jpg"
    assert body["has_preview"] is True

    session.wait_for_pending()
    record = client.get("/api/image").get_json()

    assert record["id"] == body["id"]
    assert record["state"] == "complete"
    assert record["is_processing"] is False
    assert record["exif"]["model"] == "Pixel 8"
    assert record["ai_analysis"]["sceneType"] == "Office"
    assert record["analysis_failed"] is False


def test_preview_serves_original_bytes(client, session, camera_jpeg_bytes):
    upload(client, camera_jpeg_bytes)
    session.wait_for_pending()

    response = client.get("/api/image/preview")

    assert response.status_code == 200
    assert response.mimetype == "image/jpeg"
    assert response.data == camera_jpeg_bytes


def test_clean_download(client, session, camera_jpeg_bytes):
    upload(client, camera_jpeg_bytes)
    session.wait_for_pending()

    response = client.post("/api/image/clean")

    assert response.status_code == 200
    assert response.mimetype == "image/jpeg"
    assert "clean_photo.jpg" in response.headers["Content-Disposition"]
    img = Image.open(io.BytesIO(response.data))
    assert len(img.getexif()) == 0


def test_clean_download_as_png(client, session, camera_jpeg_bytes):
    upload(client, camera_jpeg_bytes)
    session.wait_for_pending()

    response = client.post("/api/image/clean?format=png")

    assert response.mimetype == "image/png"
    assert "clean_photo.png" in response.headers["Content-Disposition"]


def test_clean_rejects_unknown_format(client, camera_jpeg_bytes):
    upload(client, camera_jpeg_bytes)

    assert client.post("/api/image/clean?format=tiff").status_code == 400


def test_capture_submits_camera_frame(client, session, jpeg_bytes):
    response = client.post("/api/image/capture", data=jpeg_bytes, content_type="image/jpeg")

    assert response.status_code == 202
    assert response.get_json()["filename"].startswith("capture_")
    session.wait_for_pending()
    assert client.get("/api/image").get_json()["exif"] is None


def test_new_upload_replaces_active_image(client, session, preview_store, jpeg_bytes):
    first = upload(client, jpeg_bytes, filename="first.jpg").get_json()
    second = upload(client, jpeg_bytes, filename="second.jpg").get_json()
    session.wait_for_pending()

    record = client.get("/api/image").get_json()

    assert record["id"] == second["id"] != first["id"]
    assert preview_store.live_count == 1


def test_discard(client, session, jpeg_bytes):
    upload(client, jpeg_bytes)
    session.wait_for_pending()

    assert client.delete("/api/image").status_code == 204
    assert client.get("/api/image").status_code == 404
    assert client.post("/api/image/clean").status_code == 204


@pytest.mark.parametrize("data,filename,mimetype", [
    (b"", "empty.jpg", "image/jpeg"),
    (b"plain text", "notes.txt", "text/plain"),
])
def test_upload_rejects_bad_files(client, data, filename, mimetype):
    assert upload(client, data, filename, mimetype).status_code == 400


def test_upload_requires_file_field(client):
    assert client.post("/api/image", data={}).status_code == 400


def test_empty_capture_is_rejected(client):
    assert client.post("/api/image/capture", data=b"").status_code == 400


def test_route_listing_for_banner(app):
    lines = describe_routes(app)

    assert f"{'POST':<12} /api/image/clean" in lines
    assert any(line.startswith("DELETE") and line.endswith("/api/image") for line in lines)
    assert all(" /api/" in line for line in lines)
