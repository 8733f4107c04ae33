"""REST API routes for the photolens web UI."""

import io
import logging

from flask import Blueprint, current_app, jsonify, request, send_file
from werkzeug.utils import secure_filename

from ...assets import ImageAsset
from ...utils.exceptions import SanitizationError
from ...utils.sanitize import normalize_format
from ..services.session import ImageSessionService

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)

CLEAN_FAILED_MESSAGE = "Failed to create clean image."


def get_session_service() -> ImageSessionService:
    """Return the session service attached to the running app."""
    return current_app.config["PHOTOLENS_SESSION"]


def _is_image_upload(mimetype: str) -> bool:
    return not mimetype or mimetype.startswith("image/") or mimetype == "application/octet-stream"


@api_bp.route("/health", methods=["GET"])
def health():
    """Simple health check."""
    service = get_session_service()
    return jsonify({
        "ok": True,
        "model": service.orchestrator.vision.model_name,
    })


@api_bp.route("/image", methods=["POST"])
def upload_image():
    """Start processing an uploaded or dropped image.

    Request body:
        multipart/form-data with a ``file`` field

    Returns:
        The new record (metadata and analysis follow asynchronously)
    """
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"error": "Missing 'file' in request"}), 400

    if not _is_image_upload(upload.mimetype):
        return jsonify({"error": f"Not an image: {upload.mimetype}"}), 400

    data = upload.read()
    if not data:
        return jsonify({"error": "Uploaded file is empty"}), 400

    filename = secure_filename(upload.filename) or "upload"
    asset = ImageAsset.from_bytes(
        data,
        filename,
        upload.mimetype if upload.mimetype.startswith("image/") else None,
    )
    logger.info(f"Received upload {filename} ({len(data)} bytes)")

    record = get_session_service().submit(asset)
    return jsonify(record), 202


@api_bp.route("/image/capture", methods=["POST"])
def capture_image():
    """Start processing a JPEG frame from the camera.

    Request body:
        Raw JPEG bytes
    """
    data = request.get_data()
    if not data:
        return jsonify({"error": "Empty capture"}), 400

    asset = ImageAsset.from_capture(data)
    logger.info(f"Received camera capture {asset.filename} ({len(data)} bytes)")

    record = get_session_service().submit(asset)
    return jsonify(record), 202


@api_bp.route("/image", methods=["GET"])
def current_image():
    """Get the active record, including partial results."""
    record = get_session_service().current()
    if record is None:
        return jsonify({"error": "No image loaded"}), 404
    return jsonify(record)


@api_bp.route("/image/preview", methods=["GET"])
def image_preview():
    """Serve the preview of the active image."""
    preview = get_session_service().preview()
    if preview is None:
        return jsonify({"error": "No preview available"}), 404

    path, mime_type = preview
    return send_file(path, mimetype=mime_type, max_age=0)


@api_bp.route("/image/clean", methods=["POST"])
def clean_image():
    """Download a metadata-free copy of the active image.

    Query params:
        format: jpeg (default), png or webp

    Returns:
        The clean file as an attachment, 204 when no image is loaded
    """
    try:
        target_format = normalize_format(request.args.get("format", "jpeg"))
    except SanitizationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        clean = get_session_service().clean(target_format)
    except SanitizationError as e:
        logger.error(f"Privacy clean failed: {e}")
        return jsonify({"error": CLEAN_FAILED_MESSAGE, "detail": str(e)}), 500

    if clean is None:
        return "", 204

    return send_file(
        io.BytesIO(clean.data),
        mimetype=clean.mime_type,
        as_attachment=True,
        download_name=clean.filename,
    )


@api_bp.route("/image", methods=["DELETE"])
def discard_image():
    """Discard the active image and release its preview."""
    get_session_service().discard()
    return "", 204
