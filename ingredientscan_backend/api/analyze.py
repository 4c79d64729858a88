"""Endpoint that relays a packaging photo to the vision model."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from ingredientscan_backend.api.deps import get_llm_client, get_max_image_bytes
from ingredientscan_backend.services.analysis import AnalysisError, analyze_frame
from ingredientscan_backend.services.images import (
    ImageFrame,
    frame_from_upload,
)

bp = Blueprint("analyze", __name__, url_prefix="/api")


def _read_frame() -> ImageFrame:
    """Pull the image from a multipart ``image`` part or JSON ``imageData``."""

    max_bytes = get_max_image_bytes()
    if "image" in request.files:
        return frame_from_upload(request.files["image"], max_bytes=max_bytes)

    payload = request.get_json(silent=True) or {}
    image_data = payload.get("imageData") if isinstance(payload, dict) else None
    if not image_data:
        raise ValueError("imageData or file part 'image' is required")
    return ImageFrame.from_data_url(image_data, max_bytes=max_bytes)


@bp.post("/analyze")
def analyze_image():
    """Analyze a food packaging photo and return per-ingredient records."""

    try:
        frame = _read_frame()
    except ValueError as exc:
        return jsonify(error=str(exc)), 400

    try:
        client = get_llm_client()
    except RuntimeError as exc:
        return jsonify(error=str(exc)), 503

    try:
        outcome = analyze_frame(client, frame)
    except ValueError as exc:
        return jsonify(error=str(exc)), 400
    except AnalysisError as exc:
        current_app.logger.exception(
            "vision LLM invocation failed",
            extra={"mime_type": frame.mime_type, "bytes": len(frame.data)},
        )
        return jsonify(error=str(exc)), 502

    return jsonify(outcome.to_dict())
