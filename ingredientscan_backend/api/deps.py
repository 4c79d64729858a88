"""Shared API dependencies and helpers."""

from flask import current_app

from ingredientscan_backend.services.images import DEFAULT_MAX_IMAGE_BYTES
from ingredientscan_backend.services.llm import VisionLLMClient


def get_llm_client() -> VisionLLMClient:
    """Return the configured vision LLM client."""

    client: VisionLLMClient | None = current_app.extensions.get(
        "vision_llm_client"
    )
    if client is None:
        raise RuntimeError("vision LLM client is not configured")
    return client


def get_max_image_bytes() -> int:
    """Return the upload size limit for analyzed images."""

    return current_app.config.get("MAX_IMAGE_BYTES") or DEFAULT_MAX_IMAGE_BYTES
