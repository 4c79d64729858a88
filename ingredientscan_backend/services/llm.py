"""Client helpers for interacting with a vision-capable LLM."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Optional

from httpx import RequestError, TimeoutException
from openai import OpenAI
from openai.types.responses import Response

from ingredientscan_backend.config import DEFAULT_ANALYSIS_PROMPT, DEFAULT_LLM_MODEL

logger = logging.getLogger(__name__)


@dataclass
class VisionLLMSettings:
    """Configuration required to talk to the vision model."""

    api_key: str
    model: str = DEFAULT_LLM_MODEL
    analysis_prompt: Optional[str] = DEFAULT_ANALYSIS_PROMPT
    system_prompt: Optional[str] = None


@dataclass(slots=True)
class VisionLLMResult:
    """Raw text returned by the vision model for one image."""

    raw_text: str


class VisionLLMClient:
    """Thin wrapper around the OpenAI Responses API for vision requests."""

    def __init__(self, settings: VisionLLMSettings) -> None:
        self._settings = settings
        self._client = OpenAI(api_key=settings.api_key)

    @property
    def model(self) -> str:
        return self._settings.model

    def analyze_image(
        self,
        *,
        image_bytes: bytes,
        prompt: str | None = None,
        mime_type: str | None = None,
    ) -> VisionLLMResult:
        """Send the instruction prompt and image to the configured LLM."""
        if not image_bytes:
            raise ValueError("image_bytes is empty")

        user_text = (prompt or "").strip() or self._settings.analysis_prompt
        if not user_text:
            raise ValueError(
                "prompt is required when INGREDIENTSCAN_LLM_PROMPT is empty"
            )

        image_base64 = base64.b64encode(image_bytes).decode("ascii")
        mime = (mime_type or "image/jpeg").strip() or "image/jpeg"
        data_uri = f"data:{mime};base64,{image_base64}"

        content = []
        if self._settings.system_prompt:
            content.append(
                {
                    "role": "system",
                    "content": [
                        {
                            "type": "input_text",
                            "text": self._settings.system_prompt,
                        }
                    ],
                }
            )

        content.append(
            {
                "role": "user",
                "content": [
                    {"type": "input_text", "text": user_text},
                    {"type": "input_image", "image_url": data_uri},
                ],
            }
        )

        try:
            response: Response = self._client.responses.create(
                model=self._settings.model,
                input=content,
            )
        except TimeoutException as e:
            logger.error("OpenAI / HTTP timeout: %r", e)
            raise
        except RequestError as e:
            logger.error("OpenAI / HTTP network error: %r", e)
            raise
        except Exception:
            logger.exception("OpenAI response error")
            raise

        output_text = response.output_text or ""
        logger.info(
            "vision model answered",
            extra={"model": self._settings.model, "chars": len(output_text)},
        )
        return VisionLLMResult(raw_text=output_text)


def init_vision_llm_client(settings: VisionLLMSettings) -> VisionLLMClient:
    """Create a ``VisionLLMClient`` instance from the provided settings."""

    return VisionLLMClient(settings)
