"""HTTP client for the analyze endpoint, used by the desktop capture surface."""

from __future__ import annotations

import logging
import os

import requests

from ingredientscan_backend.services.analysis import (
    ANALYSIS_FAILED_DESCRIPTION,
    AnalysisOutcome,
    outcome_from_text,
)
from ingredientscan_backend.services.images import ImageFrame

logger = logging.getLogger(__name__)

SERVER_URL_ENV = "INGREDIENTSCAN_SERVER_URL"
DEFAULT_SERVER_URL = "http://localhost:8000"
ANALYZE_PATH = "/api/analyze"
_DEFAULT_TIMEOUT_SECONDS = 60


class AnalysisRequestError(RuntimeError):
    """Raised when the analyze endpoint cannot be reached or rejects a frame."""


def default_server_url() -> str:
    return os.environ.get(SERVER_URL_ENV) or DEFAULT_SERVER_URL


class AnalysisServiceClient:
    """Send captured frames to the analyze endpoint, one request at a time."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = (base_url or default_server_url()).rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}{ANALYZE_PATH}"

    def analyze(self, frame: ImageFrame) -> AnalysisOutcome:
        """Submit ``frame`` and parse the model text from the response."""

        try:
            response = self._session.post(
                self.endpoint,
                json={"imageData": frame.to_data_url()},
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            logger.error("failed to reach analyze endpoint: %r", exc)
            raise AnalysisRequestError(ANALYSIS_FAILED_DESCRIPTION) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.ok:
            message = None
            if isinstance(payload, dict):
                message = payload.get("error")
            logger.warning(
                "analyze endpoint returned %s: %s",
                response.status_code,
                response.text[:512],
            )
            raise AnalysisRequestError(message or ANALYSIS_FAILED_DESCRIPTION)

        if not isinstance(payload, dict) or not isinstance(
            payload.get("text"), str
        ):
            logger.warning("invalid analyze endpoint response")
            raise AnalysisRequestError("invalid response from analyze endpoint")

        return outcome_from_text(payload["text"])
