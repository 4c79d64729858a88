"""Run one packaging photo through the vision model and the parser."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ingredientscan_backend.services.analysis_parser import (
    AnalysisRecord,
    parse_analysis_text,
    summarize_records,
)
from ingredientscan_backend.services.images import ImageFrame
from ingredientscan_backend.services.llm import VisionLLMClient

logger = logging.getLogger(__name__)

NO_INGREDIENTS_TITLE = "No ingredients detected"
NO_INGREDIENTS_DESCRIPTION = (
    "We couldn't find an ingredient list in this photo. "
    "Retake it with the label in focus and try again."
)
ANALYSIS_FAILED_TITLE = "Analysis Failed"
ANALYSIS_FAILED_DESCRIPTION = "Could not analyze the image. Please try again."


class AnalysisError(RuntimeError):
    """Raised when the vision model could not produce an answer."""


@dataclass(slots=True)
class AnalysisOutcome:
    """Raw model text together with the records parsed from it."""

    raw_text: str
    records: list[AnalysisRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def summary(self) -> str:
        return summarize_records(self.records)

    def notice(self) -> dict[str, str] | None:
        """User-facing notice for the empty result path, if any."""

        if not self.is_empty:
            return None
        return {
            "title": NO_INGREDIENTS_TITLE,
            "description": NO_INGREDIENTS_DESCRIPTION,
        }

    def to_dict(self) -> dict[str, object]:
        return {
            "text": self.raw_text,
            "ingredients": [record.to_dict() for record in self.records],
            "summary": self.summary,
            "notice": self.notice(),
        }


def outcome_from_text(raw_text: str | None) -> AnalysisOutcome:
    """Parse model text into an outcome; malformed text yields no records."""

    text = raw_text or ""
    return AnalysisOutcome(raw_text=text, records=parse_analysis_text(text))


def analyze_frame(client: VisionLLMClient, frame: ImageFrame) -> AnalysisOutcome:
    """Send ``frame`` to the vision model and parse its answer.

    ``ValueError`` from the client (bad input) propagates unchanged; every
    other failure is wrapped in ``AnalysisError``.
    """

    try:
        llm_result = client.analyze_image(
            image_bytes=frame.data,
            mime_type=frame.mime_type,
        )
    except ValueError:
        raise
    except Exception as exc:
        raise AnalysisError("failed to query vision model") from exc

    outcome = outcome_from_text(llm_result.raw_text)
    if outcome.is_empty:
        logger.warning(
            "vision model answer contained no ingredients",
            extra={"chars": len(outcome.raw_text)},
        )
    else:
        logger.info(
            "parsed vision model answer", extra={"records": len(outcome.records)}
        )
    return outcome
