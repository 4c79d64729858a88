"""Turn the vision model's line-oriented answer into ingredient records.

The model is asked to answer in blocks such as::

    Sugar:
    Harm Scale: 8/10
    Potential Health Concerns: Diabetes, Obesity

Parsing is a best-effort scan over lines. Anything the rules below do not
recognise is skipped, and text without a single ingredient block yields an
empty list rather than an error.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

import inflect

DEFAULT_HARM_SCALE = 5
MIN_HARM_SCALE = 1
MAX_HARM_SCALE = 10

_FIRST_INTEGER = re.compile(r"\d+")
_CONCERN_KEYWORDS = ("disease", "health", "concern")
_INFLECT_ENGINE = inflect.engine()


class RiskBand(str, Enum):
    """Display band for a harm scale value."""

    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"


@dataclass(slots=True)
class AnalysisRecord:
    """One ingredient with its harm scale and associated health concerns."""

    name: str
    harm_scale: int = DEFAULT_HARM_SCALE
    health_concerns: list[str] = field(default_factory=list)

    @property
    def risk_band(self) -> RiskBand:
        return risk_band(self.harm_scale)

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "harmScale": self.harm_scale,
            "healthConcerns": list(self.health_concerns),
            "riskBand": self.risk_band.value,
        }


def risk_band(harm_scale: int) -> RiskBand:
    """Map a harm scale onto the red/yellow/green display bands."""

    if harm_scale > 7:
        return RiskBand.HIGH
    if harm_scale > 4:
        return RiskBand.MODERATE
    return RiskBand.LOW


def parse_analysis_text(text: str | None) -> list[AnalysisRecord]:
    """Parse free text into records, in the order the ingredients appear."""

    if not text:
        return []

    records: list[AnalysisRecord] = []
    current: AnalysisRecord | None = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        lowered = line.lower()

        if "harm scale" in lowered:
            if current is not None:
                current.harm_scale = _parse_harm_scale(line)
        elif any(keyword in lowered for keyword in _CONCERN_KEYWORDS):
            if current is not None:
                current.health_concerns = _parse_concerns(line)
        elif ":" in line and "harm" not in lowered:
            name = _clean_name(line.split(":", 1)[0])
            if not name:
                current = None
                continue
            current = AnalysisRecord(name=name)
            records.append(current)

    return records


def summarize_records(records: Iterable[AnalysisRecord]) -> str:
    """Return a one-line count such as ``3 ingredients detected, 1 high risk``."""

    records = list(records)
    if not records:
        return "No ingredients detected"

    high = sum(1 for record in records if record.risk_band is RiskBand.HIGH)
    noun = _INFLECT_ENGINE.plural_noun("ingredient", len(records))
    summary = f"{len(records)} {noun} detected"
    if high:
        summary = f"{summary}, {high} high risk"
    return summary


def _parse_harm_scale(line: str) -> int:
    match = _FIRST_INTEGER.search(line)
    if match is None:
        return DEFAULT_HARM_SCALE
    return max(MIN_HARM_SCALE, min(int(match.group(0)), MAX_HARM_SCALE))


def _parse_concerns(line: str) -> list[str]:
    _, _, remainder = line.partition(":")
    return [entry.strip() for entry in remainder.split(",") if entry.strip()]


def _clean_name(raw_name: str) -> str:
    # Models like to bold the ingredient name: "**Sugar:**"
    return raw_name.strip().strip("*").strip()
