"""Knowledge-area coverage detection.

``CoverageStrategy`` is the seam: the interview service only ever calls
``analyse(messages)``, so the keyword heuristic below can be replaced by an
embedding-based strategy without touching the lifecycle code.
"""
from typing import Mapping, Protocol, Sequence

from app.core.knowledge_areas import AREA_KEYS, KNOWLEDGE_AREAS

DEFAULT_INDICATORS: dict[str, tuple[str, ...]] = {
    "overview": ("what it is", "purpose", "why we do", "objective", "goal", "overview", "about this"),
    "tasks": ("steps", "process", "how to", "procedure", "workflow", "first", "then", "finally", "task"),
    "dates": ("deadline", "due date", "by when", "timeline", "schedule", "day", "month", "week", "annual"),
    "contacts": ("who", "contact", "team", "department", "speak to", "liaise", "coordinate", "person"),
    "systems": ("system", "software", "tool", "application", "spreadsheet", "template", "oracle", "sap"),
    "pitfalls": ("mistake", "error", "wrong", "avoid", "careful", "risk", "problem", "issue", "watch out"),
    "tips": ("tip", "advice", "recommend", "suggest", "trick", "shortcut", "easier", "better way"),
    "related": ("connect", "related", "link", "depend", "affect", "other area", "knock-on"),
}


class CoverageStrategy(Protocol):
    def analyse(self, messages: Sequence) -> dict[str, bool]: ...


class KeywordCoverageStrategy:
    def __init__(self, indicators: Mapping[str, Sequence[str]] | None = None, min_hits: int = 2):
        self.indicators = {key: tuple(words) for key, words in (indicators or DEFAULT_INDICATORS).items()}
        self.min_hits = min_hits

    def analyse(self, messages: Sequence) -> dict[str, bool]:
        transcript = " ".join(message.content.lower() for message in messages)
        coverage = {}
        for area in AREA_KEYS:
            hits = {word for word in self.indicators.get(area, ()) if word in transcript}
            coverage[area] = len(hits) >= self.min_hits
        return coverage


def coverage_report(coverage: Mapping[str, bool]) -> dict:
    areas = [
        {"key": area.key, "name": area.name, "description": area.prompt, "covered": bool(coverage.get(area.key))}
        for area in KNOWLEDGE_AREAS
    ]
    covered = sum(1 for area in areas if area["covered"])
    total = len(areas)
    return {
        "areas": areas,
        "summary": {"covered": covered, "total": total, "percentComplete": round(covered / total * 100)},
    }
