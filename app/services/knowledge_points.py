import logging
from typing import Protocol

from app.core.knowledge_areas import AREA_KEYS
from app.models.base import utcnow
from app.models.knowledge import KnowledgePoint
from app.repositories.base import new_id
from app.repositories.knowledge_repository import KnowledgePointRepository

logger = logging.getLogger(__name__)

CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("pitfalls", ("pitfall", "mistake", "avoid", "careful", "risk")),
    ("tips", ("tip", "recommend", "best practice", "always", "never")),
    ("contacts", ("contact", "stakeholder", "team", "department")),
    ("systems", ("system", "software", "tool", "template")),
    ("dates", ("deadline", "date", "when", "schedule", "timeline")),
    ("tasks", ("step", "process", "task", "action")),
    ("overview", ("overview", "purpose", "why", "important")),
)

MIN_INSIGHT_LENGTH = 10
MIN_FRAMEWORK_LENGTH = 5
DUPLICATE_THRESHOLD = 0.8


class InsightClassifier(Protocol):
    def categorise(self, text: str) -> str: ...

    def is_duplicate(self, text: str, existing: list[str]) -> bool: ...


def similarity(a: str, b: str) -> float:
    """Containment ratio of the shorter string in the longer one; 0 when lengths differ by more than half."""
    if a == b:
        return 1.0
    longer, shorter = (a, b) if len(a) >= len(b) else (b, a)
    if not longer:
        return 1.0
    if (len(longer) - len(shorter)) / len(longer) > 0.5:
        return 0.0
    if shorter in longer:
        return len(shorter) / len(longer)
    return 0.0


class KeywordInsightClassifier:
    def __init__(self, threshold: float = DUPLICATE_THRESHOLD):
        self.threshold = threshold

    def categorise(self, text: str) -> str:
        lowered = text.lower()
        for area, keywords in CATEGORY_KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                return area
        return "tips"

    def is_duplicate(self, text: str, existing: list[str]) -> bool:
        candidate = text.lower().strip()
        for other in existing:
            normalised = other.lower().strip()
            if candidate in normalised or normalised in candidate:
                return True
            if similarity(candidate, normalised) >= self.threshold:
                return True
        return False


class KnowledgePointExtractor:
    """Turns snapshot insights and frameworks into deduplicated draft knowledge points."""

    def __init__(self, repository: KnowledgePointRepository, classifier: InsightClassifier | None = None):
        self.repository = repository
        self.classifier = classifier or KeywordInsightClassifier()

    def extract(self, interview_id: str, extraction: dict[str, list[str]], topic_id: str | None = None) -> list[KnowledgePoint]:
        existing = [point.content for point in self.repository.list_for(interview_id)]
        created: list[KnowledgePoint] = []

        # (area, text checked for duplicates, stored content)
        candidates: list[tuple[str, str, str]] = []
        for insight in extraction.get("keyInsights", []):
            text = insight.strip()
            if len(text) >= MIN_INSIGHT_LENGTH:
                candidates.append((self.classifier.categorise(text), text, text))
        for framework in extraction.get("frameworksMentioned", []):
            name = framework.strip()
            if len(name) >= MIN_FRAMEWORK_LENGTH:
                candidates.append(("tasks", name, f"Framework: {name}"))

        for area, text, content in candidates:
            if self.classifier.is_duplicate(text, existing):
                continue
            now = utcnow()
            point = KnowledgePoint(
                id=new_id("kp_", 8),
                interview_id=interview_id,
                topic_id=topic_id or "general",
                area=area if area in AREA_KEYS else "tips",
                content=content,
                source="snapshot",
                status="draft",
                created_at=now,
                updated_at=now,
            )
            self.repository.save(interview_id, point)
            existing.append(text)
            created.append(point)

        if created:
            logger.info("Created %d knowledge points for interview %s", len(created), interview_id)
        return created
