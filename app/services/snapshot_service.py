import logging

from app.core.errors import AppError, NotFoundError, ValidationError
from app.models.snapshot import Snapshot
from app.prompts import note_taker
from app.prompts.parsing import format_transcript
from app.repositories.base import new_id
from app.repositories.interview_repository import InterviewRepository
from app.repositories.knowledge_repository import KnowledgePointRepository
from app.repositories.snapshot_repository import SnapshotRepository
from app.services.knowledge_points import InsightClassifier, KnowledgePointExtractor
from app.services.llm_service import LLMClient

logger = logging.getLogger(__name__)


class SnapshotService:
    def __init__(self, store, llm: LLMClient, classifier: InsightClassifier | None = None):
        self.interviews = InterviewRepository(store)
        self.snapshots = SnapshotRepository(store)
        self.extractor = KnowledgePointExtractor(KnowledgePointRepository(store), classifier)
        self.llm = llm

    def create_snapshot(self, interview_id: str, raise_errors: bool = False) -> Snapshot | None:
        """Extract a snapshot from the full transcript.

        Background callers get ``None`` on any failure (logged). With ``raise_errors`` the
        error reaches the caller instead, and an empty interview is a ValidationError.
        """
        try:
            return self._create(interview_id, raise_errors)
        except AppError as exc:
            if raise_errors:
                raise
            logger.error("Snapshot failed for interview %s: %s", interview_id, exc.message)
            return None

    def _create(self, interview_id: str, raise_errors: bool) -> Snapshot | None:
        interview = self.interviews.get(interview_id)
        if interview is None:
            raise NotFoundError(f"Interview not found: {interview_id}")
        if not interview.messages:
            if raise_errors:
                raise ValidationError("Interview has no messages to snapshot")
            logger.info("Skipping snapshot for interview %s: no messages", interview_id)
            return None

        reply = self.llm.chat(note_taker.SYSTEM_PROMPT, [{"role": "user", "content": format_transcript(interview.messages)}])
        extraction = note_taker.parse_extraction(reply)

        created = 0
        try:
            created = len(self.extractor.extract(interview_id, extraction, interview.current_topic_id))
        except AppError as exc:
            logger.warning("Knowledge point extraction failed for interview %s: %s", interview_id, exc.message)

        snapshot = Snapshot(
            id=new_id(),
            interview_id=interview_id,
            phase=interview.phase,
            message_count=len(interview.messages),
            topics_covered=extraction["topicsCovered"],
            key_insights=extraction["keyInsights"],
            frameworks_mentioned=extraction["frameworksMentioned"],
            gaps=extraction["gaps"],
            suggested_probes=extraction["suggestedProbes"],
            knowledge_points_created=created,
        )
        self.snapshots.save(interview_id, snapshot)
        logger.info("Snapshot %s created for interview %s (%d messages)", snapshot.id, interview_id, snapshot.message_count)
        return snapshot

    def list_snapshots(self, interview_id: str) -> list[Snapshot]:
        if self.interviews.get(interview_id) is None:
            raise NotFoundError(f"Interview not found: {interview_id}")
        return list(reversed(self.snapshots.list_for(interview_id)))
