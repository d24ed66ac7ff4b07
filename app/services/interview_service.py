import logging
import math
from typing import Any, Iterable

from app.core.catalog import PHASE_ORDER, RoleCatalog, RoleProfile
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.base import utcnow
from app.models.interview import Interview, Message, Question, TopicProgress
from app.models.snapshot import Snapshot
from app.prompts import interviewer
from app.repositories.base import new_id
from app.repositories.interview_repository import InterviewRepository
from app.repositories.knowledge_repository import KnowledgePointRepository, WorkflowRepository
from app.repositories.snapshot_repository import SnapshotRepository
from app.repositories.topic_repository import TopicRepository
from app.schemas.interview import InterviewListQuery, InterviewStartRequest, InterviewUpdateRequest
from app.services.coverage import CoverageStrategy, KeywordCoverageStrategy, coverage_report
from app.services.llm_service import LLMClient
from app.services.snapshot_queue import SnapshotQueue

logger = logging.getLogger(__name__)

DONE_PATTERNS = (
    "i'm done", "im done", "that's everything", "thats everything", "let's move on", "lets move on",
    "nothing else", "that's all", "thats all", "we're done", "were done", "finished", "complete",
)
COMPLETION_PATTERNS = (
    "thank you so much for sharing", "thank you for sharing", "this has been very helpful", "that concludes",
    "we've covered a lot", "that's a great place to stop", "shall we finish", "ready to finish", "wrap up",
    "that covers everything",
)

DEFAULT_EXPERT_NAME = "Unknown Expert"
DEFAULT_INDUSTRY = "Finance & Banking"
SORT_FIELDS = ("createdAt", "updatedAt", "status", "role", "expertName", "messageCount")
TOPIC_PROGRESS_THRESHOLD = 70


def detects(text: str, patterns: Iterable[str]) -> bool:
    lowered = text.lower()
    return any(pattern in lowered for pattern in patterns)


def normalise_questions(items: list[Any]) -> list[Question]:
    questions = []
    for index, item in enumerate(items):
        if isinstance(item, str):
            questions.append(Question(id=new_id(length=8), text=item, order=index))
            continue
        text = item.get("text") or item.get("title") or item.get("description")
        if not text:
            raise ValidationError(f"Question {index + 1} has no text")
        order = item.get("order")
        questions.append(Question(id=str(item.get("id") or new_id(length=8)), text=str(text), order=index if order is None else order))
    return questions


def _format_duration(interview: Interview) -> str:
    if not interview.messages:
        return "N/A"
    elapsed = (interview.messages[-1].timestamp - interview.messages[0].timestamp).total_seconds()
    minutes, seconds = divmod(int(elapsed), 60)
    return f"{minutes}m {seconds}s"


class InterviewService:
    def __init__(
        self,
        store,
        llm: LLMClient,
        catalog: RoleCatalog,
        snapshot_queue: SnapshotQueue | None = None,
        coverage: CoverageStrategy | None = None,
        snapshot_interval: int = 5,
    ):
        self.interviews = InterviewRepository(store)
        self.snapshots = SnapshotRepository(store)
        self.knowledge_points = KnowledgePointRepository(store)
        self.workflows = WorkflowRepository(store)
        self.topics = TopicRepository(store)
        self.llm = llm
        self.catalog = catalog
        self.snapshot_queue = snapshot_queue
        self.coverage = coverage or KeywordCoverageStrategy()
        self.snapshot_interval = snapshot_interval

    # -- loading / saving -------------------------------------------------

    def get(self, interview_id: str) -> Interview:
        interview = self.interviews.get(interview_id)
        if interview is None:
            raise NotFoundError(f"Interview not found: {interview_id}")
        return interview

    def _save(self, interview: Interview) -> Interview:
        interview.updated_at = utcnow()
        return self.interviews.save(interview)

    def _profile(self, interview: Interview) -> RoleProfile | None:
        return self.catalog.get_role(interview.role)

    def _submit_snapshot(self, interview_id: str) -> None:
        if self.snapshot_queue is None:
            logger.debug("No snapshot queue configured; skipping snapshot for %s", interview_id)
            return
        self.snapshot_queue.submit(interview_id)

    @staticmethod
    def _initial_progress(profile: RoleProfile) -> tuple[dict[str, TopicProgress], str | None]:
        progress = {topic.id: TopicProgress() for topic in profile.topics}
        current = profile.topics[0].id if profile.topics else None
        if current is not None:
            progress[current].status = "in-progress"
        return progress, current

    # -- lifecycle --------------------------------------------------------

    def start(self, request: InterviewStartRequest) -> Interview:
        # with a topic the role is optional; an unknown one is dropped
        profile = self.catalog.get_role(request.role) if request.role else None
        if request.topic_id:
            if self.topics.get(request.topic_id) is None:
                raise ValidationError(f"Topic not found: {request.topic_id}")
        elif profile is None:
            raise ValidationError(f"Invalid role. Must be one of: {', '.join(self.catalog.role_names)} (or provide topicId)")

        questions = normalise_questions(request.questions if request.questions is not None else (request.topics or []))
        progress, current_topic_id = self._initial_progress(profile) if profile else (None, None)

        interview = Interview(
            id=new_id(length=13),
            role=profile.name if profile else None,
            questions=questions,
            topic_progress=progress,
            current_topic_id=current_topic_id,
            topic_id=request.topic_id,
            expert_id=request.expert_id,
            expert_name=request.expert_name,
            industry=request.industry,
            description=request.description,
        )
        self.interviews.save(interview)
        logger.info("Interview %s started (role=%s, topic=%s)", interview.id, interview.role, interview.topic_id)
        return interview

    def list_interviews(self, query: InterviewListQuery) -> list[dict] | dict:
        interviews = self.interviews.list_all()
        if query.status:
            interviews = [item for item in interviews if item.status == query.status]
        if query.expert_id:
            interviews = [item for item in interviews if item.expert_id == query.expert_id]
        if query.topic_id:
            interviews = [item for item in interviews if item.topic_id == query.topic_id]
        if query.role:
            interviews = [item for item in interviews if item.role == query.role]

        sort_field = query.sort_by if query.sort_by in SORT_FIELDS else "createdAt"
        interviews.sort(key=lambda item: self._sort_key(item, sort_field), reverse=query.sort_order != "asc")
        items = [self._list_item(item) for item in interviews]

        if query.page is None and query.limit is None:
            return items
        page = query.page or 1
        limit = query.limit or 20
        start = (page - 1) * limit
        return {
            "interviews": items[start : start + limit],
            "pagination": {
                "currentPage": page,
                "totalPages": math.ceil(len(items) / limit),
                "totalInterviews": len(items),
                "limit": limit,
            },
        }

    @staticmethod
    def _sort_key(interview: Interview, field: str):
        if field == "createdAt":
            return interview.created_at
        if field == "updatedAt":
            return interview.updated_at or interview.created_at
        if field == "messageCount":
            return len(interview.messages)
        if field == "expertName":
            return (interview.expert_name or DEFAULT_EXPERT_NAME).lower()
        if field == "role":
            return (interview.role or "").lower()
        return interview.status

    @staticmethod
    def _list_item(interview: Interview) -> dict:
        document = interview.to_document()
        return {
            "id": interview.id,
            "role": interview.role,
            "phase": interview.phase,
            "status": interview.status,
            "messageCount": len(interview.messages),
            "createdAt": document["createdAt"],
            "updatedAt": document["updatedAt"] or document["createdAt"],
            "expertName": interview.expert_name or DEFAULT_EXPERT_NAME,
            "industry": interview.industry or DEFAULT_INDUSTRY,
            "expertId": interview.expert_id,
            "topicId": interview.topic_id,
            "questions": document["questions"],
            "questionsCompleted": interview.questions_completed,
        }

    def _check_transition(self, current: str, target: str) -> bool:
        """True when ``target`` is a forward move; False when it is the current phase."""
        if current == target:
            return False
        if current == "complete":
            raise ConflictError("Interview is complete; its phase can no longer change")
        if PHASE_ORDER.index(target) < PHASE_ORDER.index(current):
            raise ConflictError(f"Cannot move interview back from {current} to {target}")
        return True

    def _apply_phase(self, interview: Interview, phase: str) -> bool:
        """Move ``interview`` to ``phase``; returns True when that completed it."""
        if not self._check_transition(interview.phase, phase):
            return False
        interview.phase = phase
        if phase == "complete":
            interview.completed_at = utcnow()
            return True
        return False

    def update(self, interview_id: str, request: InterviewUpdateRequest) -> Interview:
        interview = self.get(interview_id)
        fields = request.model_fields_set
        if "phase" in fields and request.phase is not None:
            # reject a bad phase before mutating anything
            self._check_transition(interview.phase, request.phase)
        if "expert_name" in fields:
            interview.expert_name = request.expert_name
        if "industry" in fields:
            interview.industry = request.industry
        if "expert_id" in fields:
            interview.expert_id = request.expert_id
        if "topic_id" in fields:
            if request.topic_id and self.topics.get(request.topic_id) is None:
                raise ValidationError(f"Topic not found: {request.topic_id}")
            interview.topic_id = request.topic_id
        if "questions" in fields:
            interview.questions = normalise_questions(request.questions or [])
        if "questions_completed" in fields:
            interview.questions_completed = request.questions_completed or []

        completed = False
        if "phase" in fields and request.phase is not None:
            completed = self._apply_phase(interview, request.phase)
        self._save(interview)
        if completed:
            logger.info("Interview %s completed via update", interview_id)
            self._submit_snapshot(interview_id)
        return interview

    def change_phase(self, interview_id: str, phase: str) -> Interview:
        interview = self.get(interview_id)
        if interview.phase == phase:
            return interview
        completed = self._apply_phase(interview, phase)
        self._save(interview)
        logger.info("Interview %s moved to phase %s", interview_id, phase)
        if completed:
            self._submit_snapshot(interview_id)
        return interview

    def complete(self, interview_id: str) -> Interview:
        interview = self.get(interview_id)
        if interview.phase == "complete":
            return interview
        interview.phase = "complete"
        interview.completed_at = utcnow()
        self._save(interview)
        logger.info("Interview %s completed", interview_id)
        self._submit_snapshot(interview_id)
        return interview

    def delete(self, interview_id: str) -> None:
        self.get(interview_id)
        self.interviews.delete(interview_id)
        removed = (
            self.snapshots.delete_all(interview_id)
            + self.knowledge_points.delete_all(interview_id)
            + self.workflows.delete_all(interview_id)
        )
        logger.info("Deleted interview %s and %d related documents", interview_id, removed)

    # -- conversation -----------------------------------------------------

    def _system_prompt(self, interview: Interview, done: bool) -> str:
        if interview.topic_id:
            topic = self.topics.get(interview.topic_id)
            if topic is not None:
                coverage = self.coverage.analyse(interview.messages)
                prompt = interviewer.topic_prompt(topic, coverage, len(interview.messages), self.catalog)
                return prompt + interviewer.DONE_ADDENDUM if done else prompt
            logger.warning("Topic %s for interview %s is gone; using the role prompt", interview.topic_id, interview.id)

        role = interview.role or self.catalog.default_role.name
        prompt = interviewer.role_prompt(self.catalog, role, interview.phase)
        profile = self.catalog.get_role(role)
        if profile is not None and interview.topic_progress and interview.current_topic_id:
            prompt += interviewer.topic_focus_block(profile.topics, interview.topic_progress, interview.current_topic_id)
        return prompt + interviewer.DONE_ADDENDUM if done else prompt

    def _update_topic_coverage(self, interview: Interview) -> None:
        profile = self._profile(interview)
        if profile is None or not interview.topic_progress or not interview.current_topic_id:
            return
        topic = profile.topic(interview.current_topic_id)
        progress = interview.topic_progress.get(interview.current_topic_id)
        if topic is None or progress is None:
            return
        required = topic.required_areas or tuple(interview.coverage)
        if not required:
            return
        covered = sum(1 for area in required if interview.coverage.get(area))
        progress.coverage_percent = round(covered / len(required) * 100)

    def post_message(self, interview_id: str, text: str) -> dict[str, Any]:
        if not isinstance(text, str) or not text:
            raise ValidationError("Invalid request. Message is required and must be a string.")
        interview = self.get(interview_id)
        if interview.phase == "complete":
            raise ConflictError("Interview is complete; no further messages can be added")

        done = detects(text, DONE_PATTERNS)
        interview.append(Message(role="user", content=text))
        reply = self.llm.chat(self._system_prompt(interview, done), interview.messages)
        interview.append(Message(role="assistant", content=reply))

        interview.coverage = self.coverage.analyse(interview.messages)
        self._update_topic_coverage(interview)
        if done and interview.topic_id:
            self._complete_linked_topic(interview.topic_id)
        self._save(interview)

        completion = done or detects(reply, COMPLETION_PATTERNS)
        user_messages = interview.user_message_count
        if completion or user_messages % self.snapshot_interval == 0:
            self._submit_snapshot(interview_id)

        result: dict[str, Any] = {"response": reply, "coverage": interview.coverage}
        if done:
            result["topicComplete"] = True
        if completion:
            result["completionDetected"] = True
        return result

    def _complete_linked_topic(self, topic_id: str) -> None:
        topic = self.topics.get(topic_id)
        if topic is None or topic.status == "complete":
            return
        topic.status = "complete"
        topic.updated_at = utcnow()
        self.topics.save(topic)
        logger.info("Topic %s marked complete from conversation", topic_id)

    # -- reports ----------------------------------------------------------

    def transcript(self, interview_id: str) -> dict[str, Any]:
        interview = self.get(interview_id)
        lines = []
        for message in interview.messages:
            speaker = "Expert" if message.role == "user" else "Interviewer"
            lines.append(f"[{message.timestamp:%Y-%m-%d %H:%M:%S}] {speaker}: {message.content}")
        return {"transcript": "\n\n".join(lines), "messageCount": len(interview.messages), "duration": _format_duration(interview)}

    def coverage_report(self, interview_id: str) -> dict[str, Any]:
        interview = self.get(interview_id)
        report = coverage_report(self.coverage.analyse(interview.messages))
        return {"interviewId": interview.id, "topicId": interview.topic_id, "messageCount": len(interview.messages), **report}

    def summary(self, interview_id: str) -> dict[str, Any]:
        interview = self.get(interview_id)
        snapshots: list[Snapshot] = list(reversed(self.snapshots.list_for(interview_id)))

        def union(field: str) -> list[str]:
            seen: dict[str, None] = {}
            for snapshot in snapshots:
                for item in getattr(snapshot, field):
                    seen.setdefault(item, None)
            return list(seen)

        topics_covered = union("topics_covered")
        duration = None
        if len(interview.messages) > 1:
            elapsed = interview.messages[-1].timestamp - interview.messages[0].timestamp
            duration = int(elapsed.total_seconds() // 60)

        profile = self._profile(interview)
        expected = list(profile.expected_topics) if profile else []
        captured = [topic.lower() for topic in topics_covered]
        covered_expected = [
            topic for topic in expected
            if any(len(word) > 3 and word in item for word in topic.lower().split() for item in captured)
        ]
        percent = len(covered_expected) / len(expected) * 100 if expected else 0
        depth = "deep" if percent >= 70 else "moderate" if percent >= 40 else "shallow"

        document = interview.to_document()
        return {
            "interviewId": interview.id,
            "role": interview.role,
            "phase": interview.phase,
            "messageCount": len(interview.messages),
            "snapshotCount": len(snapshots),
            "duration": duration,
            "topicsCovered": topics_covered,
            "keyInsights": union("key_insights"),
            "gaps": union("gaps"),
            "frameworksMentioned": union("frameworks_mentioned"),
            "coverage": {
                "expectedTopics": expected,
                "coveredExpected": covered_expected,
                "uncoveredExpected": [topic for topic in expected if topic not in covered_expected],
                "percent": round(percent),
                "depth": depth,
            },
            "createdAt": document["createdAt"],
            "updatedAt": document["updatedAt"],
        }

    # -- checklist topic progress ----------------------------------------

    def _require_tracking(self, interview: Interview) -> RoleProfile:
        profile = self._profile(interview)
        if profile is None or interview.topic_progress is None:
            raise ValidationError(
                "Interview does not have topic tracking enabled",
                details="Topic tracking is only available for role-based interviews",
            )
        return profile

    def initialize_topics(self, interview_id: str) -> dict[str, Any]:
        interview = self.get(interview_id)
        if not interview.role:
            raise ValidationError("Interview has no role assigned")
        profile = self._profile(interview)
        if profile is None:
            raise ValidationError(f"No checklist found for role: {interview.role}")
        if interview.topic_progress is None:
            interview.topic_progress, interview.current_topic_id = self._initial_progress(profile)
        self._save(interview)
        return {
            "success": True,
            "message": f"Initialized {len(profile.topics)} topics for {profile.name}",
            "topicCount": len(profile.topics),
        }

    def topic_progress(self, interview_id: str) -> dict[str, Any]:
        interview = self.get(interview_id)
        profile = self._require_tracking(interview)
        topics = []
        for topic in profile.topics:
            progress = interview.topic_progress.get(topic.id) or TopicProgress()
            topics.append({**topic.to_dict(), "progress": progress.to_document(), "isCurrent": interview.current_topic_id == topic.id})

        completed = sum(1 for item in topics if item["progress"]["status"] == "complete")
        in_progress = sum(1 for item in topics if item["progress"]["status"] == "in-progress")
        overall = round(sum(item["progress"]["coveragePercent"] for item in topics) / len(topics)) if topics else 0
        return {
            "interviewId": interview.id,
            "role": interview.role,
            "currentTopicId": interview.current_topic_id,
            "topics": topics,
            "summary": {
                "total": len(topics),
                "completed": completed,
                "inProgress": in_progress,
                "notStarted": len(topics) - completed - in_progress,
                "overallPercent": overall,
                "meetsThreshold": overall >= TOPIC_PROGRESS_THRESHOLD,
            },
        }

    def _tracked_topic(self, interview: Interview, topic_id: str) -> TopicProgress:
        if not interview.topic_progress or topic_id not in interview.topic_progress:
            raise ValidationError(f"Topic not found in interview: {topic_id}")
        return interview.topic_progress[topic_id]

    def select_topic(self, interview_id: str, topic_id: str) -> dict[str, Any]:
        interview = self.get(interview_id)
        progress = self._tracked_topic(interview, topic_id)
        previous = interview.current_topic_id
        interview.current_topic_id = topic_id
        if progress.status == "not-started":
            progress.status = "in-progress"
            progress.discussed_at = utcnow()
        self._save(interview)
        return {"success": True, "previousTopicId": previous, "currentTopicId": topic_id, "topicProgress": progress.to_document()}

    def complete_topic(self, interview_id: str, topic_id: str) -> dict[str, Any]:
        interview = self.get(interview_id)
        progress = self._tracked_topic(interview, topic_id)
        progress.status = "complete"
        progress.completed_at = utcnow()

        profile = self._profile(interview)
        if interview.current_topic_id == topic_id and profile is not None:
            upcoming = next(
                (
                    topic for topic in profile.topics
                    if topic.id != topic_id
                    and topic.id in interview.topic_progress
                    and interview.topic_progress[topic.id].status != "complete"
                ),
                None,
            )
            if upcoming is not None:
                interview.current_topic_id = upcoming.id
                following = interview.topic_progress[upcoming.id]
                if following.status == "not-started":
                    following.status = "in-progress"
                    following.discussed_at = utcnow()
        self._save(interview)
        return {
            "success": True,
            "topicId": topic_id,
            "newCurrentTopicId": interview.current_topic_id,
            "topicProgress": {key: value.to_document() for key, value in interview.topic_progress.items()},
        }

    def validate_topic(self, interview_id: str, topic_id: str, validation_status: str) -> dict[str, Any]:
        interview = self.get(interview_id)
        if interview.topic_progress is None:
            raise ValidationError("Interview does not have topic tracking enabled")
        progress = interview.topic_progress.get(topic_id)
        if progress is None:
            raise NotFoundError(f"Topic not found: {topic_id}")
        progress.validation_status = validation_status
        progress.validated = validation_status == "approved"
        progress.validated_at = utcnow()
        self._save(interview)
        return {"success": True, "topicId": topic_id, "validationStatus": validation_status, "topicProgress": progress.to_document()}
