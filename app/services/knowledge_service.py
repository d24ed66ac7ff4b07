import logging
from typing import Any

from app.core.catalog import RoleCatalog
from app.core.errors import NotFoundError, ValidationError
from app.core.knowledge_areas import AREA_KEYS
from app.models.base import utcnow
from app.models.interview import Interview
from app.models.knowledge import KnowledgePoint, Workflow
from app.prompts import workflow as workflow_prompt
from app.prompts.parsing import format_transcript
from app.repositories.base import new_id
from app.repositories.interview_repository import InterviewRepository
from app.repositories.knowledge_repository import KnowledgePointRepository, WorkflowRepository
from app.schemas.knowledge import KnowledgePointCreateRequest, KnowledgePointUpdateRequest, WorkflowUpdateRequest
from app.services.llm_service import LLMClient

logger = logging.getLogger(__name__)

GENERAL_TOPIC = "general"


class KnowledgeService:
    """Knowledge points and workflow diagrams captured for an interview."""

    def __init__(self, store, llm: LLMClient, catalog: RoleCatalog):
        self.interviews = InterviewRepository(store)
        self.points = KnowledgePointRepository(store)
        self.workflows = WorkflowRepository(store)
        self.llm = llm
        self.catalog = catalog

    def _interview(self, interview_id: str) -> Interview:
        interview = self.interviews.get(interview_id)
        if interview is None:
            raise NotFoundError(f"Interview not found: {interview_id}")
        return interview

    # -- knowledge points -------------------------------------------------

    def grouped_points(self, interview_id: str) -> dict[str, Any]:
        interview = self._interview(interview_id)
        points = self.points.list_for(interview_id)
        profile = self.catalog.get_role(interview.role)
        progress = interview.topic_progress or {}

        groups: dict[str, dict[str, Any]] = {}
        if profile is not None:
            for topic in profile.topics:
                areas = topic.required_areas or AREA_KEYS
                entry = progress.get(topic.id)
                groups[topic.id] = {
                    "id": topic.id,
                    "name": topic.name,
                    "description": topic.description,
                    "requiredAreas": list(areas),
                    "validationStatus": (entry.validation_status if entry else None) or "draft",
                    "areas": {area: [] for area in areas},
                }

        for point in points:
            group = groups.get(point.topic_id)
            if group is None:
                group = groups[point.topic_id] = {
                    "id": point.topic_id,
                    "name": "General Knowledge" if point.topic_id == GENERAL_TOPIC else point.topic_id,
                    "description": "Knowledge points not tied to a specific topic",
                    "requiredAreas": list(AREA_KEYS),
                    "validationStatus": "draft",
                    "areas": {area: [] for area in AREA_KEYS},
                }
            group["areas"].setdefault(point.area, []).append(point.to_document())

        approved = sum(1 for point in points if point.status == "approved")
        reviewed = sum(1 for point in points if point.status == "reviewed")
        return {
            "interviewId": interview.id,
            "role": interview.role,
            "topics": list(groups.values()),
            "summary": {
                "totalPoints": len(points),
                "approvedPoints": approved,
                "reviewedPoints": reviewed,
                "draftPoints": len(points) - approved - reviewed,
            },
        }

    def create_point(self, interview_id: str, request: KnowledgePointCreateRequest) -> KnowledgePoint:
        self._interview(interview_id)
        content = request.content.strip()
        if not content:
            raise ValidationError("Content is required and must be a non-empty string")
        point = KnowledgePoint(
            id=new_id("kp_", 8),
            interview_id=interview_id,
            topic_id=request.topic_id or GENERAL_TOPIC,
            area=request.area or "tips",
            content=content,
            source="manual",
        )
        self.points.save(interview_id, point)
        logger.info("Knowledge point %s added to interview %s", point.id, interview_id)
        return point

    def _point(self, interview_id: str, point_id: str) -> KnowledgePoint:
        point = self.points.get(interview_id, point_id)
        if point is None:
            raise NotFoundError(f"Knowledge point not found: {point_id}")
        return point

    def update_point(self, interview_id: str, point_id: str, request: KnowledgePointUpdateRequest) -> KnowledgePoint:
        point = self._point(interview_id, point_id)
        if request.content is not None:
            content = request.content.strip()
            if not content:
                raise ValidationError("Content must be a non-empty string")
            point.content = content
        if request.area is not None:
            point.area = request.area
        if request.status is not None:
            point.status = request.status
        if request.topic_id is not None:
            point.topic_id = request.topic_id
        point.updated_at = utcnow()
        return self.points.save(interview_id, point)

    def delete_point(self, interview_id: str, point_id: str) -> None:
        self._point(interview_id, point_id)
        self.points.delete(interview_id, point_id)
        logger.info("Knowledge point %s deleted from interview %s", point_id, interview_id)

    # -- workflows --------------------------------------------------------

    def generate_workflow(self, interview_id: str, topic_id: str) -> Workflow:
        interview = self._interview(interview_id)
        profile = self.catalog.get_role(interview.role)
        if profile is None:
            raise ValidationError("Interview role not found in topic checklists")
        topic = profile.topic(topic_id)
        if topic is None:
            raise NotFoundError(f"Topic not found: {topic_id}")
        if not topic.is_process_oriented:
            raise ValidationError(
                f'Topic "{topic.name}" is not process-oriented. Workflow diagrams are only available for process-oriented topics.'
            )

        request = workflow_prompt.build_request(topic, format_transcript(interview.messages))
        reply = self.llm.chat(workflow_prompt.SYSTEM_PROMPT, [{"role": "user", "content": request}])
        workflow = Workflow(
            id=new_id("wf_", 8),
            interview_id=interview_id,
            topic_id=topic_id,
            topic_name=topic.name,
            mermaid_code=workflow_prompt.clean_mermaid(reply),
        )
        self.workflows.save(interview_id, workflow)

        progress = (interview.topic_progress or {}).get(topic_id)
        if progress is not None:
            progress.has_workflow = True
            progress.workflow_id = workflow.id
            interview.updated_at = utcnow()
            self.interviews.save(interview)
        logger.info("Workflow %s generated for topic %s in interview %s", workflow.id, topic_id, interview_id)
        return workflow

    def list_workflows(self, interview_id: str) -> list[Workflow]:
        self._interview(interview_id)
        return sorted(self.workflows.list_for(interview_id), key=lambda item: item.created_at, reverse=True)

    def get_workflow(self, interview_id: str, workflow_id: str) -> Workflow:
        workflow = self.workflows.get(interview_id, workflow_id)
        if workflow is None:
            raise NotFoundError(f"Workflow not found: {workflow_id}")
        return workflow

    def update_workflow(self, interview_id: str, workflow_id: str, request: WorkflowUpdateRequest) -> Workflow:
        workflow = self.get_workflow(interview_id, workflow_id)
        if request.mermaid_code is not None:
            workflow.mermaid_code = request.mermaid_code
        if request.status is not None:
            workflow.status = request.status
        workflow.updated_at = utcnow()
        return self.workflows.save(interview_id, workflow)

    def delete_workflow(self, interview_id: str, workflow_id: str) -> None:
        workflow = self.get_workflow(interview_id, workflow_id)
        self.workflows.delete(interview_id, workflow_id)

        interview = self.interviews.get(interview_id)
        progress = (interview.topic_progress or {}).get(workflow.topic_id) if interview else None
        if progress is not None and progress.workflow_id == workflow_id:
            progress.has_workflow = False
            progress.workflow_id = None
            interview.updated_at = utcnow()
            self.interviews.save(interview)
        logger.info("Workflow %s deleted from interview %s", workflow_id, interview_id)
