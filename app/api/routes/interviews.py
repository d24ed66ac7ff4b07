from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response

from app.api.deps import get_interview_service, get_knowledge_service, get_snapshot_service
from app.schemas.interview import (
    InterviewListQuery,
    InterviewStartRequest,
    InterviewUpdateRequest,
    MessageRequest,
    PhaseChangeRequest,
    TopicValidationRequest,
)
from app.schemas.knowledge import KnowledgePointCreateRequest
from app.services.interview_service import InterviewService
from app.services.knowledge_service import KnowledgeService
from app.services.snapshot_service import SnapshotService

router = APIRouter(prefix="/interviews", tags=["interviews"])


@router.get("")
def list_interviews(
    status: Optional[Literal["scheduled", "in-progress", "completed"]] = None,
    expert_id: Optional[str] = Query(default=None, alias="expertId"),
    topic_id: Optional[str] = Query(default=None, alias="topicId"),
    role: Optional[str] = None,
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_order: Optional[Literal["asc", "desc"]] = Query(default=None, alias="sortOrder"),
    page: Optional[int] = Query(default=None, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=200),
    service: InterviewService = Depends(get_interview_service),
):
    query = InterviewListQuery(
        status=status,
        expert_id=expert_id,
        topic_id=topic_id,
        role=role,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return service.list_interviews(query)


@router.post("")
@router.post("/start")
def start_interview(body: InterviewStartRequest, service: InterviewService = Depends(get_interview_service)):
    return service.start(body).to_document()


@router.get("/{interview_id}")
def get_interview(interview_id: str, service: InterviewService = Depends(get_interview_service)):
    return service.get(interview_id).to_document()


@router.put("/{interview_id}")
def update_interview(
    interview_id: str,
    body: InterviewUpdateRequest,
    service: InterviewService = Depends(get_interview_service),
):
    return service.update(interview_id, body).to_document()


@router.delete("/{interview_id}", status_code=204)
def delete_interview(interview_id: str, service: InterviewService = Depends(get_interview_service)):
    service.delete(interview_id)
    return Response(status_code=204)


@router.post("/{interview_id}/phase")
def change_phase(
    interview_id: str,
    body: PhaseChangeRequest,
    service: InterviewService = Depends(get_interview_service),
):
    return service.change_phase(interview_id, body.phase).to_document()


@router.post("/{interview_id}/complete")
def complete_interview(interview_id: str, service: InterviewService = Depends(get_interview_service)):
    return service.complete(interview_id).to_document()


@router.post("/{interview_id}/message")
def post_message(
    interview_id: str,
    body: MessageRequest,
    service: InterviewService = Depends(get_interview_service),
):
    return service.post_message(interview_id, body.message)


@router.get("/{interview_id}/transcript")
def get_transcript(interview_id: str, service: InterviewService = Depends(get_interview_service)):
    return service.transcript(interview_id)


@router.get("/{interview_id}/coverage")
def get_coverage(interview_id: str, service: InterviewService = Depends(get_interview_service)):
    return service.coverage_report(interview_id)


@router.get("/{interview_id}/summary")
def get_summary(interview_id: str, service: InterviewService = Depends(get_interview_service)):
    return service.summary(interview_id)


@router.post("/{interview_id}/note-snapshot")
def create_note_snapshot(interview_id: str, service: SnapshotService = Depends(get_snapshot_service)):
    return service.create_snapshot(interview_id, raise_errors=True).to_document()


@router.get("/{interview_id}/snapshots")
def list_snapshots(interview_id: str, service: SnapshotService = Depends(get_snapshot_service)):
    return [snapshot.to_document() for snapshot in service.list_snapshots(interview_id)]


@router.post("/{interview_id}/initialize-topics")
def initialize_topics(interview_id: str, service: InterviewService = Depends(get_interview_service)):
    return service.initialize_topics(interview_id)


@router.get("/{interview_id}/topic-progress")
def get_topic_progress(interview_id: str, service: InterviewService = Depends(get_interview_service)):
    return service.topic_progress(interview_id)


@router.post("/{interview_id}/topic/{topic_id}/select")
def select_topic(interview_id: str, topic_id: str, service: InterviewService = Depends(get_interview_service)):
    return service.select_topic(interview_id, topic_id)


@router.post("/{interview_id}/topic/{topic_id}/complete")
def complete_topic(interview_id: str, topic_id: str, service: InterviewService = Depends(get_interview_service)):
    return service.complete_topic(interview_id, topic_id)


@router.post("/{interview_id}/topics/{topic_id}/validate")
def validate_topic(
    interview_id: str,
    topic_id: str,
    body: TopicValidationRequest,
    service: InterviewService = Depends(get_interview_service),
):
    return service.validate_topic(interview_id, topic_id, body.validation_status)


@router.get("/{interview_id}/knowledge-points")
def list_knowledge_points(interview_id: str, service: KnowledgeService = Depends(get_knowledge_service)):
    return service.grouped_points(interview_id)


@router.post("/{interview_id}/knowledge-points", status_code=201)
def create_knowledge_point(
    interview_id: str,
    body: KnowledgePointCreateRequest,
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.create_point(interview_id, body).to_document()


@router.post("/{interview_id}/topics/{topic_id}/workflow")
def generate_workflow(
    interview_id: str,
    topic_id: str,
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.generate_workflow(interview_id, topic_id).to_document()


@router.get("/{interview_id}/workflows")
def list_workflows(interview_id: str, service: KnowledgeService = Depends(get_knowledge_service)):
    return [workflow.to_document() for workflow in service.list_workflows(interview_id)]
