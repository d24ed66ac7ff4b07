from fastapi import APIRouter, Depends, Response

from app.api.deps import get_knowledge_service
from app.schemas.knowledge import KnowledgePointUpdateRequest, WorkflowUpdateRequest
from app.services.knowledge_service import KnowledgeService

router = APIRouter(tags=["knowledge"])


@router.put("/knowledge-points/{interview_id}/{point_id}")
def update_knowledge_point(
    interview_id: str,
    point_id: str,
    body: KnowledgePointUpdateRequest,
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.update_point(interview_id, point_id, body).to_document()


@router.delete("/knowledge-points/{interview_id}/{point_id}", status_code=204)
def delete_knowledge_point(
    interview_id: str,
    point_id: str,
    service: KnowledgeService = Depends(get_knowledge_service),
):
    service.delete_point(interview_id, point_id)
    return Response(status_code=204)


@router.get("/workflows/{interview_id}/{workflow_id}")
def get_workflow(interview_id: str, workflow_id: str, service: KnowledgeService = Depends(get_knowledge_service)):
    return service.get_workflow(interview_id, workflow_id).to_document()


@router.put("/workflows/{interview_id}/{workflow_id}")
def update_workflow(
    interview_id: str,
    workflow_id: str,
    body: WorkflowUpdateRequest,
    service: KnowledgeService = Depends(get_knowledge_service),
):
    return service.update_workflow(interview_id, workflow_id, body).to_document()


@router.delete("/workflows/{interview_id}/{workflow_id}", status_code=204)
def delete_workflow(interview_id: str, workflow_id: str, service: KnowledgeService = Depends(get_knowledge_service)):
    service.delete_workflow(interview_id, workflow_id)
    return Response(status_code=204)
