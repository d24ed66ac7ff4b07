from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response

from app.api.deps import get_optional_expert, get_persona_service
from app.models.expert import Expert
from app.models.persona import PersonaStatus
from app.schemas.persona import (
    AdviseRequest,
    PersonaBuildRequest,
    PersonaBulkDeleteRequest,
    PersonaFeedbackRequest,
    PersonaListQuery,
    PersonaUpdateRequest,
)
from app.services.persona_service import PersonaService

router = APIRouter(prefix="/personas", tags=["personas"])


@router.get("")
def list_personas(
    status: Optional[PersonaStatus] = None,
    role: Optional[str] = None,
    industry: Optional[str] = None,
    is_favorite: Optional[bool] = Query(default=None, alias="isFavorite"),
    latest_validated: Optional[bool] = Query(default=None, alias="latestValidated"),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_order: Optional[Literal["asc", "desc"]] = Query(default=None, alias="sortOrder"),
    page: Optional[int] = Query(default=None, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=200),
    service: PersonaService = Depends(get_persona_service),
):
    query = PersonaListQuery(
        status=status,
        role=role,
        industry=industry,
        is_favorite=is_favorite,
        latest_validated=latest_validated,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return service.list_personas(query)


@router.post("/build")
def build_persona(body: PersonaBuildRequest, service: PersonaService = Depends(get_persona_service)):
    return service.build(body.interview_id).to_document()


@router.delete("")
def bulk_delete_personas(body: PersonaBulkDeleteRequest, service: PersonaService = Depends(get_persona_service)):
    return service.bulk_delete(body.ids)


@router.get("/{persona_id}")
def get_persona(persona_id: str, service: PersonaService = Depends(get_persona_service)):
    return service.get(persona_id).to_document()


@router.put("/{persona_id}")
def update_persona(
    persona_id: str,
    body: PersonaUpdateRequest,
    service: PersonaService = Depends(get_persona_service),
):
    return service.update(persona_id, body).to_document()


@router.delete("/{persona_id}", status_code=204)
def delete_persona(persona_id: str, service: PersonaService = Depends(get_persona_service)):
    service.delete(persona_id)
    return Response(status_code=204)


@router.post("/{persona_id}/view")
def view_persona(persona_id: str, service: PersonaService = Depends(get_persona_service)):
    return service.record_view(persona_id)


@router.post("/{persona_id}/feedback")
def persona_feedback(
    persona_id: str,
    body: PersonaFeedbackRequest,
    service: PersonaService = Depends(get_persona_service),
):
    return service.validate(persona_id, body.validated_by, body.feedback)


@router.post("/{persona_id}/advise")
def advise(
    persona_id: str,
    body: AdviseRequest,
    expert: Expert | None = Depends(get_optional_expert),
    service: PersonaService = Depends(get_persona_service),
):
    user_id = expert.id if expert is not None else body.user_id
    return service.advise(persona_id, body.question, user_id)
