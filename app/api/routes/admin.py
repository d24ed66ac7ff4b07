from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_admin_service, get_current_expert
from app.schemas.admin import AdvisorLogQuery
from app.services.admin_service import AdminService

router = APIRouter(tags=["reference"])

admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(get_current_expert)])


@router.get("/roles")
def list_roles(service: AdminService = Depends(get_admin_service)):
    return service.list_roles()


@router.get("/roles/{role}/checklist")
def role_checklist(role: str, service: AdminService = Depends(get_admin_service)):
    return service.checklist(role)


@admin_router.get("/advisor-logs")
def list_advisor_logs(
    persona_id: Optional[str] = Query(default=None, alias="personaId"),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    from_date: Optional[datetime] = Query(default=None, alias="fromDate"),
    to_date: Optional[datetime] = Query(default=None, alias="toDate"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=200),
    service: AdminService = Depends(get_admin_service),
):
    query = AdvisorLogQuery(
        persona_id=persona_id,
        user_id=user_id,
        from_date=from_date,
        to_date=to_date,
        page=page,
        limit=limit,
    )
    return service.list_advisor_logs(query)


@admin_router.get("/advisor-logs/{log_id}")
def get_advisor_log(log_id: str, service: AdminService = Depends(get_admin_service)):
    return service.get_advisor_log(log_id).to_document()


router.include_router(admin_router)
