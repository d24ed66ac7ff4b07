from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_qa_service
from app.schemas.qa import EvaluateRequest, EvaluationListQuery, RunRequest, ScenarioCreateRequest
from app.services.qa_service import QAService

router = APIRouter(prefix="/qa", tags=["qa"])


@router.get("/scenarios/{role}")
def list_scenarios(role: str, service: QAService = Depends(get_qa_service)):
    return [scenario.to_document() for scenario in service.list_scenarios(role)]


@router.post("/scenarios", status_code=201)
def create_scenario(body: ScenarioCreateRequest, service: QAService = Depends(get_qa_service)):
    return service.create_scenario(body).to_document()


@router.post("/run")
def run_scenario(body: RunRequest, service: QAService = Depends(get_qa_service)):
    return service.run(body.persona_id, body.scenario_id)


@router.post("/evaluate")
def evaluate(body: EvaluateRequest, service: QAService = Depends(get_qa_service)):
    return service.score(
        body.evaluation_id,
        body.accuracy,
        body.tone,
        body.actionability,
        body.risk_awareness,
        comments=body.comments,
        evaluated_by=body.evaluated_by,
    )


@router.get("/evaluations")
def list_evaluations(
    persona_id: Optional[str] = Query(default=None, alias="personaId"),
    scenario_id: Optional[str] = Query(default=None, alias="scenarioId"),
    status: Optional[Literal["pending", "scored"]] = None,
    service: QAService = Depends(get_qa_service),
):
    query = EvaluationListQuery(persona_id=persona_id, scenario_id=scenario_id, status=status)
    return [evaluation.to_document() for evaluation in service.list_evaluations(query)]


@router.get("/evaluations/{evaluation_id}")
def get_evaluation(evaluation_id: str, service: QAService = Depends(get_qa_service)):
    return service.get_evaluation(evaluation_id).to_document()


@router.get("/analytics/personas/{persona_id}")
def persona_analytics(persona_id: str, service: QAService = Depends(get_qa_service)):
    return service.persona_analytics(persona_id)


@router.get("/analytics/scenarios")
def scenario_analytics(service: QAService = Depends(get_qa_service)):
    return service.scenario_analytics()


@router.get("/analytics/summary")
def analytics_summary(service: QAService = Depends(get_qa_service)):
    return service.summary()
