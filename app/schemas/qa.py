from typing import Any, Literal, Optional

from pydantic import Field

from app.models.base import CamelModel


class ScenarioCreateRequest(CamelModel):
    role: str = Field(min_length=1)
    title: str = Field(min_length=1)
    context: str = Field(min_length=1)
    question: str = Field(min_length=1)


class RunRequest(CamelModel):
    persona_id: str = Field(min_length=1)
    scenario_id: str = Field(min_length=1)


class EvaluateRequest(CamelModel):
    evaluation_id: str = Field(min_length=1)
    # range and type are checked by QAService.score so a bad score is reported per dimension
    accuracy: Any = None
    tone: Any = None
    actionability: Any = None
    risk_awareness: Any = None
    comments: Optional[str] = None
    evaluated_by: Optional[str] = None


class EvaluationListQuery(CamelModel):
    persona_id: Optional[str] = None
    scenario_id: Optional[str] = None
    status: Optional[Literal["pending", "scored"]] = None
