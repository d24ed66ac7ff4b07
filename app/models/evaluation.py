from datetime import datetime
from typing import Literal

from pydantic import Field

from app.models.base import CamelModel, utcnow


class Scenario(CamelModel):
    id: str
    role: str
    title: str
    context: str
    question: str
    created_at: datetime = Field(default_factory=utcnow)


class Scores(CamelModel):
    accuracy: int
    tone: int
    actionability: int
    risk_awareness: int
    average: float


class Evaluation(CamelModel):
    id: str
    persona_id: str
    persona_role: str | None = None
    persona_version: int = 1
    scenario_id: str
    scenario_title: str
    question: str
    response: str
    status: Literal["pending", "scored"] = "pending"
    scores: Scores | None = None
    comments: str | None = None
    evaluated_by: str | None = None
    evaluated_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
