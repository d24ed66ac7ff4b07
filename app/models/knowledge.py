from datetime import datetime
from typing import Literal

from pydantic import Field

from app.models.base import CamelModel, utcnow
from app.models.interview import ReviewStatus

KnowledgeArea = Literal["overview", "tasks", "dates", "contacts", "systems", "pitfalls", "tips", "related"]


class KnowledgePoint(CamelModel):
    id: str
    interview_id: str
    topic_id: str = "general"
    area: KnowledgeArea = "tips"
    content: str
    source: Literal["snapshot", "manual"] = "manual"
    status: ReviewStatus = "draft"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Workflow(CamelModel):
    id: str
    interview_id: str
    topic_id: str
    topic_name: str
    mermaid_code: str
    status: ReviewStatus = "draft"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
