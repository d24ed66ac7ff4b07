from datetime import datetime

from pydantic import ConfigDict, Field

from app.models.base import CamelModel, utcnow
from app.models.interview import InterviewPhase


class Snapshot(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    interview_id: str
    phase: InterviewPhase
    message_count: int
    timestamp: datetime = Field(default_factory=utcnow)
    topics_covered: list[str] = Field(default_factory=list)
    key_insights: list[str] = Field(default_factory=list)
    frameworks_mentioned: list[str] = Field(default_factory=list)
    gaps: list[str] = Field(default_factory=list)
    suggested_probes: list[str] = Field(default_factory=list)
    knowledge_points_created: int = 0
