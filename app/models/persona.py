from datetime import datetime
from typing import Literal

from pydantic import Field

from app.models.base import CamelModel, utcnow

PersonaStatus = Literal["Draft", "Validated", "Deprecated"]


class ExpertiseItem(CamelModel):
    domain: str
    level: int = Field(default=3, ge=1, le=5)


class FeedbackEntry(CamelModel):
    feedback: str
    submitted_by: str
    submitted_at: datetime = Field(default_factory=utcnow)


class Persona(CamelModel):
    id: str
    role: str | None = None
    version: int = Field(default=1, ge=1)
    interview_id: str
    prompt_text: str
    status: PersonaStatus = "Draft"
    validated_by: str | None = None
    validated_at: datetime | None = None
    is_favorite: bool = False
    feedback_history: list[FeedbackEntry] = Field(default_factory=list)
    name: str | None = None
    organization: str | None = None
    bio: str | None = None
    photo_url: str | None = None
    traits: list[str] = Field(default_factory=list)
    expertise: list[ExpertiseItem] = Field(default_factory=list)
    industry: str | None = None
    years_of_experience: int | None = None
    viewed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None


class AdvisorLog(CamelModel):
    log_id: str
    persona_id: str
    persona_version: int
    user_id: str | None = None
    question: str
    response: str
    created_at: datetime = Field(default_factory=utcnow)
