from typing import Any, Literal, Optional, Union

from pydantic import Field

from app.models.base import CamelModel
from app.models.interview import InterviewPhase

QuestionInput = Union[str, dict[str, Any]]


class InterviewStartRequest(CamelModel):
    role: Optional[str] = None
    topic_id: Optional[str] = None
    expert_name: Optional[str] = None
    industry: Optional[str] = None
    description: Optional[str] = None
    expert_id: Optional[str] = None
    questions: Optional[list[QuestionInput]] = None
    topics: Optional[list[QuestionInput]] = None


class InterviewUpdateRequest(CamelModel):
    expert_name: Optional[str] = None
    industry: Optional[str] = None
    expert_id: Optional[str] = None
    topic_id: Optional[str] = None
    questions: Optional[list[QuestionInput]] = None
    questions_completed: Optional[list[str]] = None
    phase: Optional[InterviewPhase] = None


class PhaseChangeRequest(CamelModel):
    phase: InterviewPhase


class MessageRequest(CamelModel):
    message: str = Field(min_length=1)


class TopicValidationRequest(CamelModel):
    validation_status: Literal["draft", "reviewed", "approved"]


class InterviewListQuery(CamelModel):
    status: Optional[Literal["scheduled", "in-progress", "completed"]] = None
    expert_id: Optional[str] = None
    topic_id: Optional[str] = None
    role: Optional[str] = None
    sort_by: Optional[str] = None
    sort_order: Optional[Literal["asc", "desc"]] = None
    page: Optional[int] = Field(default=None, ge=1)
    limit: Optional[int] = Field(default=None, ge=1, le=200)
