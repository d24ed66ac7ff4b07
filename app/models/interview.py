from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, Field, computed_field

from app.models.base import CamelModel, utcnow

InterviewPhase = Literal["warm-up", "core-frameworks", "cases", "meta", "complete"]
TopicStatus = Literal["not-started", "in-progress", "complete"]
ReviewStatus = Literal["draft", "reviewed", "approved"]


class Message(CamelModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utcnow)


class Question(CamelModel):
    id: str
    text: str
    order: int = 0


class TopicProgress(CamelModel):
    status: TopicStatus = "not-started"
    coverage_percent: int = 0
    validated: bool = False
    validation_status: ReviewStatus | None = None
    validated_at: datetime | None = None
    discussed_at: datetime | None = None
    completed_at: datetime | None = None
    has_workflow: bool = False
    workflow_id: str | None = None
    knowledge_points: list[str] = Field(default_factory=list)


class Interview(CamelModel):
    id: str
    role: str | None = None
    phase: InterviewPhase = "warm-up"
    messages: list[Message] = Field(default_factory=list)
    coverage: dict[str, bool] = Field(default_factory=dict)
    questions: list[Question] = Field(default_factory=list)
    questions_completed: list[str] = Field(default_factory=list)
    topic_progress: dict[str, TopicProgress] | None = None
    current_topic_id: str | None = None
    topic_id: str | None = None
    expert_id: str | None = None
    expert_name: str | None = None
    industry: str | None = None
    description: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    @computed_field
    @property
    def status(self) -> str:
        if self.phase == "complete":
            return "completed"
        if self.messages:
            return "in-progress"
        return "scheduled"

    @property
    def user_message_count(self) -> int:
        return sum(1 for message in self.messages if message.role == "user")

    def append(self, message: Message) -> None:
        self.messages.append(message)
