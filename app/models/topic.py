from datetime import datetime
from typing import Literal

from pydantic import Field

from app.models.base import CamelModel, utcnow

TopicFrequency = Literal["daily", "weekly", "monthly", "quarterly", "annual", "ad-hoc"]
TopicState = Literal["pending", "in-progress", "complete"]


class Topic(CamelModel):
    id: str
    name: str
    description: str = ""
    frequency: TopicFrequency = "ad-hoc"
    category: str = ""
    order: int = 0
    status: TopicState = "pending"
    knowledge_entry_id: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class KnowledgeEntrySections(CamelModel):
    overview: str = "Not covered in interview"
    frequency: str = "Not covered in interview"
    key_tasks: list[str] = Field(default_factory=list)
    key_dates: list[str] = Field(default_factory=list)
    contacts: list[str] = Field(default_factory=list)
    systems_and_tools: list[str] = Field(default_factory=list)
    watch_out_for: list[str] = Field(default_factory=list)
    pro_tips: list[str] = Field(default_factory=list)


class CrossReference(CamelModel):
    topic_id: str | None = None
    topic_name: str
    reason: str


class KnowledgeEntry(CamelModel):
    id: str
    topic_id: str
    topic_name: str
    interview_id: str
    sections: KnowledgeEntrySections
    cross_references: list[CrossReference] = Field(default_factory=list)
    quality_notes: str = ""
    status: Literal["draft", "reviewed", "published"] = "draft"
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
