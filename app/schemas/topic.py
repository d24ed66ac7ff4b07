from typing import Any, Literal, Optional

from app.models.base import CamelModel
from app.models.topic import CrossReference, TopicFrequency, TopicState


class TopicCreateRequest(CamelModel):
    name: str
    description: Optional[str] = None
    frequency: Optional[TopicFrequency] = None
    category: Optional[str] = None
    order: Optional[int] = None


class TopicUpdateRequest(CamelModel):
    name: Optional[str] = None
    description: Optional[str] = None
    frequency: Optional[TopicFrequency] = None
    category: Optional[str] = None
    order: Optional[int] = None
    status: Optional[TopicState] = None


class TopicReorderRequest(CamelModel):
    topic_ids: list[str]


class TopicListQuery(CamelModel):
    status: Optional[TopicState] = None
    frequency: Optional[TopicFrequency] = None


class KnowledgeEntryUpdateRequest(CamelModel):
    sections: Optional[dict[str, Any]] = None
    status: Optional[Literal["draft", "reviewed", "published"]] = None
    cross_references: Optional[list[CrossReference]] = None
    quality_notes: Optional[str] = None


class KnowledgeEntryListQuery(CamelModel):
    status: Optional[Literal["draft", "reviewed", "published"]] = None
    topic_id: Optional[str] = None
