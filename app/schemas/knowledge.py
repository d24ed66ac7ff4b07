from typing import Literal, Optional

from pydantic import Field

from app.models.base import CamelModel
from app.models.knowledge import KnowledgeArea

ReviewStatus = Literal["draft", "reviewed", "approved"]


class KnowledgePointCreateRequest(CamelModel):
    topic_id: Optional[str] = None
    area: Optional[KnowledgeArea] = None
    content: str = Field(min_length=1)


class KnowledgePointUpdateRequest(CamelModel):
    content: Optional[str] = None
    area: Optional[KnowledgeArea] = None
    status: Optional[ReviewStatus] = None
    topic_id: Optional[str] = None


class WorkflowUpdateRequest(CamelModel):
    mermaid_code: Optional[str] = None
    status: Optional[ReviewStatus] = None
