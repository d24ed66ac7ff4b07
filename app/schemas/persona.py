from typing import Any, Literal, Optional, Union

from pydantic import Field

from app.models.base import CamelModel
from app.models.persona import PersonaStatus


class PersonaBuildRequest(CamelModel):
    interview_id: str = Field(min_length=1)


class PersonaFeedbackRequest(CamelModel):
    validated_by: str = Field(min_length=1)
    feedback: Optional[str] = None


class PersonaUpdateRequest(CamelModel):
    name: Optional[str] = None
    role: Optional[str] = None
    organization: Optional[str] = None
    years_of_experience: Optional[int] = Field(default=None, ge=0)
    bio: Optional[str] = None
    photo_url: Optional[str] = None
    traits: Optional[list[str]] = None
    expertise: Optional[list[Union[str, dict[str, Any]]]] = None
    industry: Optional[str] = None
    is_favorite: Optional[bool] = None
    status: Optional[PersonaStatus] = None
    validated_by: Optional[str] = None


class PersonaBulkDeleteRequest(CamelModel):
    ids: list[str] = Field(min_length=1)


class AdviseRequest(CamelModel):
    question: str = Field(min_length=1)
    user_id: Optional[str] = None


class PersonaListQuery(CamelModel):
    status: Optional[PersonaStatus] = None
    role: Optional[str] = None
    industry: Optional[str] = None
    is_favorite: Optional[bool] = None
    latest_validated: Optional[bool] = None
    sort_by: Optional[str] = None
    sort_order: Optional[Literal["asc", "desc"]] = None
    page: Optional[int] = Field(default=None, ge=1)
    limit: Optional[int] = Field(default=None, ge=1, le=200)
