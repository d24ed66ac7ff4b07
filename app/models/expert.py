from datetime import datetime
from typing import Any

from pydantic import Field

from app.models.base import CamelModel, utcnow


class Expert(CamelModel):
    id: str
    username: str
    password_hash: str
    name: str
    job_title: str | None = None
    department: str | None = None
    bio: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def public(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude={"password_hash"})
