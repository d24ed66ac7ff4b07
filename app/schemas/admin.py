from datetime import datetime
from typing import Optional

from pydantic import Field

from app.models.base import CamelModel


class AdvisorLogQuery(CamelModel):
    persona_id: Optional[str] = None
    user_id: Optional[str] = None
    from_date: Optional[datetime] = None
    to_date: Optional[datetime] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=200)
