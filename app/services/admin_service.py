import math
from datetime import timezone
from typing import Any

from app.core.catalog import RoleCatalog
from app.core.errors import NotFoundError
from app.models.persona import AdvisorLog
from app.repositories.persona_repository import AdvisorLogRepository
from app.schemas.admin import AdvisorLogQuery


def _aware(value):
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class AdminService:
    """Read-only views for administrators: role reference data and advisor logs."""

    def __init__(self, store, catalog: RoleCatalog):
        self.logs = AdvisorLogRepository(store)
        self.catalog = catalog

    def list_roles(self) -> list[dict[str, Any]]:
        return [
            {
                "role": role.name,
                "description": role.description,
                "topicCount": len(role.topics),
                "processOrientedCount": role.process_oriented_count,
            }
            for role in self.catalog.roles
        ]

    def checklist(self, role_name: str) -> dict[str, Any]:
        role = self.catalog.get_role(role_name)
        if role is None:
            raise NotFoundError(f"Role not found: {role_name}", details={"validRoles": self.catalog.role_names})
        return {
            "role": role.name,
            "description": role.description,
            "topicCount": len(role.topics),
            "topics": [topic.to_dict() for topic in role.topics],
            "processOrientedCount": role.process_oriented_count,
        }

    def list_advisor_logs(self, query: AdvisorLogQuery) -> dict[str, Any]:
        logs = self.logs.list_all()
        if query.persona_id:
            logs = [log for log in logs if log.persona_id == query.persona_id]
        if query.user_id:
            logs = [log for log in logs if log.user_id == query.user_id]
        if query.from_date:
            start = _aware(query.from_date)
            logs = [log for log in logs if _aware(log.created_at) >= start]
        if query.to_date:
            end = _aware(query.to_date)
            logs = [log for log in logs if _aware(log.created_at) <= end]
        logs.sort(key=lambda log: log.created_at, reverse=True)

        offset = (query.page - 1) * query.limit
        return {
            "logs": [log.to_document() for log in logs[offset:offset + query.limit]],
            "pagination": {
                "currentPage": query.page,
                "totalPages": math.ceil(len(logs) / query.limit),
                "totalLogs": len(logs),
                "limit": query.limit,
            },
        }

    def get_advisor_log(self, log_id: str) -> AdvisorLog:
        log = self.logs.get(log_id)
        if log is None:
            raise NotFoundError(f"Advisor log not found: {log_id}")
        return log
