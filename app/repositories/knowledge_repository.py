from app.models.knowledge import KnowledgePoint, Workflow
from app.repositories.base import ScopedRepository


class KnowledgePointRepository(ScopedRepository[KnowledgePoint]):
    model = KnowledgePoint
    prefix = "knowledge-points"

    def list_for(self, parent_id: str) -> list[KnowledgePoint]:
        return sorted(super().list_for(parent_id), key=lambda point: point.created_at)


class WorkflowRepository(ScopedRepository[Workflow]):
    model = Workflow
    prefix = "workflows"

    def find_by_topic(self, interview_id: str, topic_id: str) -> Workflow | None:
        for workflow in self.list_for(interview_id):
            if workflow.topic_id == topic_id:
                return workflow
        return None
