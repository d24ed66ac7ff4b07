from app.models.interview import Interview
from app.repositories.base import DocumentRepository


class InterviewRepository(DocumentRepository[Interview]):
    model = Interview
    namespace = "interviews"

    def find_by_topic(self, topic_id: str) -> Interview | None:
        matches = [item for item in self.list_all() if item.topic_id == topic_id]
        if not matches:
            return None
        # most recently touched interview wins
        return max(matches, key=lambda item: item.updated_at or item.created_at)
