from app.models.topic import KnowledgeEntry, Topic
from app.repositories.base import DocumentRepository


class TopicRepository(DocumentRepository[Topic]):
    model = Topic
    namespace = "topics"

    def list_ordered(self) -> list[Topic]:
        return sorted(self.list_all(), key=lambda topic: (topic.order, topic.created_at))


class KnowledgeEntryRepository(DocumentRepository[KnowledgeEntry]):
    model = KnowledgeEntry
    namespace = "knowledge-entries"
