from app.models.expert import Expert
from app.repositories.base import DocumentRepository


class ExpertRepository(DocumentRepository[Expert]):
    model = Expert
    namespace = "experts"

    def get_by_username(self, username: str) -> Expert | None:
        wanted = username.lower()
        for expert in self.list_all():
            if expert.username.lower() == wanted:
                return expert
        return None
