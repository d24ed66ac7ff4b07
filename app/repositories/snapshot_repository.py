from app.models.snapshot import Snapshot
from app.repositories.base import ScopedRepository


class SnapshotRepository(ScopedRepository[Snapshot]):
    model = Snapshot
    prefix = "snapshots"

    def list_for(self, parent_id: str) -> list[Snapshot]:
        return sorted(super().list_for(parent_id), key=lambda snapshot: snapshot.timestamp)
