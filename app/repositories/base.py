import logging
import uuid
from typing import Generic, TypeVar

from pydantic import ValidationError as SchemaError

from app.db.store import DocumentStore
from app.models.base import CamelModel

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=CamelModel)


def new_id(prefix: str = "", length: int = 32) -> str:
    return f"{prefix}{uuid.uuid4().hex[:length]}"


def _load(model: type[T], document: dict, key: str) -> T | None:
    try:
        return model.model_validate(document)
    except SchemaError as exc:
        logger.warning("Skipping malformed %s document %s: %s", model.__name__, key, exc.error_count())
        return None


class DocumentRepository(Generic[T]):
    """Entities stored one per key under a flat namespace, e.g. ``personas/<id>``."""

    model: type[T]
    namespace: str

    def __init__(self, store: DocumentStore):
        self.store = store

    def _key(self, entity_id: str) -> str:
        return f"{self.namespace}/{entity_id}"

    def entity_id(self, entity: T) -> str:
        return entity.id

    def get(self, entity_id: str) -> T | None:
        key = self._key(entity_id)
        document = self.store.get(key)
        if document is None:
            return None
        return _load(self.model, document, key)

    def save(self, entity: T) -> T:
        self.store.put(self._key(self.entity_id(entity)), entity.to_document())
        return entity

    def delete(self, entity_id: str) -> bool:
        return self.store.delete(self._key(entity_id))

    def list_all(self) -> list[T]:
        items = []
        for document in self.store.list_documents(self.namespace):
            item = _load(self.model, document, self.namespace)
            if item is not None:
                items.append(item)
        return items

    def count(self) -> int:
        return len(self.store.list_ids(self.namespace))


class ScopedRepository(Generic[T]):
    """Entities grouped under a parent id, e.g. ``snapshots/<interviewId>/<id>``."""

    model: type[T]
    prefix: str

    def __init__(self, store: DocumentStore):
        self.store = store

    def _namespace(self, parent_id: str) -> str:
        return f"{self.prefix}/{parent_id}"

    def get(self, parent_id: str, entity_id: str) -> T | None:
        key = f"{self._namespace(parent_id)}/{entity_id}"
        document = self.store.get(key)
        if document is None:
            return None
        return _load(self.model, document, key)

    def save(self, parent_id: str, entity: T) -> T:
        self.store.put(f"{self._namespace(parent_id)}/{entity.id}", entity.to_document())
        return entity

    def delete(self, parent_id: str, entity_id: str) -> bool:
        return self.store.delete(f"{self._namespace(parent_id)}/{entity_id}")

    def list_for(self, parent_id: str) -> list[T]:
        namespace = self._namespace(parent_id)
        items = []
        for document in self.store.list_documents(namespace):
            item = _load(self.model, document, namespace)
            if item is not None:
                items.append(item)
        return items

    def delete_all(self, parent_id: str) -> int:
        return self.store.delete_namespace(self._namespace(parent_id))
