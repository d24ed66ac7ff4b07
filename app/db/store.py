"""Key -> JSON document storage.

Keys are ``/``-separated paths such as ``interviews/abc123`` or
``snapshots/abc123/x9y8``. The part before the last segment is the namespace.
Writers are not coordinated: two writers to the same key race and the last one wins.
"""
import json
import logging
import os
import re
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session, sessionmaker

from app.core.errors import ValidationError
from app.db.base import Base
from app.db.session import build_engine, build_session_factory
from app.models.document import Document

logger = logging.getLogger(__name__)

_SEGMENT = re.compile(r"^[A-Za-z0-9_.-]+$")


def _check_path(path: str) -> list[str]:
    segments = path.split("/")
    for segment in segments:
        if not _SEGMENT.match(segment) or segment in (".", ".."):
            raise ValidationError(f"Invalid identifier: {path}")
    return segments


def split_key(key: str) -> tuple[str, str]:
    segments = _check_path(key)
    if len(segments) < 2:
        raise ValidationError(f"Invalid identifier: {key}")
    return "/".join(segments[:-1]), segments[-1]


class DocumentStore(ABC):
    backend: str = "abstract"

    @abstractmethod
    def get(self, key: str) -> dict[str, Any] | None: ...

    @abstractmethod
    def put(self, key: str, document: dict[str, Any]) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> bool: ...

    @abstractmethod
    def list_ids(self, namespace: str) -> list[str]: ...

    @abstractmethod
    def delete_namespace(self, namespace: str) -> int: ...

    def list_documents(self, namespace: str) -> list[dict[str, Any]]:
        documents = []
        for doc_id in self.list_ids(namespace):
            document = self.get(f"{namespace}/{doc_id}")
            if document is not None:
                documents.append(document)
        return documents


class JsonFileStore(DocumentStore):
    """One pretty-printed JSON file per key under ``root``."""

    backend = "file"

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        namespace, doc_id = split_key(key)
        return self.root / namespace / f"{doc_id}.json"

    def get(self, key: str) -> dict[str, Any] | None:
        path = self._path(key)
        try:
            with path.open(encoding="utf-8") as handle:
                return json.load(handle)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Unreadable document %s: %s", key, exc)
            return None

    def put(self, key: str, document: dict[str, Any]) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> bool:
        path = self._path(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    def list_ids(self, namespace: str) -> list[str]:
        directory = self.root.joinpath(*_check_path(namespace))
        if not directory.is_dir():
            return []
        return sorted(entry.stem for entry in directory.glob("*.json") if not entry.name.startswith("."))

    def delete_namespace(self, namespace: str) -> int:
        directory = self.root.joinpath(*_check_path(namespace))
        if not directory.is_dir():
            return 0
        count = sum(1 for _ in directory.rglob("*.json"))
        shutil.rmtree(directory)
        return count


class SqlDocumentStore(DocumentStore):
    """Documents as rows of the ``documents`` table."""

    backend = "sql"

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get(self, key: str) -> dict[str, Any] | None:
        split_key(key)
        with self._session_factory() as db:
            row = db.get(Document, key)
            if row is None:
                return None
            return json.loads(row.body)

    def put(self, key: str, document: dict[str, Any]) -> None:
        namespace, _ = split_key(key)
        body = json.dumps(document, ensure_ascii=False)
        with self._session_factory() as db:
            row = db.get(Document, key)
            if row is None:
                db.add(Document(key=key, namespace=namespace, body=body))
            else:
                row.body = body
            db.commit()

    def delete(self, key: str) -> bool:
        split_key(key)
        with self._session_factory() as db:
            row = db.get(Document, key)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True

    def list_ids(self, namespace: str) -> list[str]:
        _check_path(namespace)
        prefix_len = len(namespace) + 1
        with self._session_factory() as db:
            keys = db.scalars(select(Document.key).where(Document.namespace == namespace).order_by(Document.key))
            return [key[prefix_len:] for key in keys]

    def delete_namespace(self, namespace: str) -> int:
        _check_path(namespace)
        with self._session_factory() as db:
            result = db.execute(
                delete(Document).where(
                    or_(Document.namespace == namespace, Document.namespace.startswith(f"{namespace}/", autoescape=True))
                )
            )
            db.commit()
            return result.rowcount or 0


def create_store(settings) -> DocumentStore:
    if settings.uses_sql_store:
        if settings.database_url.startswith("sqlite:///") and not settings.database_url.endswith(":memory:"):
            Path(settings.database_url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
        engine = build_engine(settings.database_url)
        Base.metadata.create_all(bind=engine)
        logger.info("Using SQL document store at %s", engine.url.render_as_string(hide_password=True))
        return SqlDocumentStore(build_session_factory(engine))

    logger.info("Using JSON file document store under %s", settings.data_dir)
    return JsonFileStore(settings.data_dir)
