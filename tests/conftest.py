"""
Shared fixtures: a scripted LLM, a throwaway JSON store and an API client wired to both.
"""

import json
import threading

import pytest
from fastapi.testclient import TestClient

from app.core.catalog import load_catalog
from app.core.config import Settings
from app.db.store import JsonFileStore
from app.prompts import note_taker
from app.services.snapshot_queue import SnapshotQueue
from main import create_app

INTERVIEWER_REPLY = "Could you walk me through how that works in practice?"

EXTRACTION = {
    "topicsCovered": ["Month-end close", "Budget monitoring"],
    "keyInsights": [
        "Always reconcile the suspense account before the ledger closes",
        "Avoid posting journals after the cut-off without approval",
    ],
    "frameworksMentioned": ["RAG rating"],
    "gaps": ["Year-end timetable"],
    "suggestedProbes": ["Who signs off the variance report?"],
}


class FakeLLM:
    """Answers every chat with a canned reply, optionally chosen by system prompt."""

    def __init__(self, reply=INTERVIEWER_REPLY):
        self.reply = reply
        self.by_prompt = {}
        self.error = None
        self.calls = []
        self._lock = threading.Lock()

    def respond_to(self, system_prompt, reply):
        self.by_prompt[system_prompt] = reply

    def chat(self, system_prompt, messages):
        with self._lock:
            self.calls.append((system_prompt, [getattr(m, "content", None) or m["content"] for m in messages]))
        if self.error is not None:
            raise self.error
        return self.by_prompt.get(system_prompt, self.reply)


@pytest.fixture
def catalog():
    return load_catalog()


@pytest.fixture
def store(tmp_path):
    return JsonFileStore(tmp_path / "data")


@pytest.fixture
def llm():
    fake = FakeLLM()
    fake.respond_to(note_taker.SYSTEM_PROMPT, json.dumps(EXTRACTION))
    return fake


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=str(tmp_path / "data"),
        openai_api_key=None,
        bcrypt_rounds=4,
        snapshot_interval=5,
        snapshot_workers=1,
    )


@pytest.fixture
def snapshot_queue():
    queue = SnapshotQueue(max_workers=1, max_pending=8)
    yield queue
    queue.shutdown(wait_for_jobs=True)


@pytest.fixture
def client(settings, store, llm, snapshot_queue):
    app = create_app(settings=settings, store=store, llm=llm, snapshot_queue=snapshot_queue)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def interview(client):
    response = client.post("/api/interviews", json={"role": "Finance Director", "expertName": "Sam Patel"})
    assert response.status_code == 200
    return response.json()


@pytest.fixture
def auth_headers(client):
    client.post("/api/auth/register", json={"username": "jdoe", "password": "secret123", "name": "Jo Doe"})
    token = client.post("/api/auth/login", json={"username": "jdoe", "password": "secret123"}).json()["token"]
    return {"Authorization": f"Bearer {token}"}
