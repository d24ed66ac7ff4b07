"""
Free-form topics and synthesised knowledge entries.
"""

import json

ENTRY = {
    "sections": {
        "overview": "Reconcile payroll to the general ledger each month",
        "frequency": "Monthly",
        "keyTasks": ["Export the payroll report", "Match control totals"],
        "keyDates": ["Working day 3"],
        "contacts": ["Payroll manager"],
        "systemsAndTools": ["Oracle"],
        "watchOutFor": ["Late starters"],
        "proTips": ["Check control totals first"],
    },
    "crossReferences": [{"topicName": "Month-end close", "reason": "Payroll accruals feed the close"}],
    "qualityNotes": "Strong on tasks, light on contacts",
}


def create(client, name, **fields):
    response = client.post("/api/topics", json={"name": name, **fields})
    assert response.status_code == 201
    return response.json()


class TestTopics:
    """Topic CRUD and ordering."""

    def test_create_defaults(self, client):
        topic = create(client, "  Payroll reconciliation  ")
        assert topic["name"] == "Payroll reconciliation"
        assert topic["frequency"] == "ad-hoc"
        assert topic["status"] == "pending"
        assert topic["order"] == 0
        assert create(client, "VAT return")["order"] == 1

    def test_blank_name_is_rejected(self, client):
        assert client.post("/api/topics", json={"name": "   "}).status_code == 400

    def test_invalid_frequency_is_rejected(self, client):
        assert client.post("/api/topics", json={"name": "X", "frequency": "hourly"}).status_code == 400

    def test_list_filters_and_order(self, client):
        create(client, "B", frequency="monthly", order=2)
        create(client, "A", frequency="weekly", order=1)
        assert [t["name"] for t in client.get("/api/topics").json()] == ["A", "B"]
        assert [t["name"] for t in client.get("/api/topics", params={"frequency": "monthly"}).json()] == ["B"]

    def test_update(self, client):
        topic = create(client, "Payroll")
        updated = client.put(f"/api/topics/{topic['id']}", json={"status": "in-progress", "category": "Finance"}).json()
        assert updated["status"] == "in-progress"
        assert updated["category"] == "Finance"
        assert client.put(f"/api/topics/{topic['id']}", json={"status": "archived"}).status_code == 400

    def test_reorder_ignores_unknown_ids(self, client):
        first = create(client, "First")
        second = create(client, "Second")
        reordered = client.put("/api/topics/reorder", json={"topicIds": [second["id"], "ghost", first["id"]]}).json()
        assert [(t["name"], t["order"]) for t in reordered] == [("Second", 0), ("First", 2)]
        assert [t["name"] for t in client.get("/api/topics").json()] == ["Second", "First"]

    def test_delete(self, client):
        topic = create(client, "Payroll")
        assert client.delete(f"/api/topics/{topic['id']}").status_code == 204
        assert client.get(f"/api/topics/{topic['id']}").status_code == 404


class TestSynthesis:
    """Knowledge entries built from a topic interview."""

    def _interview(self, client, topic):
        interview = client.post("/api/interviews", json={"topicId": topic["id"]}).json()
        client.post(f"/api/interviews/{interview['id']}/message", json={"message": "We reconcile payroll monthly"})
        return interview

    def test_synthesize(self, client, llm):
        month_end = create(client, "Month-end close")
        topic = create(client, "Payroll reconciliation")
        interview = self._interview(client, topic)
        llm.reply = json.dumps(ENTRY)

        response = client.post(f"/api/topics/{topic['id']}/synthesize")
        assert response.status_code == 201
        entry = response.json()
        assert entry["status"] == "draft"
        assert entry["interviewId"] == interview["id"]
        assert entry["sections"]["keyTasks"] == ["Export the payroll report", "Match control totals"]
        assert entry["crossReferences"][0]["topicId"] == month_end["id"]

        stored = client.get(f"/api/topics/{topic['id']}").json()
        assert stored["status"] == "complete"
        assert stored["knowledgeEntryId"] == entry["id"]

    def test_no_interview(self, client):
        topic = create(client, "Orphan")
        response = client.post(f"/api/topics/{topic['id']}/synthesize")
        assert response.status_code == 400
        assert "No interview found" in response.json()["error"]

    def test_interview_without_messages(self, client):
        topic = create(client, "Quiet")
        client.post("/api/interviews", json={"topicId": topic["id"]})
        assert client.post(f"/api/topics/{topic['id']}/synthesize").status_code == 400

    def test_entry_update_merges_sections_and_delete_unlinks(self, client, llm):
        topic = create(client, "Payroll reconciliation")
        self._interview(client, topic)
        llm.reply = json.dumps(ENTRY)
        entry = client.post(f"/api/topics/{topic['id']}/synthesize").json()

        updated = client.put(
            f"/api/knowledge-entries/{entry['id']}",
            json={"sections": {"proTips": ["Keep last month's file open"]}, "status": "reviewed"},
        ).json()
        assert updated["sections"]["proTips"] == ["Keep last month's file open"]
        assert updated["sections"]["overview"] == ENTRY["sections"]["overview"]
        assert updated["status"] == "reviewed"

        listed = client.get("/api/knowledge-entries", params={"status": "reviewed"}).json()
        assert [item["id"] for item in listed] == [entry["id"]]

        assert client.delete(f"/api/knowledge-entries/{entry['id']}").status_code == 204
        assert client.get(f"/api/topics/{topic['id']}").json()["knowledgeEntryId"] is None
        assert client.get(f"/api/knowledge-entries/{entry['id']}").status_code == 404

