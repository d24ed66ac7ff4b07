"""
API tests for the interview lifecycle: start, conversation, phases, reports and topic tracking.
"""

from app.core.errors import UpstreamError
from app.prompts import note_taker


class TestStartInterview:
    """Starting role and topic interviews."""

    def test_role_interview_starts_in_warm_up(self, interview):
        """A role interview starts empty in warm-up with checklist tracking."""
        assert interview["phase"] == "warm-up"
        assert interview["messages"] == []
        assert interview["status"] == "scheduled"
        assert interview["currentTopicId"] == "mtfs-development"
        assert interview["topicProgress"]["mtfs-development"]["status"] == "in-progress"
        assert interview["topicProgress"]["budget-setting"]["status"] == "not-started"

    def test_start_alias_route(self, client):
        """POST /interviews/start behaves like POST /interviews."""
        response = client.post("/api/interviews/start", json={"role": "Head of AP"})
        assert response.status_code == 200
        assert response.json()["role"] == "Head of AP"

    def test_unknown_role_is_rejected(self, client):
        """A role outside the catalog is a 400."""
        response = client.post("/api/interviews", json={"role": "Chief Wizard"})
        assert response.status_code == 400
        assert "Invalid role" in response.json()["error"]

    def test_neither_role_nor_topic_is_rejected(self, client):
        """A body with no role and no topic is a 400."""
        response = client.post("/api/interviews", json={"expertName": "Nobody"})
        assert response.status_code == 400

    def test_topic_interview(self, client):
        """A topic interview has no role checklist."""
        topic = client.post("/api/topics", json={"name": "Payroll reconciliation"}).json()
        response = client.post("/api/interviews", json={"topicId": topic["id"]})
        assert response.status_code == 200
        body = response.json()
        assert body["topicId"] == topic["id"]
        assert body["role"] is None
        assert body["topicProgress"] is None

    def test_unknown_topic_is_rejected(self, client):
        """A topicId that does not exist is a 400."""
        response = client.post("/api/interviews", json={"topicId": "missing"})
        assert response.status_code == 400

    def test_topic_with_unknown_role(self, client):
        """An existing topic is enough; an unrecognised role alongside it is dropped."""
        topic = client.post("/api/topics", json={"name": "Payroll reconciliation"}).json()
        response = client.post("/api/interviews", json={"role": "Chief Wizard", "topicId": topic["id"]})
        assert response.status_code == 200
        body = response.json()
        assert body["topicId"] == topic["id"]
        assert body["role"] is None
        assert body["topicProgress"] is None

    def test_questions_are_normalised(self, client):
        """String and object questions become ordered question records."""
        response = client.post(
            "/api/interviews",
            json={"role": "Head of AR", "questions": ["What is your cycle?", {"title": "Who escalates?"}]},
        )
        questions = response.json()["questions"]
        assert [q["text"] for q in questions] == ["What is your cycle?", "Who escalates?"]
        assert [q["order"] for q in questions] == [0, 1]


class TestConversation:
    """Posting messages."""

    def test_message_round_trip(self, client, interview, llm):
        """A message gets a reply and both turns are stored."""
        response = client.post(f"/api/interviews/{interview['id']}/message", json={"message": "We do month-end close"})
        assert response.status_code == 200
        body = response.json()
        assert body["response"] == llm.reply
        assert set(body["coverage"]) == {
            "overview", "tasks", "dates", "contacts", "systems", "pitfalls", "tips", "related",
        }

        stored = client.get(f"/api/interviews/{interview['id']}").json()
        assert [m["role"] for m in stored["messages"]] == ["user", "assistant"]
        assert stored["status"] == "in-progress"

    def test_history_is_sent_to_llm(self, client, interview, llm):
        """The whole conversation so far goes to the model."""
        client.post(f"/api/interviews/{interview['id']}/message", json={"message": "First answer"})
        client.post(f"/api/interviews/{interview['id']}/message", json={"message": "Second answer"})
        _, messages = [call for call in llm.calls if call[0] != note_taker.SYSTEM_PROMPT][-1]
        assert messages == ["First answer", llm.reply, "Second answer"]

    def test_empty_message_is_rejected(self, client, interview):
        """An empty message is a 400."""
        response = client.post(f"/api/interviews/{interview['id']}/message", json={"message": ""})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_unknown_interview_is_404(self, client):
        """Messages to a missing interview are a 404."""
        response = client.post("/api/interviews/nope/message", json={"message": "hello"})
        assert response.status_code == 404

    def test_done_phrase_flags_topic_complete(self, client, interview):
        """A done phrase from the expert is reported."""
        response = client.post(f"/api/interviews/{interview['id']}/message", json={"message": "I think that's everything"})
        body = response.json()
        assert body["topicComplete"] is True
        assert body["completionDetected"] is True

    def test_message_to_completed_interview_is_rejected(self, client, interview):
        """A completed interview takes no more messages."""
        client.post(f"/api/interviews/{interview['id']}/complete")
        response = client.post(f"/api/interviews/{interview['id']}/message", json={"message": "One more thing"})
        assert response.status_code == 400

    def test_llm_failure_is_500(self, client, interview, llm):
        """An upstream failure is reported, not swallowed."""
        llm.error = UpstreamError("LLM request failed")
        response = client.post(f"/api/interviews/{interview['id']}/message", json={"message": "Hello there"})
        assert response.status_code == 500
        assert response.json()["error"] == "LLM request failed"

    def test_current_topic_coverage_is_tracked(self, client, interview, llm):
        """Covered areas raise the current checklist topic's coverage."""
        client.post(
            f"/api/interviews/{interview['id']}/message",
            json={"message": "The purpose and overview: the goal is a balanced plan. Steps: first the process, then review."},
        )
        stored = client.get(f"/api/interviews/{interview['id']}").json()
        assert stored["coverage"]["overview"] is True
        assert stored["coverage"]["tasks"] is True
        # mtfs-development requires six areas, two of them are covered
        assert stored["topicProgress"]["mtfs-development"]["coveragePercent"] == 33


class TestSnapshots:
    """Periodic and manual snapshots."""

    def test_every_fifth_message_triggers_snapshot(self, client, interview, snapshot_queue):
        """The fifth user message queues a snapshot."""
        for index in range(5):
            client.post(f"/api/interviews/{interview['id']}/message", json={"message": f"Answer number {index}"})
        assert snapshot_queue.drain(timeout=5)

        snapshots = client.get(f"/api/interviews/{interview['id']}/snapshots").json()
        assert len(snapshots) == 1
        assert snapshots[0]["messageCount"] == 10
        assert snapshots[0]["topicsCovered"] == ["Month-end close", "Budget monitoring"]

    def test_background_snapshot_of_empty_interview_is_skipped(self, client, interview, llm):
        """Without messages the background path returns None and never calls the LLM."""
        service = client.app.state.snapshot_service
        assert service.create_snapshot(interview["id"]) is None
        assert llm.calls == []
        assert client.get(f"/api/interviews/{interview['id']}/snapshots").json() == []

    def test_complete_queues_final_snapshot(self, client, interview, snapshot_queue):
        """Completing an interview snapshots the transcript one last time."""
        client.post(f"/api/interviews/{interview['id']}/message", json={"message": "We do month-end close"})
        assert client.post(f"/api/interviews/{interview['id']}/complete").status_code == 200
        assert snapshot_queue.drain(timeout=5)

        snapshots = client.get(f"/api/interviews/{interview['id']}/snapshots").json()
        assert len(snapshots) == 1
        assert snapshots[0]["messageCount"] == 2

    def test_closing_reply_queues_snapshot(self, client, interview, llm, snapshot_queue):
        """An interviewer reply that wraps up the session flags completion and snapshots."""
        llm.reply = "That concludes our session. Thank you for sharing so much detail."
        body = client.post(
            f"/api/interviews/{interview['id']}/message", json={"message": "We reconcile the ledger monthly"}
        ).json()
        assert body["completionDetected"] is True
        assert "topicComplete" not in body
        assert snapshot_queue.drain(timeout=5)

        snapshots = client.get(f"/api/interviews/{interview['id']}/snapshots").json()
        assert len(snapshots) == 1

    def test_note_snapshot_is_synchronous(self, client, interview):
        """A manual snapshot is returned directly and creates knowledge points."""
        client.post(f"/api/interviews/{interview['id']}/message", json={"message": "We do month-end close"})
        response = client.post(f"/api/interviews/{interview['id']}/note-snapshot")
        assert response.status_code == 200
        body = response.json()
        assert body["keyInsights"][0].startswith("Always reconcile")
        assert body["knowledgePointsCreated"] == 3

    def test_note_snapshot_without_messages_is_400(self, client, interview):
        """Nothing to snapshot is a 400."""
        response = client.post(f"/api/interviews/{interview['id']}/note-snapshot")
        assert response.status_code == 400

    def test_note_snapshot_parse_error_is_500(self, client, interview, llm):
        """A reply without the JSON envelope is a parse error."""
        llm.respond_to(note_taker.SYSTEM_PROMPT, "I could not find anything useful.")
        client.post(f"/api/interviews/{interview['id']}/message", json={"message": "We do month-end close"})
        response = client.post(f"/api/interviews/{interview['id']}/note-snapshot")
        assert response.status_code == 500
        assert response.json()["error"] == "No JSON object found in response"

    def test_summary_merges_snapshots(self, client, interview):
        """The summary unions snapshot fields without duplicates."""
        client.post(f"/api/interviews/{interview['id']}/message", json={"message": "We do month-end close"})
        client.post(f"/api/interviews/{interview['id']}/note-snapshot")
        client.post(f"/api/interviews/{interview['id']}/note-snapshot")
        summary = client.get(f"/api/interviews/{interview['id']}/summary").json()
        assert summary["snapshotCount"] == 2
        assert summary["topicsCovered"] == ["Month-end close", "Budget monitoring"]
        assert summary["coverage"]["depth"] in ("deep", "moderate", "shallow")


class TestPhases:
    """Phase transitions and completion."""

    def test_forward_transition(self, client, interview):
        """Phases move forward, skipping is allowed."""
        response = client.post(f"/api/interviews/{interview['id']}/phase", json={"phase": "cases"})
        assert response.status_code == 200
        assert response.json()["phase"] == "cases"

    def test_backward_transition_is_rejected(self, client, interview):
        """Phases never move back."""
        client.post(f"/api/interviews/{interview['id']}/phase", json={"phase": "meta"})
        response = client.post(f"/api/interviews/{interview['id']}/phase", json={"phase": "warm-up"})
        assert response.status_code == 400
        assert client.get(f"/api/interviews/{interview['id']}").json()["phase"] == "meta"

    def test_complete_is_idempotent(self, client, interview):
        """Completing twice keeps the first completion time."""
        first = client.post(f"/api/interviews/{interview['id']}/complete").json()
        second = client.post(f"/api/interviews/{interview['id']}/complete").json()
        assert first["phase"] == second["phase"] == "complete"
        assert first["completedAt"] == second["completedAt"]
        assert second["status"] == "completed"

    def test_complete_is_terminal(self, client, interview):
        """Nothing leaves complete."""
        client.post(f"/api/interviews/{interview['id']}/complete")
        response = client.put(f"/api/interviews/{interview['id']}", json={"phase": "meta"})
        assert response.status_code == 400

    def test_update_to_complete_stamps_completion(self, client, interview):
        """Setting phase complete through PUT completes the interview."""
        response = client.put(f"/api/interviews/{interview['id']}", json={"phase": "complete", "industry": "Local Government"})
        body = response.json()
        assert body["phase"] == "complete"
        assert body["completedAt"] is not None
        assert body["industry"] == "Local Government"


class TestReports:
    """Listing, transcript, coverage and deletion."""

    def test_list_with_pagination(self, client):
        """Paging wraps the list with counts."""
        for role in ("Finance Director", "Head of AP", "Head of AR"):
            client.post("/api/interviews", json={"role": role})
        body = client.get("/api/interviews", params={"page": 1, "limit": 2}).json()
        assert len(body["interviews"]) == 2
        assert body["pagination"] == {"currentPage": 1, "totalPages": 2, "totalInterviews": 3, "limit": 2}

    def test_list_filters_by_role(self, client):
        """The role filter matches exactly."""
        client.post("/api/interviews", json={"role": "Finance Director"})
        client.post("/api/interviews", json={"role": "Head of AP"})
        items = client.get("/api/interviews", params={"role": "Head of AP"}).json()
        assert [item["role"] for item in items] == ["Head of AP"]
        assert items[0]["expertName"] == "Unknown Expert"

    def test_transcript(self, client, interview):
        """The transcript labels both speakers."""
        client.post(f"/api/interviews/{interview['id']}/message", json={"message": "We do month-end close"})
        body = client.get(f"/api/interviews/{interview['id']}/transcript").json()
        assert body["messageCount"] == 2
        assert "Expert: We do month-end close" in body["transcript"]
        assert "Interviewer:" in body["transcript"]

    def test_coverage_report(self, client, interview):
        """The coverage report lists all eight areas."""
        body = client.get(f"/api/interviews/{interview['id']}/coverage").json()
        assert len(body["areas"]) == 8
        assert body["summary"] == {"covered": 0, "total": 8, "percentComplete": 0}

    def test_delete_cascades(self, client, interview):
        """Deleting an interview removes its snapshots."""
        client.post(f"/api/interviews/{interview['id']}/message", json={"message": "We do month-end close"})
        client.post(f"/api/interviews/{interview['id']}/note-snapshot")
        assert client.delete(f"/api/interviews/{interview['id']}").status_code == 204
        assert client.get(f"/api/interviews/{interview['id']}").status_code == 404
        assert client.get(f"/api/interviews/{interview['id']}/snapshots").status_code == 404


class TestTopicTracking:
    """Checklist topic progress for role interviews."""

    def test_progress_report(self, client, interview):
        """Progress lists every checklist topic."""
        body = client.get(f"/api/interviews/{interview['id']}/topic-progress").json()
        assert body["summary"]["total"] == 9
        assert body["summary"]["inProgress"] == 1
        assert body["summary"]["meetsThreshold"] is False

    def test_select_topic(self, client, interview):
        """Selecting a topic makes it current."""
        body = client.post(f"/api/interviews/{interview['id']}/topic/budget-setting/select").json()
        assert body["previousTopicId"] == "mtfs-development"
        assert body["currentTopicId"] == "budget-setting"
        assert body["topicProgress"]["status"] == "in-progress"

    def test_complete_topic_moves_on(self, client, interview):
        """Completing the current topic advances to the next open one."""
        body = client.post(f"/api/interviews/{interview['id']}/topic/mtfs-development/complete").json()
        assert body["newCurrentTopicId"] == "budget-setting"
        assert body["topicProgress"]["mtfs-development"]["status"] == "complete"

    def test_validate_topic(self, client, interview):
        """Approval marks the topic validated."""
        response = client.post(
            f"/api/interviews/{interview['id']}/topics/budget-setting/validate",
            json={"validationStatus": "approved"},
        )
        assert response.json()["topicProgress"]["validated"] is True

    def test_topic_interview_has_no_tracking(self, client):
        """Topic interviews cannot report checklist progress."""
        topic = client.post("/api/topics", json={"name": "Payroll"}).json()
        created = client.post("/api/interviews", json={"topicId": topic["id"]}).json()
        assert client.get(f"/api/interviews/{created['id']}/topic-progress").status_code == 400
