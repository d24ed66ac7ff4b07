"""
QA scenarios, scoring and analytics.
"""

import pytest

from app.prompts import persona_builder
from app.services.qa_service import average_scores, round2

PERSONA_TEXT = "# I am the Head of AP"


@pytest.fixture
def persona(client, llm):
    llm.respond_to(persona_builder.SYSTEM_PROMPT, PERSONA_TEXT)
    interview = client.post("/api/interviews", json={"role": "Head of AP"}).json()
    return client.post("/api/personas/build", json={"interviewId": interview["id"]}).json()


@pytest.fixture
def scenario(client):
    response = client.post(
        "/api/qa/scenarios",
        json={
            "role": "Head of AP",
            "title": "Bank detail change",
            "context": "A supplier emails new bank details.",
            "question": "What do you do?",
        },
    )
    assert response.status_code == 201
    return response.json()


def run(client, persona_id, scenario_id):
    response = client.post("/api/qa/run", json={"personaId": persona_id, "scenarioId": scenario_id})
    assert response.status_code == 200
    return response.json()


def score(client, evaluation_id, **scores):
    body = {"evaluationId": evaluation_id, "accuracy": 4, "tone": 4, "actionability": 4, "riskAwareness": 4}
    body.update(scores)
    return client.post("/api/qa/evaluate", json=body)


class TestScenarios:
    """Per-role scenario library."""

    def test_list_by_role(self, client, scenario):
        items = client.get("/api/qa/scenarios/Head of AP").json()
        assert [item["id"] for item in items] == [scenario["id"]]
        assert client.get("/api/qa/scenarios/Head of AR").json() == []

    def test_unknown_role(self, client):
        response = client.get("/api/qa/scenarios/Chief Wizard")
        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid role")


class TestRunAndScore:
    """Running a persona against a scenario and scoring the answer."""

    def test_run_creates_pending_evaluation(self, client, llm, persona, scenario):
        llm.respond_to(PERSONA_TEXT, "Call the supplier on a known number.")
        result = run(client, persona["id"], scenario["id"])
        assert result["response"] == "Call the supplier on a known number."

        evaluation = client.get(f"/api/qa/evaluations/{result['evaluationId']}").json()
        assert evaluation["status"] == "pending"
        assert evaluation["question"] == "Context: A supplier emails new bank details.\n\nQuestion: What do you do?"
        assert evaluation["personaVersion"] == 1

    def test_run_unknown_ids(self, client, persona, scenario):
        assert client.post("/api/qa/run", json={"personaId": "x", "scenarioId": scenario["id"]}).status_code == 404
        assert client.post("/api/qa/run", json={"personaId": persona["id"], "scenarioId": "x"}).status_code == 404

    def test_score(self, client, persona, scenario):
        evaluation_id = run(client, persona["id"], scenario["id"])["evaluationId"]
        response = score(client, evaluation_id, accuracy=5, tone=4, actionability=3, riskAwareness=5, evaluatedBy="qa@x")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "scored"
        assert body["scores"]["average"] == 4.25

        stored = client.get(f"/api/qa/evaluations/{evaluation_id}").json()
        assert stored["evaluatedBy"] == "qa@x"

    @pytest.mark.parametrize("value", [6, 0, 3.5, "4", True, None])
    def test_invalid_scores_change_nothing(self, client, persona, scenario, value):
        evaluation_id = run(client, persona["id"], scenario["id"])["evaluationId"]
        response = score(client, evaluation_id, accuracy=value)
        assert response.status_code == 400
        assert "accuracy" in response.json()["error"]
        assert client.get(f"/api/qa/evaluations/{evaluation_id}").json()["status"] == "pending"

    def test_whole_number_floats_are_accepted(self, client, persona, scenario):
        """4.0 counts as an integer score and is stored as one."""
        evaluation_id = run(client, persona["id"], scenario["id"])["evaluationId"]
        response = score(client, evaluation_id, accuracy=4.0, tone=2.0)
        assert response.status_code == 200
        scores = response.json()["scores"]
        assert scores["accuracy"] == 4
        assert isinstance(scores["accuracy"], int)
        assert scores["average"] == 3.5

    def test_score_twice_conflicts(self, client, persona, scenario):
        evaluation_id = run(client, persona["id"], scenario["id"])["evaluationId"]
        assert score(client, evaluation_id).status_code == 200
        assert score(client, evaluation_id, accuracy=1).status_code == 400

    def test_score_unknown_evaluation(self, client):
        assert score(client, "missing").status_code == 404

    def test_list_filters(self, client, persona, scenario):
        first = run(client, persona["id"], scenario["id"])["evaluationId"]
        run(client, persona["id"], scenario["id"])
        score(client, first)
        scored = client.get("/api/qa/evaluations", params={"status": "scored"}).json()
        assert [item["id"] for item in scored] == [first]
        assert len(client.get("/api/qa/evaluations", params={"personaId": persona["id"]}).json()) == 2


class TestAnalytics:
    """Aggregates over scored evaluations."""

    def test_average_scores_empty(self):
        assert average_scores([]) == {"accuracy": 0, "tone": 0, "actionability": 0, "riskAwareness": 0, "overall": 0}

    def test_round2_rounds_half_up(self):
        assert round2(2.625) == 2.63
        assert round2(3.125) == 3.13

    def test_persona_needs_calibration(self, client, persona, scenario):
        evaluation_id = run(client, persona["id"], scenario["id"])["evaluationId"]
        score(client, evaluation_id, accuracy=2, tone=3, actionability=3, riskAwareness=2, comments="Too vague")
        body = client.get(f"/api/qa/analytics/personas/{persona['id']}").json()
        assert body["totalEvaluations"] == 1
        assert body["averageScores"]["overall"] == 2.5
        assert body["needsCalibration"] is True
        assert body["scenarioEvaluations"][0]["needsAttention"] is True
        assert body["allComments"][0]["comment"] == "Too vague"

    def test_problematic_scenario_needs_two_personas(self, client, llm, persona, scenario):
        evaluation_id = run(client, persona["id"], scenario["id"])["evaluationId"]
        score(client, evaluation_id, accuracy=1, tone=1, actionability=1, riskAwareness=1)
        assert client.get("/api/qa/analytics/scenarios").json()["problematicScenarios"] == 0

        interview = client.post("/api/interviews", json={"role": "Head of AP"}).json()
        other = client.post("/api/personas/build", json={"interviewId": interview["id"]}).json()
        evaluation_id = run(client, other["id"], scenario["id"])["evaluationId"]
        score(client, evaluation_id, accuracy=2, tone=2, actionability=2, riskAwareness=2)

        body = client.get("/api/qa/analytics/scenarios").json()
        assert body["problematicScenarios"] == 1
        assert body["scenarios"][0]["isProblematic"] is True
        assert body["scenarios"][0]["personasEvaluated"] == 2

        summary = client.get("/api/qa/analytics/summary").json()
        assert summary["summary"]["totalEvaluations"] == 2
        assert summary["summary"]["totalPersonasEvaluated"] == 2
        assert summary["flaggedPersonas"]["count"] == 2
        assert summary["problematicScenarios"]["count"] == 1

    def test_pending_evaluations_are_ignored(self, client, persona, scenario):
        run(client, persona["id"], scenario["id"])
        summary = client.get("/api/qa/analytics/summary").json()
        assert summary["summary"]["totalEvaluations"] == 0
        assert summary["overallAverages"]["overall"] == 0
