import logging
import math
from collections import defaultdict
from typing import Any, Iterable

from app.core.catalog import RoleCatalog
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.base import utcnow
from app.models.evaluation import Evaluation, Scenario, Scores
from app.repositories.base import new_id
from app.repositories.evaluation_repository import EvaluationRepository, ScenarioRepository
from app.repositories.persona_repository import PersonaRepository
from app.schemas.qa import EvaluationListQuery, ScenarioCreateRequest
from app.services.llm_service import LLMClient

logger = logging.getLogger(__name__)

LOW_SCORE_THRESHOLD = 3.5
DIMENSIONS = ("accuracy", "tone", "actionability", "riskAwareness")


def round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def check_score(name: str, value: Any) -> int:
    if value is None:
        raise ValidationError(f"Invalid request. {name} is required.")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise ValidationError(f"Invalid {name}. Must be an integer between 1 and 5.")
    return value


def average_scores(evaluations: Iterable[Evaluation]) -> dict[str, float]:
    """Per-dimension means rounded to 2dp; ``overall`` is the mean of those rounded means."""
    scored = [evaluation.scores for evaluation in evaluations if evaluation.scores is not None]
    if not scored:
        return {"accuracy": 0, "tone": 0, "actionability": 0, "riskAwareness": 0, "overall": 0}
    count = len(scored)
    averages = {
        "accuracy": round2(sum(s.accuracy for s in scored) / count),
        "tone": round2(sum(s.tone for s in scored) / count),
        "actionability": round2(sum(s.actionability for s in scored) / count),
        "riskAwareness": round2(sum(s.risk_awareness for s in scored) / count),
    }
    averages["overall"] = round2(sum(averages[name] for name in DIMENSIONS) / 4)
    return averages


class QAService:
    def __init__(self, store, llm: LLMClient, catalog: RoleCatalog):
        self.scenarios = ScenarioRepository(store)
        self.evaluations = EvaluationRepository(store)
        self.personas = PersonaRepository(store)
        self.llm = llm
        self.catalog = catalog

    def _slug(self, role: str) -> str:
        profile = self.catalog.get_role(role)
        if profile is None:
            raise ValidationError(f"Invalid role. Must be one of: {', '.join(self.catalog.role_names)}")
        return profile.slug

    # -- scenarios --------------------------------------------------------

    def list_scenarios(self, role: str) -> list[Scenario]:
        return sorted(self.scenarios.list_for(self._slug(role)), key=lambda scenario: scenario.created_at)

    def create_scenario(self, request: ScenarioCreateRequest) -> Scenario:
        slug = self._slug(request.role)
        scenario = Scenario(
            id=new_id(length=13),
            role=request.role,
            title=request.title,
            context=request.context,
            question=request.question,
        )
        self.scenarios.save(slug, scenario)
        logger.info("Scenario %s created for %s", scenario.id, request.role)
        return scenario

    # -- run / score ------------------------------------------------------

    def run(self, persona_id: str, scenario_id: str) -> dict[str, Any]:
        persona = self.personas.get(persona_id)
        if persona is None:
            raise NotFoundError(f"Persona not found: {persona_id}")
        scenario = self.scenarios.find(scenario_id, [role.slug for role in self.catalog.roles])
        if scenario is None:
            raise NotFoundError(f"Scenario not found: {scenario_id}")

        question = f"Context: {scenario.context}\n\nQuestion: {scenario.question}"
        response = self.llm.chat(persona.prompt_text, [{"role": "user", "content": question}])
        evaluation = Evaluation(
            id=new_id(length=13),
            persona_id=persona.id,
            persona_role=persona.role,
            persona_version=persona.version,
            scenario_id=scenario.id,
            scenario_title=scenario.title,
            question=question,
            response=response,
        )
        self.evaluations.save(evaluation)
        logger.info("Evaluation %s pending: persona %s on scenario %s", evaluation.id, persona.id, scenario.id)
        return {"evaluationId": evaluation.id, "personaId": persona.id, "scenarioId": scenario.id, "response": response}

    def score(
        self,
        evaluation_id: str,
        accuracy: Any,
        tone: Any,
        actionability: Any,
        risk_awareness: Any,
        comments: str | None = None,
        evaluated_by: str | None = None,
    ) -> dict[str, Any]:
        values = [
            check_score(name, value)
            for name, value in zip(DIMENSIONS, (accuracy, tone, actionability, risk_awareness))
        ]
        evaluation = self.get_evaluation(evaluation_id)
        if evaluation.status == "scored":
            raise ConflictError(f"Evaluation {evaluation_id} has already been scored")

        evaluation.scores = Scores(
            accuracy=values[0],
            tone=values[1],
            actionability=values[2],
            risk_awareness=values[3],
            average=sum(values) / 4,
        )
        evaluation.comments = comments or None
        evaluation.evaluated_by = evaluated_by
        evaluation.status = "scored"
        evaluation.evaluated_at = utcnow()
        self.evaluations.save(evaluation)
        logger.info("Evaluation %s scored (average %.2f)", evaluation_id, evaluation.scores.average)

        document = evaluation.to_document()
        return {
            "evaluationId": evaluation.id,
            "scores": document["scores"],
            "status": evaluation.status,
            "evaluatedAt": document["evaluatedAt"],
        }

    def get_evaluation(self, evaluation_id: str) -> Evaluation:
        evaluation = self.evaluations.get(evaluation_id)
        if evaluation is None:
            raise NotFoundError(f"Evaluation not found: {evaluation_id}")
        return evaluation

    def list_evaluations(self, query: EvaluationListQuery) -> list[Evaluation]:
        evaluations = self.evaluations.list_all()
        if query.persona_id:
            evaluations = [e for e in evaluations if e.persona_id == query.persona_id]
        if query.scenario_id:
            evaluations = [e for e in evaluations if e.scenario_id == query.scenario_id]
        if query.status:
            evaluations = [e for e in evaluations if e.status == query.status]
        return sorted(evaluations, key=lambda e: e.created_at, reverse=True)

    # -- analytics --------------------------------------------------------

    def _scored(self) -> list[Evaluation]:
        return [evaluation for evaluation in self.evaluations.list_all() if evaluation.status == "scored"]

    def persona_analytics(self, persona_id: str) -> dict[str, Any]:
        persona = self.personas.get(persona_id)
        if persona is None:
            raise NotFoundError(f"Persona not found: {persona_id}")
        evaluations = [e for e in self._scored() if e.persona_id == persona_id]
        averages = average_scores(evaluations)

        by_scenario: dict[str, list[Evaluation]] = defaultdict(list)
        for evaluation in evaluations:
            by_scenario[evaluation.scenario_id].append(evaluation)

        scenario_evaluations = []
        for scenario_id, group in by_scenario.items():
            scenario_averages = average_scores(group)
            scenario_evaluations.append({
                "scenarioId": scenario_id,
                "scenarioTitle": group[0].scenario_title,
                "evaluationCount": len(group),
                "averageScores": scenario_averages,
                "needsAttention": scenario_averages["overall"] < LOW_SCORE_THRESHOLD,
                "evaluations": [
                    {
                        "evaluationId": e.id,
                        "scores": e.to_document()["scores"],
                        "comments": e.comments,
                        "evaluatedAt": e.to_document()["evaluatedAt"],
                    }
                    for e in group
                ],
            })

        commented = sorted((e for e in evaluations if e.comments), key=lambda e: e.evaluated_at, reverse=True)
        return {
            "personaId": persona.id,
            "personaRole": persona.role,
            "version": persona.version,
            "totalEvaluations": len(evaluations),
            "averageScores": averages,
            "needsCalibration": averages["overall"] < LOW_SCORE_THRESHOLD,
            "calibrationThreshold": LOW_SCORE_THRESHOLD,
            "scenarioEvaluations": scenario_evaluations,
            "allComments": [
                {
                    "scenarioId": e.scenario_id,
                    "scenarioTitle": e.scenario_title,
                    "comment": e.comments,
                    "evaluatedAt": e.to_document()["evaluatedAt"],
                }
                for e in commented
            ],
        }

    @staticmethod
    def _group_by_scenario(evaluations: list[Evaluation]) -> dict[str, list[Evaluation]]:
        groups: dict[str, list[Evaluation]] = defaultdict(list)
        for evaluation in evaluations:
            groups[evaluation.scenario_id].append(evaluation)
        return groups

    def scenario_analytics(self) -> dict[str, Any]:
        evaluations = self._scored()
        scenarios = []
        for scenario_id, group in self._group_by_scenario(evaluations).items():
            averages = average_scores(group)
            persona_count = len({e.persona_id for e in group})
            scenarios.append({
                "scenarioId": scenario_id,
                "scenarioTitle": group[0].scenario_title,
                "evaluationCount": len(group),
                "personasEvaluated": persona_count,
                "averageScores": averages,
                "isProblematic": averages["overall"] < LOW_SCORE_THRESHOLD and persona_count >= 2,
                "comments": [
                    {"personaId": e.persona_id, "personaRole": e.persona_role, "comment": e.comments}
                    for e in group
                    if e.comments
                ],
            })
        scenarios.sort(key=lambda item: (not item["isProblematic"], item["averageScores"]["overall"]))
        return {
            "totalScenarios": len(scenarios),
            "totalEvaluations": len(evaluations),
            "problematicScenarios": sum(1 for item in scenarios if item["isProblematic"]),
            "threshold": LOW_SCORE_THRESHOLD,
            "scenarios": scenarios,
        }

    def summary(self) -> dict[str, Any]:
        evaluations = self._scored()

        by_persona: dict[str, list[Evaluation]] = defaultdict(list)
        for evaluation in evaluations:
            by_persona[evaluation.persona_id].append(evaluation)

        persona_stats = []
        for persona_id, group in by_persona.items():
            averages = average_scores(group)
            persona_stats.append({
                "personaId": persona_id,
                "personaRole": group[0].persona_role,
                "version": group[0].persona_version,
                "evaluationCount": len(group),
                "averageScores": averages,
                "needsCalibration": averages["overall"] < LOW_SCORE_THRESHOLD,
            })
        flagged = [stats for stats in persona_stats if stats["needsCalibration"]]

        scenario_groups = self._group_by_scenario(evaluations)
        problematic = []
        for scenario_id, group in scenario_groups.items():
            overall = average_scores(group)["overall"]
            persona_count = len({e.persona_id for e in group})
            if overall < LOW_SCORE_THRESHOLD and persona_count >= 2:
                problematic.append({
                    "scenarioId": scenario_id,
                    "scenarioTitle": group[0].scenario_title,
                    "averageScore": overall,
                    "personasEvaluated": persona_count,
                })

        overall_averages = average_scores(evaluations)
        return {
            "summary": {
                "totalEvaluations": len(evaluations),
                "totalPersonasEvaluated": len(by_persona),
                "totalScenariosUsed": len(scenario_groups),
                "overallAverageScore": overall_averages["overall"],
                "threshold": LOW_SCORE_THRESHOLD,
            },
            "overallAverages": overall_averages,
            "flaggedPersonas": {
                "count": len(flagged),
                "personas": [
                    {
                        "personaId": stats["personaId"],
                        "role": stats["personaRole"],
                        "version": stats["version"],
                        "averageScore": stats["averageScores"]["overall"],
                    }
                    for stats in flagged
                ],
            },
            "problematicScenarios": {"count": len(problematic), "scenarios": problematic},
            "personaStats": persona_stats,
        }
