from app.models.evaluation import Evaluation, Scenario
from app.repositories.base import DocumentRepository, ScopedRepository


class ScenarioRepository(ScopedRepository[Scenario]):
    model = Scenario
    prefix = "scenarios"

    def find(self, scenario_id: str, role_slugs: list[str]) -> Scenario | None:
        for slug in role_slugs:
            scenario = self.get(slug, scenario_id)
            if scenario is not None:
                return scenario
        return None


class EvaluationRepository(DocumentRepository[Evaluation]):
    model = Evaluation
    namespace = "evaluations"
