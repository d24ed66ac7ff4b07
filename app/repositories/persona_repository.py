import logging
from threading import Lock

from app.models.persona import AdvisorLog, Persona
from app.repositories.base import DocumentRepository

logger = logging.getLogger(__name__)

COUNTER_KEY = "counters/persona-versions"
UNASSIGNED_ROLE = "unassigned"


class PersonaRepository(DocumentRepository[Persona]):
    model = Persona
    namespace = "personas"

    _version_lock = Lock()

    def list_for_role(self, role: str | None) -> list[Persona]:
        return [persona for persona in self.list_all() if persona.role == role]

    def next_version(self, role: str | None) -> int:
        """Reserve the next version number for ``role``.

        The counter document survives persona deletion, so a number is never handed out twice.
        """
        key = role or UNASSIGNED_ROLE
        with self._version_lock:
            counters = self.store.get(COUNTER_KEY) or {}
            existing = max((persona.version for persona in self.list_for_role(role)), default=0)
            version = max(int(counters.get(key, 0)), existing) + 1
            counters[key] = version
            self.store.put(COUNTER_KEY, counters)
        logger.debug("Reserved persona version %s for role %s", version, key)
        return version


class AdvisorLogRepository(DocumentRepository[AdvisorLog]):
    model = AdvisorLog
    namespace = "advisor-logs"

    def entity_id(self, entity: AdvisorLog) -> str:
        return entity.log_id
