from dataclasses import dataclass


@dataclass(frozen=True)
class KnowledgeAreaInfo:
    key: str
    name: str
    prompt: str


KNOWLEDGE_AREAS: tuple[KnowledgeAreaInfo, ...] = (
    KnowledgeAreaInfo("overview", "Overview", "What is this and why does it matter?"),
    KnowledgeAreaInfo("tasks", "Key Tasks", "What are the step-by-step actions?"),
    KnowledgeAreaInfo("dates", "Key Dates", "What are the deadlines and triggers?"),
    KnowledgeAreaInfo("contacts", "Contacts", "Who do you need to work with?"),
    KnowledgeAreaInfo("systems", "Systems & Tools", "What software/templates are used?"),
    KnowledgeAreaInfo("pitfalls", "Watch Out For", "What are common mistakes or pitfalls?"),
    KnowledgeAreaInfo("tips", "Pro Tips", "What insider knowledge would help a successor?"),
    KnowledgeAreaInfo("related", "Related Topics", "What other areas does this connect to?"),
)

AREA_KEYS: tuple[str, ...] = tuple(area.key for area in KNOWLEDGE_AREAS)
AREA_NAMES: dict[str, str] = {area.key: area.name for area in KNOWLEDGE_AREAS}
