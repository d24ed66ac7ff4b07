"""Role catalog: the fixed reference data interviews are planned against.

Loaded once at startup from ``role_catalog.json`` (or ``settings.role_catalog_path``)
and handed to the services. Everything here is frozen.
"""
import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

DEFAULT_CATALOG_PATH = Path(__file__).with_name("role_catalog.json")

PHASE_ORDER = ("warm-up", "core-frameworks", "cases", "meta", "complete")


@dataclass(frozen=True)
class ChecklistTopic:
    id: str
    name: str
    description: str
    is_process_oriented: bool
    required_areas: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "isProcessOriented": self.is_process_oriented,
            "requiredAreas": list(self.required_areas),
        }


@dataclass(frozen=True)
class PhaseStructure:
    key: str
    purpose: str
    approach: str
    duration: str
    guidance: tuple[str, ...]


@dataclass(frozen=True)
class RoleProfile:
    name: str
    slug: str
    description: str
    domain: str
    key_areas: tuple[str, ...]
    example_questions: Mapping[str, tuple[str, ...]]
    expected_topics: tuple[str, ...]
    topics: tuple[ChecklistTopic, ...]

    def topic(self, topic_id: str) -> ChecklistTopic | None:
        for topic in self.topics:
            if topic.id == topic_id:
                return topic
        return None

    @property
    def process_oriented_count(self) -> int:
        return sum(1 for topic in self.topics if topic.is_process_oriented)


@dataclass(frozen=True)
class DomainKnowledge:
    terminology: Mapping[str, str]
    common_topics: Mapping[str, tuple[str, ...]]
    stakeholders: Mapping[str, tuple[str, ...]]
    systems: tuple[str, ...]


@dataclass(frozen=True)
class RoleCatalog:
    roles: tuple[RoleProfile, ...]
    phases: tuple[PhaseStructure, ...]
    domain: DomainKnowledge

    @property
    def role_names(self) -> list[str]:
        return [role.name for role in self.roles]

    @property
    def default_role(self) -> RoleProfile:
        return self.roles[0]

    def get_role(self, name: str | None) -> RoleProfile | None:
        for role in self.roles:
            if role.name == name:
                return role
        return None

    def role_by_slug(self, slug: str) -> RoleProfile | None:
        for role in self.roles:
            if role.slug == slug:
                return role
        return None

    def phase(self, key: str) -> PhaseStructure | None:
        for phase in self.phases:
            if phase.key == key:
                return phase
        return None


def _freeze_lists(data: Mapping[str, list[str]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({key: tuple(values) for key, values in data.items()})


def _parse_role(raw: dict[str, Any]) -> RoleProfile:
    topics = tuple(
        ChecklistTopic(
            id=item["id"],
            name=item["name"],
            description=item.get("description", ""),
            is_process_oriented=bool(item.get("isProcessOriented", False)),
            required_areas=tuple(item.get("requiredAreas", [])),
        )
        for item in raw.get("topics", [])
    )
    return RoleProfile(
        name=raw["name"],
        slug=raw["slug"],
        description=raw.get("description", ""),
        domain=raw.get("domain", ""),
        key_areas=tuple(raw.get("keyAreas", [])),
        example_questions=_freeze_lists(raw.get("exampleQuestions", {})),
        expected_topics=tuple(raw.get("expectedTopics", [])),
        topics=topics,
    )


def parse_catalog(data: dict[str, Any]) -> RoleCatalog:
    phases = tuple(
        PhaseStructure(
            key=item["key"],
            purpose=item["purpose"],
            approach=item["approach"],
            duration=item["duration"],
            guidance=tuple(item.get("guidance", [])),
        )
        for item in data["phases"]
    )
    unknown = [phase.key for phase in phases if phase.key not in PHASE_ORDER]
    if unknown:
        raise ValueError(f"Unknown interview phases in catalog: {', '.join(unknown)}")

    domain_raw = data.get("domainKnowledge", {})
    domain = DomainKnowledge(
        terminology=MappingProxyType(dict(domain_raw.get("terminology", {}))),
        common_topics=_freeze_lists(domain_raw.get("commonTopics", {})),
        stakeholders=_freeze_lists(domain_raw.get("stakeholders", {})),
        systems=tuple(domain_raw.get("systems", [])),
    )
    roles = tuple(_parse_role(item) for item in data["roles"])
    if not roles:
        raise ValueError("Role catalog defines no roles")
    return RoleCatalog(roles=roles, phases=phases, domain=domain)


def load_catalog(path: str | Path | None = None) -> RoleCatalog:
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    with catalog_path.open(encoding="utf-8") as handle:
        return parse_catalog(json.load(handle))
