import json
import logging
import math
from datetime import datetime, timezone
from threading import Lock
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from app.core.errors import AppError, ConflictError, NotFoundError, ValidationError
from app.models.base import utcnow
from app.models.persona import AdvisorLog, ExpertiseItem, FeedbackEntry, Persona
from app.prompts import persona_builder
from app.repositories.base import new_id
from app.repositories.expert_repository import ExpertRepository
from app.repositories.interview_repository import InterviewRepository
from app.repositories.persona_repository import AdvisorLogRepository, PersonaRepository
from app.repositories.snapshot_repository import SnapshotRepository
from app.schemas.persona import PersonaListQuery, PersonaUpdateRequest
from app.services.llm_service import LLMClient

logger = logging.getLogger(__name__)

SORT_FIELDS = ("createdAt", "updatedAt", "status", "role", "name", "version", "validatedAt")
DEFAULT_ORGANIZATION = "Organization"
DEFAULT_INDUSTRY = "Finance & Banking"
_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def normalise_expertise(items: list[Any]) -> list[ExpertiseItem]:
    normalised = []
    for item in items:
        if isinstance(item, str):
            normalised.append(ExpertiseItem(domain=item, level=3))
            continue
        try:
            level = int(item.get("level") or 3)
        except (TypeError, ValueError):
            level = 3
        normalised.append(ExpertiseItem(domain=str(item.get("domain") or ""), level=min(5, max(1, level))))
    return normalised


class PersonaService:
    # serialises validate + deprecate so a role never ends up with two Validated personas
    _validation_lock = Lock()

    def __init__(self, store, llm: LLMClient):
        self.personas = PersonaRepository(store)
        self.interviews = InterviewRepository(store)
        self.snapshots = SnapshotRepository(store)
        self.experts = ExpertRepository(store)
        self.advisor_logs = AdvisorLogRepository(store)
        self.llm = llm

    def get(self, persona_id: str) -> Persona:
        persona = self.personas.get(persona_id)
        if persona is None:
            raise NotFoundError(f"Persona not found: {persona_id}")
        return persona

    def build(self, interview_id: str) -> Persona:
        interview = self.interviews.get(interview_id)
        if interview is None:
            raise NotFoundError(f"Interview not found: {interview_id}")

        snapshots = [snapshot.to_document() for snapshot in self.snapshots.list_for(interview_id)]
        prompt_text = self.llm.chat(
            persona_builder.SYSTEM_PROMPT,
            [{"role": "user", "content": json.dumps(snapshots, indent=2, ensure_ascii=False)}],
        )
        persona = Persona(
            id=new_id(length=13),
            role=interview.role,
            version=self.personas.next_version(interview.role),
            interview_id=interview_id,
            prompt_text=prompt_text,
        )
        self.personas.save(persona)
        logger.info("Persona %s built for role %s (v%d) from %d snapshots", persona.id, persona.role, persona.version, len(snapshots))
        return persona

    # -- listing ----------------------------------------------------------

    @staticmethod
    def list_item(persona: Persona) -> dict[str, Any]:
        document = persona.to_document()
        bio = persona.bio or (persona.prompt_text[:150] + "...")
        return {
            "id": persona.id,
            "name": persona.name or persona.role,
            "role": persona.role,
            "version": persona.version,
            "organization": persona.organization or DEFAULT_ORGANIZATION,
            "bio": bio,
            "photoUrl": persona.photo_url,
            "status": persona.status,
            "validatedBy": persona.validated_by,
            "validatedAt": document["validatedAt"],
            "traits": persona.traits,
            "expertise": document["expertise"],
            "industry": persona.industry or DEFAULT_INDUSTRY,
            "yearsOfExperience": persona.years_of_experience,
            "isFavorite": persona.is_favorite,
            "viewedAt": document["viewedAt"],
            "createdAt": document["createdAt"],
            "updatedAt": document["updatedAt"],
            "interviewId": persona.interview_id,
        }

    @staticmethod
    def _sort_key(persona: Persona, field: str):
        if field in ("createdAt", "updatedAt", "validatedAt"):
            value = {"createdAt": persona.created_at, "updatedAt": persona.updated_at, "validatedAt": persona.validated_at}[field]
            return value or _EPOCH
        if field == "version":
            return persona.version
        if field == "name":
            return (persona.name or persona.role or "").lower()
        if field == "role":
            return (persona.role or "").lower()
        return persona.status.lower()

    def list_personas(self, query: PersonaListQuery) -> list[dict] | dict:
        personas = self.personas.list_all()
        if query.status:
            personas = [p for p in personas if p.status == query.status]
        if query.role:
            personas = [p for p in personas if p.role == query.role]
        if query.industry:
            wanted = query.industry.lower()
            personas = [p for p in personas if wanted in (p.industry or DEFAULT_INDUSTRY).lower()]
        if query.is_favorite:
            personas = [p for p in personas if p.is_favorite]
        if query.latest_validated:
            latest: dict[str | None, Persona] = {}
            for persona in personas:
                if persona.status != "Validated":
                    continue
                current = latest.get(persona.role)
                if current is None or persona.version > current.version:
                    latest[persona.role] = persona
            personas = list(latest.values())

        if query.sort_by in SORT_FIELDS:
            personas.sort(key=lambda p: self._sort_key(p, query.sort_by), reverse=query.sort_order != "asc")
        else:
            personas.sort(key=lambda p: -p.version)
            personas.sort(key=lambda p: p.role or "")

        items = [self.list_item(persona) for persona in personas]
        if query.page is None and query.limit is None:
            return items
        page = query.page or 1
        limit = query.limit or 20
        start = (page - 1) * limit
        return {
            "personas": items[start : start + limit],
            "pagination": {
                "currentPage": page,
                "totalPages": math.ceil(len(items) / limit),
                "totalPersonas": len(items),
                "limit": limit,
            },
        }

    # -- validation -------------------------------------------------------

    def _deprecate_others(self, persona: Persona) -> int:
        deprecated = 0
        for other in self.personas.list_for_role(persona.role):
            if other.id == persona.id or other.status != "Validated":
                continue
            other.status = "Deprecated"
            other.updated_at = utcnow()
            self.personas.save(other)
            deprecated += 1
        if deprecated:
            logger.info("Deprecated %d persona(s) for role %s after validating %s", deprecated, persona.role, persona.id)
        return deprecated

    def _mark_validated(self, persona: Persona, validated_by: str, feedback: str | None) -> None:
        now = utcnow()
        if feedback:
            persona.feedback_history.append(FeedbackEntry(feedback=feedback, submitted_by=validated_by, submitted_at=now))
        persona.status = "Validated"
        persona.validated_by = validated_by
        persona.validated_at = now
        persona.updated_at = now
        self.personas.save(persona)
        if persona.role:
            self._deprecate_others(persona)

    def validate(self, persona_id: str, validated_by: str, feedback: str | None = None) -> dict[str, Any]:
        if not isinstance(validated_by, str) or not validated_by:
            raise ValidationError("Invalid request. validatedBy is required and must be a string (email or identifier).")
        with self._validation_lock:
            persona = self.get(persona_id)
            if persona.status != "Draft":
                raise ConflictError(
                    f'Cannot validate persona. Current status is "{persona.status}". Only Draft personas can be validated.'
                )
            self._mark_validated(persona, validated_by, feedback)

        result: dict[str, Any] = {
            "status": persona.status,
            "validatedAt": persona.to_document()["validatedAt"],
            "validatedBy": persona.validated_by,
        }
        expert_name = self._original_expert(persona)
        if expert_name:
            result["originalExpert"] = expert_name
        if feedback:
            result["feedbackRecorded"] = True
        logger.info("Persona %s validated by %s", persona.id, validated_by)
        return result

    def _original_expert(self, persona: Persona) -> str | None:
        interview = self.interviews.get(persona.interview_id)
        if interview is None or not interview.expert_id:
            return None
        expert = self.experts.get(interview.expert_id)
        return expert.name if expert else None

    # -- edits ------------------------------------------------------------

    def update(self, persona_id: str, request: PersonaUpdateRequest) -> Persona:
        fields = request.model_fields_set
        with self._validation_lock:
            persona = self.get(persona_id)
            if "role" in fields and request.role != persona.role:
                raise ValidationError("A persona's role cannot be changed")
            target = request.status if "status" in fields else None
            validating = False
            if target is not None and target != persona.status:
                if target == "Validated" and persona.status == "Draft":
                    if not request.validated_by:
                        raise ValidationError("validatedBy is required to validate a persona")
                    validating = True
                elif target == "Deprecated" and persona.status == "Validated":
                    persona.status = "Deprecated"
                else:
                    raise ConflictError(f'Cannot change persona status from "{persona.status}" to "{target}"')

            for name in ("name", "organization", "years_of_experience", "bio", "photo_url", "industry"):
                if name in fields:
                    setattr(persona, name, getattr(request, name))
            if "traits" in fields:
                persona.traits = request.traits or []
            if "expertise" in fields:
                persona.expertise = normalise_expertise(request.expertise or [])
            if "is_favorite" in fields and request.is_favorite is not None:
                persona.is_favorite = request.is_favorite

            if validating:
                self._mark_validated(persona, request.validated_by, None)
            else:
                persona.updated_at = utcnow()
                self.personas.save(persona)
        return persona

    def delete(self, persona_id: str) -> None:
        persona = self.get(persona_id)
        self.personas.delete(persona_id)
        logger.info("Deleted persona %s (%s v%d)", persona_id, persona.role, persona.version)

    def bulk_delete(self, ids: list[str]) -> dict[str, Any]:
        if not ids:
            raise ValidationError("ids array is required in request body")
        deleted, not_found = [], []
        for persona_id in ids:
            if self.personas.delete(persona_id):
                deleted.append(persona_id)
            else:
                not_found.append(persona_id)
        logger.info("Bulk deleted %d persona(s)", len(deleted))
        return {"deleted": deleted, "notFound": not_found, "message": f"Deleted {len(deleted)} persona(s)"}

    def record_view(self, persona_id: str) -> dict[str, Any]:
        persona = self.get(persona_id)
        persona.viewed_at = utcnow()
        self.personas.save(persona)
        return {"viewedAt": persona.to_document()["viewedAt"]}

    # -- advisor ----------------------------------------------------------

    def advise(self, persona_id: str, question: str, user_id: str | None = None) -> dict[str, Any]:
        if not isinstance(question, str) or not question:
            raise ValidationError("Invalid request. Question is required and must be a string.")
        persona = self.get(persona_id)
        response = self.llm.chat(persona.prompt_text, [{"role": "user", "content": question}])

        log = AdvisorLog(
            log_id=new_id(length=13),
            persona_id=persona.id,
            persona_version=persona.version,
            user_id=user_id,
            question=question,
            response=response,
        )
        try:
            self.advisor_logs.save(log)
        except (AppError, OSError, SQLAlchemyError) as exc:
            logger.warning("Failed to log advisor interaction for persona %s: %s", persona.id, exc)

        return {"response": response, "personaId": persona.id, "role": persona.role}
