import logging

from pydantic import ValidationError as SchemaError

from app.core.errors import NotFoundError, ValidationError
from app.models.base import utcnow
from app.models.topic import KnowledgeEntry, KnowledgeEntrySections, Topic
from app.prompts import knowledge_builder
from app.prompts.parsing import format_transcript
from app.repositories.base import new_id
from app.repositories.interview_repository import InterviewRepository
from app.repositories.topic_repository import KnowledgeEntryRepository, TopicRepository
from app.schemas.topic import (
    KnowledgeEntryListQuery,
    KnowledgeEntryUpdateRequest,
    TopicCreateRequest,
    TopicListQuery,
    TopicUpdateRequest,
)
from app.services.llm_service import LLMClient

logger = logging.getLogger(__name__)


class TopicService:
    """Free-form job topics and the knowledge entries synthesised from their interviews."""

    def __init__(self, store, llm: LLMClient):
        self.topics = TopicRepository(store)
        self.entries = KnowledgeEntryRepository(store)
        self.interviews = InterviewRepository(store)
        self.llm = llm

    def get(self, topic_id: str) -> Topic:
        topic = self.topics.get(topic_id)
        if topic is None:
            raise NotFoundError(f"Topic not found: {topic_id}")
        return topic

    def list_topics(self, query: TopicListQuery) -> list[Topic]:
        topics = self.topics.list_ordered()
        if query.status:
            topics = [topic for topic in topics if topic.status == query.status]
        if query.frequency:
            topics = [topic for topic in topics if topic.frequency == query.frequency]
        return topics

    def create(self, request: TopicCreateRequest) -> Topic:
        name = request.name.strip()
        if not name:
            raise ValidationError("Invalid request. Name is required and must be a non-empty string.")
        topic = Topic(
            id=new_id(length=13),
            name=name,
            description=request.description or "",
            frequency=request.frequency or "ad-hoc",
            category=request.category or "",
            order=request.order if request.order is not None else self.topics.count(),
        )
        self.topics.save(topic)
        logger.info("Topic %s created: %s", topic.id, topic.name)
        return topic

    def update(self, topic_id: str, request: TopicUpdateRequest) -> Topic:
        topic = self.get(topic_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise ValidationError("Invalid request. Name is required and must be a non-empty string.")
        for field, value in changes.items():
            setattr(topic, field, value)
        topic.updated_at = utcnow()
        self.topics.save(topic)
        return topic

    def delete(self, topic_id: str) -> None:
        self.get(topic_id)
        self.topics.delete(topic_id)
        logger.info("Topic %s deleted", topic_id)

    def reorder(self, topic_ids: list[str]) -> list[Topic]:
        updated = []
        for index, topic_id in enumerate(topic_ids):
            topic = self.topics.get(topic_id)
            if topic is None:
                continue
            topic.order = index
            topic.updated_at = utcnow()
            self.topics.save(topic)
            updated.append(topic)
        return updated

    # -- knowledge entries ------------------------------------------------

    def synthesize(self, topic_id: str) -> KnowledgeEntry:
        topic = self.get(topic_id)
        interview = self.interviews.find_by_topic(topic_id)
        if interview is None:
            raise ValidationError(f"No interview found for topic: {topic_id}")
        if not interview.messages:
            raise ValidationError("Interview has no messages to synthesize")

        all_topics = self.topics.list_ordered()
        reply = self.llm.chat(
            knowledge_builder.system_prompt(topic, all_topics),
            [{"role": "user", "content": format_transcript(interview.messages)}],
        )
        parsed = knowledge_builder.parse_entry(reply)

        entry = KnowledgeEntry.model_validate({
            "id": new_id(length=13),
            "topicId": topic.id,
            "topicName": topic.name,
            "interviewId": interview.id,
            "sections": parsed["sections"],
            "crossReferences": knowledge_builder.resolve_cross_references(parsed["crossReferences"], all_topics),
            "qualityNotes": parsed["qualityNotes"],
        })
        self.entries.save(entry)

        topic.status = "complete"
        topic.knowledge_entry_id = entry.id
        topic.updated_at = utcnow()
        self.topics.save(topic)
        logger.info("Knowledge entry %s synthesised for topic %s from interview %s", entry.id, topic.id, interview.id)
        return entry

    def get_entry(self, entry_id: str) -> KnowledgeEntry:
        entry = self.entries.get(entry_id)
        if entry is None:
            raise NotFoundError(f"Knowledge entry not found: {entry_id}")
        return entry

    def list_entries(self, query: KnowledgeEntryListQuery) -> list[KnowledgeEntry]:
        entries = self.entries.list_all()
        if query.status:
            entries = [entry for entry in entries if entry.status == query.status]
        if query.topic_id:
            entries = [entry for entry in entries if entry.topic_id == query.topic_id]
        return sorted(entries, key=lambda entry: entry.created_at, reverse=True)

    def update_entry(self, entry_id: str, request: KnowledgeEntryUpdateRequest) -> KnowledgeEntry:
        entry = self.get_entry(entry_id)
        if request.sections is not None:
            merged = {**entry.sections.to_document(), **request.sections}
            try:
                entry.sections = KnowledgeEntrySections.model_validate(merged)
            except SchemaError as exc:
                raise ValidationError("Invalid sections", details=[error["msg"] for error in exc.errors()]) from exc
        if request.status is not None:
            entry.status = request.status
        if request.cross_references is not None:
            entry.cross_references = request.cross_references
        if request.quality_notes is not None:
            entry.quality_notes = request.quality_notes
        entry.updated_at = utcnow()
        self.entries.save(entry)
        return entry

    def delete_entry(self, entry_id: str) -> None:
        entry = self.get_entry(entry_id)
        topic = self.topics.get(entry.topic_id)
        if topic is not None and topic.knowledge_entry_id == entry_id:
            topic.knowledge_entry_id = None
            topic.updated_at = utcnow()
            self.topics.save(topic)
        self.entries.delete(entry_id)
        logger.info("Knowledge entry %s deleted", entry_id)
