from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response

from app.api.deps import get_topic_service
from app.models.topic import TopicFrequency, TopicState
from app.schemas.topic import (
    KnowledgeEntryListQuery,
    KnowledgeEntryUpdateRequest,
    TopicCreateRequest,
    TopicListQuery,
    TopicReorderRequest,
    TopicUpdateRequest,
)
from app.services.topic_service import TopicService

router = APIRouter(tags=["topics"])


@router.get("/topics")
def list_topics(
    status: Optional[TopicState] = None,
    frequency: Optional[TopicFrequency] = None,
    service: TopicService = Depends(get_topic_service),
):
    return [topic.to_document() for topic in service.list_topics(TopicListQuery(status=status, frequency=frequency))]


@router.post("/topics", status_code=201)
def create_topic(body: TopicCreateRequest, service: TopicService = Depends(get_topic_service)):
    return service.create(body).to_document()


# declared before /topics/{topic_id} so "reorder" is not read as an id
@router.put("/topics/reorder")
def reorder_topics(body: TopicReorderRequest, service: TopicService = Depends(get_topic_service)):
    return [topic.to_document() for topic in service.reorder(body.topic_ids)]


@router.get("/topics/{topic_id}")
def get_topic(topic_id: str, service: TopicService = Depends(get_topic_service)):
    return service.get(topic_id).to_document()


@router.put("/topics/{topic_id}")
def update_topic(topic_id: str, body: TopicUpdateRequest, service: TopicService = Depends(get_topic_service)):
    return service.update(topic_id, body).to_document()


@router.delete("/topics/{topic_id}", status_code=204)
def delete_topic(topic_id: str, service: TopicService = Depends(get_topic_service)):
    service.delete(topic_id)
    return Response(status_code=204)


@router.post("/topics/{topic_id}/synthesize", status_code=201)
def synthesize_topic(topic_id: str, service: TopicService = Depends(get_topic_service)):
    return service.synthesize(topic_id).to_document()


@router.get("/knowledge-entries")
def list_knowledge_entries(
    status: Optional[Literal["draft", "reviewed", "published"]] = None,
    topic_id: Optional[str] = Query(default=None, alias="topicId"),
    service: TopicService = Depends(get_topic_service),
):
    query = KnowledgeEntryListQuery(status=status, topic_id=topic_id)
    return [entry.to_document() for entry in service.list_entries(query)]


@router.get("/knowledge-entries/{entry_id}")
def get_knowledge_entry(entry_id: str, service: TopicService = Depends(get_topic_service)):
    return service.get_entry(entry_id).to_document()


@router.put("/knowledge-entries/{entry_id}")
def update_knowledge_entry(
    entry_id: str,
    body: KnowledgeEntryUpdateRequest,
    service: TopicService = Depends(get_topic_service),
):
    return service.update_entry(entry_id, body).to_document()


@router.delete("/knowledge-entries/{entry_id}", status_code=204)
def delete_knowledge_entry(entry_id: str, service: TopicService = Depends(get_topic_service)):
    service.delete_entry(entry_id)
    return Response(status_code=204)
