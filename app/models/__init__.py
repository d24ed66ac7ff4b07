from app.models.document import Document
from app.models.evaluation import Evaluation, Scenario, Scores
from app.models.expert import Expert
from app.models.interview import Interview, Message, Question, TopicProgress
from app.models.knowledge import KnowledgePoint, Workflow
from app.models.persona import AdvisorLog, ExpertiseItem, FeedbackEntry, Persona
from app.models.snapshot import Snapshot
from app.models.topic import CrossReference, KnowledgeEntry, KnowledgeEntrySections, Topic

__all__ = [
    "AdvisorLog",
    "CrossReference",
    "Document",
    "Evaluation",
    "Expert",
    "ExpertiseItem",
    "FeedbackEntry",
    "Interview",
    "KnowledgeEntry",
    "KnowledgeEntrySections",
    "KnowledgePoint",
    "Message",
    "Persona",
    "Question",
    "Scenario",
    "Scores",
    "Snapshot",
    "Topic",
    "TopicProgress",
    "Workflow",
]
