"""
Keyword coverage analysis and knowledge point extraction.
"""

from app.models.interview import Message
from app.repositories.knowledge_repository import KnowledgePointRepository
from app.services.coverage import KeywordCoverageStrategy, coverage_report
from app.services.knowledge_points import KeywordInsightClassifier, KnowledgePointExtractor, similarity


def _messages(*texts):
    return [Message(role="user", content=text) for text in texts]


class TestCoverage:
    """Knowledge-area detection."""

    def test_two_distinct_keywords_needed(self):
        strategy = KeywordCoverageStrategy()
        assert strategy.analyse(_messages("There is a deadline"))["dates"] is False
        assert strategy.analyse(_messages("There is a deadline", "and a timeline"))["dates"] is True

    def test_adding_messages_never_uncovers(self):
        strategy = KeywordCoverageStrategy()
        texts = ["The purpose and goal", "Then the steps of the process", "Anything else at all?"]
        previous = {}
        for end in range(1, len(texts) + 1):
            coverage = strategy.analyse(_messages(*texts[:end]))
            assert all(coverage[key] for key, covered in previous.items() if covered)
            previous = coverage

    def test_pluggable_indicators(self):
        strategy = KeywordCoverageStrategy(indicators={"systems": ("ledger",)}, min_hits=1)
        coverage = strategy.analyse(_messages("The general ledger"))
        assert coverage["systems"] is True
        assert coverage["overview"] is False

    def test_report_summary(self):
        report = coverage_report({"overview": True, "tasks": True})
        assert report["summary"] == {"covered": 2, "total": 8, "percentComplete": 25}


class TestInsightClassifier:
    """Area categorisation and duplicate checks."""

    def test_priority_order(self):
        classifier = KeywordInsightClassifier()
        # mentions both a system and a risk; pitfalls wins
        assert classifier.categorise("The system is a real risk at year end") == "pitfalls"
        assert classifier.categorise("Speak to the treasury team early") == "contacts"
        assert classifier.categorise("Nothing matches here") == "tips"

    def test_duplicates(self):
        classifier = KeywordInsightClassifier()
        assert classifier.is_duplicate("Reconcile the bank daily", ["reconcile the bank daily."])
        assert not classifier.is_duplicate("Chase overdue invoices weekly", ["Reconcile the bank daily"])

    def test_similarity(self):
        assert similarity("abc", "abc") == 1.0
        assert similarity("abcdefghij", "abcdefgh") == 0.8
        assert similarity("abcdefghij", "ab") == 0.0


class TestKnowledgePointExtractor:
    """Snapshot insights become draft knowledge points."""

    def test_extract_and_skip_duplicates(self, store):
        extractor = KnowledgePointExtractor(KnowledgePointRepository(store))
        extraction = {
            "keyInsights": ["Avoid journals after cut-off", "short", "Avoid journals after cut-off!"],
            "frameworksMentioned": ["RAG rating", "BAU"],
        }
        created = extractor.extract("i1", extraction, topic_id="budget-monitoring")
        assert [(p.area, p.content) for p in created] == [
            ("pitfalls", "Avoid journals after cut-off"),
            ("tasks", "Framework: RAG rating"),
        ]
        assert all(p.topic_id == "budget-monitoring" and p.source == "snapshot" for p in created)

        # a second pass finds everything already captured
        assert extractor.extract("i1", extraction) == []
