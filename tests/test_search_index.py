import pytest

from campus_assistant.engines.search_index import InvertedIndex, make_part_id, tokenize
from campus_assistant.errors import InvalidRequest
from campus_assistant.models import FAQ, DocumentMetadata, Entity, KnowledgeDocument, Section


def make_document(identity, sections=(), faqs=(), entities=()):
    return KnowledgeDocument(
        identity=identity,
        sections=tuple(sections),
        faqs=tuple(faqs),
        entities=tuple(entities),
        topics=(),
        metadata=DocumentMetadata(
            source_description="test",
            ingested_at="2024-01-01T00:00:00+00:00",
            detected_language="en",
            content_length=0,
        ),
    )


@pytest.fixture
def index():
    return InvertedIndex(body_weight=1.0, title_weight=3.0)


def test_tokenize_drops_short_tokens():
    assert tokenize("Is the Hostel OPEN on Sunday") == ["the", "hostel", "open", "sunday"]
    assert tokenize("") == []


def test_title_hits_outrank_body_hits(index):
    index.index_document(make_document("doc1", sections=[
        Section(title="Scholarship Rules", body="Scholarship applications close soon", source_offset=0),
        Section(title="General", body="scholarship mentioned once", source_offset=40),
    ]))

    hits = index.search("scholarship")

    assert [h.part_id for h in hits] == ["doc1_section_0", "doc1_section_1"]
    assert hits[0].score == 4.0
    assert hits[1].score == 1.0
    assert all(h.document_id == "doc1" for h in hits)


def test_faq_question_is_title_weighted(index):
    index.index_document(make_document("doc1", faqs=[
        FAQ(question="When is the exam?", answer="In March.", language="en"),
    ]))

    hits = index.search("when")
    assert hits[0].part_id == make_part_id("doc1", "faq", 0)
    assert hits[0].score == 4.0


def test_entities_are_body_only(index):
    index.index_document(make_document("doc1", entities=[
        Entity(kind="fee", value="500", context_snippet="library fine Rs 500"),
    ]))

    hits = index.search("library")
    assert hits[0].part_id == "doc1_entity_0"
    assert hits[0].score == 1.0


def test_ties_break_by_part_id(index):
    index.index_document(make_document("b", sections=[Section(title="", body="hostel", source_offset=0)]))
    index.index_document(make_document("a", sections=[Section(title="", body="hostel", source_offset=0)]))

    hits = index.search("hostel")
    assert [h.part_id for h in hits] == ["a_section_0", "b_section_0"]


def test_limit_truncates_results(index):
    index.index_document(make_document("doc1", sections=[
        Section(title="", body="exam schedule", source_offset=i) for i in range(5)
    ]))

    assert len(index.search("exam", limit=2)) == 2


def test_no_match_returns_empty_list(index):
    index.index_document(make_document("doc1", sections=[Section(title="", body="hostel", source_offset=0)]))
    assert index.search("library") == []


def test_invalid_queries(index):
    with pytest.raises(InvalidRequest):
        index.search("   ")
    with pytest.raises(InvalidRequest):
        index.search("hostel", limit=0)


def test_reindexing_removes_stale_postings(index):
    index.index_document(make_document("doc1", sections=[Section(title="", body="hostel rules", source_offset=0)]))
    index.index_document(make_document("doc1", sections=[Section(title="", body="library rules", source_offset=0)]))

    assert index.search("hostel") == []
    assert [h.part_id for h in index.search("library")] == ["doc1_section_0"]
    assert index.stats()["part_count"] == 1


def test_remove_document(index):
    index.index_document(make_document("doc1", sections=[Section(title="", body="hostel", source_offset=0)]))
    assert index.remove_document("doc1") == 1
    assert index.search("hostel") == []
    assert index.stats() == {"document_count": 0, "part_count": 0, "body_tokens": 0, "title_tokens": 0}


def test_export_and_load(index):
    index.index_document(make_document("doc1", sections=[Section(title="Fees", body="fees due", source_offset=0)]))
    snapshot = index.export()

    restored = InvertedIndex(body_weight=1.0, title_weight=3.0)
    restored.load(snapshot)

    assert restored.search("fees") == index.search("fees")
    assert restored.stats() == index.stats()
