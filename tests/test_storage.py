"""Tests for the SQLite document store."""

from __future__ import annotations

from pathlib import Path

import pytest

from postforge.errors import NotFoundError
from postforge.scoring.models import FlaggedSection, OriginalityReport
from postforge.storage.database import _engines
from postforge.storage.models import FAQ, ContentDocument, DocumentStatus, UserPreferences
from postforge.storage.repository import DocumentStore


class TestDocuments:
    def test_save_assigns_id_and_round_trips(self, store: DocumentStore) -> None:
        document = store.save(
            ContentDocument(owner_id="owner-1", slug="hello", title="Hello", body="# Hi")
        )
        assert document.id.startswith("doc_")

        loaded = store.get(document.id)
        assert loaded.title == "Hello"
        assert loaded.body == "# Hi"
        assert loaded.status == DocumentStatus.DRAFT.value
        assert loaded.get_scores() is None
        assert loaded.get_originality() is None
        assert loaded.get_faqs() == []

    def test_get_missing_raises(self, store: DocumentStore) -> None:
        assert store.find("doc_nope") is None
        with pytest.raises(NotFoundError) as exc_info:
            store.get("doc_nope")
        assert exc_info.value.document_id == "doc_nope"

    def test_get_with_wrong_owner_raises(self, store: DocumentStore, make_document) -> None:
        document = make_document()
        assert store.get(document.id, owner_id="owner-1").id == document.id
        with pytest.raises(NotFoundError):
            store.get(document.id, owner_id="owner-2")

    def test_update_in_place(self, store: DocumentStore, make_document) -> None:
        document = make_document()
        document.body = "Rewritten."
        store.save(document)
        assert store.get(document.id).body == "Rewritten."
        assert len(store.list()) == 1

    def test_get_by_slug(self, store: DocumentStore, make_document) -> None:
        document = make_document("find-me")
        assert store.get_by_slug("find-me").id == document.id
        assert store.get_by_slug("not-there") is None

    def test_list_filters(self, store: DocumentStore, make_document) -> None:
        make_document("a")
        make_document("b", status=DocumentStatus.PUBLISHED, live_url="/blog/b")
        make_document("c", owner_id="owner-2")

        assert [d.slug for d in store.list()] == ["a", "b", "c"]
        assert [d.slug for d in store.list(owner_id="owner-1")] == ["a", "b"]
        assert [d.slug for d in store.list(status=DocumentStatus.PUBLISHED)] == ["b"]
        assert [d.slug for d in store.list(owner_id="owner-2", status="draft")] == ["c"]

    def test_delete(self, store: DocumentStore, make_document) -> None:
        document = make_document()
        store.delete(document.id)
        assert store.find(document.id) is None
        with pytest.raises(NotFoundError):
            store.delete(document.id)


class TestJsonColumns:
    def test_originality_and_faqs(self, store: DocumentStore, make_document) -> None:
        document = make_document()
        report = OriginalityReport(
            overall_similarity=12,
            is_safe=True,
            flagged_sections=[
                FlaggedSection(text_segment="Copied", source_url="https://x.test", similarity_score=70)
            ],
        )
        document.set_originality(report)
        document.set_faqs([FAQ(question="Q?", answer="A.")])
        store.save(document)

        loaded = store.get(document.id)
        assert loaded.get_originality() == report
        assert loaded.get_faqs()[0].answer == "A."

    def test_baseline_records_graded_text(self, make_document, baseline) -> None:
        document = make_document(body="Graded text.", scores=baseline)
        assert document.get_scores() == baseline
        assert document.baseline_markdown == "Graded text."
        assert '"contentStructure"' in document.scores_json

    def test_unparseable_schema_reads_as_empty(self) -> None:
        document = ContentDocument(
            owner_id="o", slug="s", title="T", structured_data_json="{broken"
        )
        assert document.get_schema() == {}


class TestPreferences:
    def test_defaults_when_missing(self, store: DocumentStore) -> None:
        prefs = store.get_preferences("nobody")
        assert prefs.owner_id == "nobody"
        assert prefs.cta_headline == ""

    def test_save_and_overwrite(self, store: DocumentStore) -> None:
        store.save_preferences(UserPreferences(owner_id="owner-1", cta_headline="First"))
        prefs = store.get_preferences("owner-1")
        prefs.cta_headline = "Second"
        store.save_preferences(prefs)
        assert store.get_preferences("owner-1").cta_headline == "Second"


def test_fresh_database_is_created_on_first_use(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "fresh.db"
    _engines.clear()
    try:
        store = DocumentStore(db_path)
        assert store.list() == []
    finally:
        _engines.clear()
    assert db_path.exists()


def test_structured_data_column_does_not_shadow_pydantic() -> None:
    assert "structured_data_json" in ContentDocument.model_fields
    assert "schema_json" not in ContentDocument.model_fields
