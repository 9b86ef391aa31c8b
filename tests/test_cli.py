"""Tests for the postforge command line."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from postforge.cli import main
from postforge.config import Settings
from postforge.storage.models import DocumentStatus
from postforge.storage.repository import DocumentStore

ORG_ONLY = '{"@graph": [{"@type": "Organization"}]}'


@pytest.fixture
def run(settings: Settings, store: DocumentStore):
    """Invoke the CLI against the temporary test database."""
    runner = CliRunner()

    def _run(*args: str, cli_settings: Settings | None = None, **kwargs):
        with patch("postforge.config.get_settings", return_value=cli_settings or settings):
            return runner.invoke(main, list(args), **kwargs)

    return _run


def test_finalize_creates_draft(run, store: DocumentStore, tmp_path: Path) -> None:
    draft = tmp_path / "draft.md"
    draft.write_text("# AI in the ED\n\n## Triage\n\nFaster triage. Fewer misses.\n")

    result = run("finalize", "--file", str(draft), "--slug", "ai-in-the-ed", "--owner", "owner-1")

    assert result.exit_code == 0, result.output
    [document] = store.list()
    assert document.title == "AI in the ED"
    assert document.body.startswith("## Triage")
    assert document.status == DocumentStatus.DRAFT.value


def test_finalize_published(run, store: DocumentStore, tmp_path: Path) -> None:
    draft = tmp_path / "draft.md"
    draft.write_text("Title line\nBody.")

    result = run("finalize", "-f", str(draft), "-s", "title-line", "--status", "published")

    assert result.exit_code == 0, result.output
    assert store.get_by_slug("title-line").live_url == "/blog/title-line"


def test_list(run, make_document) -> None:
    make_document("listed-post")
    result = run("list")
    assert result.exit_code == 0
    assert "Listed Post" in result.output


def test_list_empty(run) -> None:
    result = run("list", "--status", "published")
    assert result.exit_code == 0
    assert "No documents found" in result.output


def test_publish_all_drafts(run, store: DocumentStore, make_document) -> None:
    make_document("one")
    make_document("two")

    result = run("publish", "--all-drafts", "--owner", "owner-1")

    assert result.exit_code == 0, result.output
    assert "/blog/one" in result.output
    assert store.list(status=DocumentStatus.DRAFT) == []


def test_publish_reports_unknown_ids(run, make_document) -> None:
    document = make_document()
    result = run("publish", document.id, "doc_missing")
    assert result.exit_code == 0
    assert "Skipping" in result.output
    assert "/blog/first-post" in result.output


def test_score_needs_a_baseline(run, make_document) -> None:
    document = make_document()
    result = run("score", document.id)
    assert result.exit_code == 1
    assert "Error" in result.output


def test_score_with_edit(run, store, make_document, baseline, tmp_path: Path) -> None:
    document = make_document(body="Short. Sentence.", scores=baseline)
    edited = tmp_path / "edited.md"
    edited.write_text("## Part one\n\nShort.\n\n## Part two\n\nSentence.")

    result = run("score", document.id, "--edited", str(edited), "--save")

    assert result.exit_code == 0, result.output
    assert "Quality Scores" in result.output
    assert "since last grade" in result.output
    assert "Actionable insights" in result.output
    assert "Add a heading." in result.output
    assert store.get(document.id).body.startswith("## Part one")


def test_schema_rejects_invalid_json(run, store, make_document, tmp_path: Path) -> None:
    document = make_document(structured_data_json=ORG_ONLY)
    bad = tmp_path / "org.json"
    bad.write_text("{not json")

    result = run("schema", document.id, "--org", str(bad))

    assert result.exit_code == 1
    assert "Invalid JSON" in result.output
    assert store.get(document.id).structured_data_json == ORG_ONLY


def test_schema_updates_article(run, store, make_document, tmp_path: Path) -> None:
    document = make_document()
    article = tmp_path / "article.json"
    article.write_text(json.dumps({"@type": "BlogPosting", "headline": "Hi"}))

    result = run("schema", document.id, "--article", str(article), "--show", "page")

    assert result.exit_code == 0, result.output
    assert "Structured data updated (1 nodes)" in result.output
    assert store.get(document.id).get_schema()["@graph"][0]["headline"] == "Hi"


def test_delete_with_yes(run, store, make_document) -> None:
    document = make_document()
    result = run("delete", document.id, "--yes")
    assert result.exit_code == 0
    assert store.find(document.id) is None


def test_delete_missing(run) -> None:
    result = run("delete", "doc_missing", "--yes")
    assert result.exit_code == 1
    assert "Document not found" in result.output


def test_cta_update_and_show(run, store: DocumentStore) -> None:
    result = run("cta", "--owner", "owner-1", "--headline", "Book a demo", "--link", "/demo")
    assert result.exit_code == 0, result.output
    assert "Call-to-action saved" in result.output

    result = run("cta", "--owner", "owner-1")
    assert "Book a demo" in result.output
    assert store.get_preferences("owner-1").cta_link == "/demo"


def test_grade_without_api_key(run, settings: Settings, make_document) -> None:
    document = make_document()
    no_key = settings.model_copy(update={"anthropic_api_key": ""})
    result = run("grade", document.id, cli_settings=no_key)
    assert result.exit_code == 1
    assert "ANTHROPIC_API_KEY not set" in result.output
