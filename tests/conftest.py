"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from postforge.config import Settings
from postforge.llm.client import ClaudeClient
from postforge.lifecycle.manager import PublicationManager
from postforge.scoring.models import QualityScoreSet
from postforge.storage.database import _engines
from postforge.storage.models import ContentDocument, DocumentStatus
from postforge.storage.repository import DocumentStore


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Create test settings with temporary paths."""
    return Settings(
        anthropic_api_key="test-key-not-real",
        model="claude-sonnet-4-20250514",
        max_tokens=1024,
        temperature=0.2,
        db_path=tmp_path / "test.db",
        log_level="WARNING",
    )


@pytest.fixture
def store(settings: Settings):
    """A DocumentStore backed by a fresh temporary SQLite file."""
    _engines.clear()
    yield DocumentStore(settings.db_path)
    _engines.clear()


@pytest.fixture
def manager(store: DocumentStore) -> PublicationManager:
    return PublicationManager(store)


@pytest.fixture
def make_document(store: DocumentStore):
    """Factory that saves a document and returns the stored copy."""

    def _make(
        slug: str = "first-post",
        *,
        body: str = "## Intro\n\nShort. Sentence.",
        status: DocumentStatus = DocumentStatus.DRAFT,
        live_url: str | None = None,
        owner_id: str = "owner-1",
        scores: QualityScoreSet | None = None,
        structured_data_json: str = "{}",
    ) -> ContentDocument:
        document = ContentDocument(
            owner_id=owner_id,
            slug=slug,
            title=slug.replace("-", " ").title(),
            body=body,
            status=status.value,
            live_url=live_url,
            structured_data_json=structured_data_json,
        )
        if scores is not None:
            document.set_baseline(scores, body)
        return store.save(document)

    return _make


@pytest.fixture
def baseline() -> QualityScoreSet:
    return QualityScoreSet(
        overall=70,
        content_structure=60,
        readability=80,
        target_keywords=["short"],
        actionable_insights=["Add a heading."],
    )


@pytest.fixture
def mock_claude_client(settings: Settings) -> ClaudeClient:
    """Create a ClaudeClient with a mocked Anthropic SDK."""
    client = ClaudeClient(settings)
    # Replace the internal Anthropic client with a mock
    mock_anthropic = MagicMock()
    client._client = mock_anthropic
    return client


def make_mock_response(text: str, input_tokens: int = 100, output_tokens: int = 200):
    """Helper to create a mock Anthropic API response."""
    mock_response = MagicMock()
    mock_response.content = [MagicMock(text=text)]
    mock_response.usage.input_tokens = input_tokens
    mock_response.usage.output_tokens = output_tokens
    return mock_response
