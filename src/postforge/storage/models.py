"""SQLModel database models."""

from __future__ import annotations

import json
import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, TypeAdapter
from sqlmodel import Field, SQLModel

from postforge.scoring.models import OriginalityReport, QualityScoreSet


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class FAQ(BaseModel):
    question: str
    answer: str


_FAQ_LIST = TypeAdapter(list[FAQ])


def _new_document_id() -> str:
    return f"doc_{uuid.uuid4().hex[:16]}"


class ContentDocument(SQLModel, table=True):
    """A finalized piece of content and everything derived from it.

    Nested values (scores, originality, FAQ, structured data) are stored as
    JSON text columns; use the accessor methods rather than the raw columns.
    """

    id: str = Field(default_factory=_new_document_id, primary_key=True)
    owner_id: str = Field(index=True)
    slug: str = Field(index=True)
    title: str
    body: str = ""  # markdown
    meta_title: str = ""
    meta_description: str = ""
    category: str = ""
    faqs_json: str = "[]"
    scores_json: str = ""  # baseline QualityScoreSet, empty until graded
    originality_json: str = ""
    baseline_markdown: str = ""  # the text scores_json was graded against
    structured_data_json: str = "{}"  # JSON-LD with an @graph array
    status: str = DocumentStatus.DRAFT.value  # draft | published
    live_url: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_published(self) -> bool:
        return self.status == DocumentStatus.PUBLISHED.value

    def get_scores(self) -> QualityScoreSet | None:
        if not self.scores_json:
            return None
        return QualityScoreSet.model_validate_json(self.scores_json)

    def set_baseline(self, scores: QualityScoreSet, graded_markdown: str) -> None:
        self.scores_json = scores.to_json()
        self.baseline_markdown = graded_markdown

    def get_originality(self) -> OriginalityReport | None:
        if not self.originality_json:
            return None
        return OriginalityReport.model_validate_json(self.originality_json)

    def set_originality(self, report: OriginalityReport) -> None:
        self.originality_json = report.to_json()

    def get_faqs(self) -> list[FAQ]:
        return _FAQ_LIST.validate_json(self.faqs_json or "[]")

    def set_faqs(self, faqs: list[FAQ]) -> None:
        self.faqs_json = _FAQ_LIST.dump_json(faqs).decode()

    def get_schema(self) -> object:
        """The stored structured data, parsed. Unparseable text reads as ``{}``."""
        try:
            return json.loads(self.structured_data_json or "{}")
        except json.JSONDecodeError:
            return {}

    def set_schema(self, graph: dict) -> None:
        self.structured_data_json = json.dumps(graph, ensure_ascii=False)


class UserPreferences(SQLModel, table=True):
    """Per-owner settings remembered between sessions."""

    owner_id: str = Field(primary_key=True)
    cta_headline: str = ""
    cta_copy: str = ""
    cta_button_text: str = ""
    cta_link: str = ""
    updated_at: datetime = Field(default_factory=datetime.now)
