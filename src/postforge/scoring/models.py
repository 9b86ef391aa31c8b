"""Quality score and originality report data models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Accepts and emits the camelCase keys the grader and storage use."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class QualityScoreSet(_CamelModel):
    """Scores for one document, as produced by a grading pass."""

    overall: int = Field(ge=0, le=100)
    content_structure: int = Field(ge=0, le=100)
    readability: int = Field(ge=0, le=100)
    target_keywords: list[str] = Field(default_factory=list)
    actionable_insights: list[str] = Field(default_factory=list)


class FlaggedSection(_CamelModel):
    """A passage the originality check matched against external text."""

    text_segment: str
    source_url: str | None = None
    similarity_score: float = Field(ge=0, le=100)


class OriginalityReport(_CamelModel):
    overall_similarity: float = Field(ge=0, le=100)  # percent matched elsewhere
    is_safe: bool
    flagged_sections: list[FlaggedSection] = Field(default_factory=list)

    @property
    def originality_score(self) -> float:
        """The figure shown to users: how much of the text is original."""
        return 100 - self.overall_similarity
