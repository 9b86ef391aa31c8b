"""External grading pass: baseline quality scores and originality reports."""

from __future__ import annotations

import json
import logging
from typing import Iterable

from anthropic import APIError
from pydantic import ValidationError as SchemaMismatch
from tenacity import RetryError

from postforge.errors import UpstreamGradingError
from postforge.llm.client import ClaudeClient
from postforge.llm.prompts import render
from postforge.scoring.models import OriginalityReport, QualityScoreSet

logger = logging.getLogger(__name__)

# Similarity percentage the checker is told to treat as unsafe
SAFE_SIMILARITY_THRESHOLD = 15

_UPSTREAM_FAILURES = (APIError, RetryError)


class QualityGrader:
    """Asks Claude to grade a document.

    Every failure mode (transport, exhausted retries, non-JSON output, JSON
    that does not match the expected shape) surfaces as UpstreamGradingError.
    The grader never substitutes default scores.
    """

    def __init__(self, client: ClaudeClient) -> None:
        self._client = client

    def grade(
        self,
        markdown: str,
        *,
        title: str = "",
        keywords: Iterable[str] | None = None,
    ) -> QualityScoreSet:
        """Grade a document and return a fresh baseline score set."""
        system_prompt = render("grading.j2", title=title, keywords=list(keywords or []))
        raw = self._call(system_prompt, markdown, what="quality grading")
        try:
            return QualityScoreSet.model_validate(raw)
        except SchemaMismatch as exc:
            raise UpstreamGradingError(
                "Grader returned scores in an unexpected shape",
                {"errors": exc.error_count()},
            ) from exc

    def check_originality(self, markdown: str) -> OriginalityReport:
        """Run the originality check for a document."""
        system_prompt = render("originality.j2", safe_threshold=SAFE_SIMILARITY_THRESHOLD)
        raw = self._call(system_prompt, markdown, what="originality check")
        try:
            return OriginalityReport.model_validate(raw)
        except SchemaMismatch as exc:
            raise UpstreamGradingError(
                "Originality check returned an unexpected shape",
                {"errors": exc.error_count()},
            ) from exc

    def _call(self, system_prompt: str, markdown: str, *, what: str) -> object:
        messages = [{"role": "user", "content": f"POST (markdown):\n\n{markdown}"}]
        try:
            return self._client.generate_json(system_prompt, messages)
        except _UPSTREAM_FAILURES as exc:
            logger.warning("Upstream %s failed: %s", what, exc)
            raise UpstreamGradingError(f"The {what} call failed", {"cause": str(exc)}) from exc
        except json.JSONDecodeError as exc:
            logger.warning("Upstream %s returned malformed output: %s", what, exc)
            raise UpstreamGradingError(f"The {what} call returned malformed output") from exc
