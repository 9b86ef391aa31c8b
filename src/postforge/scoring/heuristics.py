"""Offline text heuristics and live rescoring against a graded baseline.

The external grader is slow and costs tokens, so it only runs when the author
asks for it. Between grading passes the scores shown in the editor are the
baseline plus the *change* in two cheap heuristics between the graded text and
the current text. The heuristics themselves are crude; only their deltas are
used, and deltas drift the further an edit wanders from the graded text.
A re-grade replaces the baseline outright instead of compounding deltas.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable

from postforge.scoring.models import QualityScoreSet

_SENTENCE_BREAK = re.compile(r"[.!?]+")

DEFAULT_WORDS_PER_SENTENCE = 15
LONG_SENTENCE_WORDS = 20
SHORT_SENTENCE_WORDS = 8
LONG_SECTION_WORDS = 300


@dataclass(frozen=True)
class Heuristics:
    readability_raw: float
    structure_raw: float


def heuristics(markdown: str) -> Heuristics:
    """Compute raw readability and structure figures for a markdown text.

    Raw values are unbounded (a wall of text goes well below zero) and are
    only meaningful relative to each other.
    """
    sentence_count = sum(1 for s in _SENTENCE_BREAK.split(markdown) if s.strip())
    word_count = len(markdown.split())
    heading_count = sum(1 for line in markdown.splitlines() if line.strip().startswith("#"))

    if sentence_count:
        avg_words = word_count / sentence_count
    else:
        avg_words = DEFAULT_WORDS_PER_SENTENCE
    words_per_heading = word_count / heading_count if heading_count else word_count

    readability = 100 - max(0, avg_words - LONG_SENTENCE_WORDS) * 2
    if avg_words < SHORT_SENTENCE_WORDS:
        readability -= 5

    structure = 100 - max(0, words_per_heading - LONG_SECTION_WORDS) * 0.1
    if heading_count == 0:
        structure -= 50

    return Heuristics(readability_raw=readability, structure_raw=structure)


def keyword_score(markdown: str, keywords: Iterable[str]) -> float:
    """Percentage of keywords present in the text (case-insensitive substring)."""
    keywords = list(keywords)
    if not keywords:
        return 100.0
    haystack = markdown.lower()
    found = sum(1 for kw in keywords if kw.lower() in haystack)
    return 100.0 * found / len(keywords)


def _round(value: float) -> int:
    # half-up: 2.5 -> 3, -2.5 -> -2
    return math.floor(value + 0.5)


def _clamp(value: int) -> int:
    return max(0, min(100, value))


def live_rescore(
    baseline: QualityScoreSet,
    original_markdown: str,
    edited_markdown: str,
    keywords: Iterable[str] | None = None,
) -> QualityScoreSet:
    """Approximate the scores of ``edited_markdown`` from a graded baseline.

    ``original_markdown`` must be the text the baseline was graded against.
    Keywords and insights are carried over from the baseline untouched.
    Never raises; every returned score is within 0..100.
    """
    if edited_markdown == original_markdown:
        return baseline

    before = heuristics(original_markdown)
    after = heuristics(edited_markdown)
    delta_read = after.readability_raw - before.readability_raw
    delta_struct = after.structure_raw - before.structure_raw

    kw_score = keyword_score(edited_markdown, keywords or [])
    delta_overall = _round((delta_read + delta_struct + (kw_score - 100) * 0.5) / 3)

    return baseline.model_copy(
        update={
            "overall": _clamp(_round(baseline.overall + delta_overall)),
            "content_structure": _clamp(_round(baseline.content_structure + delta_struct)),
            "readability": _clamp(_round(baseline.readability + delta_read)),
        }
    )
