"""Human-readable tips and originality highlighting for the editor."""

from __future__ import annotations

from typing import Iterable

from postforge.scoring.models import FlaggedSection, OriginalityReport, QualityScoreSet

TIP_THRESHOLD = 90

READABILITY_TIP = "Improve readability: use shorter sentences, simpler words, and more subheadings."
STRUCTURE_TIP = "Improve structure: add clearer H2/H3 hierarchy and balance section lengths."
KEYWORD_TIP = "Review keyword placement in title, intro, and headings for better SEO."
ALL_GOOD_TIP = "All metrics look good. You can still edit the content to make manual tweaks."

HIGHLIGHT_MARKER = "**"


def originality_alert(report: OriginalityReport | None) -> str | None:
    """The editor alert for an unsafe originality report, or None."""
    if report is None or report.is_safe:
        return None
    count = len(report.flagged_sections)
    noun = "section" if count == 1 else "sections"
    return (
        f"Originality alert: {count} flagged {noun} closely match external sources. "
        "Rewrite them in your own words before publishing."
    )


def derive_insights(
    scores: QualityScoreSet,
    report: OriginalityReport | None = None,
) -> list[str]:
    """Return editor tips for a score set, in a fixed order. Never empty."""
    tips: list[str] = []
    if scores.readability < TIP_THRESHOLD:
        tips.append(READABILITY_TIP)
    if scores.content_structure < TIP_THRESHOLD:
        tips.append(STRUCTURE_TIP)
    if scores.overall < TIP_THRESHOLD:
        tips.append(KEYWORD_TIP)
    alert = originality_alert(report)
    if alert:
        tips.append(alert)
    if not tips:
        tips.append(ALL_GOOD_TIP)
    return tips


def editor_insights(
    scores: QualityScoreSet,
    report: OriginalityReport | None = None,
) -> list[str]:
    """The tips shown to the author.

    The grader's own ``actionable_insights`` win when it gave any; otherwise
    the fixed rules of ``derive_insights`` apply. An originality alert is
    appended either way.
    """
    if not scores.actionable_insights:
        return derive_insights(scores, report)
    tips = list(scores.actionable_insights)
    alert = originality_alert(report)
    if alert:
        tips.append(alert)
    return tips


def highlight_flagged(
    markdown: str,
    flagged_sections: Iterable[FlaggedSection],
    marker: str = HIGHLIGHT_MARKER,
) -> str:
    """Wrap the first verbatim occurrence of each flagged passage in ``marker``.

    Matching is literal. Passages that no longer appear in the text (because
    the author rewrote them) are skipped, as are empty passages.
    """
    for section in flagged_sections:
        segment = section.text_segment
        if not segment or segment not in markdown:
            continue
        markdown = markdown.replace(segment, f"{marker}{segment}{marker}", 1)
    return markdown
