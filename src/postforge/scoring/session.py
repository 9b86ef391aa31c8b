"""Editing session that keeps a document's scores live between grading passes."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from postforge.errors import PostforgeError, ValidationError
from postforge.scoring.grader import QualityGrader
from postforge.scoring.heuristics import live_rescore
from postforge.scoring.insights import editor_insights, highlight_flagged
from postforge.scoring.models import OriginalityReport, QualityScoreSet
from postforge.storage.repository import DocumentStore

logger = logging.getLogger(__name__)


def grade_document(
    store: DocumentStore,
    grader: QualityGrader,
    document_id: str,
    *,
    include_originality: bool = True,
) -> QualityScoreSet:
    """Grade a stored document's current body and persist the new baseline.

    On UpstreamGradingError nothing is written.
    """
    document = store.get(document_id)
    previous = document.get_scores()
    baseline = grader.grade(
        document.body,
        title=document.title,
        keywords=previous.target_keywords if previous else None,
    )
    report = grader.check_originality(document.body) if include_originality else None

    document.set_baseline(baseline, document.body)
    if report is not None:
        document.set_originality(report)
    store.save(document)
    return baseline


class ScoringSession:
    """Live quality scores for one document while it is being edited.

    Scores shown during editing are the last graded baseline adjusted by
    heuristic deltas (see ``postforge.scoring.heuristics``). They drift
    further from what the grader would say with every edit; ``is_stale``
    and ``edits_since_baseline`` make that visible, and ``regrade`` replaces
    the baseline outright.

    At most one re-grade runs at a time. Triggering another while one is in
    flight returns the pending Future instead of starting a second call.
    """

    def __init__(
        self,
        document_id: str,
        baseline: QualityScoreSet,
        baseline_markdown: str,
        *,
        edited_markdown: str | None = None,
        report: OriginalityReport | None = None,
        title: str = "",
        grader: QualityGrader | None = None,
        store: DocumentStore | None = None,
    ) -> None:
        self.document_id = document_id
        self.title = title
        self._baseline = baseline
        self._baseline_markdown = baseline_markdown
        self._edited = baseline_markdown if edited_markdown is None else edited_markdown
        self._report = report
        self._grader = grader
        self._store = store
        self._edits_since_baseline = 0 if self._edited == baseline_markdown else 1
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="regrade")
        self._pending: Future | None = None
        self.last_error: PostforgeError | None = None

    @classmethod
    def open(
        cls,
        store: DocumentStore,
        document_id: str,
        grader: QualityGrader | None = None,
    ) -> ScoringSession:
        """Resume a session from a persisted, previously graded document."""
        document = store.get(document_id)
        baseline = document.get_scores()
        if baseline is None:
            raise ValidationError(
                "Document has not been graded yet; run a grading pass first",
                {"document_id": document_id},
            )
        return cls(
            document.id,
            baseline,
            document.baseline_markdown,
            edited_markdown=document.body,
            report=document.get_originality(),
            title=document.title,
            grader=grader,
            store=store,
        )

    # ── Live view ────────────────────────────────────────────────

    @property
    def baseline(self) -> QualityScoreSet:
        return self._baseline

    @property
    def report(self) -> OriginalityReport | None:
        return self._report

    @property
    def markdown(self) -> str:
        return self._edited

    @property
    def edits_since_baseline(self) -> int:
        return self._edits_since_baseline

    @property
    def is_stale(self) -> bool:
        return self._edits_since_baseline > 0

    @property
    def scores(self) -> QualityScoreSet:
        return live_rescore(
            self._baseline,
            self._baseline_markdown,
            self._edited,
            self._baseline.target_keywords,
        )

    @property
    def insights(self) -> list[str]:
        return editor_insights(self.scores, self._report)

    @property
    def highlighted(self) -> str:
        if self._report is None:
            return self._edited
        return highlight_flagged(self._edited, self._report.flagged_sections)

    def edit(self, markdown: str) -> QualityScoreSet:
        """Record the author's latest text and return the live scores for it."""
        if markdown != self._edited:
            self._edited = markdown
            self._edits_since_baseline += 1
        return self.scores

    def save(self) -> None:
        """Persist the edited body. The stored baseline is left as graded."""
        if self._store is None:
            return
        document = self._store.get(self.document_id)
        document.body = self._edited
        self._store.save(document)

    # ── Re-grading ───────────────────────────────────────────────

    @property
    def regrade_in_flight(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def regrade(self, *, include_originality: bool = True) -> Future:
        """Grade the current text in the background.

        Returns a Future resolving to the new baseline. If the grading call
        fails the Future raises UpstreamGradingError and the session keeps
        the previous baseline and report. The new baseline is stored before
        the session adopts it, so a failed write (NotFoundError if the
        document was deleted meanwhile) also leaves the session unchanged.
        """
        if self._grader is None:
            raise RuntimeError("ScoringSession was opened without a grader")
        with self._lock:
            if self.regrade_in_flight:
                logger.info("Re-grade already running for %s; ignoring trigger", self.document_id)
                return self._pending
            snapshot = self._edited
            logger.info("Re-grading %s (%d edits since baseline)",
                        self.document_id, self._edits_since_baseline)
            self._pending = self._executor.submit(self._run_regrade, snapshot, include_originality)
            return self._pending

    def _run_regrade(self, snapshot: str, include_originality: bool) -> QualityScoreSet:
        try:
            baseline = self._grader.grade(
                snapshot,
                title=self.title,
                keywords=self._baseline.target_keywords,
            )
            report = self._grader.check_originality(snapshot) if include_originality else None
            if self._store is not None:
                document = self._store.get(self.document_id)
                document.set_baseline(baseline, snapshot)
                if report is not None:
                    document.set_originality(report)
                self._store.save(document)
        except PostforgeError as exc:
            self.last_error = exc
            logger.warning("Re-grade of %s failed; keeping previous scores: %s",
                           self.document_id, exc)
            raise

        with self._lock:
            self._baseline = baseline
            self._baseline_markdown = snapshot
            if report is not None:
                self._report = report
            self._edits_since_baseline = 0 if self._edited == snapshot else 1
            self.last_error = None

        logger.info("Re-grade of %s complete: overall %d", self.document_id, baseline.overall)
        return baseline

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> ScoringSession:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
