"""
Exception hierarchy for postforge.

Every failure the finalization core reports to its callers is one of these.
Callers at the command boundary catch PostforgeError; everything else is a bug.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from postforge.lifecycle.manager import BatchResult


class PostforgeError(Exception):
    """Base exception for all postforge errors."""

    retryable = False

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(PostforgeError):
    """
    User-correctable bad input.

    Raised for malformed structured-data blobs and illegal lifecycle
    transitions. Nothing has been persisted when this is raised.
    """


class UpstreamGradingError(PostforgeError):
    """
    The external grading call failed, timed out or returned junk.

    The previous baseline and originality report are left untouched.
    """

    retryable = True


class NotFoundError(PostforgeError):
    """An operation referenced a document id that does not exist."""

    def __init__(self, document_id: str, details: Optional[dict[str, Any]] = None):
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}", details)


class PartialBatchFailure(PostforgeError):
    """One or more items of a batch transition failed; the rest were applied."""

    def __init__(self, result: "BatchResult"):
        self.result = result
        failed = ", ".join(result.failures)
        super().__init__(
            f"{len(result.failures)} of {len(result.documents)} items failed",
            {"failed": failed},
        )
