"""Draft → published lifecycle and live-address assignment."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from postforge.errors import PartialBatchFailure, ValidationError
from postforge.storage.models import FAQ, ContentDocument, DocumentStatus, UserPreferences
from postforge.storage.repository import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of a batch transition.

    ``documents`` holds every item in input order: the updated record where
    the transition succeeded, the untouched input where it failed.
    """

    documents: list[ContentDocument] = field(default_factory=list)
    updated: list[ContentDocument] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def updated_ids(self) -> list[str]:
        return [d.id for d in self.updated]

    def raise_for_failures(self) -> None:
        if self.failures:
            raise PartialBatchFailure(self)


def live_url_for(slug: str, prefix: str = "/blog") -> str:
    return f"{prefix.rstrip('/')}/{slug}"


def mark_published(document: ContentDocument, prefix: str = "/blog") -> bool:
    """Move a document to published in place. Returns True if anything changed.

    An existing live URL is never rewritten; it may already be shared.
    """
    changed = False
    if not document.is_published:
        document.status = DocumentStatus.PUBLISHED.value
        changed = True
    if not document.live_url:
        document.live_url = live_url_for(document.slug, prefix)
        changed = True
    return changed


class PublicationManager:
    """Creates, publishes and deletes documents.

    Slugs are taken as given; making them unique and URL-safe is the
    caller's job.
    """

    def __init__(self, store: DocumentStore, *, url_prefix: str = "/blog") -> None:
        self._store = store
        self._url_prefix = url_prefix

    def finalize(
        self,
        *,
        owner_id: str,
        slug: str,
        title: str,
        body: str,
        status: DocumentStatus = DocumentStatus.DRAFT,
        meta_title: str = "",
        meta_description: str = "",
        category: str = "",
        faqs: list[FAQ] | None = None,
    ) -> ContentDocument:
        """Persist a finished draft as a new document with the chosen status."""
        document = ContentDocument(
            owner_id=owner_id,
            slug=slug,
            title=title,
            body=body,
            meta_title=meta_title or title,
            meta_description=meta_description,
            category=category,
        )
        document.set_faqs(faqs or [])
        if DocumentStatus(status) is DocumentStatus.PUBLISHED:
            mark_published(document, self._url_prefix)
        stored = self._store.save(document)
        logger.info("Finalized %s as %s (%s)", stored.id, stored.status, slug)
        return stored

    def publish(self, document_id: str) -> ContentDocument:
        """Publish a document. Publishing twice is a no-op."""
        document = self._store.get(document_id)
        if not mark_published(document, self._url_prefix):
            return document
        stored = self._store.save(document)
        logger.info("Published %s at %s", stored.id, stored.live_url)
        return stored

    def transition(self, document_id: str, status: DocumentStatus) -> ContentDocument:
        """Move a document to ``status``. There is no way back from published."""
        status = DocumentStatus(status)
        if status is DocumentStatus.PUBLISHED:
            return self.publish(document_id)
        document = self._store.get(document_id)
        if document.is_published:
            raise ValidationError(
                "A published document cannot be moved back to draft",
                {"document_id": document_id},
            )
        return document

    def publish_batch(self, documents: list[ContentDocument]) -> BatchResult:
        """Publish each document in order, carrying on past failures."""
        result = BatchResult()
        for document in documents:
            try:
                published = self.publish(document.id)
            except Exception as exc:
                logger.warning("Publishing %s failed: %s", document.id, exc)
                result.failures[document.id] = exc
                result.documents.append(document)
                continue
            result.updated.append(published)
            result.documents.append(published)
        logger.info(
            "Batch publish: %d updated, %d failed", len(result.updated), len(result.failures)
        )
        return result

    def publish_all_drafts(self, owner_id: str) -> BatchResult:
        drafts = self._store.list(owner_id=owner_id, status=DocumentStatus.DRAFT)
        return self.publish_batch(drafts)

    def delete(self, document_id: str, owner_id: str | None = None) -> None:
        """Delete a document, whatever its status."""
        self._store.delete(document_id, owner_id=owner_id)

    # ── Call-to-action preferences ───────────────────────────────

    def remember_cta(
        self,
        owner_id: str,
        *,
        headline: str = "",
        copy: str = "",
        button_text: str = "",
        link: str = "",
    ) -> UserPreferences:
        """Store the call-to-action text an owner last used."""
        prefs = self._store.get_preferences(owner_id)
        prefs.cta_headline = headline
        prefs.cta_copy = copy
        prefs.cta_button_text = button_text
        prefs.cta_link = link
        return self._store.save_preferences(prefs)

    def load_cta(self, owner_id: str) -> UserPreferences:
        return self._store.get_preferences(owner_id)
