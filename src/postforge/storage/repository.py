"""Get/save/delete access to persisted documents and preferences.

Every component reads and writes ContentDocument records through this one
interface. Returned objects are detached from the session that loaded them;
mutate them freely and hand them back to ``save``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from sqlmodel import select

from postforge.errors import NotFoundError
from postforge.storage.database import get_session
from postforge.storage.models import ContentDocument, DocumentStatus, UserPreferences

logger = logging.getLogger(__name__)

# Alias to avoid shadowing by DocumentStore.list
_list = list


class DocumentStore:
    """SQLite-backed store for content documents."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path

    # ── Documents ────────────────────────────────────────────────

    def find(self, document_id: str) -> ContentDocument | None:
        """Return a document by id, or None if it does not exist."""
        with get_session(self._db_path) as session:
            return session.get(ContentDocument, document_id)

    def get(self, document_id: str, owner_id: str | None = None) -> ContentDocument:
        """Return a document by id.

        Raises NotFoundError if it does not exist or belongs to another owner.
        """
        document = self.find(document_id)
        if document is None or (owner_id is not None and document.owner_id != owner_id):
            raise NotFoundError(document_id)
        return document

    def get_by_slug(self, slug: str) -> ContentDocument | None:
        with get_session(self._db_path) as session:
            return session.exec(
                select(ContentDocument).where(ContentDocument.slug == slug)
            ).first()

    def list(
        self,
        owner_id: str | None = None,
        status: DocumentStatus | None = None,
    ) -> _list[ContentDocument]:
        """Return documents oldest first, optionally filtered by owner and status."""
        query = select(ContentDocument)
        if owner_id is not None:
            query = query.where(ContentDocument.owner_id == owner_id)
        if status is not None:
            query = query.where(ContentDocument.status == DocumentStatus(status).value)
        query = query.order_by(ContentDocument.created_at)
        with get_session(self._db_path) as session:
            return _list(session.exec(query).all())

    def save(self, document: ContentDocument) -> ContentDocument:
        """Insert or update a document and return the stored copy."""
        document.updated_at = datetime.now()
        with get_session(self._db_path) as session:
            stored = session.merge(document)
            session.commit()
            session.refresh(stored)
            return stored

    def delete(self, document_id: str, owner_id: str | None = None) -> None:
        """Delete a document in any state.

        Raises NotFoundError if it does not exist or belongs to another owner.
        """
        with get_session(self._db_path) as session:
            document = session.get(ContentDocument, document_id)
            if document is None or (owner_id is not None and document.owner_id != owner_id):
                raise NotFoundError(document_id)
            session.delete(document)
            session.commit()
        logger.info("Deleted document %s", document_id)

    # ── Preferences ──────────────────────────────────────────────

    def get_preferences(self, owner_id: str) -> UserPreferences:
        """Return an owner's preferences, or empty defaults if none saved yet."""
        with get_session(self._db_path) as session:
            prefs = session.get(UserPreferences, owner_id)
        return prefs or UserPreferences(owner_id=owner_id)

    def save_preferences(self, prefs: UserPreferences) -> UserPreferences:
        prefs.updated_at = datetime.now()
        with get_session(self._db_path) as session:
            stored = session.merge(prefs)
            session.commit()
            session.refresh(stored)
            return stored
