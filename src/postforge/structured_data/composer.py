"""Apply structured-data edits to stored documents."""

from __future__ import annotations

import logging

from postforge.errors import ValidationError
from postforge.storage.repository import DocumentStore
from postforge.structured_data.graph import (
    Graph,
    apply_combined_patch,
    coerce_graph,
    editor_blobs,
    page_jsonld,
    site_jsonld,
)

logger = logging.getLogger(__name__)


class SchemaComposer:
    """Keeps each document's JSON-LD graph consistent as it is edited."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def graph(self, document_id: str) -> Graph:
        return coerce_graph(self._store.get(document_id).get_schema())

    def patch(
        self,
        document_id: str,
        *,
        article_json: str | None = None,
        org_json: str | None = None,
    ) -> Graph:
        """Apply the article and/or org editor texts to a document.

        All-or-nothing: if either text is invalid, ValidationError is raised
        and the stored graph is not touched.
        """
        document = self._store.get(document_id)
        if article_json is None and org_json is None:
            return coerce_graph(document.get_schema())

        try:
            graph = apply_combined_patch(
                document.get_schema(),
                article_json=article_json,
                org_json=org_json,
            )
        except ValidationError as exc:
            logger.info("Rejected schema edit for %s: %s", document_id, exc.message)
            raise

        document.set_schema(graph)
        self._store.save(document)
        return graph

    def page_schema(self, document_id: str) -> str:
        """The JSON-LD to embed in the document's own page."""
        return page_jsonld(self.graph(document_id))

    def site_schema(self, document_id: str) -> str:
        """The site-level JSON-LD carried by a document, for the shared layout."""
        return site_jsonld(self.graph(document_id))

    def editor_texts(self, document_id: str) -> tuple[str, str]:
        return editor_blobs(self.graph(document_id))
