"""JSON-LD ``@graph`` partitioning: one page node, any number of site nodes.

A document's structured data is a single JSON-LD object whose ``@graph``
holds at most one *page node* (the Article/BlogPosting/NewsArticle that
describes the document itself) and any number of *site nodes* (Organization,
WebSite, LocalBusiness, ...) that describe the publisher. The two halves are
edited independently; every function here returns a new graph and leaves its
input untouched.
"""

from __future__ import annotations

import copy
import json
from typing import Any, Iterable

from postforge.errors import ValidationError

PAGE_NODE_TYPES = frozenset({"Article", "BlogPosting", "NewsArticle"})

DEFAULT_CONTEXT = "https://schema.org"

Node = dict[str, Any]
Graph = dict[str, Any]


def node_types(node: Node) -> set[str]:
    """A node's ``@type`` as a set (JSON-LD allows a string or a list)."""
    value = node.get("@type")
    if isinstance(value, str):
        return {value}
    if isinstance(value, list):
        return {v for v in value if isinstance(v, str)}
    return set()


def is_page_node(node: Node) -> bool:
    return bool(node_types(node) & PAGE_NODE_TYPES)


def coerce_graph(data: object) -> Graph:
    """Normalize stored structured data into ``{..., "@graph": [...]}`` form.

    A bare single node is wrapped; anything that is not a JSON object reads
    as an empty graph.
    """
    if not isinstance(data, dict):
        return {"@context": DEFAULT_CONTEXT, "@graph": []}
    if "@type" in data and "@graph" not in data:
        node = copy.deepcopy(data)
        context = node.pop("@context", DEFAULT_CONTEXT)
        return {"@context": context, "@graph": [node]}
    graph = copy.deepcopy(data)
    graph.setdefault("@context", DEFAULT_CONTEXT)
    nodes = graph.get("@graph")
    graph["@graph"] = [n for n in nodes if isinstance(n, dict)] if isinstance(nodes, list) else []
    return graph


def _with_nodes(graph: Graph, nodes: list[Node]) -> Graph:
    """A copy of ``graph`` (already coerced) with its node list replaced."""
    result = {k: copy.deepcopy(v) for k, v in graph.items() if k != "@graph"}
    result["@graph"] = nodes
    return result


def _nodes(graph: Graph) -> list[Node]:
    return coerce_graph(graph)["@graph"]


def _check_page_node(node: object) -> None:
    if not isinstance(node, dict):
        raise ValidationError("Article schema must be a single JSON object", {"field": "article"})
    if not is_page_node(node):
        raise ValidationError(
            "Article schema @type must be one of " + ", ".join(sorted(PAGE_NODE_TYPES)),
            {"field": "article", "type": node.get("@type")},
        )


def _check_site_nodes(items: list[object]) -> None:
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(
                f"Organization schema item {index} is not a JSON object",
                {"field": "org", "index": index},
            )
        if is_page_node(item):
            raise ValidationError(
                f"Organization schema item {index} is a page node; edit it in the article schema",
                {"field": "org", "index": index},
            )


def apply_article_patch(graph: Graph, node: Node | None) -> Graph:
    """Replace the page node. ``None`` or ``{}`` removes it.

    Site nodes keep their order; the new page node goes at the end.
    Raises ValidationError if ``node`` is not a page node.
    """
    if node:
        _check_page_node(node)
    base = coerce_graph(graph)
    nodes = [n for n in base["@graph"] if not is_page_node(n)]
    if node:
        nodes.append(copy.deepcopy(node))
    return _with_nodes(base, nodes)


def apply_org_patch(graph: Graph, nodes: Node | list[Node] | None) -> Graph:
    """Replace every site node with ``nodes`` (a single node or a list).

    The page node, if any, is kept and the new site nodes follow it.
    Raises ValidationError if any of ``nodes`` is a page node.
    """
    if nodes is None:
        replacement: list[Node] = []
    elif isinstance(nodes, dict):
        replacement = [nodes] if nodes else []
    else:
        replacement = [n for n in nodes if n]
    _check_site_nodes(replacement)
    base = coerce_graph(graph)
    kept = [n for n in base["@graph"] if is_page_node(n)]
    return _with_nodes(base, kept + copy.deepcopy(replacement))


def project_by_type(graph: Graph, types: Iterable[str]) -> list[Node]:
    """Return only the nodes having one of ``types``."""
    wanted = set(types)
    return [n for n in _nodes(graph) if node_types(n) & wanted]


def page_nodes(graph: Graph) -> list[Node]:
    return project_by_type(graph, PAGE_NODE_TYPES)


def site_nodes(graph: Graph) -> list[Node]:
    return [n for n in _nodes(graph) if not is_page_node(n)]


def page_jsonld(graph: Graph) -> str:
    """JSON-LD for a single page: the page node only, never site nodes."""
    return json.dumps(_with_nodes(coerce_graph(graph), page_nodes(graph)), ensure_ascii=False)


def site_jsonld(graph: Graph) -> str:
    """JSON-LD for the one shared site-wide placement."""
    return json.dumps(_with_nodes(coerce_graph(graph), site_nodes(graph)), ensure_ascii=False)


def editor_blobs(graph: Graph) -> tuple[str, str]:
    """The (article, org) texts an editor is seeded with; empty when absent."""
    pages = page_nodes(graph)
    sites = site_nodes(graph)
    article = json.dumps(pages[0], indent=2, ensure_ascii=False) if pages else ""
    org = json.dumps(sites, indent=2, ensure_ascii=False) if sites else ""
    return article, org


# ── Editor text parsing ──────────────────────────────────────────


def _load(text: str, default: str, field: str) -> object:
    source = text.strip() or default
    try:
        return json.loads(source)
    except json.JSONDecodeError as exc:
        raise ValidationError(
            f"Invalid JSON in {field} schema: {exc.msg} (line {exc.lineno}, column {exc.colno})",
            {"field": field},
        ) from exc


def parse_article_blob(text: str) -> Node | None:
    """Parse the article editor's text. Blank or ``{}`` means "no page node"."""
    data = _load(text, "{}", "article")
    if isinstance(data, dict) and not data:
        return None
    _check_page_node(data)
    return data


def parse_org_blob(text: str) -> list[Node]:
    """Parse the site editor's text: one object, a list of objects, or blank."""
    data = _load(text, "[]", "org")
    if isinstance(data, dict):
        items = [data] if data else []
    elif isinstance(data, list):
        items = data
    else:
        raise ValidationError(
            "Organization schema must be a JSON object or array of objects",
            {"field": "org"},
        )
    _check_site_nodes(items)
    return [item for item in items if item]


def apply_combined_patch(
    graph: Graph,
    *,
    article_json: str | None = None,
    org_json: str | None = None,
) -> Graph:
    """Apply article and/or org editor texts together.

    ``None`` leaves that half alone. Both texts are parsed before either is
    applied, so a ValidationError means nothing changed.
    """
    article = parse_article_blob(article_json) if article_json is not None else None
    orgs = parse_org_blob(org_json) if org_json is not None else None

    result = coerce_graph(graph)
    if article_json is not None:
        result = apply_article_patch(result, article)
    if org_json is not None:
        result = apply_org_patch(result, orgs)
    return result
