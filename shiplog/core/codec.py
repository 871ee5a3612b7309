"""JSON import/export for snapshots."""

import json
import logging

from .constants import (
    NODE_TYPE,
    NODE_PREFIX,
    EDGE_PREFIX,
    DETAIL_PREFIX,
    META_PREFIX,
    UNTITLED_TITLE,
    DEFAULT_COLOR,
    MARKER_ARROW_CLOSED,
    EXPORT_INDENT,
)
from .exceptions import MalformedDocument
from .types import Snapshot, ConceptNode, ConceptEdge
from .utils import new_id

logger = logging.getLogger(__name__)


def export_snapshot(snapshot: Snapshot) -> str:
    """Serialize a snapshot to indented JSON text."""
    payload = {"nodes": snapshot["nodes"], "edges": snapshot["edges"]}
    return json.dumps(payload, indent=EXPORT_INDENT, ensure_ascii=False)


def parse_document(text: str | bytes) -> dict:
    """
    Parse raw JSON and check the top-level shape.
    Raises MalformedDocument if it is not an object carrying `nodes` and `edges` lists.
    """
    try:
        data = json.loads(text)
    except (ValueError, TypeError) as e:
        raise MalformedDocument(f"invalid JSON ({e})") from e

    if not isinstance(data, dict):
        raise MalformedDocument("top-level value is not an object")
    for key in ("nodes", "edges"):
        if data.get(key) is None:
            raise MalformedDocument(f"missing '{key}'")
        if not isinstance(data[key], list):
            raise MalformedDocument(f"'{key}' is not a list")
    return data


def _as_dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _default(value, fallback):
    return fallback if value is None else value


def _ref(value, what: str) -> str | None:
    """Coerce an id or endpoint reference to a string."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    raise MalformedDocument(f"{what} is not a string")


def _items(value, prefix: str, what: str) -> list:
    """Default an item list and give every item an id."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedDocument(f"{what} is not a list")
    items = []
    for raw in value:
        if not isinstance(raw, dict):
            raise MalformedDocument(f"{what} entry is not an object")
        items.append({
            **raw,
            "id": _ref(raw.get("id"), f"{what} id") or new_id(prefix),
            "text": _default(raw.get("text"), ""),
        })
    return items


def normalize_node(raw: dict) -> ConceptNode:
    """Fill in defaults for a node of unknown provenance. Unknown colors are kept."""
    if not isinstance(raw, dict):
        raise MalformedDocument("node entry is not an object")
    data = _as_dict(raw.get("data"))
    return {
        **raw,
        "id": _ref(raw.get("id"), "node id") or new_id(NODE_PREFIX),
        "type": _default(raw.get("type"), NODE_TYPE),
        "position": _default(raw.get("position"), {"x": 0, "y": 0}),
        "data": {
            "title": _default(data.get("title"), UNTITLED_TITLE),
            "color": _default(data.get("color"), DEFAULT_COLOR),
            "details": _items(data.get("details"), DETAIL_PREFIX, "details"),
        },
    }


def normalize_edge(raw: dict) -> ConceptEdge:
    """Fill in defaults for an edge of unknown provenance."""
    if not isinstance(raw, dict):
        raise MalformedDocument("edge entry is not an object")
    data = _as_dict(raw.get("data"))
    return {
        **raw,
        "id": _ref(raw.get("id"), "edge id") or new_id(EDGE_PREFIX),
        "source": _ref(raw.get("source"), "edge source"),
        "target": _ref(raw.get("target"), "edge target"),
        "markerEnd": _default(raw.get("markerEnd"), {"type": MARKER_ARROW_CLOSED}),
        "data": {"meta": _items(data.get("meta"), META_PREFIX, "meta")},
    }


def normalize_snapshot(data: dict) -> Snapshot:
    """
    Normalize a parsed document into a Snapshot.

    All lenient defaulting lives here so a strict mode can be added in one place.
    Edges whose endpoints are not among the document's nodes are dropped.
    """
    nodes = [normalize_node(n) for n in data["nodes"]]
    node_ids = {n["id"] for n in nodes}

    edges = []
    for raw in data["edges"]:
        edge = normalize_edge(raw)
        if edge.get("source") not in node_ids or edge.get("target") not in node_ids:
            logger.warning(f"Dropping edge '{edge['id']}': endpoint not found")
            continue
        edges.append(edge)

    return {"nodes": nodes, "edges": edges}


def import_snapshot(text: str | bytes) -> Snapshot:
    """Parse and normalize an imported document. Raises MalformedDocument."""
    snapshot = normalize_snapshot(parse_document(text))
    logger.debug(f"Decoded document: {len(snapshot['nodes'])} nodes, {len(snapshot['edges'])} edges")
    return snapshot
