"""
Pure snapshot mutations.

Every function takes the current Snapshot and returns the next one, or None
when its target does not exist (the caller then records nothing). Entities that
are not touched are carried over by reference.
"""

import random

from .constants import (
    NODE_TYPE,
    NEW_NODE_TITLE,
    DEFAULT_COLOR,
    NEW_NODE_ORIGIN,
    NEW_NODE_SPREAD,
    MARKER_ARROW_CLOSED,
    NODE_PREFIX,
    EDGE_PREFIX,
    DETAIL_PREFIX,
    META_PREFIX,
)
from .types import Snapshot, ConceptNode, ConceptEdge
from .utils import new_id


def find_node(snapshot: Snapshot, node_id: str | None) -> ConceptNode | None:
    if node_id is None:
        return None
    return next((n for n in snapshot["nodes"] if n["id"] == node_id), None)


def find_edge(snapshot: Snapshot, edge_id: str | None) -> ConceptEdge | None:
    if edge_id is None:
        return None
    return next((e for e in snapshot["edges"] if e["id"] == edge_id), None)


# ============================================================================
# Nodes
# ============================================================================

def make_node(title: str = NEW_NODE_TITLE, color: str = DEFAULT_COLOR, position: dict | None = None) -> ConceptNode:
    """Build a fresh node with a randomized near-center position."""
    if position is None:
        x0, y0 = NEW_NODE_ORIGIN
        position = {
            "x": x0 + random.random() * NEW_NODE_SPREAD,
            "y": y0 + random.random() * NEW_NODE_SPREAD,
        }
    return {
        "id": new_id(NODE_PREFIX),
        "type": NODE_TYPE,
        "position": position,
        "data": {"title": title, "color": color, "details": []},
    }


def add_node(snapshot: Snapshot, node: ConceptNode | None = None) -> Snapshot:
    node = node or make_node()
    return {"nodes": [*snapshot["nodes"], node], "edges": snapshot["edges"]}


def update_node(snapshot: Snapshot, node_id: str, patch: dict) -> Snapshot | None:
    """Shallow-merge a data patch into one node."""
    if find_node(snapshot, node_id) is None:
        return None
    nodes = [
        {**n, "data": {**n["data"], **patch}} if n["id"] == node_id else n
        for n in snapshot["nodes"]
    ]
    return {"nodes": nodes, "edges": snapshot["edges"]}


def move_node(snapshot: Snapshot, node_id: str, position: dict) -> Snapshot | None:
    node = find_node(snapshot, node_id)
    if node is None:
        return None
    if node.get("position") == position:
        return snapshot
    nodes = [
        {**n, "position": {"x": position["x"], "y": position["y"]}} if n["id"] == node_id else n
        for n in snapshot["nodes"]
    ]
    return {"nodes": nodes, "edges": snapshot["edges"]}


def delete_node(snapshot: Snapshot, node_id: str) -> Snapshot | None:
    """Delete a node and every edge touching it in one step."""
    if find_node(snapshot, node_id) is None:
        return None
    return {
        "nodes": [n for n in snapshot["nodes"] if n["id"] != node_id],
        "edges": [
            e for e in snapshot["edges"]
            if e["source"] != node_id and e["target"] != node_id
        ],
    }


# ============================================================================
# Edges
# ============================================================================

def connect(snapshot: Snapshot, source: str, target: str) -> Snapshot | None:
    """Append a new edge. Parallel edges and self-loops are allowed."""
    if find_node(snapshot, source) is None or find_node(snapshot, target) is None:
        return None
    edge: ConceptEdge = {
        "id": new_id(EDGE_PREFIX),
        "source": source,
        "target": target,
        "markerEnd": {"type": MARKER_ARROW_CLOSED},
        "data": {"meta": []},
    }
    return {"nodes": snapshot["nodes"], "edges": [*snapshot["edges"], edge]}


def update_edge(snapshot: Snapshot, edge_id: str, patch: dict) -> Snapshot | None:
    """Shallow-merge a data patch into one edge."""
    if find_edge(snapshot, edge_id) is None:
        return None
    edges = [
        {**e, "data": {**(e.get("data") or {"meta": []}), **patch}} if e["id"] == edge_id else e
        for e in snapshot["edges"]
    ]
    return {"nodes": snapshot["nodes"], "edges": edges}


def delete_edge(snapshot: Snapshot, edge_id: str) -> Snapshot | None:
    if find_edge(snapshot, edge_id) is None:
        return None
    return {
        "nodes": snapshot["nodes"],
        "edges": [e for e in snapshot["edges"] if e["id"] != edge_id],
    }


# ============================================================================
# Ordered item lists (node details, edge meta)
# ============================================================================

def _append_item(items: list, prefix: str, text: str) -> list:
    return [*items, {"id": new_id(prefix), "text": text}]


def _has_item(items: list, item_id: str) -> bool:
    return any(i["id"] == item_id for i in items)


def _replace_item(items: list, item_id: str, text: str) -> list:
    return [{**i, "text": text} if i["id"] == item_id else i for i in items]


def _remove_item(items: list, item_id: str) -> list:
    return [i for i in items if i["id"] != item_id]


def add_detail(snapshot: Snapshot, node_id: str, text: str) -> Snapshot | None:
    node = find_node(snapshot, node_id)
    if node is None:
        return None
    return update_node(snapshot, node_id, {"details": _append_item(node["data"]["details"], DETAIL_PREFIX, text)})


def update_detail(snapshot: Snapshot, node_id: str, detail_id: str, text: str) -> Snapshot | None:
    node = find_node(snapshot, node_id)
    if node is None or not _has_item(node["data"]["details"], detail_id):
        return None
    return update_node(snapshot, node_id, {"details": _replace_item(node["data"]["details"], detail_id, text)})


def delete_detail(snapshot: Snapshot, node_id: str, detail_id: str) -> Snapshot | None:
    node = find_node(snapshot, node_id)
    if node is None or not _has_item(node["data"]["details"], detail_id):
        return None
    return update_node(snapshot, node_id, {"details": _remove_item(node["data"]["details"], detail_id)})


def _edge_meta(edge: ConceptEdge) -> list:
    return (edge.get("data") or {}).get("meta") or []


def add_meta(snapshot: Snapshot, edge_id: str, text: str) -> Snapshot | None:
    edge = find_edge(snapshot, edge_id)
    if edge is None:
        return None
    return update_edge(snapshot, edge_id, {"meta": _append_item(_edge_meta(edge), META_PREFIX, text)})


def update_meta(snapshot: Snapshot, edge_id: str, meta_id: str, text: str) -> Snapshot | None:
    edge = find_edge(snapshot, edge_id)
    if edge is None or not _has_item(_edge_meta(edge), meta_id):
        return None
    return update_edge(snapshot, edge_id, {"meta": _replace_item(_edge_meta(edge), meta_id, text)})


def delete_meta(snapshot: Snapshot, edge_id: str, meta_id: str) -> Snapshot | None:
    edge = find_edge(snapshot, edge_id)
    if edge is None or not _has_item(_edge_meta(edge), meta_id):
        return None
    return update_edge(snapshot, edge_id, {"meta": _remove_item(_edge_meta(edge), meta_id)})
