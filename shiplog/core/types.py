"""Type definitions for the concept graph snapshot."""

from typing import TypedDict, NotRequired


class Position(TypedDict):
    x: float
    y: float


class DetailItem(TypedDict):
    """Ordered text fact attached to a node."""
    id: str
    text: str


class EdgeMetaItem(TypedDict):
    """Ordered text fact attached to an edge."""
    id: str
    text: str


class ConceptNodeData(TypedDict):
    title: str
    color: str  # one of COLOR_LABELS, unknown labels survive imports
    details: list[DetailItem]


class ConceptEdgeData(TypedDict):
    meta: list[EdgeMetaItem]


class ConceptNode(TypedDict):
    """Node in the concept graph."""
    id: str
    type: str
    position: Position
    data: ConceptNodeData


class ConceptEdge(TypedDict):
    """Edge in the concept graph."""
    id: str
    source: str
    target: str
    data: ConceptEdgeData
    markerEnd: NotRequired[dict]
    type: NotRequired[str]


class Snapshot(TypedDict):
    """Complete graph state at one point in time."""
    nodes: list[ConceptNode]
    edges: list[ConceptEdge]
