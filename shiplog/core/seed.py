"""Built-in starting graph used when nothing usable is persisted."""

from .constants import NODE_TYPE, NODE_PREFIX, EDGE_PREFIX, DETAIL_PREFIX, META_PREFIX, MARKER_ARROW_CLOSED
from .types import Snapshot
from .utils import new_id


def seed_snapshot() -> Snapshot:
    """Two sample nodes joined by one sample edge. Ids are fresh on every call."""
    moon = {
        "id": new_id(NODE_PREFIX),
        "type": NODE_TYPE,
        "position": {"x": 150, "y": 120},
        "data": {
            "title": "Quantum Moon",
            "color": "purple",
            "details": [
                {"id": new_id(DETAIL_PREFIX), "text": "Its position reacts to being observed"},
            ],
        },
    }
    twin = {
        "id": new_id(NODE_PREFIX),
        "type": NODE_TYPE,
        "position": {"x": 520, "y": 280},
        "data": {
            "title": "Ash Twin Project",
            "color": "orange",
            "details": [
                {"id": new_id(DETAIL_PREFIX), "text": "Tied to the energy/time loop"},
                {"id": new_id(DETAIL_PREFIX), "text": "Resets every 22 minutes"},
            ],
        },
    }
    link = {
        "id": new_id(EDGE_PREFIX),
        "source": moon["id"],
        "target": twin["id"],
        "type": "default",
        "markerEnd": {"type": MARKER_ARROW_CLOSED},
        "data": {"meta": [{"id": new_id(META_PREFIX), "text": "Related clue found"}]},
    }
    return {"nodes": [moon, twin], "edges": [link]}
