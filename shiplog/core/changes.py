"""Folding renderer change batches back into snapshots."""

from .mutations import find_node, move_node
from .types import Snapshot

# Change kinds the renderer sends
POSITION = "position"
REMOVE = "remove"
SELECT = "select"
DIMENSIONS = "dimensions"


def fold_positions(snapshot: Snapshot, changes: list[dict]) -> tuple[Snapshot, bool]:
    """
    Apply every position change in a batch.

    Returns the next snapshot and whether the batch ends a drag gesture
    (a position change carrying `dragging: False`). Changes for unknown
    nodes and changes without a position are skipped.
    """
    settled = False
    for change in changes:
        if change.get("type") != POSITION:
            continue
        if not change.get("dragging", False):
            settled = True
        position = change.get("position")
        if position is None or find_node(snapshot, change.get("id")) is None:
            continue
        snapshot = move_node(snapshot, change["id"], position)
    return snapshot, settled


def removed_ids(changes: list[dict]) -> list[str]:
    """Ids of entities the renderer asked to remove, in batch order."""
    return [c["id"] for c in changes if c.get("type") == REMOVE and c.get("id")]


def selected_id(changes: list[dict]) -> tuple[bool, str | None]:
    """
    Resolve the selection a batch ends with.
    Returns (touched, id): touched is False when the batch has no select changes.
    """
    touched = False
    current = None
    for change in changes:
        if change.get("type") != SELECT:
            continue
        touched = True
        if change.get("selected"):
            current = change.get("id")
        elif current == change.get("id"):
            current = None
    return touched, current
