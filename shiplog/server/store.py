"""Editor store: owns the undo history, selection and persistence of one concept graph."""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from ..core import (
    HistoryState,
    Record,
    SetWithoutRecording,
    Undo,
    Redo,
    apply,
    KeyValueStore,
    SnapshotPersistence,
    Snapshot,
    ImportInProgress,
    STORAGE_KEY,
    DEFAULT_DATA_DIR,
    EXPORT_PREFIX,
    mutations,
    changes,
    export_snapshot,
    import_snapshot,
    export_filename,
    resolve_key,
    size_of,
    is_blank,
)
from ..core import keymap

logger = logging.getLogger(__name__)


@dataclass
class EditorConfig:
    """Configuration for the editor store."""
    data_dir: Path = Path(DEFAULT_DATA_DIR).expanduser()
    storage_key: str = STORAGE_KEY
    history_limit: int | None = None
    export_prefix: str = EXPORT_PREFIX
    background_writes: bool = True


class EditorStore:
    """
    Single-writer editor state.

    Every mutation computes the next snapshot with the pure functions in
    `core.mutations` and feeds it through the history reducer. Operations whose
    target does not exist return a falsy value and leave history untouched.
    Each change of the present snapshot is persisted and announced to `on_change`.
    """

    def __init__(
        self,
        config: EditorConfig,
        size_policy: Callable[[int], dict] = size_of,
        on_change: Callable[[dict], None] | None = None,
    ):
        self.config = config
        self.size_policy = size_policy
        self.on_change = on_change

        self.persistence = SnapshotPersistence(
            KeyValueStore(config.data_dir),
            config.storage_key,
            background=config.background_writes,
        )

        # Thread safety
        self.lock = threading.RLock()

        # Ephemeral, never part of history
        self.selected_node_id: str | None = None
        self.selected_edge_id: str | None = None
        self._drag_origin: Snapshot | None = None
        self._import_pending = False

        # Restoring from storage is not an undoable step
        initial = self.persistence.load()
        self.history = apply(
            HistoryState(present={"nodes": [], "edges": []}, max_past=config.history_limit),
            SetWithoutRecording(initial),
        )
        self.persistence.start()

        logger.info(f"Editor store initialized: {len(initial['nodes'])} nodes, {len(initial['edges'])} edges")

    # ========================================================================
    # State access
    # ========================================================================

    @property
    def present(self) -> Snapshot:
        return self.history.present

    def state(self) -> dict:
        """Present snapshot plus selection and history flags."""
        with self.lock:
            return {
                "snapshot": self.history.present,
                "selection": self.selection(),
                "can_undo": self.history.can_undo,
                "can_redo": self.history.can_redo,
            }

    def selection(self) -> dict:
        return {"node_id": self.selected_node_id, "edge_id": self.selected_edge_id}

    def view(self) -> dict:
        """Nodes with their derived size style, and edges, as handed to the renderer."""
        with self.lock:
            present = self.history.present
            nodes = [
                {**n, "style": self.size_policy(len(n["data"].get("details") or []))}
                for n in present["nodes"]
            ]
            return {"nodes": nodes, "edges": present["edges"], "selection": self.selection()}

    def _commit(self, snapshot: Snapshot | None, record: bool = True) -> bool:
        """Adopt a snapshot computed from the present. Caller must hold lock."""
        if snapshot is None:
            return False

        if record:
            self._drag_origin = None
            self.history = apply(self.history, Record(snapshot))
        else:
            self.history = apply(self.history, SetWithoutRecording(snapshot))

        self._changed()
        return True

    def _changed(self):
        """Persist and announce the present. Caller must hold lock."""
        self.persistence.schedule(self.history.present)
        if self.on_change:
            self.on_change(self.view())

    # ========================================================================
    # Selection
    # ========================================================================

    def select_node(self, node_id: str) -> bool:
        with self.lock:
            if mutations.find_node(self.present, node_id) is None:
                return False
            self.selected_node_id = node_id
            self.selected_edge_id = None
            return True

    def select_edge(self, edge_id: str) -> bool:
        with self.lock:
            if mutations.find_edge(self.present, edge_id) is None:
                return False
            self.selected_edge_id = edge_id
            self.selected_node_id = None
            return True

    def clear_selection(self):
        with self.lock:
            self.selected_node_id = None
            self.selected_edge_id = None

    # ========================================================================
    # Nodes and edges
    # ========================================================================

    def add_node(self) -> dict:
        """Add a "New Concept" node near the canvas center."""
        with self.lock:
            node = mutations.make_node()
            self._commit(mutations.add_node(self.present, node))
            logger.debug(f"Added node '{node['id']}'")
            return node

    def connect(self, source: str, target: str) -> dict | None:
        """Connect two existing nodes. Returns the new edge, or None."""
        with self.lock:
            snapshot = mutations.connect(self.present, source, target)
            if not self._commit(snapshot):
                logger.warning(f"Rejected connection {source}->{target}: endpoint not found")
                return None
            edge = snapshot["edges"][-1]
            logger.debug(f"Connected {source}->{target} as '{edge['id']}'")
            return edge

    def delete_selection(self) -> bool:
        """Delete the selected node (with its edges) or the selected edge."""
        with self.lock:
            if self.selected_node_id:
                node_id = self.selected_node_id
                self.selected_node_id = None
                return self.delete_node(node_id)
            if self.selected_edge_id:
                edge_id = self.selected_edge_id
                self.selected_edge_id = None
                return self.delete_edge(edge_id)
            return False

    def delete_node(self, node_id: str) -> bool:
        with self.lock:
            before = len(self.present["edges"])
            if not self._commit(mutations.delete_node(self.present, node_id)):
                return False
            if self.selected_node_id == node_id:
                self.selected_node_id = None
            if self.selected_edge_id and mutations.find_edge(self.present, self.selected_edge_id) is None:
                self.selected_edge_id = None
            logger.debug(f"Deleted node '{node_id}' and {before - len(self.present['edges'])} edges")
            return True

    def delete_edge(self, edge_id: str) -> bool:
        with self.lock:
            if not self._commit(mutations.delete_edge(self.present, edge_id)):
                return False
            if self.selected_edge_id == edge_id:
                self.selected_edge_id = None
            logger.debug(f"Deleted edge '{edge_id}'")
            return True

    def update_node(self, node_id: str, patch: dict) -> bool:
        if not patch:
            return False
        with self.lock:
            return self._commit(mutations.update_node(self.present, node_id, patch))

    def update_edge(self, edge_id: str, patch: dict) -> bool:
        if not patch:
            return False
        with self.lock:
            return self._commit(mutations.update_edge(self.present, edge_id, patch))

    # ========================================================================
    # Details and meta
    # ========================================================================

    def add_detail(self, node_id: str, text: str) -> dict | None:
        """Append a detail item. Blank text is dropped."""
        if is_blank(text):
            logger.warning(f"Ignored blank detail for node '{node_id}'")
            return None
        with self.lock:
            snapshot = mutations.add_detail(self.present, node_id, text)
            if not self._commit(snapshot):
                return None
            return mutations.find_node(snapshot, node_id)["data"]["details"][-1]

    def update_detail(self, node_id: str, detail_id: str, text: str) -> bool:
        with self.lock:
            return self._commit(mutations.update_detail(self.present, node_id, detail_id, text))

    def delete_detail(self, node_id: str, detail_id: str) -> bool:
        with self.lock:
            return self._commit(mutations.delete_detail(self.present, node_id, detail_id))

    def add_meta(self, edge_id: str, text: str) -> dict | None:
        """Append an edge meta item. Blank text is dropped."""
        if is_blank(text):
            logger.warning(f"Ignored blank meta for edge '{edge_id}'")
            return None
        with self.lock:
            snapshot = mutations.add_meta(self.present, edge_id, text)
            if not self._commit(snapshot):
                return None
            return mutations.find_edge(snapshot, edge_id)["data"]["meta"][-1]

    def update_meta(self, edge_id: str, meta_id: str, text: str) -> bool:
        with self.lock:
            return self._commit(mutations.update_meta(self.present, edge_id, meta_id, text))

    def delete_meta(self, edge_id: str, meta_id: str) -> bool:
        with self.lock:
            return self._commit(mutations.delete_meta(self.present, edge_id, meta_id))

    # ========================================================================
    # History
    # ========================================================================

    def _move(self, action) -> bool:
        """Caller must hold lock."""
        before = self.history
        self.history = apply(self.history, action)
        if self.history is before:
            return False
        self._drag_origin = None
        self._prune_selection()
        self._changed()
        return True

    def undo(self) -> bool:
        with self.lock:
            return self._move(Undo())

    def redo(self) -> bool:
        with self.lock:
            return self._move(Redo())

    def _prune_selection(self):
        """Drop a selection that no longer exists in the present. Caller must hold lock."""
        if self.selected_node_id and mutations.find_node(self.present, self.selected_node_id) is None:
            self.selected_node_id = None
        if self.selected_edge_id and mutations.find_edge(self.present, self.selected_edge_id) is None:
            self.selected_edge_id = None

    # ========================================================================
    # Import / export
    # ========================================================================

    def export_json(self) -> tuple[str, str]:
        """Return (filename, JSON text) for the present snapshot."""
        with self.lock:
            return export_filename(self.config.export_prefix), export_snapshot(self.present)

    @contextmanager
    def importing(self):
        """Guard an import that awaits its input; a second concurrent import is refused."""
        with self.lock:
            if self._import_pending:
                raise ImportInProgress()
            self._import_pending = True
        try:
            yield
        finally:
            with self.lock:
                self._import_pending = False

    def import_json(self, text: str | bytes) -> Snapshot:
        """
        Replace the present with an imported document, as an undoable step.
        Raises MalformedDocument and leaves all state untouched on bad input.
        """
        snapshot = import_snapshot(text)
        with self.lock:
            self.clear_selection()
            self._commit(snapshot)
            logger.info(f"Imported document: {len(snapshot['nodes'])} nodes, {len(snapshot['edges'])} edges")
            return snapshot

    # ========================================================================
    # Renderer change notifications
    # ========================================================================

    def apply_node_changes(self, batch: list[dict]) -> bool:
        """
        Fold a renderer node change batch into the editor state.

        Positions during a drag update the present without recording; the batch
        that ends the gesture records one entry whose undo returns to the
        position before the drag started.
        """
        with self.lock:
            touched, selected = changes.selected_id(batch)
            if touched:
                if selected:
                    self.select_node(selected)
                elif self.selected_node_id:
                    self.selected_node_id = None

            changed = False
            present = self.present
            moved, settled = changes.fold_positions(present, batch)

            if settled:
                origin = self._drag_origin if self._drag_origin is not None else present
                self._drag_origin = None
                if moved != origin:
                    self.history = apply(self.history, SetWithoutRecording(origin))
                    changed = self._commit(moved)
                elif moved != present:
                    # Dropped back where it started
                    changed = self._commit(moved, record=False)
            elif moved is not present:
                if self._drag_origin is None:
                    self._drag_origin = present
                changed = self._commit(moved, record=False)

            removed = changes.removed_ids(batch)
            if removed:
                snapshot = self.present
                for node_id in removed:
                    snapshot = mutations.delete_node(snapshot, node_id) or snapshot
                if snapshot is not self.present:
                    changed = self._commit(snapshot) or changed
                    self._prune_selection()

            return changed

    def apply_edge_changes(self, batch: list[dict]) -> bool:
        """Fold a renderer edge change batch (removals, selection) into the editor state."""
        with self.lock:
            touched, selected = changes.selected_id(batch)
            if touched:
                if selected:
                    self.select_edge(selected)
                elif self.selected_edge_id:
                    self.selected_edge_id = None

            removed = changes.removed_ids(batch)
            snapshot = self.present
            for edge_id in removed:
                snapshot = mutations.delete_edge(snapshot, edge_id) or snapshot
            if snapshot is self.present:
                return False
            self._commit(snapshot)
            self._prune_selection()
            return True

    # ========================================================================
    # Keyboard
    # ========================================================================

    def handle_key(self, key: str, mod: bool = False, shift: bool = False, in_text_field: bool = False) -> str | None:
        """Dispatch a key press. Returns the command that ran, or None."""
        command = resolve_key(key, mod=mod, shift=shift, in_text_field=in_text_field)
        if command == keymap.UNDO:
            self.undo()
        elif command == keymap.REDO:
            self.redo()
        elif command == keymap.DELETE_SELECTION:
            self.delete_selection()
        elif command == keymap.ADD_NODE:
            self.add_node()
        return command

    def shutdown(self):
        """Persist the present and stop the background writer."""
        logger.info("Shutting down editor store...")
        with self.lock:
            self.persistence.schedule(self.history.present)
        self.persistence.shutdown()
        logger.info("Editor store shutdown complete")
