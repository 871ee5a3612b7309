"""Core concept graph components."""

from .types import DetailItem, EdgeMetaItem, ConceptNode, ConceptEdge, Snapshot
from .constants import *
from .exceptions import *
from .history import HistoryState, Record, SetWithoutRecording, Undo, Redo, apply
from .codec import export_snapshot, import_snapshot, normalize_snapshot, parse_document
from .persistence import KeyValueStore, SnapshotPersistence
from .seed import seed_snapshot
from .keymap import resolve_key
from .utils import new_id, size_of, is_blank, export_filename
from . import mutations, changes

__all__ = [
    # Types
    "DetailItem",
    "EdgeMetaItem",
    "ConceptNode",
    "ConceptEdge",
    "Snapshot",
    # Constants
    "STORAGE_KEY",
    "DEFAULT_DATA_DIR",
    "NODE_TYPE",
    "NEW_NODE_TITLE",
    "UNTITLED_TITLE",
    "DEFAULT_COLOR",
    "COLOR_LABELS",
    "NODE_WIDTH",
    "NODE_HEIGHT",
    "MARKER_ARROW_CLOSED",
    "EXPORT_PREFIX",
    "DEFAULT_HTTP_HOST",
    "DEFAULT_HTTP_PORT",
    # Exceptions
    "ShipLogError",
    "MalformedDocument",
    "NodeNotFoundError",
    "EdgeNotFoundError",
    "ImportInProgress",
    # History
    "HistoryState",
    "Record",
    "SetWithoutRecording",
    "Undo",
    "Redo",
    "apply",
    # Codec
    "export_snapshot",
    "import_snapshot",
    "normalize_snapshot",
    "parse_document",
    # Classes
    "KeyValueStore",
    "SnapshotPersistence",
    # Utils
    "seed_snapshot",
    "resolve_key",
    "new_id",
    "size_of",
    "is_blank",
    "export_filename",
    "mutations",
    "changes",
]
