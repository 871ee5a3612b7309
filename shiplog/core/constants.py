"""Constants for ship log editor operations."""

# Storage
STORAGE_KEY = "ow_shiplog_snapshot_v1"
DEFAULT_DATA_DIR = "~/.shiplog"

# Node defaults
NODE_TYPE = "concept"
NEW_NODE_TITLE = "New Concept"
UNTITLED_TITLE = "Untitled"
DEFAULT_COLOR = "gray"
COLOR_LABELS = ("purple", "orange", "green", "blue", "gray", "red", "yellow", "teal")

# New nodes land in a box near the canvas center
NEW_NODE_ORIGIN = (280.0, 160.0)
NEW_NODE_SPREAD = 120.0

# Node size policy
NODE_WIDTH = 220
NODE_HEIGHT = 56

# Edge rendering hint
MARKER_ARROW_CLOSED = "arrowclosed"

# Id prefixes
NODE_PREFIX = "node"
EDGE_PREFIX = "edge"
DETAIL_PREFIX = "d"
META_PREFIX = "m"

# Export
EXPORT_PREFIX = "btspr-log"
EXPORT_INDENT = 2

# HTTP
DEFAULT_HTTP_HOST = "127.0.0.1"
DEFAULT_HTTP_PORT = 8770
