"""FastAPI HTTP server hosting one ship log editor."""

import asyncio
import logging
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Literal

from fastapi import FastAPI, HTTPException, Request, Response, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from .. import __version__
from ..core import (
    STORAGE_KEY,
    DEFAULT_DATA_DIR,
    EXPORT_PREFIX,
    MalformedDocument,
    NodeNotFoundError,
    EdgeNotFoundError,
    ImportInProgress,
    mutations,
)
from .store import EditorStore, EditorConfig
from .websocket import ConnectionManager

# Configure logging
log_level = os.getenv("SHIPLOG_LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stderr
)
logger = logging.getLogger(__name__)

ColorLabel = Literal["purple", "orange", "green", "blue", "gray", "red", "yellow", "teal"]


# ============================================================================
# Request/Response Models
# ============================================================================

class ItemModel(BaseModel):
    """Detail or meta item."""
    id: str
    text: str


class NodePatchRequest(BaseModel):
    """Partial update of a node's data."""
    title: str | None = Field(None, description="Node title")
    color: ColorLabel | None = Field(None, description="Color label")
    details: list[ItemModel] | None = Field(None, description="Full replacement of the detail list")


class EdgePatchRequest(BaseModel):
    """Partial update of an edge's data."""
    meta: list[ItemModel] | None = Field(None, description="Full replacement of the meta list")


class ConnectRequest(BaseModel):
    """Request to connect two nodes."""
    source: str = Field(..., description="Source node ID")
    target: str = Field(..., description="Target node ID")


class TextRequest(BaseModel):
    """Text of a detail or meta item."""
    text: str


class SelectRequest(BaseModel):
    """Select a node or an edge. Both empty clears the selection."""
    node_id: str | None = None
    edge_id: str | None = None


class PositionModel(BaseModel):
    x: float
    y: float


class NodeChange(BaseModel):
    """Node change reported by the renderer."""
    type: Literal["position", "remove", "select", "dimensions"]
    id: str
    position: PositionModel | None = None
    dragging: bool = False
    selected: bool | None = None


class EdgeChange(BaseModel):
    """Edge change reported by the renderer."""
    type: Literal["remove", "select"]
    id: str
    selected: bool | None = None


class KeyRequest(BaseModel):
    """Key press forwarded by the UI shell."""
    key: str
    mod: bool = Field(False, description="Ctrl, or Cmd on macOS")
    shift: bool = False
    in_text_field: bool = False


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    nodes: int
    edges: int
    connections: int


# ============================================================================
# Global State
# ============================================================================

store: EditorStore | None = None
connection_manager: ConnectionManager | None = None
_broadcast_tasks: set[asyncio.Task] = set()


def load_config() -> EditorConfig:
    """Build editor configuration from SHIPLOG_* environment variables."""
    history_limit = os.getenv("SHIPLOG_HISTORY_LIMIT")
    return EditorConfig(
        data_dir=Path(os.getenv("SHIPLOG_DATA_DIR", DEFAULT_DATA_DIR)).expanduser(),
        storage_key=os.getenv("SHIPLOG_STORAGE_KEY", STORAGE_KEY),
        history_limit=int(history_limit) if history_limit else None,
        export_prefix=os.getenv("SHIPLOG_EXPORT_PREFIX", EXPORT_PREFIX),
    )


def _broadcast_view(view: dict):
    """Push a changed view to every connected renderer."""
    if not connection_manager or not connection_manager.count():
        return
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return
    task = loop.create_task(connection_manager.broadcast_all({"type": "snapshot", **view}))
    _broadcast_tasks.add(task)
    task.add_done_callback(_broadcast_tasks.discard)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    global store, connection_manager

    # Startup
    logger.info("Starting Ship Log Editor server...")

    config = load_config()
    connection_manager = ConnectionManager()
    store = EditorStore(config, on_change=_broadcast_view)

    logger.info(f"Server ready (storage: {config.data_dir / config.storage_key})")

    yield

    # Shutdown
    if store:
        store.shutdown()

    logger.info("Server stopped")


# Create FastAPI app
app = FastAPI(
    title="Ship Log Editor",
    description="Undoable concept graph editor state",
    version=__version__,
    lifespan=lifespan
)


def _require_store() -> EditorStore:
    if not store:
        raise HTTPException(status_code=500, detail="Store not initialized")
    return store


def _require_node(editor: EditorStore, node_id: str) -> dict:
    node = mutations.find_node(editor.present, node_id)
    if node is None:
        raise NodeNotFoundError(node_id)
    return node


def _require_edge(editor: EditorStore, edge_id: str) -> dict:
    edge = mutations.find_edge(editor.present, edge_id)
    if edge is None:
        raise EdgeNotFoundError(edge_id)
    return edge


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    editor = _require_store()
    return {
        "status": "ok",
        "version": __version__,
        "nodes": len(editor.present["nodes"]),
        "edges": len(editor.present["edges"]),
        "connections": connection_manager.count() if connection_manager else 0,
    }


@app.get("/api/snapshot")
async def read_snapshot():
    """Present snapshot with selection and undo/redo availability."""
    return _require_store().state()


@app.get("/api/view")
async def read_view():
    """Renderer view: nodes with derived size style, and edges."""
    return _require_store().view()


@app.post("/api/nodes")
async def add_node():
    """Add a new concept node near the canvas center."""
    return {"node": _require_store().add_node()}


@app.patch("/api/nodes/{node_id}")
async def update_node(node_id: str, request: NodePatchRequest):
    """Shallow-merge a data patch into a node."""
    editor = _require_store()
    patch = request.model_dump(exclude_none=True)
    try:
        _require_node(editor, node_id)
        editor.update_node(node_id, patch)
        return {"node": _require_node(editor, node_id)}
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/api/edges")
async def connect(request: ConnectRequest):
    """Connect two existing nodes."""
    editor = _require_store()
    try:
        _require_node(editor, request.source)
        _require_node(editor, request.target)
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"edge": editor.connect(request.source, request.target)}


@app.patch("/api/edges/{edge_id}")
async def update_edge(edge_id: str, request: EdgePatchRequest):
    """Shallow-merge a data patch into an edge."""
    editor = _require_store()
    patch = request.model_dump(exclude_none=True)
    try:
        _require_edge(editor, edge_id)
        editor.update_edge(edge_id, patch)
        return {"edge": _require_edge(editor, edge_id)}
    except EdgeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.post("/api/selection")
async def select(request: SelectRequest):
    """Select a node or an edge (node click, edge click, pane click)."""
    editor = _require_store()
    if request.node_id and request.edge_id:
        raise HTTPException(status_code=400, detail="Select either a node or an edge, not both")
    try:
        if request.node_id:
            _require_node(editor, request.node_id)
            editor.select_node(request.node_id)
        elif request.edge_id:
            _require_edge(editor, request.edge_id)
            editor.select_edge(request.edge_id)
        else:
            editor.clear_selection()
    except (NodeNotFoundError, EdgeNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"selection": editor.selection()}


@app.post("/api/selection/delete")
async def delete_selection():
    """Delete the selected node (with its edges) or the selected edge."""
    editor = _require_store()
    return {"deleted": editor.delete_selection(), "selection": editor.selection()}


# ============================================================================
# Details and meta
# ============================================================================

@app.post("/api/nodes/{node_id}/details")
async def add_detail(node_id: str, request: TextRequest):
    """Append a detail item to a node."""
    editor = _require_store()
    try:
        _require_node(editor, node_id)
    except NodeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    item = editor.add_detail(node_id, request.text)
    if item is None:
        raise HTTPException(status_code=400, detail="Detail text must not be blank")
    return {"item": item}


@app.patch("/api/nodes/{node_id}/details/{detail_id}")
async def update_detail(node_id: str, detail_id: str, request: TextRequest):
    """Replace the text of a detail item."""
    if not _require_store().update_detail(node_id, detail_id, request.text):
        raise HTTPException(status_code=404, detail=f"Detail '{detail_id}' not found on node '{node_id}'")
    return {"updated": True}


@app.delete("/api/nodes/{node_id}/details/{detail_id}")
async def delete_detail(node_id: str, detail_id: str):
    """Remove a detail item."""
    if not _require_store().delete_detail(node_id, detail_id):
        raise HTTPException(status_code=404, detail=f"Detail '{detail_id}' not found on node '{node_id}'")
    return {"deleted": True}


@app.post("/api/edges/{edge_id}/meta")
async def add_meta(edge_id: str, request: TextRequest):
    """Append a meta item to an edge."""
    editor = _require_store()
    try:
        _require_edge(editor, edge_id)
    except EdgeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    item = editor.add_meta(edge_id, request.text)
    if item is None:
        raise HTTPException(status_code=400, detail="Meta text must not be blank")
    return {"item": item}


@app.patch("/api/edges/{edge_id}/meta/{meta_id}")
async def update_meta(edge_id: str, meta_id: str, request: TextRequest):
    """Replace the text of a meta item."""
    if not _require_store().update_meta(edge_id, meta_id, request.text):
        raise HTTPException(status_code=404, detail=f"Meta '{meta_id}' not found on edge '{edge_id}'")
    return {"updated": True}


@app.delete("/api/edges/{edge_id}/meta/{meta_id}")
async def delete_meta(edge_id: str, meta_id: str):
    """Remove a meta item."""
    if not _require_store().delete_meta(edge_id, meta_id):
        raise HTTPException(status_code=404, detail=f"Meta '{meta_id}' not found on edge '{edge_id}'")
    return {"deleted": True}


# ============================================================================
# History, renderer changes, keyboard
# ============================================================================

@app.post("/api/history/undo")
async def undo():
    editor = _require_store()
    return {"changed": editor.undo(), **editor.state()}


@app.post("/api/history/redo")
async def redo():
    editor = _require_store()
    return {"changed": editor.redo(), **editor.state()}


@app.post("/api/changes/nodes")
async def node_changes(changes: list[NodeChange]):
    """Fold a renderer node change batch (drag, remove, select)."""
    editor = _require_store()
    batch = [c.model_dump(exclude_none=True) for c in changes]
    return {"changed": editor.apply_node_changes(batch), "selection": editor.selection()}


@app.post("/api/changes/edges")
async def edge_changes(changes: list[EdgeChange]):
    """Fold a renderer edge change batch (remove, select)."""
    editor = _require_store()
    batch = [c.model_dump(exclude_none=True) for c in changes]
    return {"changed": editor.apply_edge_changes(batch), "selection": editor.selection()}


@app.post("/api/keys")
async def key_press(request: KeyRequest):
    """Dispatch a keyboard shortcut."""
    editor = _require_store()
    command = editor.handle_key(request.key, mod=request.mod, shift=request.shift, in_text_field=request.in_text_field)
    return {"command": command, **editor.state()}


# ============================================================================
# Import / export
# ============================================================================

@app.get("/api/export")
async def export_json():
    """Download the present snapshot as a timestamped JSON file."""
    filename, text = _require_store().export_json()
    return Response(
        content=text,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/import")
async def import_json(request: Request):
    """
    Replace the present with an uploaded JSON document (undoable).
    Only one import may be pending at a time.
    """
    editor = _require_store()
    try:
        with editor.importing():
            body = await request.body()
            snapshot = editor.import_json(body)
    except ImportInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except MalformedDocument as e:
        logger.warning(f"Rejected import: {e.reason}")
        raise HTTPException(status_code=400, detail=f"Could not parse JSON: {e.reason}")

    return {"nodes": len(snapshot["nodes"]), "edges": len(snapshot["edges"])}


# ============================================================================
# WebSocket
# ============================================================================

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Push the renderer view on connect and after every change."""
    if not connection_manager or not store:
        await websocket.close(code=1011)
        return

    client_id = await connection_manager.connect(websocket)
    try:
        await connection_manager.send_personal(client_id, {"type": "snapshot", **store.view()})
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        connection_manager.disconnect(client_id)
