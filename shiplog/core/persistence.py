"""Snapshot persistence over a local key-value file store with atomic writes."""

import json
import logging
import os
import re
import threading
from pathlib import Path

from .codec import parse_document, normalize_snapshot
from .constants import STORAGE_KEY
from .exceptions import MalformedDocument
from .seed import seed_snapshot
from .types import Snapshot

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class KeyValueStore:
    """Durable string values, one JSON file per key under a root directory."""

    def __init__(self, root: Path):
        self.root = Path(root).expanduser()

    def path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key '{key}'")
        return self.root / f"{key}.json"

    def get(self, key: str) -> str | None:
        """Read the value for a key, or None if it was never written."""
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> bool:
        """
        Overwrite the value for a key with an atomic write.
        Returns True on success, False on failure.
        """
        path = self.path_for(key)
        temp_path = path.with_suffix(".tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)

            with open(temp_path, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename (POSIX guarantees atomicity)
            temp_path.replace(path)
            return True

        except OSError as e:
            logger.error(f"Failed to write {path}: {e}")
            if temp_path.exists():
                temp_path.unlink()
            return False

    def delete(self, key: str):
        path = self.path_for(key)
        if path.exists():
            path.unlink()


class SnapshotPersistence:
    """
    Keeps the present snapshot mirrored under a single storage key.

    Writes are fire-and-forget: `schedule()` hands the latest snapshot to a
    background writer and returns immediately. Only the most recent pending
    snapshot is written. `flush()` writes synchronously and is used on shutdown.
    """

    def __init__(self, store: KeyValueStore, key: str = STORAGE_KEY, background: bool = True):
        self.store = store
        self.key = key
        self.background = background

        self._pending: Snapshot | None = None
        self._pending_lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._wakeup = threading.Event()

        self.running = False
        self.writer_thread: threading.Thread | None = None

    def load(self) -> Snapshot:
        """
        Restore the persisted snapshot.
        Falls back to the seed snapshot if the value is absent, unparsable or incomplete.
        """
        try:
            raw = self.store.get(self.key)
        except OSError as e:
            logger.warning(f"Could not read stored snapshot '{self.key}': {e}")
            raw = None
        except UnicodeDecodeError as e:
            logger.warning(f"Stored snapshot '{self.key}' is not UTF-8 ({e.reason}), starting from seed")
            return seed_snapshot()

        if raw is None:
            logger.info(f"No stored snapshot under '{self.key}', starting from seed")
            return seed_snapshot()

        try:
            snapshot = normalize_snapshot(parse_document(raw))
        except MalformedDocument as e:
            logger.warning(f"Stored snapshot '{self.key}' is unusable ({e.reason}), starting from seed")
            return seed_snapshot()

        logger.info(f"Loaded snapshot '{self.key}': {len(snapshot['nodes'])} nodes, {len(snapshot['edges'])} edges")
        return snapshot

    def save(self, snapshot: Snapshot) -> bool:
        """Write a snapshot now. Returns True on success, False on failure."""
        try:
            text = json.dumps({"nodes": snapshot["nodes"], "edges": snapshot["edges"]}, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize snapshot: {e}")
            return False

        ok = self.store.set(self.key, text)
        if ok:
            logger.debug(f"Saved snapshot '{self.key}'")
        return ok

    def schedule(self, snapshot: Snapshot):
        """Queue a snapshot for writing without waiting for it."""
        if not self.background or not self.running:
            with self._write_lock:
                self.save(snapshot)
            return

        with self._pending_lock:
            self._pending = snapshot
        self._wakeup.set()

    def flush(self) -> bool:
        """Write the pending snapshot, if any, synchronously."""
        return self._write_pending()

    def _write_pending(self) -> bool:
        with self._write_lock:
            with self._pending_lock:
                snapshot, self._pending = self._pending, None
            if snapshot is None:
                return True
            return self.save(snapshot)

    def start(self):
        """Start the background writer."""
        if not self.background or self.running:
            return
        self.running = True
        self.writer_thread = threading.Thread(target=self._writer_loop, daemon=True)
        self.writer_thread.start()

    def _writer_loop(self):
        """Background thread writing whatever snapshot is pending."""
        while self.running:
            self._wakeup.wait()
            self._wakeup.clear()
            self._write_pending()

    def shutdown(self):
        """Stop the writer and persist the last pending snapshot."""
        if self.running:
            self.running = False
            self._wakeup.set()
            if self.writer_thread:
                self.writer_thread.join(timeout=5)
        self.flush()
