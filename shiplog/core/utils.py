"""Utility functions for ship log editor operations."""

import secrets
import time
from datetime import datetime, timezone

from .constants import NODE_WIDTH, NODE_HEIGHT, EXPORT_PREFIX


def new_id(prefix: str = "id") -> str:
    """Generate a session-unique id: random hex plus the millisecond clock."""
    return f"{prefix}_{secrets.token_hex(6)}_{int(time.time() * 1000):x}"


def size_of(count: int) -> dict:
    """Node size for a given detail count. Fixed for now, count is ignored."""
    return {"width": NODE_WIDTH, "height": NODE_HEIGHT}


def is_blank(text: str | None) -> bool:
    """Check if text is empty or whitespace only."""
    return text is None or not text.strip()


def export_filename(prefix: str = EXPORT_PREFIX, now: datetime | None = None) -> str:
    """Generate export filename, e.g. btspr-log-2025-01-31-18-04-59.json."""
    now = now or datetime.now(timezone.utc)
    return f"{prefix}-{now.strftime('%Y-%m-%d-%H-%M-%S')}.json"
