"""Ship log editor: undoable, persisted concept graph state."""

__version__ = "0.1.0"
