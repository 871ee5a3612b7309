"""Keyboard shortcuts for editor commands."""

UNDO = "undo"
REDO = "redo"
DELETE_SELECTION = "delete_selection"
ADD_NODE = "add_node"

COMMANDS = (UNDO, REDO, DELETE_SELECTION, ADD_NODE)


def resolve_key(key: str, mod: bool = False, shift: bool = False, in_text_field: bool = False) -> str | None:
    """
    Map a key press to an editor command, or None.

    `mod` is Ctrl (Cmd on macOS). Delete/Backspace and "N" fire with or without
    modifiers, but are ignored while a text field has focus.
    """
    if not key:
        return None
    lowered = key.lower()

    if mod and lowered == "z":
        return REDO if shift else UNDO
    if mod and lowered == "y":
        return REDO

    if key in ("Delete", "Backspace"):
        return None if in_text_field else DELETE_SELECTION
    if lowered == "n":
        return None if in_text_field else ADD_NODE
    return None
