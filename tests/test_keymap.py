"""Tests for keyboard shortcut resolution."""

import pytest

from shiplog.core import resolve_key


@pytest.mark.parametrize("key, mod, shift, in_text_field, expected", [
    ("z", True, False, False, "undo"),
    ("Z", True, False, False, "undo"),
    ("z", True, True, False, "redo"),
    ("y", True, False, False, "redo"),
    ("z", True, False, True, "undo"),
    ("Delete", False, False, False, "delete_selection"),
    ("Backspace", False, False, False, "delete_selection"),
    ("Delete", False, False, True, None),
    ("n", False, False, False, "add_node"),
    ("N", False, True, False, "add_node"),
    ("n", False, False, True, None),
    ("Backspace", True, False, False, "delete_selection"),
    ("Delete", True, False, True, None),
    ("n", True, False, False, "add_node"),
    ("z", False, False, False, None),
    ("a", True, False, False, None),
    ("", False, False, False, None),
])
def test_resolve_key(key, mod, shift, in_text_field, expected):
    assert resolve_key(key, mod=mod, shift=shift, in_text_field=in_text_field) == expected
