"""Shared fixtures for ship log editor tests."""

import pytest

from shiplog.server.store import EditorStore, EditorConfig


def make_snapshot():
    """Two nodes joined by one edge, every field populated."""
    return {
        "nodes": [
            {
                "id": "a",
                "type": "concept",
                "position": {"x": 0, "y": 0},
                "data": {"title": "A", "color": "blue", "details": [{"id": "d1", "text": "first"}]},
            },
            {
                "id": "b",
                "type": "concept",
                "position": {"x": 100, "y": 50},
                "data": {"title": "B", "color": "red", "details": []},
            },
        ],
        "edges": [
            {
                "id": "e1",
                "source": "a",
                "target": "b",
                "markerEnd": {"type": "arrowclosed"},
                "data": {"meta": [{"id": "m1", "text": "why"}]},
            },
        ],
    }


@pytest.fixture
def snapshot():
    return make_snapshot()


@pytest.fixture
def config(tmp_path):
    return EditorConfig(data_dir=tmp_path, background_writes=False)


@pytest.fixture
def store(config):
    """Editor store restored from a known snapshot instead of the seed."""
    from shiplog.core import KeyValueStore, export_snapshot

    KeyValueStore(config.data_dir).set(config.storage_key, export_snapshot(make_snapshot()))
    editor = EditorStore(config)
    yield editor
    editor.shutdown()
