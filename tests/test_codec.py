"""Tests for JSON import/export."""

import json
from datetime import datetime, timezone

import pytest

from shiplog.core import (
    export_snapshot,
    import_snapshot,
    normalize_snapshot,
    export_filename,
    MalformedDocument,
)

from conftest import make_snapshot


class TestExport:
    """Serializing snapshots."""

    def test_export_is_indented_json(self):
        text = export_snapshot(make_snapshot())
        assert text.startswith("{\n  \"nodes\"")
        assert json.loads(text) == make_snapshot()

    def test_export_keeps_non_ascii(self):
        snapshot = make_snapshot()
        snapshot["nodes"][0]["data"]["title"] = "양자 달"
        assert "양자 달" in export_snapshot(snapshot)

    def test_round_trip_is_idempotent(self):
        snapshot = make_snapshot()
        assert import_snapshot(export_snapshot(snapshot)) == snapshot

    def test_export_filename(self):
        stamp = datetime(2025, 1, 31, 18, 4, 59, tzinfo=timezone.utc)
        assert export_filename("btspr-log", stamp) == "btspr-log-2025-01-31-18-04-59.json"

    def test_export_filename_default_prefix(self):
        assert export_filename().startswith("btspr-log-")


class TestImportDefaults:
    """Lenient normalization of foreign documents."""

    def test_missing_node_fields_get_defaults(self):
        doc = {"nodes": [{"id": "a", "position": {"x": 1, "y": 2}}], "edges": []}
        node = import_snapshot(json.dumps(doc))["nodes"][0]
        assert node["type"] == "concept"
        assert node["data"] == {"title": "Untitled", "color": "gray", "details": []}
        assert node["position"] == {"x": 1, "y": 2}

    def test_missing_color_defaults_to_gray(self):
        doc = {"nodes": [{"id": "a", "data": {"title": "A", "details": []}}], "edges": []}
        assert import_snapshot(json.dumps(doc))["nodes"][0]["data"]["color"] == "gray"

    def test_unknown_color_kept(self):
        doc = {"nodes": [{"id": "a", "data": {"color": "magenta"}}], "edges": []}
        assert import_snapshot(json.dumps(doc))["nodes"][0]["data"]["color"] == "magenta"

    def test_empty_title_kept(self):
        doc = {"nodes": [{"id": "a", "data": {"title": ""}}], "edges": []}
        assert import_snapshot(json.dumps(doc))["nodes"][0]["data"]["title"] == ""

    def test_missing_meta_defaults_to_empty(self):
        doc = {
            "nodes": [{"id": "a"}, {"id": "b"}],
            "edges": [{"id": "e", "source": "a", "target": "b"}],
        }
        edge = import_snapshot(json.dumps(doc))["edges"][0]
        assert edge["data"] == {"meta": []}
        assert edge["markerEnd"] == {"type": "arrowclosed"}

    def test_extra_fields_pass_through(self):
        doc = {
            "nodes": [{"id": "a", "width": 220, "data": {"title": "A", "extra": 1}}],
            "edges": [],
        }
        node = import_snapshot(json.dumps(doc))["nodes"][0]
        assert node["width"] == 220
        assert "extra" not in node["data"]

    def test_edge_to_unknown_node_dropped(self):
        doc = {
            "nodes": [{"id": "a"}],
            "edges": [{"id": "e", "source": "a", "target": "ghost"}],
        }
        assert import_snapshot(json.dumps(doc))["edges"] == []

    def test_missing_ids_generated(self):
        doc = {"nodes": [{"data": {"title": "A"}}], "edges": []}
        assert import_snapshot(json.dumps(doc))["nodes"][0]["id"].startswith("node_")

    def test_numeric_ids_become_strings(self):
        doc = {"nodes": [{"id": 1}, {"id": 2}], "edges": [{"id": 3, "source": 1, "target": 2}]}
        snapshot = import_snapshot(json.dumps(doc))
        assert [n["id"] for n in snapshot["nodes"]] == ["1", "2"]
        assert snapshot["edges"][0]["source"] == "1"

    def test_normalize_accepts_bytes_source(self):
        doc = json.dumps({"nodes": [], "edges": []}).encode("utf-8")
        assert import_snapshot(doc) == {"nodes": [], "edges": []}

    def test_normalize_is_idempotent(self):
        once = normalize_snapshot({"nodes": [{"id": "a"}], "edges": []})
        assert normalize_snapshot(once) == once

    def test_items_without_ids_get_ids(self):
        doc = {
            "nodes": [{"id": "a", "data": {"details": [{"text": "no id"}, {"id": 7}]}}, {"id": "b"}],
            "edges": [{"id": "e", "source": "a", "target": "b", "data": {"meta": [{"text": "m"}]}}],
        }
        snapshot = import_snapshot(json.dumps(doc))
        details = snapshot["nodes"][0]["data"]["details"]
        assert details[0]["id"].startswith("d_")
        assert details[0]["text"] == "no id"
        assert details[1] == {"id": "7", "text": ""}
        assert snapshot["edges"][0]["data"]["meta"][0]["id"].startswith("m_")

    def test_null_item_lists_default_to_empty(self):
        doc = {"nodes": [{"id": "a", "data": {"details": None}}], "edges": []}
        assert import_snapshot(json.dumps(doc))["nodes"][0]["data"]["details"] == []


class TestImportRejects:
    """Structurally invalid documents."""

    @pytest.mark.parametrize("text", [
        "not json",
        "{\"nodes\": [",
        "[]",
        "42",
        "{\"nodes\": []}",
        "{\"edges\": []}",
        "{\"nodes\": null, \"edges\": []}",
        "{\"nodes\": {}, \"edges\": []}",
        "{\"nodes\": [1], \"edges\": []}",
        "{\"nodes\": [{\"id\": [1]}], \"edges\": []}",
        "{\"nodes\": [{\"id\": \"a\", \"data\": {\"details\": 5}}], \"edges\": []}",
        "{\"nodes\": [{\"id\": \"a\", \"data\": {\"details\": [\"text\"]}}], \"edges\": []}",
        "{\"nodes\": [{\"id\": \"a\"}, {\"id\": \"b\"}], \"edges\": [{\"source\": \"a\", \"target\": \"b\", \"data\": {\"meta\": {}}}]}",
    ])
    def test_malformed(self, text):
        with pytest.raises(MalformedDocument):
            import_snapshot(text)

    def test_reason_in_message(self):
        with pytest.raises(MalformedDocument, match="missing 'edges'"):
            import_snapshot("{\"nodes\": []}")
