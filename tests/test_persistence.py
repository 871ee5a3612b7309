"""Tests for snapshot persistence."""

import json

import pytest

from shiplog.core import KeyValueStore, SnapshotPersistence, STORAGE_KEY

from conftest import make_snapshot


class TestKeyValueStore:
    """File-backed key-value storage."""

    def test_get_missing_key(self, tmp_path):
        assert KeyValueStore(tmp_path).get("nothing") is None

    def test_set_overwrites(self, tmp_path):
        kv = KeyValueStore(tmp_path / "nested")
        assert kv.set("k", "one")
        assert kv.set("k", "two")
        assert kv.get("k") == "two"
        assert not (tmp_path / "nested" / "k.tmp").exists()

    def test_rejects_path_like_keys(self, tmp_path):
        with pytest.raises(ValueError):
            KeyValueStore(tmp_path).path_for("../escape")

    def test_delete(self, tmp_path):
        kv = KeyValueStore(tmp_path)
        kv.set("k", "v")
        kv.delete("k")
        assert kv.get("k") is None


class TestLoad:
    """Restoring at startup with seed fallback."""

    def setup_method(self):
        self.kv = None

    def _persistence(self, tmp_path, raw=None):
        self.kv = KeyValueStore(tmp_path)
        if raw is not None:
            self.kv.set(STORAGE_KEY, raw)
        return SnapshotPersistence(self.kv, background=False)

    def test_absent_falls_back_to_seed(self, tmp_path):
        snapshot = self._persistence(tmp_path).load()
        assert [n["data"]["title"] for n in snapshot["nodes"]] == ["Quantum Moon", "Ash Twin Project"]
        assert len(snapshot["edges"]) == 1
        edge = snapshot["edges"][0]
        assert edge["source"] == snapshot["nodes"][0]["id"]
        assert edge["target"] == snapshot["nodes"][1]["id"]

    @pytest.mark.parametrize("raw", ["{broken", "[]", "{\"nodes\": []}", "{\"edges\": []}"])
    def test_corrupt_falls_back_to_seed(self, tmp_path, raw):
        snapshot = self._persistence(tmp_path, raw).load()
        assert len(snapshot["nodes"]) == 2

    def test_non_utf8_file_falls_back_to_seed(self, tmp_path):
        persistence = self._persistence(tmp_path)
        self.kv.path_for(STORAGE_KEY).write_bytes(b'{"nodes": [], "edges": [] \xff\xfe}')
        snapshot = persistence.load()
        assert len(snapshot["nodes"]) == 2

    def test_restores_stored_snapshot(self, tmp_path):
        snapshot = self._persistence(tmp_path, json.dumps(make_snapshot())).load()
        assert snapshot == make_snapshot()


class TestSave:
    """Writing the present snapshot."""

    def test_save_writes_plain_document(self, tmp_path):
        kv = KeyValueStore(tmp_path)
        persistence = SnapshotPersistence(kv, background=False)
        assert persistence.save(make_snapshot())
        assert json.loads(kv.get(STORAGE_KEY)) == make_snapshot()
        assert (tmp_path / f"{STORAGE_KEY}.json").exists()

    def test_schedule_without_writer_saves_immediately(self, tmp_path):
        kv = KeyValueStore(tmp_path)
        persistence = SnapshotPersistence(kv, background=False)
        persistence.schedule(make_snapshot())
        assert json.loads(kv.get(STORAGE_KEY)) == make_snapshot()

    def test_background_writer_persists_latest(self, tmp_path):
        kv = KeyValueStore(tmp_path)
        persistence = SnapshotPersistence(kv)
        persistence.start()
        try:
            first = make_snapshot()
            latest = {"nodes": first["nodes"][:1], "edges": []}
            persistence.schedule(first)
            persistence.schedule(latest)
        finally:
            persistence.shutdown()
        assert json.loads(kv.get(STORAGE_KEY)) == latest

    def test_unserializable_snapshot_not_saved(self, tmp_path):
        persistence = SnapshotPersistence(KeyValueStore(tmp_path), background=False)
        assert not persistence.save({"nodes": [object()], "edges": []})

    def test_failed_write_returns_false(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        persistence = SnapshotPersistence(KeyValueStore(blocker), background=False)
        assert not persistence.save(make_snapshot())
