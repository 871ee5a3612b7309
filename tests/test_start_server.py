"""Tests for the server startup script."""

import sys

import uvicorn

from shiplog import start_server
from shiplog.server.app import load_config


class TestMain:
    """Command-line flags end up in the editor configuration."""

    def setup_method(self):
        self.calls = []

    def _run(self, **kwargs):
        self.calls.append(kwargs)

    def test_flags_reach_config(self, monkeypatch, tmp_path):
        # main() writes os.environ directly; registering the names restores them afterwards
        for name in ("SHIPLOG_HTTP_PORT", "SHIPLOG_DATA_DIR", "SHIPLOG_HISTORY_LIMIT", "SHIPLOG_EXPORT_PREFIX"):
            monkeypatch.setenv(name, "unset")
        monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: self._run(**kwargs))
        monkeypatch.setattr(sys, "argv", [
            "shiplog-server", "--port", "9001", "--data-dir", str(tmp_path),
            "--history-limit", "3", "--export-prefix", "mylog",
        ])

        start_server.main()

        assert self.calls[0]["port"] == 9001
        config = load_config()
        assert config.data_dir == tmp_path
        assert config.history_limit == 3
        assert config.export_prefix == "mylog"
