#!/usr/bin/env python3
"""
Startup script for the Ship Log Editor server.

Usage:
    shiplog-server [--port PORT] [--host HOST] [--data-dir DIR] [--history-limit N]
                   [--export-prefix PREFIX]

Environment variables:
    SHIPLOG_HTTP_PORT: Server port (default: 8770)
    SHIPLOG_HTTP_HOST: Server host (default: 127.0.0.1)
    SHIPLOG_LOG_LEVEL: Logging level (default: INFO)
    SHIPLOG_DATA_DIR: Directory of the local key-value store (default: ~/.shiplog)
    SHIPLOG_STORAGE_KEY: Key the snapshot is stored under (default: ow_shiplog_snapshot_v1)
    SHIPLOG_HISTORY_LIMIT: Max undo depth (default: unbounded)
    SHIPLOG_EXPORT_PREFIX: Export filename prefix (default: btspr-log)
"""

import argparse
import os
import sys

from .core import DEFAULT_HTTP_HOST, DEFAULT_HTTP_PORT


def main():
    """Start the HTTP server."""
    parser = argparse.ArgumentParser(description="Ship Log Editor server")
    parser.add_argument("--port", type=int, default=None, help=f"Server port (default: {DEFAULT_HTTP_PORT})")
    parser.add_argument("--host", default=None, help=f"Server host (default: {DEFAULT_HTTP_HOST})")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    parser.add_argument("--data-dir", default=None, help="Storage directory (default: ~/.shiplog)")
    parser.add_argument("--history-limit", type=int, default=None, help="Max undo depth (default: unbounded)")
    parser.add_argument("--export-prefix", default=None, help="Export filename prefix (default: btspr-log)")

    args = parser.parse_args()

    # Set environment variables from args if provided
    if args.port:
        os.environ["SHIPLOG_HTTP_PORT"] = str(args.port)
    if args.host:
        os.environ["SHIPLOG_HTTP_HOST"] = args.host
    if args.log_level:
        os.environ["SHIPLOG_LOG_LEVEL"] = args.log_level.upper()
    if args.data_dir:
        os.environ["SHIPLOG_DATA_DIR"] = args.data_dir
    if args.history_limit is not None:
        os.environ["SHIPLOG_HISTORY_LIMIT"] = str(args.history_limit)
    if args.export_prefix:
        os.environ["SHIPLOG_EXPORT_PREFIX"] = args.export_prefix

    # Get final config
    port = int(os.getenv("SHIPLOG_HTTP_PORT", str(DEFAULT_HTTP_PORT)))
    host = os.getenv("SHIPLOG_HTTP_HOST", DEFAULT_HTTP_HOST)
    log_level = os.getenv("SHIPLOG_LOG_LEVEL", "INFO").lower()

    print(f"Starting Ship Log Editor on {host}:{port}")
    print(f"Log level: {log_level.upper()}")
    print("Press Ctrl+C to stop")
    print("")

    try:
        import uvicorn
        from .server.app import app

        uvicorn.run(
            app,
            host=host,
            port=port,
            log_level=log_level,
        )
    except KeyboardInterrupt:
        print("\nServer stopped by user")
    except Exception as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
