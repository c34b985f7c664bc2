"""
project: Endless Halls
module: server.py
License: MIT

Server bootstrap: logging setup and the development server entry point.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from flask import Flask

from halls import create_app


def start_server(host="0.0.0.0", port=5000, debug: bool = False):  # pragma: no cover (runtime only)
    """Build the app, configure logging and run the Flask development server."""
    app = create_app()
    _configure_logging(app)
    try:
        print(f"[INFO] Starting Endless Halls server on {host}:{port}")
        app.run(host=host, port=port, debug=debug)
    except KeyboardInterrupt:
        print("\n[INFO] Server stopped by user (Ctrl+C)")
        sys.exit(0)


def _configure_logging(app: Flask) -> str:
    """Configure logging to both console and a rotating file in the instance folder.

    The file path is ``<instance>/halls.log``; a few backups are retained.
    Re-running replaces the root handlers instead of stacking duplicates.
    Returns the log file path.
    """
    log_dir = app.instance_path
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError:
        pass
    log_path = os.path.join(log_dir, "halls.log")

    root = logging.getLogger()
    root.setLevel(logging.INFO)
    fmt = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(fmt)

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(fmt)

    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    root.addHandler(file_handler)
    root.addHandler(console)
    return log_path
