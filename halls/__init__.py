"""
project: Endless Halls
module: __init__.py
License: MIT

Flask application factory.

Wires the world/seed blueprints and JSON error handlers. Configuration comes
from ``HALLS_*`` environment variables (optionally via a ``.env`` file) with
the maze defaults from :mod:`halls.maze.config`. A local ``instance/``
directory holds runtime files such as the rotating log.
"""

import logging
import os
import uuid
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

from halls.maze import ConfigError, GenerationError, UnknownRegionError, WorldConfig

# Load .env if present so HALLS_* settings can be supplied without exporting
# shell variables during development.
load_dotenv()


def _load_version() -> str:
    path = Path(__file__).resolve().parent.parent / "VERSION"
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return "0.0.0"


__version__ = _load_version()


def create_app(test_config: dict | None = None) -> Flask:
    """Build and return a configured Flask app.

    ``test_config`` entries override environment-derived settings. Invalid
    maze parameters raise ``ConfigError`` here rather than on first request.
    """
    app = Flask(__name__, instance_relative_config=True)
    try:
        os.makedirs(app.instance_path, exist_ok=True)
    except OSError:
        pass

    app.config.update(
        SECRET_KEY=os.getenv("SECRET_KEY", "dev-secret-change-me"),
        HALLS_MAX_WORLDS=int(os.getenv("HALLS_MAX_WORLDS", "8")),
    )
    app.config.update({k: v for k, v in os.environ.items() if k.startswith("HALLS_") and k != "HALLS_MAX_WORLDS"})
    if test_config:
        app.config.update(test_config)
    app.config["HALLS_WORLD_CONFIG"] = WorldConfig.from_mapping(app.config)

    from halls.routes.seed_api import bp_seed
    from halls.routes.world_api import bp_world

    app.register_blueprint(bp_seed)
    app.register_blueprint(bp_world)

    @app.errorhandler(UnknownRegionError)
    def unknown_region(e):
        return jsonify({"error": "unknown region", "region": str(e.args[0]) if e.args else None}), 404

    @app.errorhandler(ConfigError)
    def bad_config(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(GenerationError)
    def generation_failed(e):
        logging.warning("Region generation failed: %s", e)
        return jsonify({"error": "generation failed", "detail": str(e)}), 503

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "not found"}), 404

    # In non-debug mode return a JSON 500 and log details with an error id
    @app.errorhandler(500)
    def internal_error(e):
        error_id = uuid.uuid4().hex[:8]
        logging.exception("Unhandled exception (id=%s)", error_id)
        return jsonify({"error": "internal error", "error_id": error_id}), 500

    return app
