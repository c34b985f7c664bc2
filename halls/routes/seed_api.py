"""Seed management API routes.

Creates worlds from a caller-supplied (or random) seed and publishes the
per-region exploration seeds peers need to reproduce the same layouts.
"""
import hashlib
import random
import re

from flask import Blueprint, current_app, jsonify, request

from halls.maze import WorldGraph
from halls.maze.rng import to_int32
from halls.routes.world_api import get_world, register_world, _worlds_lock

bp_seed = Blueprint("seed_api", __name__)

_INT_RE = re.compile(r"-?[0-9]+", re.ASCII)


class SeedError(ValueError):
    pass


def _coerce_seed(payload_seed):
    """Convert a provided seed (int, str or None) into a signed 32-bit int.

    Digit strings are parsed, any other string is hashed with sha256 so the
    same phrase always yields the same world.
    """
    if payload_seed is None:
        return random.randint(1, 1_000_000)
    if isinstance(payload_seed, bool):
        raise SeedError("seed must be an integer or string")
    if isinstance(payload_seed, int):
        return to_int32(payload_seed)
    if isinstance(payload_seed, str):
        s = payload_seed.strip()
        if not s:
            return random.randint(1, 1_000_000)
        if _INT_RE.fullmatch(s):
            return to_int32(int(s))
        h = hashlib.sha256(s.encode("utf-8")).digest()
        return int.from_bytes(h[:4], "big", signed=True)
    raise SeedError("seed must be an integer or string")


@bp_seed.route("/api/world/seed", methods=["POST"])
def create_world():
    """Create a world.

    Body JSON (all optional):
      { "seed": <int|str|null> }

    Response: { "world_id": <str>, "seed": <int>, "home": <int>, "live": <int> }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object expected"}), 400
    try:
        seed = _coerce_seed(data.get("seed"))
    except SeedError as e:
        return jsonify({"error": str(e)}), 400
    world = WorldGraph(current_app.config["HALLS_WORLD_CONFIG"], seed)
    world_id = register_world(world)
    return jsonify({"world_id": world_id, "seed": world.seed, "home": world.home, "live": world.live_count})


@bp_seed.route("/api/world/<world_id>/seeds", methods=["GET"])
def world_seeds(world_id):
    world = get_world(world_id)
    with _worlds_lock:
        return jsonify(world.seed_manifest())
