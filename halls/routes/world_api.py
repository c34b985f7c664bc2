"""
project: Endless Halls
module: world_api.py
License: MIT

World inspection and visitor-event API routes.

Worlds live in a small in-process registry keyed by a short hex id. Every
read and mutation of a world happens under the registry lock so a world only
ever sees one request at a time.
"""

import threading
import uuid
from collections import OrderedDict

from flask import Blueprint, abort, current_app, jsonify, request

from halls.maze import WorldGraph

bp_world = Blueprint("world_api", __name__)

_worlds: "OrderedDict[str, WorldGraph]" = OrderedDict()
_worlds_lock = threading.RLock()


def register_world(world: WorldGraph) -> str:
    """Store ``world`` and return its id, evicting the oldest worlds past ``HALLS_MAX_WORLDS``."""
    cap = int(current_app.config.get("HALLS_MAX_WORLDS", 8))
    world_id = uuid.uuid4().hex[:12]
    with _worlds_lock:
        _worlds[world_id] = world
        while len(_worlds) > max(1, cap):
            _worlds.popitem(last=False)
    return world_id


def get_world(world_id: str) -> WorldGraph:
    with _worlds_lock:
        world = _worlds.get(world_id)
    if world is None:
        abort(404)
    return world


def clear_worlds() -> None:
    with _worlds_lock:
        _worlds.clear()


def _payload() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400)
    return data


def _is_local(data: dict) -> bool:
    value = data.get("is_local", True)
    if not isinstance(value, bool):
        abort(400)
    return value


def _bad_request(message: str):
    return jsonify({"error": message}), 400


@bp_world.route("/api/world/<world_id>", methods=["GET"])
def world_summary(world_id):
    world = get_world(world_id)
    with _worlds_lock:
        return jsonify(world.to_dict())


@bp_world.route("/api/world/<world_id>/regions", methods=["GET"])
def list_regions(world_id):
    world = get_world(world_id)
    with _worlds_lock:
        return jsonify({"regions": [n.summary() for _, n in sorted(world.regions.items())]})


@bp_world.route("/api/world/<world_id>/regions/<int:index>", methods=["GET"])
def region_detail(world_id, index):
    world = get_world(world_id)
    with _worlds_lock:
        return jsonify(world.region(index).to_dict())


@bp_world.route("/api/world/<world_id>/explore", methods=["POST"])
def explore(world_id):
    """Exploration trigger fired for a region.

    Body JSON: { "region": <int>, "is_local": <bool, default true> }
    Response: { "created": <int|null>, "destroyed": [<int>...], "live": <int>, "home": <int> }
    """
    world = get_world(world_id)
    data = _payload()
    index = data.get("region")
    if not isinstance(index, int) or isinstance(index, bool):
        return _bad_request("region must be an integer")
    is_local = _is_local(data)
    with _worlds_lock:
        before = set(world.regions)
        created = world.explore(index, is_local=is_local)
        destroyed = sorted(before - set(world.regions))
        return jsonify({"created": created, "destroyed": destroyed, "live": world.live_count, "home": world.home})


@bp_world.route("/api/world/<world_id>/zones/<int:zone_id>/enter", methods=["POST"])
def enter_zone(world_id, zone_id):
    world = get_world(world_id)
    is_local = _is_local(_payload())
    with _worlds_lock:
        if zone_id not in world.lights.zones:
            return jsonify({"error": "unknown zone", "zone": zone_id}), 404
        changed = world.enter_zone(zone_id, is_local=is_local)
        return jsonify({"changed": sorted(changed), "lit": world.lights.lit_zones()})


@bp_world.route("/api/world/<world_id>/respawn", methods=["POST"])
def respawn(world_id):
    world = get_world(world_id)
    is_local = _is_local(_payload())
    with _worlds_lock:
        target = world.respawn(is_local=is_local)
        return jsonify({"teleport": list(target) if target else None, "lit": world.lights.lit_zones()})


@bp_world.route("/api/world/<world_id>/landing", methods=["POST"])
def landing(world_id):
    world = get_world(world_id)
    is_local = _is_local(_payload())
    with _worlds_lock:
        target = world.landing(is_local=is_local)
        return jsonify({"teleport": list(target) if target else None})


@bp_world.route("/api/world/<world_id>/portables", methods=["POST"])
def add_portable(world_id):
    """Register a portable object: { "name", "x", "y", "z"?, "held"?, "owned"? }."""
    world = get_world(world_id)
    data = _payload()
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        return _bad_request("name is required")
    try:
        x = float(data["x"])
        y = float(data["y"])
        z = float(data.get("z", 0.0))
    except (KeyError, TypeError, ValueError):
        return _bad_request("x and y must be numbers")
    with _worlds_lock:
        p = world.add_portable(name.strip(), x, y, z, bool(data.get("held", False)), bool(data.get("owned", True)))
        return jsonify({"name": p.name, "x": p.x, "y": p.y, "z": p.z, "held": p.held, "owned": p.owned}), 201
