"""Minimal structured logging helper.

Emits one ``key=value`` line (or one JSON object) per event with a timestamp
and level. The maze core logs generation attempts, forced probes, pruning and
re-homing through this helper so runs can be grepped without any handler
setup.

Usage:
    from halls.logging_utils import get_logger
    log = get_logger("halls.maze.world")
    log.info(event="region_created", index=3, x=0, y=1)

Environment:
    HALLS_LOG_LEVEL  debug | info | warn | error (default info)
    HALLS_LOG_JSON   1/true/yes/on to emit JSON lines

Reserved keys: level, ts, logger.
"""

from __future__ import annotations

import json
import os
import sys
import time

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
CURRENT_LEVEL = LEVELS.get(os.getenv("HALLS_LOG_LEVEL", "info").lower(), 20)
JSON_MODE = os.getenv("HALLS_LOG_JSON", "0").lower() in ("1", "true", "yes", "on")


def configure(level: str | None = None, json_mode: bool | None = None) -> None:
    """Override the env-derived level / output mode at runtime (CLI flags, tests)."""
    global CURRENT_LEVEL, JSON_MODE
    if level is not None:
        if level.lower() not in LEVELS:
            raise ValueError(f"unknown log level: {level!r}")
        CURRENT_LEVEL = LEVELS[level.lower()]
    if json_mode is not None:
        JSON_MODE = bool(json_mode)


def _format(level: str, **fields) -> str:
    ts = int(time.time())
    if JSON_MODE:
        rec = {k: v for k, v in fields.items() if v is not None}
        rec["level"] = level
        rec["ts"] = ts
        return json.dumps(rec, separators=(",", ":"), default=repr)
    parts = [f"level={level}", f"ts={ts}"]
    for k, v in fields.items():
        if v is None:
            continue
        if isinstance(v, (bool, int, float)):
            parts.append(f"{k}={v}")
        else:
            parts.append(f"{k}={str(v).replace(' ', '_')}")
    return " ".join(parts)


class StructuredLogger:
    def __init__(self, name: str | None = None):
        self.name = name or "halls"

    def _log(self, lvl: str, **fields) -> None:
        if LEVELS[lvl] < CURRENT_LEVEL:
            return
        fields.setdefault("logger", self.name)
        print(_format(lvl, **fields), file=sys.stderr if lvl == "error" else sys.stdout)

    def debug(self, **fields) -> None:
        self._log("debug", **fields)

    def info(self, **fields) -> None:
        self._log("info", **fields)

    def warn(self, **fields) -> None:
        self._log("warn", **fields)

    def error(self, **fields) -> None:
        self._log("error", **fields)


_LOGGER_CACHE: dict[str, StructuredLogger] = {}


def get_logger(name: str) -> StructuredLogger:
    if name not in _LOGGER_CACHE:
        _LOGGER_CACHE[name] = StructuredLogger(name)
    return _LOGGER_CACHE[name]


log = get_logger("halls")
