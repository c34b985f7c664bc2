#!/usr/bin/env python3
"""Region structural diagnostics for specific world seeds.

Usage:
  python scripts/diagnose_seeds.py 292372 730727 --steps 12

Builds each world, walks ``--steps`` explorations and analyses every region
that was ever live. If no seeds are provided as CLI args, a default list is
used. Exits with non-zero status if structural issues are detected.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List

# Ensure project root on path if executed directly
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from halls.maze import WorldGraph  # noqa: E402 import after path fix
from halls.maze.debug_checks import analyze  # noqa: E402 import after path fix

DEFAULT_SEEDS = [292372, 730727]


def run_for_seed(seed: int, steps: int) -> dict:
    world = WorldGraph(seed=seed)
    seen = {}
    for node in world.regions.values():
        seen[node.index] = analyze(node.grid)
    for _ in range(steps):
        current = next((n for n in world.regions.values() if n.has_trigger), None)
        if current is None:
            break
        created = world.explore(current.index)
        if created is not None:
            seen[created] = analyze(world.region(created).grid)
    bad = {idx: r for idx, r in seen.items() if not r["ok"]}
    issues = {
        "regions_checked": len(seen),
        "bad_regions": sorted(bad),
        "over_live_cap": world.live_count > world.config.max_total_regions,
        "forced_probes": world.metrics.get("forced_probes", 0),
    }
    ok = not bad and not issues["over_live_cap"]
    return {"seed": seed, "issues": issues, "ok": ok}


def main(argv: List[str]) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("seeds", nargs="*", type=int)
    parser.add_argument("--steps", type=int, default=10)
    args = parser.parse_args(argv)
    seeds = args.seeds or DEFAULT_SEEDS
    results = [run_for_seed(s, args.steps) for s in seeds]
    print(json.dumps({"results": results}, indent=2))
    # Non-zero exit if any failure
    if not all(r["ok"] for r in results):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
