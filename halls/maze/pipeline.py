"""Regeneration loop producing one validated region.

Generate -> validate is repeated with fresh draws from the same stream until
the candidate passes validation and meets the traversable-fraction floor.
Every rejected attempt counts toward forcing: once more than
``max_validation_tries_before_forcing`` attempts have been rejected, the
validator may carve a block around a probe instead of failing. The loop is
capped at ``max_generation_attempts`` and raises ``GenerationError`` past it.
"""
from __future__ import annotations
import time
from typing import Any, Dict, List, NamedTuple, Optional, Sequence

from ..logging_utils import get_logger
from .config import RegionConfig
from .connectivity import RegionValidator
from .exits import Exit, extract_exits
from .generator import RegionGenerator, carve_home_clearing
from .grid import CellBox, Probe, RegionGrid
from .rng import RandomStream

log = get_logger("halls.maze.pipeline")


class GenerationError(RuntimeError):
    """Raised when no acceptable region could be produced."""


class RegionBuild(NamedTuple):
    grid: RegionGrid
    anchors: List[CellBox]
    exits: Dict[int, List[Exit]]
    attempts: int
    forced_probe: bool


def build_region(config: RegionConfig, rng: RandomStream, probes: Sequence[Probe], home: bool = False,
                 metrics: Optional[Dict[str, Any]] = None) -> RegionBuild:
    """Run the regeneration loop and return the first acceptable region.

    ``metrics`` (when given) is updated in place with attempt / rejection
    counters and a ``phase_ms`` breakdown of time spent per phase.
    """
    if metrics is not None:
        phase_times = metrics.setdefault('phase_ms', {})

        def _phase(label, fn, *a, **k):
            ps = time.perf_counter()
            r = fn(*a, **k)
            phase_times[label] = phase_times.get(label, 0) + int((time.perf_counter() - ps) * 1000)
            return r
    else:
        def _phase(label, fn, *a, **k):
            return fn(*a, **k)

    def _bump(key, n=1):
        if metrics is not None:
            metrics[key] = metrics.get(key, 0) + n

    start = time.perf_counter()
    generator = RegionGenerator(config)
    validator = RegionValidator(config, rng)
    rejected = 0
    attempts = 0
    while attempts < config.max_generation_attempts:
        attempts += 1
        _bump('generation_attempts')
        outputs = _phase('generate', generator.run, rng)
        if home:
            carve_home_clearing(outputs, config.home_clearing_half_width)
        force = rejected > config.max_validation_tries_before_forcing
        ok = _phase('validate', validator.validate, outputs.grid, probes, force, outputs.anchors)
        if not ok:
            rejected += 1
            _bump('rejected_' + ('edge' if validator.failure == 'no_edge_candidate' else validator.failure))
            continue
        fraction = outputs.grid.traversable_fraction()
        if fraction < config.min_traversable_fraction:
            rejected += 1
            _bump('rejected_fraction')
            log.debug(event="region_rejected", reason="fraction", fraction=round(fraction, 3), attempt=attempts)
            continue
        exits = _phase('exits', extract_exits, outputs.grid)
        _bump('regions_generated')
        _bump('forced_probes', 1 if validator.forced_probe else 0)
        _bump('edge_corridors', validator.corridors)
        _bump('component_joins', validator.joins)
        _bump('cells_discarded', validator.discarded)
        if metrics is not None:
            metrics['runtime_ms'] = metrics.get('runtime_ms', 0.0) + (time.perf_counter() - start) * 1000.0
        log.info(event="region_built", attempts=attempts, rows=outputs.grid.num_rows,
                 cols=outputs.grid.num_cols, fraction=round(fraction, 3), forced=validator.forced_probe, home=home)
        return RegionBuild(outputs.grid, outputs.anchors, exits, attempts, validator.forced_probe)
    log.error(event="region_generation_exhausted", attempts=attempts, probes=len(probes), home=home)
    raise GenerationError(f"no acceptable region after {attempts} attempts")


__all__ = ['build_region', 'RegionBuild', 'GenerationError']
