"""Connectivity validation for freshly generated region grids.

Validation runs in a fixed order, mutating the grid in place:

1. justify: trim to the bounding box of traversable cells, rescale both axes
   back to the side length and shift light-zone anchors accordingly;
2. seed: find traversable cells under the probes (the exits of the region we
   are growing from, or the centre square for the home region). When nothing
   seeds and forcing is enabled a block is carved around one probe;
3. flood fill from the seeds and discard every traversable cell not reached;
4. join: seeds under separate probes can leave several components, each
   smaller one is linked to the largest by a single-cell corridor;
5. edge forcing: give every border without traversable cells a single-cell
   corridor toward a random traversable cell.

A grid that passes is a single 4-connected component touching all four sides.
"""
from __future__ import annotations
from collections import deque
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from ..logging_utils import get_logger
from .config import RegionConfig
from .debug_checks import components
from .directions import EAST, SOUTH, WEST, DIRECTIONS
from .grid import Cell, CellBox, Probe, RegionGrid, band_at, edges
from .rng import RandomStream

log = get_logger("halls.maze.connectivity")

LINE_TOLERANCE = 0.01
OVERLAP_TOLERANCE = 0.1
RANDOM_PICK_TRIES = 20

UNVISITED = -1
QUEUED = 0
VISITED = 1


def justify_grid(grid: RegionGrid, anchors: List[CellBox]) -> bool:
    """Trim ``grid`` to its traversable extent. Returns False when nothing is traversable."""
    open_rows = [i for i, r in enumerate(grid.traversable) if any(r)]
    if not open_rows:
        return False
    open_cols = [j for j in range(grid.num_cols) if any(r[j] for r in grid.traversable)]
    r0, r1 = open_rows[0], open_rows[-1]
    c0, c1 = open_cols[0], open_cols[-1]
    S = grid.side_length
    rows = grid.rows[r0:r1 + 1]
    cols = grid.columns[c0:c1 + 1]
    rs, cs = sum(rows), sum(cols)
    grid.rows = [s * S / rs for s in rows]
    grid.columns = [s * S / cs for s in cols]
    grid.traversable = [list(r[c0:c1 + 1]) for r in grid.traversable[r0:r1 + 1]]
    R, C = grid.num_rows, grid.num_cols
    kept = []
    for box in anchors:
        b = box.shifted(-r0, -c0)
        if b.row1 < 0 or b.col1 < 0 or b.row0 >= R or b.col0 >= C:
            continue
        kept.append(CellBox(max(0, b.row0), max(0, b.col0), min(R - 1, b.row1), min(C - 1, b.col1)))
    anchors[:] = kept
    return True


def probe_kind(probe: Probe) -> str:
    """``'vertical'`` (west/east border line), ``'horizontal'`` (south/north) or ``'area'``."""
    width = abs(probe.x1 - probe.x0)
    height = abs(probe.y1 - probe.y0)
    if width < LINE_TOLERANCE and height >= LINE_TOLERANCE:
        return 'vertical'
    if height < LINE_TOLERANCE and width >= LINE_TOLERANCE:
        return 'horizontal'
    return 'area'


def _band_overlaps(sizes: Sequence[float], lo: float, hi: float) -> List[Tuple[int, float]]:
    if hi < lo:
        lo, hi = hi, lo
    if hi - lo < LINE_TOLERANCE:
        return [(band_at(list(sizes), (lo + hi) / 2.0), 0.0)]
    bounds = edges(list(sizes))
    out = []
    for k in range(len(sizes)):
        ov = min(hi, bounds[k + 1]) - max(lo, bounds[k])
        if ov > 0:
            out.append((k, ov))
    return out


def seed_probe(grid: RegionGrid, probe: Probe, min_cell_size: float) -> List[Cell]:
    """Traversable cells under ``probe`` wide enough to pass through.

    Border probes group the traversable cells along the line into contiguous
    runs; a run seeds when its overlap with the probe is at least
    ``min(min_cell_size, probe length)`` minus a small tolerance. Area probes
    seed every traversable cell they overlap.
    """
    kind = probe_kind(probe)
    if kind == 'area':
        rows = _band_overlaps(grid.rows, probe.y0, probe.y1)
        cols = _band_overlaps(grid.columns, probe.x0, probe.x1)
        return [(i, j) for i, _ in rows for j, _ in cols if grid.traversable[i][j]]
    if kind == 'vertical':
        fixed = band_at(grid.columns, probe.x0)
        along = _band_overlaps(grid.rows, probe.y0, probe.y1)
        length = abs(probe.y1 - probe.y0)
        cell = lambda k: (k, fixed)  # noqa: E731
    else:
        fixed = band_at(grid.rows, probe.y0)
        along = _band_overlaps(grid.columns, probe.x0, probe.x1)
        length = abs(probe.x1 - probe.x0)
        cell = lambda k: (fixed, k)  # noqa: E731
    needed = min(min_cell_size, length) - OVERLAP_TOLERANCE
    seeds: List[Cell] = []
    run: List[Cell] = []
    run_overlap = 0.0
    for k, ov in along + [(None, 0.0)]:
        c = cell(k) if k is not None else None
        if c is not None and grid.traversable[c[0]][c[1]]:
            run.append(c)
            run_overlap += ov
            continue
        if run and run_overlap >= needed:
            seeds.extend(run)
        run = []
        run_overlap = 0.0
    return seeds


def seed_probes(grid: RegionGrid, probes: Iterable[Probe], min_cell_size: float) -> List[Cell]:
    seeds: List[Cell] = []
    seen: Set[Cell] = set()
    for p in probes:
        for c in seed_probe(grid, p, min_cell_size):
            if c not in seen:
                seen.add(c)
                seeds.append(c)
    return seeds


def force_probe(grid: RegionGrid, anchors: List[CellBox], probe: Probe) -> List[Cell]:
    """Carve a block around the probe midpoint, register it as an anchor and return its cells."""
    R, C = grid.num_rows, grid.num_cols
    i, j = grid.cell_at(*probe.midpoint)
    kind = probe_kind(probe)
    if kind == 'vertical':
        rows = range(max(0, i - 1), min(R, i + 2))
        if j == 0:
            cols = range(0, max(1, C // 2))
        elif j == C - 1:
            cols = range(C // 2, C)
        else:
            cols = range(C // 4, max(C // 4 + 1, 3 * C // 4))
    elif kind == 'horizontal':
        cols = range(max(0, j - 1), min(C, j + 2))
        if i == 0:
            rows = range(0, max(1, R // 2))
        elif i == R - 1:
            rows = range(R // 2, R)
        else:
            rows = range(R // 4, max(R // 4 + 1, 3 * R // 4))
    else:
        rows = range(max(0, i - 1), min(R, i + 2))
        cols = range(max(0, j - 1), min(C, j + 2))
    cells = [(r, c) for r in rows for c in cols]
    for r, c in cells:
        grid.traversable[r][c] = True
    anchors.append(CellBox(rows[0], cols[0], rows[-1], cols[-1]))
    return cells


def flood_fill(grid: RegionGrid, seeds: Iterable[Cell]) -> int:
    """Keep only traversable cells 4-connected to ``seeds``. Returns the number discarded."""
    R, C = grid.num_rows, grid.num_cols
    state = [[UNVISITED] * C for _ in range(R)]
    q = deque()
    for s in seeds:
        if grid.is_open(*s) and state[s[0]][s[1]] == UNVISITED:
            state[s[0]][s[1]] = QUEUED
            q.append(s)
    while q:
        ci, cj = q.popleft()
        state[ci][cj] = VISITED
        for di, dj in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            ni, nj = ci + di, cj + dj
            if 0 <= ni < R and 0 <= nj < C and state[ni][nj] == UNVISITED and grid.traversable[ni][nj]:
                state[ni][nj] = QUEUED
                q.append((ni, nj))
    discarded = 0
    for i in range(R):
        for j in range(C):
            if grid.traversable[i][j] and state[i][j] != VISITED:
                grid.traversable[i][j] = False
                discarded += 1
    return discarded


def _l_path(a: Cell, b: Cell) -> Tuple[List[Cell], List[Cell]]:
    """Row leg then column leg of a single-cell path from ``a`` to ``b``."""
    (ai, aj), (bi, bj) = a, b
    step = 1 if bi >= ai else -1
    rows = [(i, aj) for i in range(ai, bi + step, step)]
    step = 1 if bj >= aj else -1
    cols = [(bi, j) for j in range(aj, bj + step, step)]
    return rows, cols


def join_components(grid: RegionGrid, anchors: List[CellBox]) -> int:
    """Link every smaller component to the largest with a single-cell corridor.

    Each corridor goes between the closest pair of cells (Manhattan distance)
    and its straight legs are registered as anchors. Returns corridors carved.
    """
    comps = components(grid)
    if len(comps) < 2:
        return 0
    comps.sort(key=len, reverse=True)
    main: Set[Cell] = set(comps[0])
    joined = 0
    for comp in comps[1:]:
        best = None
        for a in comp:
            for b in sorted(main):
                d = abs(a[0] - b[0]) + abs(a[1] - b[1])
                if best is None or d < best[0]:
                    best = (d, a, b)
        _, a, b = best
        for leg in _l_path(a, b):
            for i, j in leg:
                grid.traversable[i][j] = True
                main.add((i, j))
            anchors.append(CellBox(min(c[0] for c in leg), min(c[1] for c in leg),
                                   max(c[0] for c in leg), max(c[1] for c in leg)))
        main.update(comp)
        joined += 1
    return joined


def random_open_cell(grid: RegionGrid, rng: RandomStream, tries: int = RANDOM_PICK_TRIES) -> Optional[Cell]:
    """Uniform random traversable cell: ``tries`` random picks, then a linear scan."""
    R, C = grid.num_rows, grid.num_cols
    if R == 0 or C == 0:
        return None
    for _ in range(tries):
        i, j = rng.below(R), rng.below(C)
        if grid.traversable[i][j]:
            return (i, j)
    for cell in grid.iter_open():
        return cell
    return None


def carve_corridor(grid: RegionGrid, direction: int, target: Cell) -> CellBox:
    """Open cells from the ``direction`` border toward ``target`` until traversable space is met."""
    R, C = grid.num_rows, grid.num_cols
    ti, tj = target
    if direction == WEST:
        path = [(ti, j) for j in range(0, tj + 1)]
    elif direction == EAST:
        path = [(ti, j) for j in range(C - 1, tj - 1, -1)]
    elif direction == SOUTH:
        path = [(i, tj) for i in range(0, ti + 1)]
    else:
        path = [(i, tj) for i in range(R - 1, ti - 1, -1)]
    carved = []
    for i, j in path:
        if grid.traversable[i][j]:
            break
        grid.traversable[i][j] = True
        carved.append((i, j))
    rows = [c[0] for c in carved] or [ti]
    cols = [c[1] for c in carved] or [tj]
    return CellBox(min(rows), min(cols), max(rows), max(cols))


def force_edge_connectivity(grid: RegionGrid, anchors: List[CellBox], rng: RandomStream) -> Optional[int]:
    """Ensure every border has a traversable cell. Returns corridors carved, or None if impossible."""
    corridors = 0
    for d in DIRECTIONS:
        if grid.has_open_side(d):
            continue
        target = random_open_cell(grid, rng)
        if target is None:
            return None
        anchors.append(carve_corridor(grid, d, target))
        corridors += 1
    return corridors


class RegionValidator:
    """Runs the validation phases against one candidate grid.

    ``validate`` returns a bool; after a run, ``failure`` names the failing
    phase (``'empty'``, ``'no_seed'`` or ``'no_edge_candidate'``) and the
    counters describe the repairs that were made.
    """

    def __init__(self, config: RegionConfig, rng: RandomStream):
        self.config = config
        self.rng = rng
        self.failure: Optional[str] = None
        self.forced_probe = False
        self.corridors = 0
        self.discarded = 0
        self.joins = 0

    def validate(self, grid: RegionGrid, probes: Sequence[Probe], force: bool = False,
                 anchors: Optional[List[CellBox]] = None) -> bool:
        self.failure = None
        self.forced_probe = False
        self.corridors = 0
        self.discarded = 0
        self.joins = 0
        if anchors is None:
            anchors = []
        if not justify_grid(grid, anchors):
            self.failure = 'empty'
            return False
        seeds = seed_probes(grid, probes, self.config.min_cell_size)
        if not seeds:
            if not force or not probes:
                self.failure = 'no_seed'
                return False
            probe = probes[self.rng.below(len(probes))]
            seeds = force_probe(grid, anchors, probe)
            self.forced_probe = True
            log.info(event="forced_probe", kind=probe_kind(probe), x=round(probe.midpoint[0], 2),
                     y=round(probe.midpoint[1], 2), cells=len(seeds))
        self.discarded = flood_fill(grid, seeds)
        self.joins = join_components(grid, anchors)
        if self.joins:
            log.debug(event="components_joined", count=self.joins)
        corridors = force_edge_connectivity(grid, anchors, self.rng)
        if corridors is None:
            self.failure = 'no_edge_candidate'
            log.error(event="edge_forcing_failed", rows=grid.num_rows, cols=grid.num_cols)
            return False
        self.corridors = corridors
        if corridors:
            log.debug(event="edge_corridors", count=corridors)
        return True


__all__ = [
    'RegionValidator', 'justify_grid', 'seed_probe', 'seed_probes', 'force_probe', 'flood_fill',
    'force_edge_connectivity', 'join_components', 'carve_corridor', 'random_open_cell', 'probe_kind',
]
