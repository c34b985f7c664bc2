"""Border exit extraction and exit-to-probe mapping."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

from .directions import NORTH, EAST, SOUTH, WEST, DIRECTIONS, NAMES
from .grid import Probe, RegionGrid, edges

VERTICAL_TOLERANCE = 0.01
FIXED_COORD_TOLERANCE = 0.1


@dataclass(frozen=True)
class Exit:
    """Maximal open interval ``[start, end]`` along one border of a region."""
    side: int
    start: float
    end: float

    @property
    def length(self) -> float:
        return self.end - self.start

    def segment(self, side_length: float) -> Tuple[float, float, float, float]:
        if self.side == WEST:
            return (0.0, self.start, 0.0, self.end)
        if self.side == EAST:
            return (side_length, self.start, side_length, self.end)
        if self.side == SOUTH:
            return (self.start, 0.0, self.end, 0.0)
        return (self.start, side_length, self.end, side_length)

    def to_dict(self) -> dict:
        return {'side': NAMES[self.side], 'start': self.start, 'end': self.end}


def classify(x0: float, y0: float, x1: float, y1: float) -> int:
    """Side of a border segment: vertical runs are west/east, horizontal south/north."""
    if abs(x0 - x1) < VERTICAL_TOLERANCE:
        return WEST if x0 <= FIXED_COORD_TOLERANCE else EAST
    return SOUTH if y0 <= FIXED_COORD_TOLERANCE else NORTH


def _segments(grid: RegionGrid, direction: int) -> List[Tuple[float, float, float, float]]:
    S = grid.side_length
    cells = grid.side_cells(direction)
    if direction in (NORTH, SOUTH):
        bounds = edges(grid.columns)
        fixed = S if direction == NORTH else 0.0
        along = [j for _, j in cells]
    else:
        bounds = edges(grid.rows)
        fixed = S if direction == EAST else 0.0
        along = [i for i, _ in cells]
    out = []
    start = None
    for k, (i, j) in zip(along, cells):
        if grid.traversable[i][j]:
            if start is None:
                start = bounds[k]
            continue
        if start is not None:
            out.append((start, bounds[k]))
            start = None
    if start is not None:
        out.append((start, bounds[len(along)]))
    if direction in (NORTH, SOUTH):
        return [(a, fixed, b, fixed) for a, b in out]
    return [(fixed, a, fixed, b) for a, b in out]


def extract_exits(grid: RegionGrid) -> Dict[int, List[Exit]]:
    exits: Dict[int, List[Exit]] = {d: [] for d in DIRECTIONS}
    for d in DIRECTIONS:
        for x0, y0, x1, y1 in _segments(grid, d):
            side = classify(x0, y0, x1, y1)
            if side in (WEST, EAST):
                exits[side].append(Exit(side, y0, y1))
            else:
                exits[side].append(Exit(side, x0, x1))
    return exits


def probes_for(exits: Iterable[Exit], side_length: float) -> List[Probe]:
    """Map exits of a region into probes on the facing border of the neighbour it grows."""
    S = side_length
    probes = []
    for e in exits:
        if e.side == NORTH:
            probes.append(Probe(e.start, 0.0, e.end, 0.0))
        elif e.side == SOUTH:
            probes.append(Probe(e.start, S, e.end, S))
        elif e.side == EAST:
            probes.append(Probe(0.0, e.start, 0.0, e.end))
        else:
            probes.append(Probe(S, e.start, S, e.end))
    return probes


__all__ = ['Exit', 'classify', 'extract_exits', 'probes_for']
