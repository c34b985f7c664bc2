from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .directions import DIRECTIONS, NAMES
from .exits import Exit
from .grid import CellBox, RegionGrid

OPEN = 'open'
LINKED = 'linked'
FENCED = 'fenced'


@dataclass
class RegionNode:
    """One live region of the world, owned by the WorldGraph arena.

    ``neighbors`` holds arena indices (or None) in N/E/S/W order; ``sides``
    records whether each border is still open, linked to a neighbour or
    permanently fenced.
    """
    index: int
    coords: Tuple[int, int]
    grid: RegionGrid
    anchors: List[CellBox]
    exits: Dict[int, List[Exit]]
    seeds: List[List[int]]
    neighbors: List[Optional[int]] = field(default_factory=lambda: [None] * 4)
    sides: List[str] = field(default_factory=lambda: [OPEN] * 4)
    zone_ids: List[int] = field(default_factory=list)
    fixtures: List[Tuple[float, float]] = field(default_factory=list)
    explore_counts: List[int] = field(default_factory=lambda: [0] * 4)
    has_trigger: bool = False
    destroyed: bool = False

    @property
    def side_length(self) -> float:
        return self.grid.side_length

    @property
    def origin(self) -> Tuple[float, float]:
        """World position of the south-west corner."""
        return (self.coords[0] * self.side_length, self.coords[1] * self.side_length)

    @property
    def center(self) -> Tuple[float, float]:
        ox, oy = self.origin
        half = self.side_length / 2.0
        return (ox + half, oy + half)

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        ox, oy = self.origin
        return (ox, oy, ox + self.side_length, oy + self.side_length)

    def contains(self, x: float, y: float) -> bool:
        x0, y0, x1, y1 = self.bounds
        return x0 <= x <= x1 and y0 <= y <= y1

    def to_world(self, x: float, y: float) -> Tuple[float, float]:
        ox, oy = self.origin
        return (ox + x, oy + y)

    def next_seed(self, direction: int) -> int:
        """Seed for the next exploration entered from ``direction``.

        A region is explored once, so only slot 0 is used on the normal path;
        later slots are consumed only when an exploration fails with
        ``GenerationError`` and the trigger is fired again.
        """
        slots = self.seeds[direction]
        seed = slots[self.explore_counts[direction] % len(slots)]
        self.explore_counts[direction] += 1
        return seed

    def summary(self) -> dict:
        return {
            'index': self.index,
            'coords': list(self.coords),
            'neighbors': {NAMES[d]: self.neighbors[d] for d in DIRECTIONS},
            'sides': {NAMES[d]: self.sides[d] for d in DIRECTIONS},
            'has_trigger': self.has_trigger,
            'rows': self.grid.num_rows,
            'cols': self.grid.num_cols,
        }

    def to_dict(self) -> dict:
        x0, y0, x1, y1 = self.bounds
        data = self.summary()
        data.update({
            'corners': [[x0, y0], [x1, y0], [x1, y1], [x0, y1]],
            'grid': self.grid.to_dict(),
            'exits': {NAMES[d]: [e.to_dict() for e in self.exits.get(d, [])] for d in DIRECTIONS},
            'zones': list(self.zone_ids),
            'fixtures': [list(f) for f in self.fixtures],
        })
        return data


__all__ = ['RegionNode', 'OPEN', 'LINKED', 'FENCED']
