"""Variable-size cell grid for a single region.

A region is an ``S x S`` square cut into ``len(rows)`` horizontal bands and
``len(columns)`` vertical bands. ``rows[i]`` is the height of band ``i``
(row 0 sits on the south edge), ``columns[j]`` the width of band ``j``
(column 0 sits on the west edge). ``traversable[i][j]`` marks open floor.
"""
from __future__ import annotations
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Iterator, List, NamedTuple, Tuple

from .directions import NORTH, EAST, SOUTH, WEST

Cell = Tuple[int, int]


class CellBox(NamedTuple):
    """Inclusive block of cells, used as a light-zone anchor."""
    row0: int
    col0: int
    row1: int
    col1: int

    def shifted(self, drow: int, dcol: int) -> 'CellBox':
        return CellBox(self.row0 + drow, self.col0 + dcol, self.row1 + drow, self.col1 + dcol)


class Probe(NamedTuple):
    """Region-local rectangle (degenerate for border lines) that must be reachable."""
    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def midpoint(self) -> Tuple[float, float]:
        return ((self.x0 + self.x1) / 2.0, (self.y0 + self.y1) / 2.0)


def edges(sizes: List[float]) -> List[float]:
    """Cumulative band boundaries: ``len(sizes) + 1`` values from 0 to the total."""
    out = [0.0]
    acc = 0.0
    for s in sizes:
        acc += s
        out.append(acc)
    return out


def band_at(sizes: List[float], coord: float) -> int:
    """Index of the band containing ``coord`` (clamped to the valid range)."""
    bounds = edges(sizes)
    idx = bisect_right(bounds, coord) - 1
    return max(0, min(len(sizes) - 1, idx))


@dataclass
class RegionGrid:
    side_length: float
    rows: List[float]
    columns: List[float]
    traversable: List[List[bool]] = field(default_factory=list)

    def __post_init__(self):
        if not self.traversable:
            self.traversable = [[False] * len(self.columns) for _ in self.rows]

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    @property
    def num_cols(self) -> int:
        return len(self.columns)

    def row_edges(self) -> List[float]:
        return edges(self.rows)

    def column_edges(self) -> List[float]:
        return edges(self.columns)

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.num_rows and 0 <= col < self.num_cols

    def is_open(self, row: int, col: int) -> bool:
        return self.in_bounds(row, col) and self.traversable[row][col]

    def cell_bounds(self, row: int, col: int) -> Tuple[float, float, float, float]:
        """Local ``(x0, y0, x1, y1)`` rectangle of a cell."""
        ys = self.row_edges()
        xs = self.column_edges()
        return (xs[col], ys[row], xs[col + 1], ys[row + 1])

    def box_bounds(self, box: CellBox) -> Tuple[float, float, float, float]:
        ys = self.row_edges()
        xs = self.column_edges()
        return (xs[box.col0], ys[box.row0], xs[box.col1 + 1], ys[box.row1 + 1])

    def cell_center(self, row: int, col: int) -> Tuple[float, float]:
        x0, y0, x1, y1 = self.cell_bounds(row, col)
        return ((x0 + x1) / 2.0, (y0 + y1) / 2.0)

    def cell_at(self, x: float, y: float) -> Cell:
        return (band_at(self.rows, y), band_at(self.columns, x))

    def iter_open(self) -> Iterator[Cell]:
        for i, row in enumerate(self.traversable):
            for j, v in enumerate(row):
                if v:
                    yield (i, j)

    def traversable_count(self) -> int:
        return sum(1 for _ in self.iter_open())

    def traversable_fraction(self) -> float:
        """Share of cells (by count) that are traversable."""
        total = self.num_rows * self.num_cols
        if total == 0:
            return 0.0
        return self.traversable_count() / total

    def side_cells(self, direction: int) -> List[Cell]:
        R, C = self.num_rows, self.num_cols
        if direction == NORTH:
            return [(R - 1, j) for j in range(C)]
        if direction == SOUTH:
            return [(0, j) for j in range(C)]
        if direction == EAST:
            return [(i, C - 1) for i in range(R)]
        if direction == WEST:
            return [(i, 0) for i in range(R)]
        raise ValueError(f"invalid direction: {direction!r}")

    def has_open_side(self, direction: int) -> bool:
        return any(self.traversable[i][j] for i, j in self.side_cells(direction))

    def copy(self) -> 'RegionGrid':
        return RegionGrid(
            self.side_length,
            list(self.rows),
            list(self.columns),
            [list(r) for r in self.traversable],
        )

    def to_dict(self) -> dict:
        return {
            'side_length': self.side_length,
            'rows': list(self.rows),
            'columns': list(self.columns),
            'traversable': [[1 if v else 0 for v in r] for r in self.traversable],
        }


__all__ = ['RegionGrid', 'CellBox', 'Probe', 'Cell', 'edges', 'band_at']
