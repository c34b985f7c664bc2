"""Structural generation: axis partitioning and rectangle placement."""
from __future__ import annotations
from typing import List, NamedTuple

from .config import RegionConfig
from .grid import CellBox, Probe, RegionGrid
from .rng import RandomStream


class GenerationOutputs(NamedTuple):
    grid: RegionGrid
    anchors: List[CellBox]


def draw_axis(rng: RandomStream, side_length: float, min_size: float, max_size: float) -> List[float]:
    """Split ``side_length`` into bands drawn from ``Uniform(min_size, max_size)``.

    Draws until the running total reaches ``side_length - min_size`` and then
    rescales every band so the axis sums to ``side_length`` exactly (up to
    float rounding).
    """
    sizes: List[float] = []
    total = 0.0
    while total < side_length - min_size:
        s = rng.uniform(min_size, max_size)
        sizes.append(s)
        total += s
    if not sizes:
        return [float(side_length)]
    scale = total / side_length
    return [s / scale for s in sizes]


def _half(rng: RandomStream, center: int, last: int, size: int) -> int:
    # Larger half goes toward increasing index at the far edge, or on a coin flip away from index 0.
    half = size // 2
    if center == last or (center > 0 and rng.below(2) == 0):
        half = size - half
    return half


class RegionGenerator:
    def __init__(self, config: RegionConfig):
        self.config = config

    def partition(self, rng: RandomStream) -> RegionGrid:
        cfg = self.config
        rows = draw_axis(rng, cfg.side_length, cfg.min_cell_size, cfg.max_cell_size)
        columns = draw_axis(rng, cfg.side_length, cfg.min_cell_size, cfg.max_cell_size)
        return RegionGrid(cfg.side_length, rows, columns)

    def rectangle_size(self, rng: RandomStream, num_rows: int, num_cols: int):
        cfg = self.config
        horizontal = rng.coin(0.5)
        thick = rng.coin(cfg.thick_rectangle_probability)
        if thick:
            if horizontal:
                return (rng.between(2, cfg.thick_rectangle_max_cells), rng.between(1, num_cols))
            return (rng.between(1, num_rows), rng.between(2, cfg.thick_rectangle_max_cells))
        if horizontal:
            return (1, rng.between(1, num_cols))
        return (rng.between(1, num_rows), 1)

    def place_rectangles(self, rng: RandomStream, grid: RegionGrid) -> List[CellBox]:
        R, C = grid.num_rows, grid.num_cols
        anchors: List[CellBox] = []
        for _ in range(self.config.num_rectangles):
            s0, s1 = self.rectangle_size(rng, R, C)
            ci = rng.below(R)
            cj = rng.below(C)
            h0 = _half(rng, ci, R - 1, s0)
            h1 = _half(rng, cj, C - 1, s1)
            r0 = max(0, ci - h0)
            c0 = max(0, cj - h1)
            r1 = min(R - 1, ci + s0 - h0 - 1)
            c1 = min(C - 1, cj + s1 - h1 - 1)
            for i in range(r0, r1 + 1):
                row = grid.traversable[i]
                for j in range(c0, c1 + 1):
                    row[j] = True
            anchors.append(CellBox(r0, c0, r1, c1))
        return anchors

    def run(self, rng: RandomStream) -> GenerationOutputs:
        grid = self.partition(rng)
        anchors = self.place_rectangles(rng, grid)
        return GenerationOutputs(grid, anchors)


def carve_home_clearing(outputs: GenerationOutputs, half_width: float) -> CellBox:
    """Open the block of cells straddling the region centre and anchor a light zone on it."""
    grid = outputs.grid
    mid = grid.side_length / 2.0
    lo, hi = mid - half_width, mid + half_width

    def _span(sizes: List[float]):
        idx = []
        start = 0.0
        for k, s in enumerate(sizes):
            end = start + s
            if end > lo and start < hi:
                idx.append(k)
            start = end
        return idx[0], idx[-1]

    r0, r1 = _span(grid.rows)
    c0, c1 = _span(grid.columns)
    for i in range(r0, r1 + 1):
        for j in range(c0, c1 + 1):
            grid.traversable[i][j] = True
    box = CellBox(r0, c0, r1, c1)
    outputs.anchors.append(box)
    return box


def home_probe(side_length: float, min_cell_size: float) -> Probe:
    """Small square around the centre used to seed validation of the home region."""
    lo = (side_length - min_cell_size) / 2.0
    hi = (side_length + min_cell_size) / 2.0
    return Probe(lo, lo, hi, hi)


__all__ = ['RegionGenerator', 'GenerationOutputs', 'draw_axis', 'carve_home_clearing', 'home_probe']
