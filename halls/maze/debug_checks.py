"""Structural invariant analysis for validated region grids.

Used by ``scripts/diagnose_seeds.py`` and the tests to check a grid without
re-running validation.
"""
from __future__ import annotations
from collections import deque
from typing import Dict, List

from .directions import DIRECTIONS, NAMES
from .grid import Cell, RegionGrid

SUM_TOLERANCE = 1e-6


def components(grid: RegionGrid) -> List[List[Cell]]:
    """4-connected components of traversable cells."""
    seen = set()
    out = []
    for start in grid.iter_open():
        if start in seen:
            continue
        comp = [start]
        seen.add(start)
        q = deque([start])
        while q:
            i, j = q.popleft()
            for di, dj in ((-1, 0), (1, 0), (0, -1), (0, 1)):
                n = (i + di, j + dj)
                if n not in seen and grid.is_open(*n):
                    seen.add(n)
                    comp.append(n)
                    q.append(n)
        out.append(comp)
    return out


def analyze(grid: RegionGrid) -> Dict[str, object]:
    comps = components(grid)
    S = grid.side_length
    row_err = abs(sum(grid.rows) - S)
    col_err = abs(sum(grid.columns) - S)
    empty_sides = [NAMES[d] for d in DIRECTIONS if not grid.has_open_side(d)]
    return {
        'rows': grid.num_rows,
        'cols': grid.num_cols,
        'row_sum_error': row_err,
        'col_sum_error': col_err,
        'components': len(comps),
        'empty_sides': empty_sides,
        'traversable_fraction': grid.traversable_fraction(),
        'ok': row_err <= SUM_TOLERANCE * S and col_err <= SUM_TOLERANCE * S and len(comps) == 1 and not empty_sides,
    }
