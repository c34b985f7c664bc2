"""Cardinal direction constants shared by the maze modules.

Directions are plain ints so they can index the four-slot neighbour, exit and
seed lists on a region. Global lattice coordinates grow east (x) and north (y).
"""
from __future__ import annotations
from typing import Dict, Tuple

NORTH = 0
EAST = 1
SOUTH = 2
WEST = 3

DIRECTIONS = (NORTH, EAST, SOUTH, WEST)
NAMES = ('north', 'east', 'south', 'west')

OFFSETS: Dict[int, Tuple[int, int]] = {
    NORTH: (0, 1),
    EAST: (1, 0),
    SOUTH: (0, -1),
    WEST: (-1, 0),
}


def opposite(direction: int) -> int:
    return (direction + 2) % 4


def name(direction: int) -> str:
    return NAMES[direction]


def parse(value) -> int:
    """Accept an int or a (case-insensitive) name / initial and return the direction."""
    if isinstance(value, int) and not isinstance(value, bool):
        if value in DIRECTIONS:
            return value
        raise ValueError(f"invalid direction: {value!r}")
    if isinstance(value, str):
        s = value.strip().lower()
        for d, n in enumerate(NAMES):
            if s == n or s == n[0]:
                return d
    raise ValueError(f"invalid direction: {value!r}")


__all__ = ['NORTH', 'EAST', 'SOUTH', 'WEST', 'DIRECTIONS', 'NAMES', 'OFFSETS', 'opposite', 'name', 'parse']
