from collections import deque

from halls.maze.directions import DIRECTIONS, opposite
from halls.maze.grid import RegionGrid


def make_grid(pattern, side_length=100.0, rows=None, columns=None):
    """Build a RegionGrid from a list of strings, first string = northernmost row.

    '#' or 'O' marks a traversable cell, anything else is blocked. Bands are
    equal-sized unless ``rows`` / ``columns`` are given (south to north,
    west to east).
    """
    lines = list(reversed(pattern))
    R, C = len(lines), len(lines[0])
    rows = rows or [side_length / R] * R
    columns = columns or [side_length / C] * C
    trav = [[ch in "#O" for ch in line] for line in lines]
    return RegionGrid(side_length, list(rows), list(columns), trav)


def open_cells(grid):
    return {(i, j) for i in range(grid.num_rows) for j in range(grid.num_cols) if grid.traversable[i][j]}


def bfs_reachable(grid, start):
    """Return set of (row, col) traversable cells reachable from start."""
    if start is None or not grid.is_open(*start):
        return set()
    q = deque([start])
    vis = {start}
    while q:
        i, j = q.popleft()
        for di, dj in ((1, 0), (-1, 0), (0, 1), (0, -1)):
            n = (i + di, j + dj)
            if n not in vis and grid.is_open(*n):
                vis.add(n)
                q.append(n)
    return vis


def assert_region_invariants(grid, tol=1e-6):
    S = grid.side_length
    assert abs(sum(grid.rows) - S) <= tol * S
    assert abs(sum(grid.columns) - S) <= tol * S
    cells = open_cells(grid)
    assert cells, "region has no traversable cells"
    reach = bfs_reachable(grid, next(iter(cells)))
    assert reach == cells, f"{len(cells - reach)} traversable cells unreachable"
    for d in range(4):
        assert grid.has_open_side(d), f"side {d} has no traversable cell"


def trigger_region(world):
    """The live region still carrying an exploration trigger (the newest one)."""
    return next((n for n in world.regions.values() if n.has_trigger), None)


def walk(world, steps):
    """Enter the newest region ``steps`` times, firing its trigger. Returns created indices."""
    created = []
    for _ in range(steps):
        current = trigger_region(world)
        if current is None:
            break
        created.append(world.explore(current.index))
    return created


def path_distance(neighbors, start, goal):
    """Hop count between two indices over a ``{index: [neighbor or None] * 4}`` snapshot."""
    dist = {start: 0}
    q = deque([start])
    while q:
        cur = q.popleft()
        if cur == goal:
            return dist[cur]
        for n in neighbors.get(cur, []):
            if n is not None and n not in dist:
                dist[n] = dist[cur] + 1
                q.append(n)
    return None


def _overlap(a, b):
    return min(a.end, b.end) - max(a.start, b.start)


def assert_linked_exits_overlap(world, node, min_cell_size, tol=1e-6):
    """Every linked side shares an exit wide enough to walk through with its neighbour.

    The older region (lower index) supplied the probes, so its exit length
    bounds the overlap that can be required.
    """
    for d in DIRECTIONS:
        other = world.neighbor(node, d)
        if other is None:
            continue
        if node.index < other.index:
            older, newer = node.exits[d], other.exits[opposite(d)]
        else:
            older, newer = other.exits[opposite(d)], node.exits[d]
        assert any(
            _overlap(a, b) >= min(min_cell_size, a.length) - 0.1 - tol for a in older for b in newer
        ), f"regions {node.index} and {other.index} do not share a passable exit"
