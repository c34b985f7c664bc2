"""World graph: lazy region creation, pruning and home bookkeeping.

Regions live in an arena keyed by integer index; neighbour links are
indices, so destroying a region is a matter of dropping its arena entry and
clearing the one pointer that still refers to it. The live regions always
form a path grown one region at a time from the region the visitor just
entered, and the region four hops behind the visitor is destroyed as a new
one is created.
"""
from __future__ import annotations
import random
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..logging_utils import get_logger
from .config import WorldConfig
from .connectivity import random_open_cell
from .directions import DIRECTIONS, NAMES, NORTH, EAST, SOUTH, WEST, OFFSETS, opposite
from .exits import probes_for
from .generator import home_probe
from .grid import Probe
from .lights import LightNetwork, plan_fixtures, plan_light_zones
from .metrics import init_metrics
from .pipeline import GenerationError, build_region
from .region import FENCED, LINKED, OPEN, RegionNode
from .rng import RandomStream, to_int32

log = get_logger("halls.maze.world")

# Portables at or above this height rest on the landing above the home and stay put.
LANDING_HEIGHT = 8.0

# Side direction excluded when the origin's (side, back) neighbour chain exists,
# checked in order; keyed by the direction the visitor came from.
EXCLUSIONS = {
    NORTH: ((EAST, SOUTH), (WEST, SOUTH)),
    EAST: ((NORTH, WEST), (SOUTH, WEST)),
    SOUTH: ((EAST, NORTH), (WEST, NORTH)),
    WEST: ((NORTH, EAST), (SOUTH, EAST)),
}

# Step preference while walking back toward the oldest region, keyed by the
# side of the current region that leads back to the previous one.
WALK_PREFERENCE = {
    NORTH: (EAST, WEST, SOUTH),
    EAST: (SOUTH, WEST, NORTH),
    SOUTH: (EAST, WEST, NORTH),
    WEST: (SOUTH, EAST, NORTH),
}


class UnknownRegionError(KeyError):
    """Lookup of a region index that was never created or has been destroyed."""


@dataclass
class Portable:
    name: str
    x: float
    y: float
    z: float = 0.0
    held: bool = False
    owned: bool = True


class WorldGraph:
    def __init__(self, config: Optional[WorldConfig] = None, seed: Optional[int] = None, initialize: bool = True):
        self.config = (config or WorldConfig()).validate()
        if seed is None:
            seed = self.config.seed
        if seed is None:
            seed = random.randint(1, 1_000_000)
        self.seed = to_int32(seed)
        self.rng = RandomStream(self.seed)
        self.metrics = init_metrics()
        self.regions: Dict[int, RegionNode] = {}
        self._slots: Dict[Tuple[int, int], int] = {}
        self._next_index = 0
        self.lights = LightNetwork(self.config.region.side_length, self.config.max_lit_up_distance)
        self.home: Optional[int] = None
        self.original_home: Optional[int] = None
        self.home_destroyed = False
        self.teleport_target: Optional[Tuple[float, float]] = None
        self.portables: Dict[str, Portable] = {}
        self.history: List[Tuple[int, int]] = []
        if initialize:
            self.initialize()

    # ------------------------------------------------------------------ lookup
    def region(self, index: int) -> RegionNode:
        node = self.regions.get(index)
        if node is None:
            raise UnknownRegionError(index)
        return node

    def region_at(self, coords: Tuple[int, int]) -> Optional[RegionNode]:
        idx = self._slots.get(tuple(coords))
        return self.regions.get(idx) if idx is not None else None

    def neighbor(self, node: Optional[RegionNode], direction: int) -> Optional[RegionNode]:
        if node is None or node.neighbors[direction] is None:
            return None
        return self.regions.get(node.neighbors[direction])

    @property
    def live_count(self) -> int:
        return len(self.regions)

    def origin_direction(self, node: RegionNode) -> Optional[int]:
        """First linked side in N/E/S/W order: where the visitor came from."""
        for d in DIRECTIONS:
            if node.neighbors[d] is not None:
                return d
        return None

    # ---------------------------------------------------------------- creation
    def initialize(self) -> None:
        if self.regions:
            raise RuntimeError("world already initialized")
        cfg = self.config.region
        home = self._create_region((0, 0), self.rng, [home_probe(cfg.side_length, cfg.min_cell_size)], home=True)
        self.home = self.original_home = home.index
        self.teleport_target = home.center
        direction = self.rng.below(4)
        first = self.generate_neighbor(home.index, direction, self.rng)
        for d in DIRECTIONS:
            if d != direction:
                self.fence(home.index, d)
        self.region(first).has_trigger = True
        log.info(event="world_initialized", seed=self.seed, home=home.index, first=first, direction=NAMES[direction])

    def _create_region(self, coords: Tuple[int, int], rng: RandomStream, probes: Sequence[Probe],
                       home: bool = False, link_regions: Iterable[int] = ()) -> RegionNode:
        build = build_region(self.config.region, rng, probes, home=home, metrics=self.metrics)
        seeds = [[rng.seed32() for _ in range(self.config.seeds_per_direction)] for _ in DIRECTIONS]
        node = RegionNode(self._next_index, coords, build.grid, build.anchors, build.exits, seeds)
        self._next_index += 1
        node.fixtures = plan_fixtures(node.grid, self.config.light_spacing)
        volumes = plan_light_zones(node.grid, node.anchors)
        node.zone_ids = self.lights.add_region(node.index, node.origin, volumes, node.fixtures, link_regions)
        self.regions[node.index] = node
        self._slots[coords] = node.index
        return node

    def generate_neighbor(self, origin_index: int, direction: int, rng: RandomStream) -> int:
        """Grow a region on ``direction`` of ``origin_index``, linked both ways. Returns its index."""
        origin = self.region(origin_index)
        if origin.neighbors[direction] is not None:
            raise ValueError(f"region {origin_index} already has a {NAMES[direction]} neighbour")
        dx, dy = OFFSETS[direction]
        coords = (origin.coords[0] + dx, origin.coords[1] + dy)
        if coords in self._slots:
            raise ValueError(f"slot {coords} is already occupied")
        probes = probes_for(origin.exits[direction], self.config.region.side_length)
        try:
            node = self._create_region(coords, rng, probes, link_regions=[origin.index])
        except GenerationError:
            log.error(event="neighbor_generation_failed", origin=origin_index, direction=NAMES[direction])
            raise
        origin.neighbors[direction] = node.index
        origin.sides[direction] = LINKED
        node.neighbors[opposite(direction)] = origin.index
        node.sides[opposite(direction)] = LINKED
        log.info(event="region_created", index=node.index, x=coords[0], y=coords[1], origin=origin_index,
                 direction=NAMES[direction], zones=len(node.zone_ids))
        return node.index

    def fence(self, index: int, direction: int) -> None:
        node = self.region(index)
        if node.sides[direction] == LINKED:
            raise ValueError(f"cannot fence linked {NAMES[direction]} side of region {index}")
        node.sides[direction] = FENCED

    # ------------------------------------------------------------- exploration
    def excluded_direction(self, node: RegionNode, origin_direction: int) -> Optional[int]:
        """Side direction that would close a 2x2 loop around the origin, if any."""
        origin = self.neighbor(node, origin_direction)
        for side, back in EXCLUSIONS[origin_direction]:
            if self.neighbor(self.neighbor(origin, side), back) is not None:
                return side
        return None

    def explore(self, index: int, is_local: bool = True) -> Optional[int]:
        """Visitor entered region ``index`` for the first time: grow ahead, prune behind.

        Returns the new region's index, or None when nothing was generated.
        """
        if not is_local:
            return None
        node = self.region(index)
        if not node.has_trigger:
            log.debug(event="explore_ignored", index=index, reason="no_trigger")
            return None
        origin_direction = self.origin_direction(node)
        if origin_direction is None:
            log.warn(event="explore_ignored", index=index, reason="no_origin")
            return None
        rng = RandomStream(node.next_seed(origin_direction))
        excluded = self.excluded_direction(node, origin_direction)
        candidates = []
        for d in DIRECTIONS:
            if d == origin_direction or d == excluded:
                continue
            dx, dy = OFFSETS[d]
            if (node.coords[0] + dx, node.coords[1] + dy) in self._slots:
                continue
            candidates.append(d)
        if not candidates:
            self.history.append(node.coords)
            for d in DIRECTIONS:
                if node.sides[d] == OPEN:
                    self.fence(index, d)
            node.has_trigger = False
            log.warn(event="explore_blocked", index=index)
            return None
        direction = rng.choice(candidates)
        # build before pruning: a GenerationError must leave the live regions untouched
        new_index = self.generate_neighbor(index, direction, rng)
        self.history.append(node.coords)
        self.prune(index, origin_direction)
        for d in DIRECTIONS:
            if d not in (origin_direction, direction) and node.sides[d] == OPEN:
                self.fence(index, d)
        self.region(new_index).has_trigger = True
        node.has_trigger = False
        log.info(event="explored", index=index, new=new_index, direction=NAMES[direction], live=self.live_count)
        return new_index

    def prune(self, index: int, origin_direction: int) -> Optional[int]:
        """Walk back from the region behind ``index`` and destroy the one past the depth limit."""
        node = self.region(index)
        current = self.neighbor(node, origin_direction)
        if current is None:
            return None
        came_from = opposite(origin_direction)
        limit = self.config.max_total_regions - 2
        step = 1
        while 1 <= step < limit:
            nxt = next((d for d in WALK_PREFERENCE[came_from] if current.neighbors[d] is not None), None)
            if nxt is None:
                step = -1
                break
            current = self.neighbor(current, nxt)
            came_from = opposite(nxt)
            step += 1
        if step != limit:
            return None
        victim_direction = next((d for d in WALK_PREFERENCE[came_from] if current.neighbors[d] is not None), None)
        if victim_direction is None:
            return None
        return self.destroy(current.index, victim_direction)

    # ------------------------------------------------------------- destruction
    def _beyond(self, survivor: RegionNode, direction: int) -> List[int]:
        start = survivor.neighbors[direction]
        seen: Set[int] = {start}
        order = [start]
        stack = [start]
        while stack:
            cur = self.regions[stack.pop()]
            for n in cur.neighbors:
                if n is None or n == survivor.index or n in seen:
                    continue
                seen.add(n)
                order.append(n)
                stack.append(n)
        return order

    def destroy(self, survivor_index: int, direction: int) -> int:
        """Destroy the neighbour on ``direction`` of ``survivor_index`` (and anything beyond it)."""
        survivor = self.region(survivor_index)
        victim = survivor.neighbors[direction]
        if victim is None:
            raise ValueError(f"region {survivor_index} has no {NAMES[direction]} neighbour")
        doomed = self._beyond(survivor, direction)
        if self.home in doomed:
            self._rehome(survivor)
        for idx in doomed:
            node = self.regions.pop(idx)
            node.destroyed = True
            node.has_trigger = False
            self._slots.pop(node.coords, None)
            self.lights.remove_region(idx)
        survivor.neighbors[direction] = None
        survivor.sides[direction] = FENCED
        self.metrics['regions_destroyed'] += len(doomed)
        log.info(event="region_destroyed", victim=victim, survivor=survivor_index, direction=NAMES[direction],
                 count=len(doomed), live=self.live_count)
        return victim

    def _rehome(self, survivor: RegionNode) -> None:
        old = self.region(self.home)
        cell = random_open_cell(survivor.grid, self.rng)
        if cell is None:
            # Validated regions always hold traversable cells.
            raise GenerationError(f"region {survivor.index} has no traversable cell for a teleport target")
        target = survivor.to_world(*survivor.grid.cell_center(*cell))
        moved = 0
        for p in self.portables.values():
            if p.held or not p.owned or p.z >= LANDING_HEIGHT:
                continue
            if old.contains(p.x, p.y):
                # one fresh cell per portable
                p.x, p.y = survivor.to_world(*survivor.grid.cell_center(*random_open_cell(survivor.grid, self.rng)))
                p.z = 0.0
                moved += 1
        self.home = survivor.index
        self.home_destroyed = True
        self.teleport_target = target
        self.metrics['rehomes'] += 1
        self.metrics['portables_relocated'] += moved
        log.info(event="rehomed", old=old.index, new=survivor.index, x=round(target[0], 2), y=round(target[1], 2),
                 portables=moved)

    # ----------------------------------------------------------- visitor hooks
    def enter_zone(self, zone_id: int, is_local: bool = True) -> Set[int]:
        return self.lights.enter(zone_id, is_local)

    def zones_at(self, x: float, y: float) -> List[int]:
        return sorted(z.zone_id for z in self.lights.zones.values() if z.contains(x, y))

    def respawn(self, is_local: bool = True) -> Optional[Tuple[float, float]]:
        """Menu teleport: reset every light without propagation and return the teleport target."""
        if not is_local:
            return None
        self.lights.reset()
        return self.teleport_target

    def landing(self, is_local: bool = True) -> Optional[Tuple[float, float]]:
        """Ceiling/landing contact teleports the visitor only once the original home is gone."""
        if not is_local or not self.home_destroyed:
            return None
        return self.teleport_target

    def add_portable(self, name: str, x: float, y: float, z: float = 0.0, held: bool = False,
                     owned: bool = True) -> Portable:
        p = Portable(name, float(x), float(y), float(z), bool(held), bool(owned))
        self.portables[name] = p
        return p

    # ------------------------------------------------------ seeds and replay
    def seed_manifest(self) -> dict:
        return {
            'seed': self.seed,
            'regions': {
                str(idx): {
                    'coords': list(node.coords),
                    'seeds': {NAMES[d]: list(node.seeds[d]) for d in DIRECTIONS},
                }
                for idx, node in sorted(self.regions.items())
            },
        }

    @classmethod
    def replay(cls, config: Optional[WorldConfig], seed: int, explored: Iterable[Sequence[int]]) -> 'WorldGraph':
        """Rebuild a world by exploring the same lattice positions in the same order."""
        world = cls(config, seed)
        for coords in explored:
            node = world.region_at(tuple(coords))
            if node is None:
                raise UnknownRegionError(tuple(coords))
            world.explore(node.index)
        return world

    def to_dict(self) -> dict:
        return {
            'seed': self.seed,
            'home': self.home,
            'original_home': self.original_home,
            'home_destroyed': self.home_destroyed,
            'teleport_target': list(self.teleport_target) if self.teleport_target else None,
            'live_regions': [n.summary() for _, n in sorted(self.regions.items())],
            'lit_zones': self.lights.lit_zones(),
            'history': [list(c) for c in self.history],
            'portables': {k: asdict(v) for k, v in self.portables.items()},
            'metrics': {k: v for k, v in self.metrics.items()},
        }


__all__ = ['WorldGraph', 'Portable', 'UnknownRegionError', 'LANDING_HEIGHT', 'EXCLUSIONS', 'WALK_PREFERENCE']
