"""Light-zone planning and the counter-based illumination network.

Each placed rectangle that survives validation becomes a light zone: an
axis-aligned volume in world coordinates holding the ceiling fixtures it
overlaps. Overlapping zones (including zones of adjacent regions) are linked
symmetrically.

Entering a zone starts a wave: the zone lights up with counter
``max_lit_up_distance`` and every hop forwards ``counter - 1``. Zones that
receive a counter of zero or less switch off and relay the off wave once per
origin so stale lights behind the visitor go dark. A message from an origin
is ignored unless its counter beats the last one recorded for that origin,
which makes the final state independent of delivery order. Zones at least one
region side away from the origin along either axis treat any message as a
zero counter.
"""
from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..logging_utils import get_logger
from .grid import CellBox, RegionGrid

log = get_logger("halls.maze.lights")

Box = Tuple[float, float, float, float]

VOLUME_GROWTH = 0.1
FIXTURE_SIZE = 0.5
FIXTURE_WALL_PADDING = 0.5
FIXTURE_EDGE_PADDING = 0.25


def plan_light_zones(grid: RegionGrid, anchors: Sequence[CellBox]) -> List[Box]:
    """Local volumes for every anchor whose bottom-left cell is still traversable."""
    volumes = []
    for box in anchors:
        if not grid.is_open(box.row0, box.col0):
            continue
        volumes.append(grid.box_bounds(box))
    return volumes


def plan_fixtures(grid: RegionGrid, spacing: float) -> List[Tuple[float, float]]:
    """Fixture centres tiled every ``spacing`` with their padded footprint inside open cells."""
    S = grid.side_length
    reach = FIXTURE_SIZE / 2.0 + FIXTURE_WALL_PADDING
    positions = []
    p = FIXTURE_EDGE_PADDING + spacing / 2.0
    while p <= S - FIXTURE_EDGE_PADDING:
        positions.append(p)
        p += spacing
    fixtures = []
    for y in positions:
        for x in positions:
            corners = ((x - reach, y - reach), (x + reach, y - reach), (x - reach, y + reach), (x + reach, y + reach))
            if all(0.0 <= cx <= S and 0.0 <= cy <= S and grid.is_open(*grid.cell_at(cx, cy)) for cx, cy in corners):
                fixtures.append((x, y))
    return fixtures


def _overlaps(a: Box, b: Box) -> bool:
    return a[0] <= b[2] and b[0] <= a[2] and a[1] <= b[3] and b[1] <= a[3]


@dataclass
class LightZone:
    zone_id: int
    region: int
    bounds: Box
    fixtures: List[Tuple[float, float]] = field(default_factory=list)
    neighbors: Set[int] = field(default_factory=set)
    most_recent_origin: Optional[int] = None
    most_recent_counter: int = -1
    lit: bool = False
    off_relayed: bool = False
    relay_count: int = 0
    switch_count: int = 0

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.bounds[0] + self.bounds[2]) / 2.0, (self.bounds[1] + self.bounds[3]) / 2.0)

    def overlaps(self, other: 'LightZone') -> bool:
        return _overlaps(self.bounds, other.bounds)

    def contains(self, x: float, y: float) -> bool:
        return self.bounds[0] <= x <= self.bounds[2] and self.bounds[1] <= y <= self.bounds[3]

    def switch(self, on: bool) -> bool:
        if self.lit == on:
            return False
        self.lit = on
        self.switch_count += 1
        return True

    def to_dict(self) -> dict:
        return {
            'id': self.zone_id,
            'region': self.region,
            'bounds': list(self.bounds),
            'fixtures': [list(f) for f in self.fixtures],
            'neighbors': sorted(self.neighbors),
            'lit': self.lit,
            'most_recent_origin': self.most_recent_origin,
            'most_recent_counter': self.most_recent_counter,
        }


class LightNetwork:
    def __init__(self, side_length: float, max_lit_up_distance: int):
        self.side_length = side_length
        self.max_lit_up_distance = max_lit_up_distance
        self.zones: Dict[int, LightZone] = {}
        self._next_id = 0

    def add_zone(self, region: int, bounds: Box, fixtures: Iterable[Tuple[float, float]] = ()) -> LightZone:
        g = VOLUME_GROWTH / 2.0
        grown = (bounds[0] - g, bounds[1] - g, bounds[2] + g, bounds[3] + g)
        zone = LightZone(self._next_id, region, grown)
        zone.fixtures = [f for f in fixtures if _overlaps(grown, (
            f[0] - FIXTURE_SIZE / 2.0, f[1] - FIXTURE_SIZE / 2.0, f[0] + FIXTURE_SIZE / 2.0, f[1] + FIXTURE_SIZE / 2.0))]
        self.zones[zone.zone_id] = zone
        self._next_id += 1
        return zone

    def add_region(self, region: int, origin: Tuple[float, float], volumes: Sequence[Box],
                   fixtures: Sequence[Tuple[float, float]] = (), link_regions: Iterable[int] = ()) -> List[int]:
        """Create zones for a region (local volumes shifted by ``origin``) and link overlaps.

        New zones are linked with each other and with zones of ``link_regions``.
        """
        ox, oy = origin
        world_fixtures = [(ox + x, oy + y) for x, y in fixtures]
        created = []
        for v in volumes:
            created.append(self.add_zone(region, (ox + v[0], oy + v[1], ox + v[2], oy + v[3]), world_fixtures))
        candidates = list(created)
        for r in link_regions:
            candidates.extend(self.zones_of(r))
        for a in created:
            for b in candidates:
                if a.zone_id != b.zone_id and a.overlaps(b):
                    self.link(a.zone_id, b.zone_id)
        return [z.zone_id for z in created]

    def link(self, a: int, b: int) -> None:
        if a == b:
            return
        self.zones[a].neighbors.add(b)
        self.zones[b].neighbors.add(a)

    def zones_of(self, region: int) -> List[LightZone]:
        return [z for z in self.zones.values() if z.region == region]

    def zone(self, zone_id: int) -> LightZone:
        try:
            return self.zones[zone_id]
        except KeyError:
            raise KeyError(f"unknown light zone {zone_id}") from None

    def remove_region(self, region: int) -> int:
        doomed = [z.zone_id for z in self.zones_of(region)]
        for zid in doomed:
            for nid in self.zones[zid].neighbors:
                if nid in self.zones:
                    self.zones[nid].neighbors.discard(zid)
        for zid in doomed:
            del self.zones[zid]
        return len(doomed)

    def enter(self, zone_id: int, is_local: bool = True) -> Set[int]:
        """Visitor entered ``zone_id``: start a wave from it. Non-local visitors are ignored."""
        if not is_local:
            return set()
        self.zone(zone_id)
        return self.process_lights(zone_id, zone_id, self.max_lit_up_distance)

    def process_lights(self, origin: int, sender: int, counter: int, target: Optional[int] = None) -> Set[int]:
        """Deliver a message (to ``target``, default the origin itself) and everything it triggers.

        Returns the ids of zones that switched state.
        """
        changed: Set[int] = set()
        work = deque([(origin if target is None else target, origin, sender, counter)])
        delivered = 0
        while work:
            target, o, s, c = work.popleft()
            zone = self.zones.get(target)
            if zone is None:
                continue
            delivered += 1
            for msg in self._receive(zone, o, s, c, changed):
                work.append(msg)
        log.debug(event="light_wave", origin=origin, counter=counter, delivered=delivered, changed=len(changed))
        return changed

    def _far_from(self, zone: LightZone, origin: int) -> bool:
        o = self.zones.get(origin)
        if o is None:
            return False
        (zx, zy), (ox, oy) = zone.center, o.center
        return abs(zx - ox) >= self.side_length or abs(zy - oy) >= self.side_length

    def _receive(self, zone: LightZone, origin: int, sender: int, counter: int, changed: Set[int]):
        if self._far_from(zone, origin):
            counter = min(counter, 0)
        if zone.most_recent_origin == origin:
            if counter <= zone.most_recent_counter:
                return []
        else:
            zone.most_recent_origin = origin
            zone.off_relayed = False
        zone.most_recent_counter = counter
        if counter > 0:
            if zone.switch(True):
                changed.add(zone.zone_id)
            return self._forward(zone, origin, sender, counter - 1)
        if zone.switch(False):
            changed.add(zone.zone_id)
        if not zone.off_relayed and counter > -self.max_lit_up_distance:
            zone.off_relayed = True
            return self._forward(zone, origin, sender, counter - 1)
        return []

    def _forward(self, zone: LightZone, origin: int, sender: int, counter: int):
        zone.relay_count += 1
        return [(n, origin, zone.zone_id, counter) for n in sorted(zone.neighbors) if n not in (origin, sender)]

    def reset(self, zone_ids: Optional[Iterable[int]] = None) -> None:
        """Respawn reset: forget origins and switch off without propagating."""
        ids = list(self.zones) if zone_ids is None else list(zone_ids)
        for zid in ids:
            z = self.zone(zid)
            z.most_recent_origin = None
            z.most_recent_counter = -1
            z.off_relayed = False
            z.switch(False)

    def lit_zones(self) -> List[int]:
        return sorted(z.zone_id for z in self.zones.values() if z.lit)


__all__ = ['LightZone', 'LightNetwork', 'plan_light_zones', 'plan_fixtures']
