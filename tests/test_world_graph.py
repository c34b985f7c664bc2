"""World graph behaviour: exploration, pruning, fencing and re-homing.

Invariants:
  * live regions never exceed max_total_regions
  * the region destroyed by pruning is four hops behind the region entered
  * the surviving side of a destroyed link is fenced and its pointer cleared
  * destroying the home re-homes onto the survivor with a traversable teleport target
"""
import pytest

from halls.maze.config import RegionConfig, WorldConfig
from halls.maze.directions import DIRECTIONS, EAST, NORTH, OFFSETS, SOUTH, WEST, opposite
from halls.maze.generator import home_probe
from halls.maze.pipeline import GenerationError
from halls.maze.region import FENCED, LINKED, OPEN
from halls.maze.world import LANDING_HEIGHT, UnknownRegionError, WorldGraph
from tests.maze_test_utils import (
    assert_linked_exits_overlap,
    assert_region_invariants,
    path_distance,
    trigger_region,
    walk,
)


def bare_world(seed=5, **kw):
    """World with only a home region at (0, 0) and a generous region cap."""
    w = WorldGraph(WorldConfig(max_total_regions=20, **kw), seed=seed, initialize=False)
    cfg = w.config.region
    home = w._create_region((0, 0), w.rng, [home_probe(cfg.side_length, cfg.min_cell_size)], home=True)
    w.home = w.original_home = home.index
    w.teleport_target = home.center
    return w, home


def test_initial_world_has_home_and_one_neighbour():
    w = WorldGraph(seed=12345)
    assert w.live_count == 2
    home = w.region(w.home)
    assert sorted(home.sides) == sorted([LINKED, FENCED, FENCED, FENCED])
    assert not home.has_trigger
    first = trigger_region(w)
    assert first is not None and first.index != home.index
    d = home.sides.index(LINKED)
    assert home.neighbors[d] == first.index
    assert first.neighbors[opposite(d)] == home.index
    dx, dy = OFFSETS[d]
    assert first.coords == (dx, dy)
    assert w.teleport_target == home.center
    for node in w.regions.values():
        assert_region_invariants(node.grid)


def test_explore_moves_trigger_and_fences_entered_region():
    w = WorldGraph(seed=4242)
    entered = trigger_region(w)
    new = w.explore(entered.index)
    assert new is not None
    assert not entered.has_trigger
    assert w.region(new).has_trigger
    assert sorted(entered.sides) == sorted([LINKED, LINKED, FENCED, FENCED])
    fresh = w.region(new)
    assert fresh.sides.count(LINKED) == 1 and fresh.sides.count(OPEN) == 3


def test_explore_ignores_non_local_and_spent_triggers():
    w = WorldGraph(seed=99)
    entered = trigger_region(w)
    assert w.explore(entered.index, is_local=False) is None
    assert w.explore(w.home) is None
    assert w.live_count == 2
    assert entered.has_trigger


@pytest.mark.parametrize("seed", [3, 8, 1234])
def test_live_regions_never_exceed_cap(seed):
    w = WorldGraph(seed=seed)
    cap = w.config.max_total_regions
    for _ in range(20):
        walk(w, 1)
        assert w.live_count <= cap
        coords = [n.coords for n in w.regions.values()]
        assert len(coords) == len(set(coords))
        for n in w.regions.values():
            assert sum(1 for x in n.neighbors if x is not None) <= 2
    assert w.metrics["regions_destroyed"] > 0


def test_pruned_region_is_four_hops_back_and_fenced():
    w = WorldGraph(seed=31)
    checked = 0
    for _ in range(15):
        entered = trigger_region(w)
        snapshot = {i: list(n.neighbors) for i, n in w.regions.items()}
        w.explore(entered.index)
        destroyed = set(snapshot) - set(w.regions)
        for victim in destroyed:
            assert path_distance(snapshot, entered.index, victim) == w.config.max_total_regions - 1
            for idx, before in snapshot.items():
                if idx in w.regions and victim in before:
                    d = before.index(victim)
                    assert w.regions[idx].neighbors[d] is None
                    assert w.regions[idx].sides[d] == FENCED
            checked += 1
    assert checked > 0


def test_destroy_south_neighbour_clears_pointer_and_fences():
    w, north = bare_world()
    south = w.generate_neighbor(north.index, SOUTH, w.rng)
    south_zones = list(w.region(south).zone_ids)
    assert w.destroy(north.index, SOUTH) == south
    assert north.neighbors[SOUTH] is None
    assert north.sides[SOUTH] == FENCED
    assert w.region_at((0, -1)) is None
    with pytest.raises(UnknownRegionError):
        w.region(south)
    assert not any(z in w.lights.zones for z in south_zones)
    with pytest.raises(ValueError):
        w.destroy(north.index, SOUTH)


def test_destroying_home_rehomes_and_relocates_portables():
    w, home = bare_world(seed=77)
    north = w.region(w.generate_neighbor(home.index, NORTH, w.rng))
    cx, cy = home.center
    w.add_portable("lamp", cx, cy)
    w.add_portable("held", cx, cy, held=True)
    w.add_portable("landing", cx, cy, z=LANDING_HEIGHT + 1)
    w.add_portable("borrowed", cx, cy, owned=False)
    w.add_portable("far", *north.center)
    assert w.landing() is None

    w.destroy(north.index, SOUTH)

    assert w.home == north.index
    assert w.home_destroyed
    tx, ty = w.teleport_target
    assert north.contains(tx, ty)
    ox, oy = north.origin
    assert north.grid.is_open(*north.grid.cell_at(tx - ox, ty - oy))
    lamp = w.portables["lamp"]
    assert north.contains(lamp.x, lamp.y) and lamp.z == 0.0
    assert north.grid.is_open(*north.grid.cell_at(lamp.x - ox, lamp.y - oy))
    for name in ("held", "landing", "borrowed"):
        assert (w.portables[name].x, w.portables[name].y) == (cx, cy)
    assert (w.portables["far"].x, w.portables["far"].y) == north.center
    assert w.landing() == (tx, ty)
    assert w.landing(is_local=False) is None
    assert w.metrics["rehomes"] == 1
    assert w.metrics["portables_relocated"] == 1


def test_side_direction_closing_a_square_is_excluded():
    w, a = bare_world(seed=11)
    b = w.generate_neighbor(a.index, EAST, w.rng)
    c = w.generate_neighbor(b, NORTH, w.rng)
    d = w.region(w.generate_neighbor(c, WEST, w.rng))
    assert d.coords == (0, 1)
    assert w.excluded_direction(d, EAST) == SOUTH
    d.has_trigger = True
    new = w.explore(d.index)
    assert w.region(new).coords in {(0, 2), (-1, 1)}


def test_respawn_resets_lights_and_returns_target():
    w = WorldGraph(seed=606)
    zone = w.region(w.home).zone_ids[0]
    assert zone in w.enter_zone(zone)
    assert w.lights.lit_zones()
    assert w.respawn() == w.teleport_target
    assert w.lights.lit_zones() == []
    assert w.enter_zone(zone, is_local=False) == set()


def test_zones_at_finds_zone_by_position():
    w = WorldGraph(seed=8)
    home = w.region(w.home)
    zone = w.lights.zone(home.zone_ids[0])
    assert zone.zone_id in w.zones_at(*zone.center)


def test_seed_manifest_shape():
    w = WorldGraph(WorldConfig(seeds_per_direction=20), seed=-5)
    manifest = w.seed_manifest()
    assert manifest["seed"] == -5
    assert len(manifest["regions"]) == w.live_count
    for entry in manifest["regions"].values():
        assert set(entry["seeds"]) == {"north", "east", "south", "west"}
        for seeds in entry["seeds"].values():
            assert len(seeds) == 20
            assert all(-(2 ** 31) <= s < 2 ** 31 for s in seeds)


def test_lookup_and_slot_errors():
    w, home = bare_world()
    with pytest.raises(UnknownRegionError):
        w.region(999)
    east = w.generate_neighbor(home.index, EAST, w.rng)
    with pytest.raises(ValueError):
        w.generate_neighbor(home.index, EAST, w.rng)
    with pytest.raises(ValueError):
        w.fence(home.index, EAST)
    assert w.region(east).coords == (1, 0)
    for d in DIRECTIONS:
        if d != EAST:
            w.fence(home.index, d)
    assert home.sides.count(FENCED) == 3


def test_generation_failure_surfaces():
    cfg = WorldConfig(region=RegionConfig(max_generation_attempts=1, min_traversable_fraction=1.0))
    with pytest.raises(GenerationError):
        WorldGraph(cfg, seed=3)


def test_portables_relocated_to_separate_cells():
    w, home = bare_world(seed=12)
    north = w.region(w.generate_neighbor(home.index, NORTH, w.rng))
    cx, cy = home.center
    for k in range(6):
        w.add_portable(f"torch{k}", cx, cy)
    w.destroy(north.index, SOUTH)
    spots = {(p.x, p.y) for p in w.portables.values()}
    assert len(spots) > 1
    assert all(north.contains(x, y) for x, y in spots)
    assert w.metrics["portables_relocated"] == 6


@pytest.mark.parametrize("seed", [3, 4, 10, 17, 29])
def test_explored_regions_stay_connected_and_passable(seed):
    w = WorldGraph(seed=seed)
    min_cell = w.config.region.min_cell_size
    for _ in range(9):
        walk(w, 1)
        for node in w.regions.values():
            assert_region_invariants(node.grid)
            assert_linked_exits_overlap(w, node, min_cell)


def test_failed_exploration_leaves_world_untouched(monkeypatch):
    w = WorldGraph(seed=8)
    walk(w, 6)
    entered = trigger_region(w)
    origin = w.origin_direction(entered)
    before = {i: list(n.neighbors) for i, n in w.regions.items()}
    history = list(w.history)

    def failing_build(*args, **kwargs):
        raise GenerationError("no acceptable region")

    monkeypatch.setattr("halls.maze.world.build_region", failing_build)
    with pytest.raises(GenerationError):
        w.explore(entered.index)
    assert {i: list(n.neighbors) for i, n in w.regions.items()} == before
    assert w.history == history
    assert entered.has_trigger

    monkeypatch.undo()
    created = w.explore(entered.index)
    assert created is not None
    assert entered.explore_counts[origin] == 2
    assert w.live_count == w.config.max_total_regions
