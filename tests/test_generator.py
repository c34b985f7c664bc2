"""Structural generator tests: axis partitioning and rectangle placement."""
import pytest

from halls.maze.config import RegionConfig
from halls.maze.generator import RegionGenerator, carve_home_clearing, draw_axis, home_probe
from halls.maze.rng import RandomStream


@pytest.mark.parametrize(
    "side,lo,hi",
    [(100.0, 0.8, 5.0), (50.0, 1.0, 1.0), (20.0, 2.0, 7.5), (100.0, 4.0, 9.0)],
)
def test_axis_sums_to_side_length(side, lo, hi):
    for seed in (1, 7, 99, -12345):
        sizes = draw_axis(RandomStream(seed), side, lo, hi)
        assert sizes
        assert abs(sum(sizes) - side) < 1e-9 * side
        assert all(s > 0 for s in sizes)


def test_axis_band_count_tracks_cell_size():
    small = draw_axis(RandomStream(3), 100.0, 0.8, 1.0)
    large = draw_axis(RandomStream(3), 100.0, 4.0, 5.0)
    assert len(small) > len(large)


def test_generation_is_deterministic_per_seed():
    gen = RegionGenerator(RegionConfig())
    a = gen.run(RandomStream(2024))
    b = gen.run(RandomStream(2024))
    c = gen.run(RandomStream(2025))
    assert a.grid.rows == b.grid.rows
    assert a.grid.traversable == b.grid.traversable
    assert a.anchors == b.anchors
    assert a.grid.traversable != c.grid.traversable


def test_rectangles_are_marked_and_anchored():
    cfg = RegionConfig(num_rectangles=12)
    out = RegionGenerator(cfg).run(RandomStream(77))
    g = out.grid
    assert len(out.anchors) == cfg.num_rectangles
    for box in out.anchors:
        assert 0 <= box.row0 <= box.row1 < g.num_rows
        assert 0 <= box.col0 <= box.col1 < g.num_cols
        for i in range(box.row0, box.row1 + 1):
            for j in range(box.col0, box.col1 + 1):
                assert g.traversable[i][j]


def test_thin_rectangles_are_one_cell_across():
    cfg = RegionConfig(thick_rectangle_probability=0.0, num_rectangles=40)
    out = RegionGenerator(cfg).run(RandomStream(5))
    for box in out.anchors:
        assert box.row0 == box.row1 or box.col0 == box.col1


def test_home_clearing_covers_centre():
    cfg = RegionConfig(num_rectangles=1)
    out = RegionGenerator(cfg).run(RandomStream(11))
    box = carve_home_clearing(out, cfg.home_clearing_half_width)
    g = out.grid
    ci, cj = g.cell_at(cfg.side_length / 2, cfg.side_length / 2)
    assert box.row0 <= ci <= box.row1 and box.col0 <= cj <= box.col1
    x0, y0, x1, y1 = g.box_bounds(box)
    assert x0 <= 50 - cfg.home_clearing_half_width + cfg.max_cell_size
    assert x1 >= 50 + cfg.home_clearing_half_width - cfg.max_cell_size
    assert g.traversable[ci][cj]
    assert out.anchors[-1] == box


def test_home_probe_is_centred_square():
    p = home_probe(100.0, 0.8)
    assert p.midpoint == pytest.approx((50.0, 50.0))
    assert p.x1 - p.x0 == pytest.approx(0.8)
