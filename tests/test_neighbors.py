import math

import numpy as np
import pytest

from crustmap.geometry import great_circle_angle
from crustmap.models import GeoGrid
from crustmap.neighbors import grid_axes, neighbors_within, row_half_width

def distances_from(grid, center):
    lats, lons = grid_axes(grid)
    r0, c0 = grid.idx_to_rc(center)
    phi = np.repeat(lats, grid.columns)
    lam = np.tile(lons, grid.rows)
    return great_circle_angle(lats[r0], lons[c0], phi, lam) * grid.radius


def brute_force(grid, center, d_m):
    return set(np.nonzero(distances_from(grid, center) <= d_m)[0].tolist())


@pytest.mark.parametrize("lat", [0.0, 45.0, 89.5])
def test_results_respect_the_distance_bound(grid_1deg, idx_at, lat):
    d = 500_000.0
    center = idx_at(grid_1deg, lat, 0.0)
    found = neighbors_within(grid_1deg, center, d)
    assert found.size > 0
    dist = distances_from(grid_1deg, center)[found]
    assert np.all(dist <= d * 1.01)


@pytest.mark.parametrize("lat", [0.0, 30.0, 45.0, -60.0, 80.0, 88.0, -88.0])
@pytest.mark.parametrize("d", [300_000.0, 1_000_000.0, 3_000_000.0])
def test_no_cell_within_the_bound_is_missed(grid_4deg, idx_at, lat, d):
    center = idx_at(grid_4deg, lat, 0.0)
    found = neighbors_within(grid_4deg, center, d)
    assert set(found.tolist()) == brute_force(grid_4deg, center, d)


@pytest.mark.parametrize("lon", [-179.0, 179.0])
def test_coverage_across_the_antimeridian(grid_4deg, idx_at, lon):
    center = idx_at(grid_4deg, 10.0, lon)
    found = neighbors_within(grid_4deg, center, 1_500_000.0)
    assert set(found.tolist()) == brute_force(grid_4deg, center, 1_500_000.0)
    cols = set((found % grid_4deg.columns).tolist())
    assert 0 in cols and grid_4deg.columns - 1 in cols


@pytest.mark.parametrize("fraction", [0.45, 0.5, 0.9, 0.999, 1.0, 2.0])
def test_no_duplicates_even_for_huge_bounds(grid_4deg, idx_at, fraction):
    d = fraction * math.pi * grid_4deg.radius
    for lat in (0.0, 60.0, -85.0):
        center = idx_at(grid_4deg, lat, 33.0)
        found = neighbors_within(grid_4deg, center, d)
        assert len(found) == len(np.unique(found))
        assert set(found.tolist()) == brute_force(grid_4deg, center, d)


def test_half_circumference_returns_every_cell(grid_4deg, idx_at):
    found = neighbors_within(grid_4deg, idx_at(grid_4deg, 12.0, 40.0), math.pi * grid_4deg.radius * 1.0001)
    assert sorted(found.tolist()) == list(range(grid_4deg.size))


def test_odd_column_count(idx_at):
    grid = GeoGrid(columns=45, rows=23, radius=6_371_000.0)
    for lat in (0.0, 70.0, -89.0):
        center = idx_at(grid, lat, -100.0)
        for d in (800_000.0, 5_000_000.0, 19_000_000.0):
            found = neighbors_within(grid, center, d)
            assert len(found) == len(np.unique(found))
            assert set(found.tolist()) == brute_force(grid, center, d)


def test_results_are_in_row_major_scan_order(grid_4deg, idx_at):
    found = neighbors_within(grid_4deg, idx_at(grid_4deg, 40.0, 0.0), 2_000_000.0)
    rows = found // grid_4deg.columns
    assert np.all(np.diff(rows) >= 0)


def test_tiny_bound_returns_only_the_center(grid_1deg, idx_at):
    center = idx_at(grid_1deg, 89.5, 10.0)
    assert neighbors_within(grid_1deg, center, 1.0).tolist() == [center]
    assert neighbors_within(grid_1deg, center, 0.0).tolist() == [center]


def test_single_cell_grid():
    grid = GeoGrid(columns=1, rows=1, radius=1.0)
    assert neighbors_within(grid, 0, 10.0).tolist() == [0]


@pytest.mark.parametrize("center", [-1, 90 * 45, 10**9])
def test_center_outside_the_grid_is_rejected(grid_4deg, center):
    with pytest.raises(ValueError):
        neighbors_within(grid_4deg, center, 500_000.0)


def test_row_half_width():
    delta = math.radians(5.0)
    # equator to equator: extent equals the angular radius
    assert row_half_width(delta, 0.0, 0.0) == pytest.approx(delta)
    # rows out of reach collapse to zero, rows past the pole open up fully
    assert row_half_width(delta, 0.0, math.radians(20.0)) == 0.0
    assert row_half_width(math.radians(20.0), math.radians(85.0), math.radians(88.0)) == math.pi


def test_end_to_end_500km_at_equator(grid_1deg, idx_at):
    d = 500_000.0
    center = idx_at(grid_1deg, 0.0, 0.0)
    found = neighbors_within(grid_1deg, center, d)
    assert found.size > 0
    assert np.all(distances_from(grid_1deg, center)[found] <= 505_000.0)
    assert set(found.tolist()) == brute_force(grid_1deg, center, d)

    coarse = GeoGrid(columns=90, rows=45, radius=6_371_000.0)
    center = idx_at(coarse, 0.0, 0.0)
    assert set(neighbors_within(coarse, center, d).tolist()) == brute_force(coarse, center, d)
