# region Imports
import math
from functools import lru_cache
from typing import Tuple

import numpy as np

from .config import POLE_EPS
from .geometry import great_circle_m, meters_to_angle
from .grid import column_longitudes, row_latitudes
from .models import GeoGrid
# endregion

# region Axis Cache
@lru_cache(maxsize=8)
def grid_axes(grid: GeoGrid) -> Tuple[np.ndarray, np.ndarray]:
    """Row latitudes and column longitudes (radians), shared read-only."""
    lats = row_latitudes(grid)
    lons = column_longitudes(grid)
    lats.flags.writeable = False
    lons.flags.writeable = False
    return lats, lons
# endregion

# region Window Bounds
def row_half_width(delta: float, phi0: float, phi: float) -> float:
    """
    Largest longitude offset at latitude `phi` whose point can still lie
    within central angle `delta` of a center at latitude `phi0`.
    Returns pi when the whole row has to be scanned.
    """
    denom = math.cos(phi0) * math.cos(phi)
    if denom < POLE_EPS:
        return math.pi
    v = (math.cos(delta) - math.sin(phi0) * math.sin(phi)) / denom
    if v <= -1.0:
        return math.pi
    if v >= 1.0:
        return 0.0
    return math.acos(v)


def row_window(grid: GeoGrid, r0: int, delta: float) -> Tuple[int, int]:
    dphi_pix = math.pi / grid.rows
    pad = int(math.ceil(delta / dphi_pix))
    return max(0, r0 - pad), min(grid.rows - 1, r0 + pad)
# endregion

# region Neighbor Search
def neighbors_within(grid: GeoGrid, center_idx: int, d_m: float) -> np.ndarray:
    """
    Linear indices of all cells whose great-circle distance from
    `center_idx` is <= `d_m` meters, in row-major scan order.

    Rows are limited to the latitude band reachable within the angular
    radius (no wrap across the poles); within each row only the columns
    inside the disc's longitude extent are checked exactly. The column
    window never covers more than one full turn, so no index repeats.
    """
    lats, lons = grid_axes(grid)
    center_idx = int(center_idx)
    if not 0 <= center_idx < grid.size:
        raise ValueError(f"Center index {center_idx} is outside the grid (size {grid.size})")
    r0, c0 = grid.idx_to_rc(center_idx)
    phi0 = float(lats[r0])
    lam0 = float(lons[c0])

    delta = meters_to_angle(d_m, grid.radius)
    dlam_pix = 2.0 * math.pi / grid.columns
    r_min, r_max = row_window(grid, r0, delta)

    out = []
    for r in range(r_min, r_max + 1):
        phi = float(lats[r])
        hw = row_half_width(delta, phi0, phi)
        pad = int(math.ceil(hw / dlam_pix))

        if 2 * pad + 1 >= grid.columns:
            cols = np.arange(grid.columns, dtype=np.int64)
        else:
            cols = np.mod(np.arange(c0 - pad, c0 + pad + 1, dtype=np.int64), grid.columns)

        dist = great_circle_m(phi0, lam0, phi, lons[cols], grid.radius)
        hits = cols[dist <= d_m]
        if hits.size:
            out.append(r * grid.columns + hits)

    if not out:
        return np.empty(0, dtype=np.int64)
    return np.concatenate(out)
# endregion
