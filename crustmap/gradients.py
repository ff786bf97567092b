# region Imports
import logging
import math
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence, Tuple

import numpy as np

from .config import (
    GRADIENT_MAG_CAP,
    GRADIENT_SEARCH_M,
    MIN_FIT_SAMPLES,
    NO_DATA_COLOR,
    SINGULAR_COND,
    UNDEFINED_COLOR,
)
from .geometry import tangent_basis, unit_vectors
from .grid import check_field, split_indices
from .models import FitFailure, GeoGrid, GradientField
from .neighbors import grid_axes, neighbors_within
# endregion

LOGGER = logging.getLogger(__name__)

# region Tangent-plane Fit
def fit_gradient_with_reason(
    grid: GeoGrid,
    center_idx: int,
    indices: Sequence[int],
    values: np.ndarray,
) -> Tuple[Optional[Tuple[float, float]], FitFailure]:
    """
    Least-squares plane `value ~ a*x + b*y + c` over the samples at
    `indices`, with (x, y) the east/north tangent-plane coordinates (m) of
    each sample around `center_idx`. `values` is the whole field.

    Returns ((a, b), FitFailure.NONE) on success, or (None, reason) when
    fewer than MIN_FIT_SAMPLES finite samples remain or the normal
    equations are singular.
    """
    idx = np.asarray(indices, dtype=np.int64)
    vals = np.asarray(values)[idx].astype(np.float64)
    ok = np.isfinite(vals)
    idx, vals = idx[ok], vals[ok]
    if idx.size < MIN_FIT_SAMPLES:
        return None, FitFailure.INSUFFICIENT_DATA

    lats, lons = grid_axes(grid)
    r0, c0 = grid.idx_to_rc(int(center_idx))
    n, e_east, e_north = tangent_basis(float(lats[r0]), float(lons[c0]))

    rows, cols = split_indices(idx, grid)
    p = unit_vectors(lats[rows], lons[cols])
    v = grid.radius * (p - np.outer(p @ n, n))
    x = v @ e_east
    y = v @ e_north

    # rescale to O(1) so the condition number reflects geometry, not units
    s = float(max(np.max(np.abs(x)), np.max(np.abs(y))))
    if s <= 0.0:
        return None, FitFailure.SINGULAR
    x = x / s
    y = y / s

    m = np.array([
        [np.dot(x, x), np.dot(x, y), x.sum()],
        [np.dot(x, y), np.dot(y, y), y.sum()],
        [x.sum(),      y.sum(),      float(idx.size)],
    ])
    b = np.array([np.dot(x, vals), np.dot(y, vals), vals.sum()])

    if not np.all(np.isfinite(m)) or np.linalg.cond(m) > SINGULAR_COND:
        return None, FitFailure.SINGULAR
    try:
        sol = np.linalg.solve(m, b)
    except np.linalg.LinAlgError:
        return None, FitFailure.SINGULAR

    return (float(sol[0] / s), float(sol[1] / s)), FitFailure.NONE


def fit_gradient(grid: GeoGrid, center_idx: int, indices, values) -> Optional[Tuple[float, float]]:
    """Tangent-plane gradient (east, north) in field units per meter, or None."""
    g, _ = fit_gradient_with_reason(grid, center_idx, indices, values)
    return g
# endregion

# region Magnitude / Bearing
def to_magnitude_bearing(east: float, north: float) -> Tuple[float, float]:
    """Magnitude and bearing (radians clockwise from north, in (-pi, pi])."""
    return math.hypot(east, north), math.atan2(east, north)
# endregion

# region Color Mapping
def hue_chroma_to_rgb(hue, chroma) -> np.ndarray:
    """
    HSV -> RGB for hue in [0,1) and chroma in [0,1] with zero value offset.
    Returns uint8 triples with shape (..., 3).
    """
    hue = np.asarray(hue, dtype=np.float64)
    c = np.broadcast_to(np.asarray(chroma, dtype=np.float64), hue.shape)
    h = hue * 6.0
    x = c * (1.0 - np.abs(np.mod(h, 2.0) - 1.0))
    z = np.zeros_like(c)
    # hue == 1.0 falls in the last sector
    sector = np.clip(np.floor(h), 0, 5).astype(np.int64)

    r = np.choose(sector, [c, x, z, z, x, c])
    g = np.choose(sector, [x, c, c, x, z, z])
    b = np.choose(sector, [z, z, x, c, c, x])
    rgb = np.stack([r, g, b], axis=-1) * 255.0
    return np.clip(rgb, 0.0, 255.0).astype(np.uint8)


def bearing_to_hue(bearing):
    two_pi = 2.0 * math.pi
    return np.mod(np.asarray(bearing, dtype=np.float64) + two_pi, two_pi) / two_pi


def gradient_to_color(magnitude: float, bearing: float, magnitude_cap: float) -> Tuple[int, int, int]:
    """Bearing picks the hue (0 = north), capped magnitude drives intensity."""
    if not magnitude_cap > 0:
        raise ValueError(f"magnitude_cap must be positive, got {magnitude_cap}")
    intensity = min(max(magnitude / magnitude_cap, 0.0), 1.0)
    r, g, b = hue_chroma_to_rgb(bearing_to_hue(bearing), intensity)
    return int(r), int(g), int(b)
# endregion

# region Gradient Pass
def _fit_block(grid, values, search_m, out, r_start, r_end):
    east, north, failure = out
    for i in range(r_start * grid.columns, r_end * grid.columns):
        if np.isnan(values[i]):
            failure[i] = FitFailure.NO_DATA
            continue
        nbrs = neighbors_within(grid, i, search_m)
        g, reason = fit_gradient_with_reason(grid, i, nbrs, values)
        failure[i] = reason
        if g is not None:
            east[i], north[i] = g


def compute_gradient_field(
    field,
    grid: GeoGrid,
    search_m: float = GRADIENT_SEARCH_M,
    *,
    max_workers: Optional[int] = None,
    block_rows: Optional[int] = None,
) -> GradientField:
    """
    Fit a tangent-plane gradient at every cell. Cells are independent, so
    row blocks run on a thread pool and each block writes its own slice of
    the output arrays.
    """
    values = check_field(field, grid)
    N = grid.size
    east = np.full(N, np.nan, dtype=np.float64)
    north = np.full(N, np.nan, dtype=np.float64)
    failure = np.zeros(N, dtype=np.uint8)
    out = (east, north, failure)

    workers = max_workers or os.cpu_count() or 1
    if block_rows is None:
        block_rows = max(1, grid.rows // (4 * workers))
    blocks = [(r, min(grid.rows, r + block_rows)) for r in range(0, grid.rows, block_rows)]
    LOGGER.info(
        "Gradient pass: %dx%d grid, search radius %.1f m, %d blocks on %d workers",
        grid.columns, grid.rows, search_m, len(blocks), workers,
    )

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(_fit_block, grid, values, search_m, out, r0, r1)
            for r0, r1 in blocks
        ]
        for fut in futures:
            fut.result()

    magnitude = np.hypot(east, north)
    bearing = np.arctan2(east, north)

    counts = np.bincount(failure, minlength=len(FitFailure))
    LOGGER.info(
        "Gradient pass done: %d fitted, %d insufficient, %d singular, %d no-data",
        counts[FitFailure.NONE], counts[FitFailure.INSUFFICIENT_DATA],
        counts[FitFailure.SINGULAR], counts[FitFailure.NO_DATA],
    )
    return GradientField(east=east, north=north, magnitude=magnitude, bearing=bearing, failure=failure)


def gradient_colors(gf: GradientField, magnitude_cap: float = GRADIENT_MAG_CAP) -> np.ndarray:
    """(N, 3) uint8 colors: NO_DATA_COLOR on NaN cells, UNDEFINED_COLOR where the fit failed."""
    if not magnitude_cap > 0:
        raise ValueError(f"magnitude_cap must be positive, got {magnitude_cap}")
    defined = gf.defined
    intensity = np.clip(np.where(defined, gf.magnitude, 0.0) / magnitude_cap, 0.0, 1.0)
    rgb = hue_chroma_to_rgb(bearing_to_hue(np.where(defined, gf.bearing, 0.0)), intensity)
    rgb[gf.failure == FitFailure.INSUFFICIENT_DATA] = UNDEFINED_COLOR
    rgb[gf.failure == FitFailure.SINGULAR] = UNDEFINED_COLOR
    rgb[gf.failure == FitFailure.NO_DATA] = NO_DATA_COLOR
    return rgb
# endregion
