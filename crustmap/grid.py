# region Imports
import math
import numpy as np
from .models import GeoGrid
# endregion

# region Grid Coordinate Generation
def row_latitudes(grid: GeoGrid) -> np.ndarray:
    """Pixel-center latitude (radians) of every row, north first."""
    v = (np.arange(grid.rows, dtype=np.float64) + 0.5) / grid.rows
    return np.radians(90.0 - 180.0 * v)


def column_longitudes(grid: GeoGrid) -> np.ndarray:
    """Pixel-center longitude (radians) of every column, -180° side first."""
    u = (np.arange(grid.columns, dtype=np.float64) + 0.5) / grid.columns
    return np.radians(-180.0 + 360.0 * u)


def lonlat_grid(grid: GeoGrid):
    """Flat (lon, lat) degree arrays, one entry per cell in row-major order."""
    xs = np.degrees(column_longitudes(grid))
    ys = np.degrees(row_latitudes(grid))
    return np.tile(xs, grid.rows), np.repeat(ys, grid.columns)
# endregion

# region Index Helpers
def split_indices(indices, grid: GeoGrid):
    idx = np.asarray(indices, dtype=np.int64)
    return idx // grid.columns, idx % grid.columns


def nearest_idx(lon: float, lat: float, grid: GeoGrid) -> int:
    """Linear index of the cell containing (lon, lat) in degrees."""
    lon = ((lon + 180.0) % 360.0) - 180.0
    c = int(math.floor((lon + 180.0) / 360.0 * grid.columns))
    r = int(math.floor((90.0 - lat) / 180.0 * grid.rows))
    c = grid.wrap_column(c)
    r = max(0, min(grid.rows - 1, r))
    return r * grid.columns + c


def check_field(values, grid: GeoGrid) -> np.ndarray:
    arr = np.asarray(values)
    if arr.ndim != 1:
        arr = arr.reshape(-1)
    if arr.size != grid.size:
        raise ValueError(
            f"Field has {arr.size} samples but grid is {grid.columns}x{grid.rows} ({grid.size} cells)"
        )
    return arr
# endregion
