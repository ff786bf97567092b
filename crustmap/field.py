# field.py
import logging
import os
from typing import Tuple

import numpy as np
import rasterio

from .config import DEFAULT_VARIABLE, EARTH_R
from .grid import column_longitudes, row_latitudes
from .metrics import nan_min_max
from .models import GeoGrid

LOGGER = logging.getLogger(__name__)

_NETCDF_EXT = (".nc", ".nc4", ".grd", ".cdf")


def _source_name(path: str, variable: str) -> str:
    if variable and str(path).lower().endswith(_NETCDF_EXT):
        return f'NETCDF:"{path}":{variable}'
    return str(path)


def read_field(path, variable: str = DEFAULT_VARIABLE, radius: float = EARTH_R) -> Tuple[np.ndarray, GeoGrid]:
    """
    Read one scalar band as a flat float32 field (row 0 = north, nodata = NaN)
    together with its global grid. netCDF files are read through GDAL's
    netCDF driver using `variable`; other rasters use band 1.
    """
    src = _source_name(os.fspath(path), variable)
    with rasterio.open(src) as ds:
        H, W = int(ds.height), int(ds.width)
        if H < 1 or W < 1:
            raise ValueError(f"Raster {src} is empty (H={H}, W={W})")

        arr = ds.read(1).astype(np.float32)
        nodata = ds.nodata
        if nodata is not None and not np.isnan(nodata):
            arr[np.isclose(arr, nodata)] = np.nan

        band_scale = (ds.scales or (None,))[0]
        band_off = (ds.offsets or (None,))[0]
        south_up = ds.transform.e > 0

    if (band_scale not in (None, 1.0)) or (band_off not in (None, 0.0)):
        s = 1.0 if band_scale is None else float(band_scale)
        o = 0.0 if band_off is None else float(band_off)
        arr = arr * np.float32(s) + np.float32(o)

    if south_up:
        arr = arr[::-1]

    grid = GeoGrid(columns=W, rows=H, radius=float(radius))
    lo, hi = nan_min_max(arr)
    LOGGER.info("Read %s: %dx%d cells, value range [%g, %g]", src, W, H, lo, hi)
    return np.ascontiguousarray(arr).reshape(-1), grid


def synthetic_field(grid: GeoGrid, seed: int = 0, land_threshold: float = 0.75) -> np.ndarray:
    """
    Smooth age-like field (>= 0) with gentle undulations, a little noise and
    NaN "land" patches, for tests and demos without a source file.
    """
    rng = np.random.default_rng(seed)
    lam = np.tile(column_longitudes(grid), grid.rows)
    phi = np.repeat(row_latitudes(grid), grid.columns)

    base = 80.0 + 60.0 * np.sin(2.0 * lam) * np.cos(phi)
    long_waves = 30.0 * np.cos(3.0 * phi + 0.4) * np.sin(0.5 * lam - 0.8)
    noise = rng.normal(0.0, 2.0, grid.size)
    values = np.clip(base + long_waves + noise, 0.0, None)

    land = np.sin(3.0 * lam + 0.5) * np.cos(2.0 * phi) > land_threshold
    values[land] = np.nan
    return values.astype(np.float32)
