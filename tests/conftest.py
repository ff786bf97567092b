import numpy as np
import pytest
import rasterio
import rasterio.shutil
from rasterio.transform import Affine

from crustmap.models import GeoGrid


@pytest.fixture
def grid_1deg():
    return GeoGrid(columns=360, rows=180, radius=6_371_000.0)


@pytest.fixture
def grid_4deg():
    return GeoGrid(columns=90, rows=45, radius=6_371_000.0)


def _idx_at(grid: GeoGrid, lat_deg: float, lon_deg: float) -> int:
    r = int(np.floor((90.0 - lat_deg) / 180.0 * grid.rows))
    c = int(np.floor((lon_deg + 180.0) / 360.0 * grid.columns))
    return min(r, grid.rows - 1) * grid.columns + c % grid.columns


@pytest.fixture
def idx_at():
    """Linear index of the cell containing (lat_deg, lon_deg)."""
    return _idx_at


@pytest.fixture
def write_raster(tmp_path):
    """Write a (rows, columns) float32 array as a global GeoTIFF; returns its path."""

    def _write(arr, name="field.tif", nodata=-9999.0, south_up=False):
        arr = np.asarray(arr, dtype=np.float32)
        H, W = arr.shape
        if south_up:
            transform = Affine(360.0 / W, 0.0, -180.0, 0.0, 180.0 / H, -90.0)
        else:
            transform = Affine(360.0 / W, 0.0, -180.0, 0.0, -180.0 / H, 90.0)
        data = np.where(np.isnan(arr), np.float32(nodata), arr)
        path = tmp_path / name
        with rasterio.open(
            path, "w", driver="GTiff", height=H, width=W, count=1,
            dtype="float32", crs="EPSG:4326", transform=transform, nodata=nodata,
        ) as ds:
            ds.write(data, 1)
        return path

    return _write


@pytest.fixture
def write_netcdf(write_raster, tmp_path):
    """Write an array through GDAL's netCDF driver; the variable is named Band1."""
    with rasterio.Env() as env:
        if "netCDF" not in env.drivers():
            pytest.skip("GDAL build has no netCDF driver")

    def _write(arr, name="field.nc", **kwargs):
        tif = write_raster(arr, name=name.rsplit(".", 1)[0] + ".tif", **kwargs)
        path = tmp_path / name
        rasterio.shutil.copy(tif, path, driver="netCDF")
        return path

    return _write
