import numpy as np
import pytest
from PIL import Image

from crustmap.cli import main, parse_size
from crustmap.field import synthetic_field
from crustmap.models import GeoGrid


@pytest.fixture
def age_tif(write_raster):
    grid = GeoGrid(columns=36, rows=18, radius=6_371_000.0)
    return write_raster(synthetic_field(grid, seed=2).reshape(18, 36), name="age.tif")


def test_partition_command(age_tif, tmp_path):
    out = tmp_path / "partition.png"
    assert main(["partition", str(age_tif), str(out), "--min-value", "60"]) == 0
    with Image.open(out) as img:
        assert img.size == (36, 18)


def test_gradient_command(age_tif, tmp_path):
    out = tmp_path / "gradient.png"
    args = ["-v", "gradient", str(age_tif), str(out), "--search-m", "2500000", "--workers", "2", "--mag-cap", "1e-5"]
    assert main(args) == 0
    with Image.open(out) as img:
        assert img.size == (36, 18)


def test_scalar_command_with_resize_overlay_and_webp(age_tif, tmp_path):
    overlay = tmp_path / "overlay.png"
    Image.new("RGB", (10, 5), (90, 90, 90)).save(overlay)
    out = tmp_path / "scalar.webp"
    args = ["scalar", str(age_tif), str(out), "--size", "72x36", "--overlay", str(overlay), "--quality", "60"]
    assert main(args) == 0
    with Image.open(out) as img:
        assert img.format == "WEBP"
        assert img.size == (72, 36)


def test_missing_input_fails_cleanly(tmp_path):
    assert main(["scalar", str(tmp_path / "missing.tif"), str(tmp_path / "x.png")]) == 1


def test_netcdf_input_needs_an_existing_variable(write_netcdf, tmp_path):
    grid = GeoGrid(columns=36, rows=18, radius=6_371_000.0)
    nc = write_netcdf(synthetic_field(grid, seed=3).reshape(18, 36), name="age.nc")
    out = tmp_path / "scalar.png"
    assert main(["scalar", str(nc), str(out)]) == 1
    assert not out.exists()
    assert main(["scalar", str(nc), str(out), "--variable", "Band1"]) == 0
    with Image.open(out) as img:
        assert img.size == (36, 18)


def test_parse_size():
    assert parse_size("8192x4096") == (8192, 4096)
    with pytest.raises(Exception):
        parse_size("big")
    with pytest.raises(SystemExit):
        main(["scalar", "a.tif", "b.png", "--size", "0x5"])
