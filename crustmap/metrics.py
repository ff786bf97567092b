# metrics.py
import math
from typing import List, Sequence, Tuple

import numpy as np

from .models import GeoGrid


def nan_min_max(values) -> Tuple[float, float]:
    """Range of the finite samples; (nan, nan) when there are none."""
    v = np.asarray(values, dtype=np.float64)
    v = v[np.isfinite(v)]
    if v.size == 0:
        return float("nan"), float("nan")
    return float(v.min()), float(v.max())


def pixel_area_lookup(columns: int, rows: int, radius: float) -> Tuple[float, np.ndarray]:
    """
    Area (m²) of one cell per row, plus the equatorial cell area used as the
    reference. Rows shrink with cos(latitude) toward the poles.
    """
    dlon = 2.0 * math.pi / columns
    dlat = math.pi / rows
    max_area = radius * radius * dlon * dlat
    lat = (math.pi / 2.0) - (np.arange(rows, dtype=np.float64) + 0.5) * dlat
    return max_area, max_area * np.cos(lat)


def area_of_sphere(radius: float) -> float:
    return 4.0 * math.pi * radius * radius


def partition_areas(components: Sequence[Sequence[int]], grid: GeoGrid) -> List[float]:
    _, row_area = pixel_area_lookup(grid.columns, grid.rows, grid.radius)
    areas = []
    for comp in components:
        rows = np.asarray(comp, dtype=np.int64) // grid.columns
        areas.append(float(row_area[rows].sum()))
    return areas
