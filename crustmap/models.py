# models.py
import enum
import math
import numbers
from dataclasses import dataclass
from typing import List, Tuple

import numpy as np


@dataclass(frozen=True)
class GeoGrid:
    """Global equirectangular grid, pixel centers, row 0 at +90° latitude."""

    columns: int
    rows: int
    radius: float

    def __post_init__(self):
        if not isinstance(self.columns, numbers.Integral) or not isinstance(self.rows, numbers.Integral):
            raise ValueError(
                f"Grid dimensions must be integers (columns={self.columns!r}, rows={self.rows!r})"
            )
        if self.columns <= 0 or self.rows <= 0:
            raise ValueError(
                f"Grid needs positive dimensions (columns={self.columns}, rows={self.rows})"
            )
        if not (math.isfinite(self.radius) and self.radius > 0):
            raise ValueError(f"Grid radius must be positive, got {self.radius}")

    @property
    def size(self) -> int:
        return self.columns * self.rows

    def latitude_of(self, row) -> float:
        return math.radians(90.0 - 180.0 * (row + 0.5) / self.rows)

    def longitude_of(self, col) -> float:
        return math.radians(-180.0 + 360.0 * (col + 0.5) / self.columns)

    def wrap_column(self, i: int) -> int:
        # Python's % already returns a value with the sign of the divisor
        return i % self.columns

    def idx_to_rc(self, i: int) -> Tuple[int, int]:
        return (i // self.columns, i % self.columns)

    def rc_to_idx(self, r: int, c: int) -> int:
        return r * self.columns + self.wrap_column(c)


class FitFailure(enum.IntEnum):
    NONE = 0
    INSUFFICIENT_DATA = 1
    SINGULAR = 2
    NO_DATA = 3  # center cell itself is NaN


@dataclass
class GradientField:
    east: np.ndarray        # (N,) field units / m, NaN where undefined
    north: np.ndarray       # (N,)
    magnitude: np.ndarray   # (N,)
    bearing: np.ndarray     # (N,) radians clockwise from north
    failure: np.ndarray     # (N,) uint8 FitFailure codes

    @property
    def defined(self) -> np.ndarray:
        return self.failure == FitFailure.NONE

    def vector(self, i: int):
        if self.failure[i] != FitFailure.NONE:
            return None
        return float(self.east[i]), float(self.north[i])


@dataclass
class PartitionMap:
    components: List[List[int]]
    labels: np.ndarray   # (N,) int64, len(components) marks "no partition"
    colors: np.ndarray   # (len(components) + 1, 3) uint8
    rgb: np.ndarray      # (N, 3) uint8

    @property
    def count(self) -> int:
        return len(self.components)

    @property
    def no_partition(self) -> int:
        return len(self.components)
