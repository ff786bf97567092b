# region Imports
import logging
from typing import Callable, List, Optional, Sequence

import numpy as np

from .config import GOLDEN_RATIO_CONJ, MIN_VALUE_TO_KEEP, NO_PARTITION_COLOR
from .gradients import hue_chroma_to_rgb
from .grid import check_field
from .metrics import area_of_sphere, partition_areas
from .models import GeoGrid, PartitionMap
# endregion

LOGGER = logging.getLogger(__name__)

# Takes the whole field, returns a boolean keep-mask of the same length
Predicate = Callable[[np.ndarray], np.ndarray]

# region Keep Predicate
def keep_at_least(min_value: float = MIN_VALUE_TO_KEEP) -> Predicate:
    """Keep cells with no data (NaN) or value >= min_value."""
    def keep(values: np.ndarray) -> np.ndarray:
        v = np.asarray(values, dtype=np.float64)
        with np.errstate(invalid="ignore"):
            return np.isnan(v) | (v >= min_value)
    return keep
# endregion

# region Grid Adjacency
def neighbours_4(r: int, c: int, columns: int, rows: int):
    """West, east (wrapping), then north and south (clamped at the poles)."""
    yield r * columns + (c - 1) % columns
    yield r * columns + (c + 1) % columns
    if r > 0:
        yield (r - 1) * columns + c
    if r + 1 < rows:
        yield (r + 1) * columns + c
# endregion

# region Flood Fill
def partition(field, grid: GeoGrid, predicate: Optional[Predicate] = None) -> List[List[int]]:
    """
    Maximal 4-connected components of kept cells. Seeds are taken in
    row-major order and each component is grown with an explicit stack, so
    component order (and the ids derived from it) is reproducible.
    """
    values = check_field(field, grid)
    predicate = predicate or keep_at_least()
    mask = np.asarray(predicate(values), dtype=bool).reshape(-1)
    if mask.size != values.size:
        raise ValueError(f"Predicate returned {mask.size} flags for {values.size} cells")

    W, H = grid.columns, grid.rows
    keep = mask.tolist()
    visited = bytearray(grid.size)
    patches: List[List[int]] = []

    for i0 in range(grid.size):
        if visited[i0] or not keep[i0]:
            continue

        patch = []
        stack = [i0]
        visited[i0] = 1
        while stack:
            ci = stack.pop()
            patch.append(ci)
            r, c = divmod(ci, W)
            for ni in neighbours_4(r, c, W, H):
                if visited[ni] or not keep[ni]:
                    continue
                visited[ni] = 1
                stack.append(ni)

        patches.append(patch)

    return patches
# endregion

# region Labels and Colors
def label(components: Sequence[Sequence[int]], total_cells: int) -> np.ndarray:
    """Component id per cell; cells outside every component get len(components)."""
    labels = np.full(total_cells, len(components), dtype=np.int64)
    for patch_id, patch in enumerate(components):
        labels[np.asarray(patch, dtype=np.int64)] = patch_id
    return labels


def generate_colors(n: int) -> np.ndarray:
    """
    `n` RGB colors: n-1 golden-ratio spaced hues at full intensity, then
    NO_PARTITION_COLOR in the last slot.
    """
    if n < 1:
        raise ValueError(f"Color table needs at least one slot, got n={n}")
    hues = np.mod(np.arange(n - 1, dtype=np.float64) * GOLDEN_RATIO_CONJ, 1.0)
    rgb = hue_chroma_to_rgb(hues, 1.0)
    return np.vstack([rgb, np.array([NO_PARTITION_COLOR], dtype=np.uint8)])


def colorize_labels(labels: np.ndarray, colors: np.ndarray) -> np.ndarray:
    labels = np.asarray(labels, dtype=np.int64)
    n = len(colors)
    if labels.size:
        lo, hi = int(labels.min()), int(labels.max())
        if lo < 0 or hi >= n:
            bad = hi if hi >= n else lo
            raise ValueError(f"Partition label {bad} is outside the color table (size {n})")
    return np.asarray(colors, dtype=np.uint8)[labels]


def partition_map(field, grid: GeoGrid, predicate: Optional[Predicate] = None) -> PartitionMap:
    components = partition(field, grid, predicate)
    LOGGER.info("Found %d partitions", len(components))
    labels = label(components, grid.size)
    colors = generate_colors(len(components) + 1)
    rgb = colorize_labels(labels, colors)

    if components and LOGGER.isEnabledFor(logging.DEBUG):
        areas = partition_areas(components, grid)
        total = area_of_sphere(grid.radius)
        biggest = int(np.argmax(areas))
        LOGGER.debug(
            "Partitions cover %.1f%% of the sphere; largest is #%d (%.3g m², %d cells)",
            100.0 * sum(areas) / total, biggest, areas[biggest], len(components[biggest]),
        )
    return PartitionMap(components=components, labels=labels, colors=colors, rgb=rgb)
# endregion
