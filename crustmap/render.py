# region Imports
import os
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from .config import NO_DATA_COLOR
from .grid import check_field
from .metrics import nan_min_max
from .models import GeoGrid
# endregion

# region Color Fields
def scalar_colors(field) -> np.ndarray:
    """Blue -> green -> red ramp over the finite range; NaN cells get NO_DATA_COLOR."""
    v = np.asarray(field, dtype=np.float64).reshape(-1)
    lo, hi = nan_min_max(v)
    if not np.isfinite(lo):
        lo, hi = 0.0, 1.0
    span = hi - lo if hi > lo else 1.0

    t = np.clip((v - lo) / span, 0.0, 1.0)
    r = 255.0 * t
    g = 255.0 * (1.0 - np.clip(np.abs(t - 0.5) * 2.0, 0.0, 1.0))
    b = 255.0 * (1.0 - t)
    rgb = np.stack([r, g, b], axis=-1)
    rgb[np.isnan(v)] = NO_DATA_COLOR
    return np.nan_to_num(rgb, nan=0.0).astype(np.uint8)
# endregion

# region Image Conversion
def to_image(rgb: np.ndarray, grid: GeoGrid) -> Image.Image:
    """Row-major (N, 3) colors -> RGB image with grid row 0 on the top edge."""
    rgb = np.asarray(rgb, dtype=np.uint8)
    check_field(rgb[:, 0], grid)
    return Image.fromarray(np.ascontiguousarray(rgb.reshape(grid.rows, grid.columns, 3)))


def load_image(path) -> Image.Image:
    with Image.open(path) as img:
        return img.convert("RGB")


def resize(img: Image.Image, size: Tuple[int, int]) -> Image.Image:
    if img.size == tuple(size):
        return img
    return img.resize(tuple(size), Image.Resampling.LANCZOS)


def blend(base: Image.Image, overlay: Image.Image, k: float) -> Image.Image:
    """
    base*k + overlay*(1-k), with the overlay reduced to grayscale and
    resized to the base image first.
    """
    if not 0.0 <= k <= 1.0:
        raise ValueError(f"Blend factor must be in [0, 1], got {k}")
    gray = resize(overlay.convert("L").convert("RGB"), base.size)
    return Image.blend(gray, base.convert("RGB"), k)
# endregion

# region Saving
def save_image(img: Image.Image, path, quality: Optional[float] = None) -> Path:
    """Save by extension; with `quality` the image is written as lossy WebP."""
    out = Path(os.fspath(path))
    out.parent.mkdir(parents=True, exist_ok=True)
    if quality is not None:
        img.save(out, "WEBP", quality=int(quality))
    else:
        img.save(out)
    return out
# endregion
