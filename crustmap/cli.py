# region Imports
import argparse
import logging
from typing import List, Optional, Tuple

from .config import DEFAULT_VARIABLE, EARTH_R, GRADIENT_MAG_CAP, GRADIENT_SEARCH_M, MIN_VALUE_TO_KEEP
from .field import read_field
from .gradients import compute_gradient_field, gradient_colors
from .partition import keep_at_least, partition_map
from .render import blend, load_image, resize, save_image, scalar_colors, to_image
# endregion

LOGGER = logging.getLogger("crustmap")

# region Argument Parsing
def parse_size(text: str) -> Tuple[int, int]:
    try:
        w, h = (int(x) for x in text.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"size must look like WIDTHxHEIGHT, got {text!r}")
    if w < 1 or h < 1:
        raise argparse.ArgumentTypeError(f"size must be positive, got {text!r}")
    return w, h


def _add_common(sp: argparse.ArgumentParser) -> None:
    sp.add_argument("input", help="source raster (netCDF, GeoTIFF, ...)")
    sp.add_argument("output", help="output image (.png, .webp, ...)")
    sp.add_argument("--variable", default=DEFAULT_VARIABLE, help="netCDF variable to read (default: %(default)s)")
    sp.add_argument("--radius", type=float, default=EARTH_R, help="sphere radius in meters (default: %(default)s)")
    sp.add_argument("--size", type=parse_size, default=None, help="resize output to WIDTHxHEIGHT")
    sp.add_argument("--overlay", default=None, help="image blended underneath as grayscale")
    sp.add_argument("--blend", type=float, default=0.5, help="weight of the map when blending (default: %(default)s)")
    sp.add_argument("--quality", type=float, default=None, help="write lossy WebP at this quality (0-100)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crustmap",
        description="Gradient and partition maps from a global equirectangular scalar raster",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("gradient", help="color cells by local gradient bearing and magnitude")
    _add_common(sp)
    sp.add_argument("--search-m", type=float, default=GRADIENT_SEARCH_M,
                    help="neighbor search radius in meters (default: %(default)s)")
    sp.add_argument("--mag-cap", type=float, default=GRADIENT_MAG_CAP,
                    help="magnitude drawn at full intensity (default: %(default)s)")
    sp.add_argument("--workers", type=int, default=None, help="worker threads (default: CPU count)")

    sp = sub.add_parser("partition", help="color connected regions of kept cells")
    _add_common(sp)
    sp.add_argument("--min-value", type=float, default=MIN_VALUE_TO_KEEP,
                    help="keep NaN cells and cells >= this value (default: %(default)s)")

    sp = sub.add_parser("scalar", help="plain color ramp of the field")
    _add_common(sp)
    return parser
# endregion

# region Entry Point
def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        field, grid = read_field(args.input, args.variable, args.radius)
        if args.command == "gradient":
            gf = compute_gradient_field(field, grid, args.search_m, max_workers=args.workers)
            rgb = gradient_colors(gf, args.mag_cap)
        elif args.command == "partition":
            rgb = partition_map(field, grid, keep_at_least(args.min_value)).rgb
        else:
            rgb = scalar_colors(field)

        img = to_image(rgb, grid)
        if args.size:
            img = resize(img, args.size)
        if args.overlay:
            img = blend(img, load_image(args.overlay), args.blend)
        out = save_image(img, args.output, args.quality)
    except (ValueError, OSError) as e:
        LOGGER.error("%s", e)
        return 1

    LOGGER.info("Saved -> %s", out)
    return 0
# endregion
