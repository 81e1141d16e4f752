#!/usr/bin/env python
"""
cli.py
======

Command‑line interface for the **glcm** project.

Examples
--------
# 1) 0° GLCM, normalized, matrix sized to the image's max gray level
python cli.py compute -i input_img/texture.png

# 2) All four directions, raw counts, fixed 256×256 matrices, CSV output
python cli.py compute -i input_img/texture.png -d 0 45 90 135 --raw --fixed-range --format csv

# 3) 16‑bit gray TIFF read without depth reduction
python cli.py compute -i input_img/scan.tif --keep-depth -o results/scan
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import NoReturn

from glcm import Direction, GLCMConfig, GLCMResult, compute_glcm
from io_utils import RESULTS_DIR, read_image, save_matrix

logger = logging.getLogger("cli")
logger.setLevel(logging.INFO)


def _cmd_compute(args: argparse.Namespace) -> None:
    img = read_image(args.img, keep_depth=args.keep_depth)
    out_dir = Path(args.output) if args.output else RESULTS_DIR
    logger.info(f"Loaded {args.img}: {img.shape[1]}x{img.shape[0]} ({img.dtype})")

    results: dict[Direction, GLCMResult] = {}
    for degrees in args.directions:
        cfg = GLCMConfig(
            direction=Direction.from_degrees(degrees),
            auto_range=not args.fixed_range,
            normalize=not args.raw,
            use_optimization=not args.reference_scan,
        )
        result = compute_glcm(img, cfg)
        results[cfg.direction] = result
        save_matrix(result.matrix, out_dir / f"glcm_{cfg.direction.value}.{args.format}")

    print(f"\nSummary: {len(results)} GLCM(s) written to {out_dir}")
    for direction, result in results.items():
        size = result.max_gray + 1
        print(
            f"  {direction.value:>3}°: {size}x{size}, "
            f"pairs={result.num_pairs}, sum={result.matrix.sum():.6g}"
        )


# --------------------------------------------------------------------------- #
# Argument parsing
# --------------------------------------------------------------------------- #
def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glcm-cli",
        description="Gray‑level co‑occurrence matrix builder CLI",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log progress and timings at INFO level.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # compute command
    p_cmp = subparsers.add_parser("compute", help="Compute GLCM(s) of a gray image.")
    p_cmp.add_argument(
        "-i",
        "--img",
        required=True,
        help="Path to grayscale image (colour images are converted to gray).",
    )
    p_cmp.add_argument(
        "-d",
        "--directions",
        nargs='+',
        type=int,
        default=[0],
        choices=[d.value for d in Direction],
        help="Scan directions in degrees (default: 0).",
    )
    p_cmp.add_argument(
        "--fixed-range",
        action="store_true",
        help="Always build 256×256 matrices instead of sizing to the max gray level.",
    )
    p_cmp.add_argument(
        "--raw",
        action="store_true",
        help="Keep raw pair counts (skip normalization).",
    )
    p_cmp.add_argument(
        "--reference-scan",
        action="store_true",
        help="Use the per-pixel reference loop instead of the numpy scan.",
    )
    p_cmp.add_argument(
        "--keep-depth",
        action="store_true",
        help="Read the image unchanged (keeps 16‑bit gray levels). Only for images "
             "with a small observed range: the matrix is (max+1)² floats, so a "
             "maximum of 40000 needs ~13 GB.",
    )
    p_cmp.add_argument(
        "-o",
        "--output",
        help="Output directory (default: results/<timestamp>).",
    )
    p_cmp.add_argument(
        "--format",
        choices=("npy", "csv"),
        default="npy",
        help="Matrix file format (default: npy).",
    )
    p_cmp.set_defaults(func=_cmd_compute)

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    parser = _build_parser()
    args = parser.parse_args(argv)
    level = logging.INFO if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    # module loggers pin INFO themselves
    for name in ("cli", "glcm", "io_utils"):
        logging.getLogger(name).setLevel(level)
    args.func(args)  # type: ignore[attr-defined]
    sys.exit(0)


if __name__ == "__main__":  # pragma: no cover
    main()
