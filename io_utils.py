"""
io_utils.py
===========

I/O utilities + lightweight timing decorator for the **glcm** project.

The module centralises:

1. **Path management**
   * PROJECT_ROOT  – repository root (directory containing this file).
   * RESULTS_DIR   – `<root>/results/<timestamp>`, default CLI output folder.

2. **Image / matrix helpers**
   * read_image   – returns a single-channel uint8/uint16 numpy array.
   * save_matrix  – writes a co-occurrence matrix as `.npy` or `.csv`.

3. **@timer decorator**
   * Measures wall‑clock (time.perf_counter) and logs at the module logger.

Nothing is written to disk at import time – directories are created lazily
when first used.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from functools import wraps
from pathlib import Path
from typing import Callable, TypeVar

import cv2
import numpy as np

__all__ = [
    "PROJECT_ROOT",
    "RESULTS_DIR",
    "TIMINGS",
    "ensure_dir",
    "read_image",
    "save_matrix",
    "timer",
    "reset_timings",
]

# --------------------------------------------------------------------------- #
# Path management
# --------------------------------------------------------------------------- #

PROJECT_ROOT: Path = Path(__file__).resolve().parent

# Timestamped results directory (e.g. results/20250729_143015)
_RESULTS_STAMP: str = datetime.now().strftime("%Y%m%d_%H%M%S")
RESULTS_DIR: Path = PROJECT_ROOT / "results" / _RESULTS_STAMP

# accumulated wall-clock per decorated function, in ms
TIMINGS: dict[str, float] = {}


def ensure_dir(p: Path) -> Path:
    """Create directory *p* (and parents) if it does not exist. Return *p*."""
    p.mkdir(parents=True, exist_ok=True)
    return p


# --------------------------------------------------------------------------- #
# Image helpers
# --------------------------------------------------------------------------- #


def read_image(path: str | Path, keep_depth: bool = False) -> np.ndarray:
    """
    Load a grayscale image from *path*.

    * With *keep_depth* False (default) OpenCV converts to 8‑bit gray.
    * With *keep_depth* True the file is read unchanged, so 16‑bit gray
      PNG/TIFF keep their range; the file must already be single-channel.

    Returns uint8 or uint16 numpy ndarray (H×W).
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    flag = cv2.IMREAD_UNCHANGED if keep_depth else cv2.IMREAD_GRAYSCALE
    img = cv2.imread(str(p), flag)
    if img is None:
        raise IOError(f"cv2 failed to read image: {p}")
    if img.ndim != 2:
        raise ValueError(f"Image must be single-channel gray (H×W): {p}")

    return img


def save_matrix(matrix: np.ndarray, path: str | Path) -> Path:
    """
    Save *matrix* to *path*; format is chosen by the extension.

    * `.npy`         – binary, exact float64 values.
    * `.csv`/`.txt`  – comma separated text, one matrix row per line.

    Creates target directory hierarchy if necessary and returns the path.
    """
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix not in (".npy", ".csv", ".txt"):
        raise ValueError(f"Unsupported matrix format: {p.suffix!r}")

    ensure_dir(p.parent)
    if suffix == ".npy":
        np.save(p, matrix)
    else:
        np.savetxt(p, matrix, delimiter=",", fmt="%.10g")
    return p


# --------------------------------------------------------------------------- #
# Timing decorator
# --------------------------------------------------------------------------- #

_F = TypeVar("_F", bound=Callable[..., object])

logger = logging.getLogger("io_utils")
logger.setLevel(logging.INFO)


def timer(fn: _F) -> _F:  # type: ignore[misc]
    """
    Decorator that logs wall‑clock time for *fn* at INFO level.

    Usage
    -----
    >>> @timer
    ... def heavy_func(...):
    ...     ...
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):  # type: ignore[override]
        start = time.perf_counter()
        res = fn(*args, **kwargs)
        elapsed_ms = (time.perf_counter() - start) * 1e3
        logger.info(f"{fn.__name__} finished in {elapsed_ms:.2f} ms")

        TIMINGS[fn.__name__] = TIMINGS.get(fn.__name__, 0.0) + elapsed_ms

        return res

    return wrapper  # type: ignore[return-value]


def reset_timings() -> None:
    """Clear stored timing data (mainly for unit tests)."""
    TIMINGS.clear()
