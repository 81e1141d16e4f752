"""
glcm.py
=======

Gray-Level Co-occurrence Matrix (GLCM) builder for the **glcm** project.

A GLCM counts how often a gray level ``a`` is followed by a gray level ``b``
when stepping one pixel in a fixed direction (0°, 45°, 90°, 135°).  The
matrix is the input of texture descriptors such as Haralick features, which
live outside this module.

Public API
----------
Direction
    The four scan directions and their (Δrow, Δcol) offsets.
GLCMConfig
    Immutable configuration (direction, auto_range, normalize, use_optimization).
GLCMResult
    Matrix + number of scanned pairs returned by one computation.
compute_glcm(image, config) -> GLCMResult
    Single full-image pass producing one dense matrix.
compute_all_directions(image, **kwargs) -> dict[Direction, GLCMResult]
    One independent matrix per direction.
max_gray(image) -> int
    Largest intensity present in the image.
GrayLevelCooccurrenceMatrix
    Stateful convenience wrapper keeping the pair count of the last call.

Notes
-----
Pairs are *ordered*: cell ``[a, b]`` means "first pixel ``a``, second pixel
``b``".  The matrix is never symmetrized, so e.g. an ascending horizontal
gradient puts all its 0° mass above the diagonal.
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Iterator, Protocol, Union

import numpy as np

from io_utils import timer

__all__ = [
    "Direction",
    "GrayImage",
    "ArrayGrayImage",
    "GLCMConfig",
    "GLCMResult",
    "GrayLevelCooccurrenceMatrix",
    "compute_glcm",
    "compute_all_directions",
    "max_gray",
]

logger = logging.getLogger("glcm")
logger.setLevel(logging.INFO)

# gray level used as matrix bound when auto_range is off
FULL_RANGE_MAX_GRAY = 255


# --------------------------------------------------------------------------- #
# Image access
# --------------------------------------------------------------------------- #
class GrayImage(Protocol):
    """Read-only 2-D grayscale accessor (row-major, 0-indexed)."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def gray_at(self, row: int, col: int) -> int: ...


class ArrayGrayImage:
    """`GrayImage` view over a 2-D integer numpy array."""

    def __init__(self, array: np.ndarray) -> None:
        _validate_array(array)
        self.array = array

    @property
    def width(self) -> int:
        return self.array.shape[1]

    @property
    def height(self) -> int:
        return self.array.shape[0]

    def gray_at(self, row: int, col: int) -> int:
        return int(self.array[row, col])


ImageLike = Union[np.ndarray, GrayImage]


# --------------------------------------------------------------------------- #
# Configuration / result types
# --------------------------------------------------------------------------- #
class Direction(IntEnum):
    """Scan direction in degrees.

    ``offset`` is the step (Δrow, Δcol) from the first pixel of a pair to
    the second one.
    """

    DEGREE_0 = 0
    DEGREE_45 = 45
    DEGREE_90 = 90
    DEGREE_135 = 135

    @property
    def offset(self) -> tuple[int, int]:
        return _OFFSETS[self]

    @classmethod
    def from_degrees(cls, degrees: int) -> "Direction":
        # bools are Integral too; floats are never snapped to a direction
        if isinstance(degrees, numbers.Integral) and not isinstance(degrees, bool):
            try:
                return cls(int(degrees))
            except ValueError:
                pass
        valid = sorted(d.value for d in cls)
        raise ValueError(f"direction must be one of {valid}, got {degrees!r}")


_OFFSETS: dict[Direction, tuple[int, int]] = {
    Direction.DEGREE_0: (0, 1),     # left  -> right
    Direction.DEGREE_45: (-1, 1),   # lower left  -> upper right
    Direction.DEGREE_90: (1, 0),    # upper -> lower
    Direction.DEGREE_135: (-1, -1), # lower right -> upper left
}


@dataclass(frozen=True, slots=True)
class GLCMConfig:
    """Immutable settings for one GLCM computation."""

    direction: Direction
    # size matrix to the observed maximum instead of 256 levels
    auto_range: bool = True
    # divide by the pair count after scanning
    normalize: bool = True
    # numpy scan for arrays; False forces the per-pixel reference loop
    use_optimization: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "direction", Direction.from_degrees(self.direction))


@dataclass(frozen=True, slots=True)
class GLCMResult:
    """Co-occurrence matrix and the number of pairs that filled it."""

    matrix: np.ndarray
    num_pairs: int

    @property
    def max_gray(self) -> int:
        return self.matrix.shape[0] - 1


# --------------------------------------------------------------------------- #
# Input validation helpers
# --------------------------------------------------------------------------- #
def _validate_array(img: np.ndarray) -> None:
    if img.ndim != 2:
        raise ValueError("Input image must be single-channel gray (H×W).")
    if not np.issubdtype(img.dtype, np.integer):
        raise ValueError(f"Input image must have an integer dtype, got {img.dtype}.")
    if img.size == 0:
        raise ValueError("Input image must have non-zero width and height.")


def _as_image(image: ImageLike) -> GrayImage:
    if isinstance(image, np.ndarray):
        return ArrayGrayImage(image)
    if image.width <= 0 or image.height <= 0:
        raise ValueError("Input image must have non-zero width and height.")
    return image


def _gray_out_of_range(value: int, limit: int) -> IndexError:
    return IndexError(f"gray level {value} outside GLCM range [0, {limit}]")


# --------------------------------------------------------------------------- #
# Core computation
# --------------------------------------------------------------------------- #
def max_gray(image: ImageLike) -> int:
    """Return the largest intensity in *image* (0 for an all-negative image)."""
    img = _as_image(image)
    if isinstance(img, ArrayGrayImage):
        return max(int(img.array.max()), 0)

    best = 0
    for row in range(img.height):
        for col in range(img.width):
            gray = img.gray_at(row, col)
            if gray > best:
                best = gray
    return best


def _pair_span(size: int, step: int) -> tuple[int, int]:
    """Half-open index range of first pixels whose partner stays inside."""
    return max(0, -step), min(size, size - step)


def _scan_vectorized(arr: np.ndarray, direction: Direction, levels: int) -> tuple[np.ndarray, int]:
    dr, dc = direction.offset
    h, w = arr.shape
    r0, r1 = _pair_span(h, dr)
    c0, c1 = _pair_span(w, dc)

    first = arr[r0:r1, c0:c1].astype(np.int64).ravel()
    second = arr[r0 + dr:r1 + dr, c0 + dc:c1 + dc].astype(np.int64).ravel()

    for values in (first, second):
        if values.size and (values.min() < 0 or values.max() >= levels):
            bad = values[(values < 0) | (values >= levels)][0]
            raise _gray_out_of_range(int(bad), levels - 1)

    counts = np.bincount(first * levels + second, minlength=levels * levels)
    return counts.reshape(levels, levels).astype(np.float64), int(first.size)


def _iter_pairs(img: GrayImage, direction: Direction) -> Iterator[tuple[int, int]]:
    """Yield (first, second) gray pairs in row-major scan order.

    135° walks each row right to left.
    """
    dr, dc = direction.offset
    r0, r1 = _pair_span(img.height, dr)
    c0, c1 = _pair_span(img.width, dc)
    cols = range(c1 - 1, c0 - 1, -1) if dc < 0 else range(c0, c1)

    for row in range(r0, r1):
        for col in cols:
            yield img.gray_at(row, col), img.gray_at(row + dr, col + dc)


def _scan_reference(img: GrayImage, direction: Direction, levels: int) -> tuple[np.ndarray, int]:
    matrix = np.zeros((levels, levels), dtype=np.float64)
    num_pairs = 0
    for a, b in _iter_pairs(img, direction):
        # negative values would silently wrap as numpy indices
        for gray in (a, b):
            if gray < 0 or gray >= levels:
                raise _gray_out_of_range(gray, levels - 1)
        matrix[a, b] += 1
        num_pairs += 1
    return matrix, num_pairs


@timer
def compute_glcm(image: ImageLike, config: GLCMConfig) -> GLCMResult:
    """
    Compute the co-occurrence matrix of *image* for ``config.direction``.

    Parameters
    ----------
    image : np.ndarray or GrayImage
        2-D integer array (H×W) or any object with ``width``, ``height`` and
        ``gray_at(row, col)``.  Never modified.
    config : GLCMConfig
        Direction and flags.

    Returns
    -------
    GLCMResult
        Fresh ``(max_gray+1)²`` float64 matrix and the number of scanned
        pairs.  With ``normalize`` the matrix sums to 1, or stays all zero
        when the image has no pair in that direction (e.g. a 1×1 image).

    Raises
    ------
    IndexError
        A gray level lies outside ``[0, max_gray]``.
    ValueError
        Empty, non 2-D or non-integer image.
    """
    img = _as_image(image)
    top = max_gray(img) if config.auto_range else FULL_RANGE_MAX_GRAY
    levels = top + 1

    if config.use_optimization and isinstance(img, ArrayGrayImage):
        matrix, num_pairs = _scan_vectorized(img.array, config.direction, levels)
    else:
        matrix, num_pairs = _scan_reference(img, config.direction, levels)

    if config.normalize:
        matrix /= max(num_pairs, 1)

    logger.info(
        f"GLCM {config.direction.value}°: {levels}x{levels} matrix, "
        f"{num_pairs} pairs (normalize={config.normalize})"
    )
    return GLCMResult(matrix=matrix, num_pairs=num_pairs)


def compute_all_directions(
    image: ImageLike,
    auto_range: bool = True,
    normalize: bool = True,
    use_optimization: bool = True,
) -> dict[Direction, GLCMResult]:
    """Compute one independent GLCM per direction (results are not merged)."""
    return {
        direction: compute_glcm(
            image,
            GLCMConfig(direction, auto_range=auto_range, normalize=normalize,
                       use_optimization=use_optimization),
        )
        for direction in Direction
    }


# --------------------------------------------------------------------------- #
# Stateful wrapper
# --------------------------------------------------------------------------- #
class GrayLevelCooccurrenceMatrix:
    """
    Builder keeping its configuration and the pair count of the last call.

    Every setter swaps in a new `GLCMConfig`; ``compute`` delegates to
    `compute_glcm`.  Use one instance per thread if ``num_pairs`` is read
    between calls.

    >>> builder = GrayLevelCooccurrenceMatrix(Direction.DEGREE_0, auto_range=False)
    >>> builder.compute(np.array([[0, 1], [2, 3]])).shape
    (256, 256)
    >>> builder.num_pairs
    2
    """

    def __init__(
        self,
        direction: Direction | int,
        auto_range: bool = True,
        normalize: bool = True,
    ) -> None:
        self.config = GLCMConfig(direction, auto_range=auto_range, normalize=normalize)
        self.last_result: GLCMResult | None = None

    @property
    def direction(self) -> Direction:
        return self.config.direction

    @direction.setter
    def direction(self, value: Direction | int) -> None:
        self.config = replace(self.config, direction=value)

    @property
    def auto_range(self) -> bool:
        return self.config.auto_range

    @auto_range.setter
    def auto_range(self, value: bool) -> None:
        self.config = replace(self.config, auto_range=value)

    @property
    def normalize(self) -> bool:
        return self.config.normalize

    @normalize.setter
    def normalize(self, value: bool) -> None:
        self.config = replace(self.config, normalize=value)

    @property
    def num_pairs(self) -> int:
        """Pairs scanned by the last ``compute`` call (0 before any call)."""
        return self.last_result.num_pairs if self.last_result is not None else 0

    def compute(self, image: ImageLike) -> np.ndarray:
        self.last_result = compute_glcm(image, self.config)
        return self.last_result.matrix

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(direction={self.direction.name}, "
            f"auto_range={self.auto_range}, normalize={self.normalize})"
        )
