"""Shape-checked pixel grids used throughout the fusion pipeline.

`Image` holds 8-bit intensities, `DetailImage` holds the signed residuals of a
Laplacian pyramid. Both wrap a read-only (H, W) numpy array and check shape
compatibility on every binary operation instead of relying on convention.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from focus_fusion.errors import ShapeMismatchError

DETAIL_DTYPE = np.int64


def _readonly(pixels: np.ndarray, dtype: type) -> np.ndarray:
    array = np.array(pixels, dtype=dtype)
    if array.ndim != 2:
        raise ValueError(f"Pixel grids must be 2D, got an array with shape {array.shape}.")
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class PixelGrid:
    """A rectangular (height x width) array of samples."""

    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        """(width, height), the order used for resize targets."""
        return self.width, self.height

    def at(self, x: int, y: int) -> int:
        """Sample at column `x`, row `y`."""
        return int(self.pixels[y, x])

    def is_compatible(self, other: PixelGrid) -> bool:
        return self.width == other.width and self.height == other.height

    def check_compatible(self, other: PixelGrid, operation: str) -> None:
        """Raise `ShapeMismatchError` unless `other` has the same width and height."""
        if not self.is_compatible(other):
            raise ShapeMismatchError(
                f"Cannot {operation} grids of differing sizes: "
                f"{self.width}x{self.height} vs {other.width}x{other.height}"
            )


@dataclass(frozen=True, eq=False)
class Image(PixelGrid):
    """An 8-bit grayscale image with a declared maximum intensity."""

    max_value: int = 255

    def __post_init__(self) -> None:
        pixels = np.asarray(self.pixels)
        if not np.issubdtype(pixels.dtype, np.integer):
            raise ValueError(f"Image intensities must be integers, got dtype {pixels.dtype}.")
        if pixels.dtype != np.uint8 and pixels.size and (pixels.min() < 0 or pixels.max() > 255):
            raise ValueError(
                f"Image intensities must lie in [0, 255], got range [{pixels.min()}, {pixels.max()}]."
            )
        object.__setattr__(self, "pixels", _readonly(pixels, np.uint8))

    def to_detail(self) -> DetailImage:
        """Widen to signed integers."""
        return DetailImage(self.pixels)

    def __sub__(self, other: Image) -> DetailImage:
        self.check_compatible(other, "subtract")
        return DetailImage(self.pixels.astype(DETAIL_DTYPE) - other.pixels.astype(DETAIL_DTYPE))


@dataclass(frozen=True, eq=False)
class DetailImage(PixelGrid):
    """Signed integer grid, e.g. a Laplacian level or an unclamped reconstruction."""

    def __post_init__(self) -> None:
        object.__setattr__(self, "pixels", _readonly(self.pixels, DETAIL_DTYPE))

    def __add__(self, other: DetailImage) -> DetailImage:
        self.check_compatible(other, "add")
        return DetailImage(self.pixels + other.pixels)

    def clamp(self, min_value: int = 0, max_value: int = 255) -> Image:
        """Clamp every sample into [min_value, max_value] and narrow to 8 bits."""
        return Image(np.clip(self.pixels, min_value, max_value).astype(np.uint8), max_value=max_value)


def mean_grids(grids: list[PixelGrid]) -> DetailImage:
    """Pixelwise arithmetic mean, truncated toward zero.

    Raises:
        ShapeMismatchError: If any grid's size differs from the first.
    """
    if not grids:
        raise ValueError("Cannot average an empty list of grids.")

    first = grids[0]
    for grid in grids[1:]:
        first.check_compatible(grid, "average")

    total = np.zeros((first.height, first.width), dtype=DETAIL_DTYPE)
    for grid in grids:
        total += grid.pixels
    return DetailImage(np.trunc(total / len(grids)))
