from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Tuple, Union
import numpy as np

# (dx, dy) of the diagonal neighbours, in row-major visiting order.
DIAGONAL_OFFSETS = ((-1, -1), (1, -1), (-1, 1), (1, 1))

SliceYX = Tuple[slice, slice]


def diagonal_slices(height: int, width: int) -> Iterator[Tuple[SliceYX, SliceYX]]:
    """
    Vectorised form of `Raster.iterate_adjacent`.

    Yields one (centre, neighbour) pair of 2D slices per diagonal offset.
    `array[centre]` and `array[neighbour]` line up element-wise so that each
    centre pixel faces its neighbour at that offset; pixels whose neighbour
    would fall outside the image are simply not covered by the slice.
    """
    for dx, dy in DIAGONAL_OFFSETS:
        centre = (
            slice(max(0, -dy), height - max(0, dy)),
            slice(max(0, -dx), width - max(0, dx)),
        )
        neighbour = (
            slice(max(0, dy), height - max(0, -dy)),
            slice(max(0, dx), width - max(0, -dx)),
        )
        yield centre, neighbour


@dataclass
class Raster:
    """
    Simple data object around a pixel array (+ optional source path).

    Kinds, decided by shape:
        (H, W, 3) uint8   RGB bitmap
        (H, W, 4) uint8   RGBA bitmap
        (H, W)    int/float value map
    Rasters handed to the diff engine are treated as read-only.
    """
    pixels: np.ndarray  # Row-major, C-ordered.
    path: Path | None = None  # Source of the image, if loaded from disk.

    # ── Construction ──────────────────────────────────────────────────
    @classmethod
    def create_rgb(cls, width: int, height: int) -> "Raster":
        return cls(np.zeros((height, width, 3), dtype=np.uint8))

    @classmethod
    def create_rgba(cls, width: int, height: int) -> "Raster":
        return cls(np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def create_valuemap(cls, width: int, height: int, dtype=np.uint8) -> "Raster":
        return cls(np.zeros((height, width), dtype=dtype))

    # ── Shape ─────────────────────────────────────────────────────────
    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def is_valuemap(self) -> bool:
        return self.pixels.ndim == 2

    @property
    def is_rgb(self) -> bool:
        """True for RGB and RGBA bitmaps."""
        return self.pixels.ndim == 3 and self.channels in (3, 4)

    @property
    def has_alpha(self) -> bool:
        return self.pixels.ndim == 3 and self.channels == 4

    def same_size(self, other: "Raster") -> bool:
        return self.width == other.width and self.height == other.height

    # ── Pixel access ──────────────────────────────────────────────────
    def pixel(self, x: int, y: int) -> Union[int, float, Tuple]:
        value = self.pixels[y, x]
        if self.is_valuemap:
            return value.item()
        return tuple(v.item() for v in value)

    def set_pixel(self, x: int, y: int, value) -> None:
        self.pixels[y, x] = value

    def iterate_all(self) -> Iterator[Tuple[int, int]]:
        """
        Yield (x, y) for every pixel in row-major order.
        Callers stop early by breaking out of the loop.
        """
        for y in range(self.height):
            for x in range(self.width):
                yield x, y

    def iterate_adjacent(self, x: int, y: int) -> Iterator[Tuple[int, int]]:
        """Yield (x, y) of the up-to-4 diagonal neighbours that are in bounds."""
        for dx, dy in DIAGONAL_OFFSETS:
            adj_x, adj_y = x + dx, y + dy
            if 0 <= adj_x < self.width and 0 <= adj_y < self.height:
                yield adj_x, adj_y

    def copy(self) -> "Raster":
        return Raster(pixels=self.pixels.copy(), path=self.path)
