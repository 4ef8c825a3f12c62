from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum, IntFlag
from typing import NamedTuple, Union
import numpy as np

from .raster import Raster


class Similarity(IntEnum):
    """Cross-image agreement of a pixel."""
    IDENTICAL = 0
    SIMILAR = 2
    CHANGED = 3


class Significance(IntEnum):
    """Estimated visual importance of a pixel."""
    BACKGROUND = 0
    FOREGROUND = 1
    ANTIALIAS = 2


class DiffState(IntFlag):
    """Diff/group bits; phases only ever OR these in."""
    NONE = 0
    DIFFERENT = 1
    GROUP = 2
    BORDER = 4


# Packed single-channel layout (see FlagMap.encode):
#   .....xxx  diff state     0x07
#   ..xx....  similarity     0x30
#   xx......  significance   0xC0
STATE_MASK = 0x07
SIMILARITY_SHIFT = 4
SIMILARITY_MASK = 0x30
SIGNIFICANCE_SHIFT = 6
SIGNIFICANCE_MASK = 0xC0


class FlagBits(NamedTuple):
    value: int
    mask: int


FLAG_BITS = {
    "same": FlagBits(0x00, 0x01),
    "different": FlagBits(0x01, 0x01),
    "group_none": FlagBits(0x00, 0x06),
    "group_fill": FlagBits(DiffState.GROUP, STATE_MASK),
    "group_border": FlagBits(DiffState.GROUP | DiffState.BORDER, STATE_MASK),
    "identical": FlagBits(Similarity.IDENTICAL << SIMILARITY_SHIFT, SIMILARITY_MASK),
    "similar": FlagBits(Similarity.SIMILAR << SIMILARITY_SHIFT, SIMILARITY_MASK),
    "changed": FlagBits(Similarity.CHANGED << SIMILARITY_SHIFT, SIMILARITY_MASK),
    "background": FlagBits(Significance.BACKGROUND << SIGNIFICANCE_SHIFT, SIGNIFICANCE_MASK),
    "foreground": FlagBits(Significance.FOREGROUND << SIGNIFICANCE_SHIFT, SIGNIFICANCE_MASK),
    "antialias": FlagBits(Significance.ANTIALIAS << SIGNIFICANCE_SHIFT, SIGNIFICANCE_MASK),
}


class PixelFlags(NamedTuple):
    similarity: Similarity
    significance: Significance
    state: DiffState


@dataclass
class FlagMap:
    """
    Per-pixel classification of one diff invocation.

    Kept as three separate (H, W) uint8 planes; the packed single-channel
    form only exists at the boundary (`encode` / `decode`).
    """
    similarity: np.ndarray
    significance: np.ndarray
    state: np.ndarray

    @classmethod
    def create(cls, width: int, height: int) -> "FlagMap":
        def plane():
            return np.zeros((height, width), dtype=np.uint8)
        return cls(similarity=plane(), significance=plane(), state=plane())

    @property
    def width(self) -> int:
        return int(self.state.shape[1])

    @property
    def height(self) -> int:
        return int(self.state.shape[0])

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def flags_at(self, x: int, y: int) -> PixelFlags:
        return PixelFlags(
            similarity=Similarity(int(self.similarity[y, x])),
            significance=Significance(int(self.significance[y, x])),
            state=DiffState(int(self.state[y, x])),
        )

    def has_state(self, bits: DiffState) -> np.ndarray:
        """Boolean (H, W) mask of pixels carrying all of `bits`."""
        bits = int(bits)
        return (self.state & bits) == bits

    def add_state(self, where, bits: DiffState) -> None:
        """OR `bits` into the state plane at `where` (mask or slices)."""
        self.state[where] |= np.uint8(bits)

    # ── Serialization boundary ────────────────────────────────────────
    def encode(self) -> Raster:
        packed = (
            (self.state & STATE_MASK)
            | (self.similarity.astype(np.uint8) << SIMILARITY_SHIFT)
            | (self.significance.astype(np.uint8) << SIGNIFICANCE_SHIFT)
        )
        return Raster(pixels=packed.astype(np.uint8))

    @classmethod
    def decode(cls, packed: Union[Raster, np.ndarray]) -> "FlagMap":
        values = packed.pixels if isinstance(packed, Raster) else packed
        values = values.astype(np.uint8)
        return cls(
            similarity=(values & SIMILARITY_MASK) >> SIMILARITY_SHIFT,
            significance=(values & SIGNIFICANCE_MASK) >> SIGNIFICANCE_SHIFT,
            state=values & STATE_MASK,
        )
