from __future__ import annotations
from dataclasses import dataclass
from typing import Mapping, Union


@dataclass(frozen=True)
class Box:
    """Axis-aligned box, all four edges inclusive (pixel coordinates)."""
    left: int
    top: int
    right: int
    bottom: int

    @classmethod
    def point(cls, x: int, y: int) -> "Box":
        return cls(x, y, x, y)

    @property
    def width(self) -> int:
        return self.right - self.left + 1

    @property
    def height(self) -> int:
        return self.bottom - self.top + 1

    @property
    def area(self) -> int:
        return self.width * self.height

    def contains(self, x: int, y: int) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom

    def expanded(self, size: int) -> "Box":
        """Grow by `size` on every side, without clamping."""
        return Box(self.left - size, self.top - size,
                   self.right + size, self.bottom + size)

    def extended_to(self, x: int, y: int) -> "Box":
        """Smallest box covering this box and the point (never shrinks)."""
        return Box(min(self.left, x), min(self.top, y),
                   max(self.right, x), max(self.bottom, y))

    def union(self, other: "Box") -> "Box":
        return Box(min(self.left, other.left), min(self.top, other.top),
                   max(self.right, other.right), max(self.bottom, other.bottom))

    def to_dict(self) -> dict:
        return {"left": self.left, "top": self.top,
                "right": self.right, "bottom": self.bottom}


AnyBox = Union[Box, Mapping[str, int]]


def abs_box(box: AnyBox) -> Box:
    """
    Convert a relative box (left/top/width/height mapping) or an absolute
    box (left/top/right/bottom mapping or Box) to a Box.
    """
    if isinstance(box, Box):
        return box
    if "right" in box and "bottom" in box:
        return Box(box["left"], box["top"], box["right"], box["bottom"])
    return Box(
        left=box["left"],
        top=box["top"],
        right=box["left"] + box["width"] - 1,
        bottom=box["top"] + box["height"] - 1,
    )


def fit_box(map_width: int, map_height: int, box: AnyBox, grow: int = 0) -> Box:
    """Grow `box` by `grow` pixels per side, then clamp it to the bitmap."""
    box = abs_box(box)
    return Box(
        left=max(0, box.left - grow),
        top=max(0, box.top - grow),
        right=min(map_width - 1, box.right + grow),
        bottom=min(map_height - 1, box.bottom + grow),
    )


def box_intersect(box1: AnyBox, box2: AnyBox) -> bool:
    """
    True if the boxes share at least one pixel.

    Touching edges count, and so do crossing boxes where neither contains a
    corner of the other (a '+' shape).
    """
    a, b = abs_box(box1), abs_box(box2)
    return (
        a.left <= b.right and b.left <= a.right
        and a.top <= b.bottom and b.top <= a.bottom
    )
