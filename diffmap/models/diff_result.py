from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

from .box import Box
from .flag_map import FlagMap
from .raster import Raster


class DiffStatus(str, Enum):
    """
    Overall verdict of a comparison.

    identical: every pixel is identical
    similar:   no pixel is notably different, but not all are identical
    different: some compared pixels are notably different
    mismatch:  so many pixels differ the images are probably unrelated
    """
    IDENTICAL = "identical"
    SIMILAR = "similar"
    DIFFERENT = "different"
    MISMATCH = "mismatch"


DIFF_STATUS_ALL = tuple(DiffStatus)
DIFF_STATUS_CHANGED = (DiffStatus.DIFFERENT, DiffStatus.MISMATCH)

SIGNIFICANCE_NAMES = ("foreground", "background", "antialias")
SIMILARITY_NAMES = ("identical", "similar", "changed")


def _significance_table() -> Dict[str, int]:
    return {name: 0 for name in SIGNIFICANCE_NAMES}


def _similarity_table() -> Dict[str, Dict[str, int]]:
    return {name: {"all": 0, **_significance_table()} for name in SIMILARITY_NAMES}


@dataclass
class PixelCounts:
    all: int = 0
    diff: int = 0
    compared: int = 0
    group: int = 0
    significance: Dict[str, int] = field(default_factory=_significance_table)
    similarity: Dict[str, Dict[str, int]] = field(default_factory=_similarity_table)


@dataclass
class PixelPercentages:
    compared: float = 0.0
    diff: float = 0.0
    group: float = 0.0
    diff_compared: float = 0.0  # diff / compared, 0 when nothing was compared


@dataclass
class Timings:
    """Wall-clock seconds spent in each phase of one diff call."""
    convert: float = 0.0
    classify: float = 0.0
    group: float = 0.0
    render: float = 0.0
    total: float = 0.0


@dataclass
class DiffResult:
    status: DiffStatus
    pixel_counts: PixelCounts
    pixel_percentages: PixelPercentages
    regions: List[Box]
    outputs: Dict[str, Raster]
    timings: Timings
    flag_map: FlagMap

    def to_dict(self) -> dict:
        """JSON-friendly summary; raster payloads are left out."""
        counts = self.pixel_counts
        pct = self.pixel_percentages
        return {
            "status": self.status.value,
            "pixel_counts": {
                "all": counts.all,
                "diff": counts.diff,
                "compared": counts.compared,
                "group": counts.group,
                "significance": dict(counts.significance),
                "similarity": {k: dict(v) for k, v in counts.similarity.items()},
            },
            "pixel_percentages": {
                "compared": pct.compared,
                "diff": pct.diff,
                "group": pct.group,
                "diff_compared": pct.diff_compared,
            },
            "regions": [region.to_dict() for region in self.regions],
            "outputs": sorted(self.outputs),
            "timings": {
                "convert": self.timings.convert,
                "classify": self.timings.classify,
                "group": self.timings.group,
                "render": self.timings.render,
                "total": self.timings.total,
            },
        }
