from __future__ import annotations
from dataclasses import dataclass, field
from typing import List
import logging

import numpy as np

from ..models.box import Box, box_intersect, fit_box
from ..models.diff_options import DiffOptions
from ..models.flag_map import DiffState, FlagMap

logger = logging.getLogger(__name__)


@dataclass
class GroupingResult:
    regions: List[Box] = field(default_factory=list)   # discovery / merge order
    group_pixel_count: int = 0


class GroupingService:
    """
    Clusters DIFFERENT pixels into padded, merged, bordered boxes.

    1) Row-major scan: each diff pixel joins the first region within
       `group_merge_max_gap_size`, else opens a new one.
    2) Pad every region by `group_padding_size`, clamped to the image.
    3) One left-to-right pass unions overlapping regions.
    4) Paint GROUP / BORDER bits into the flag map.
    """

    def group(self, flag_map: FlagMap, options: DiffOptions | None = None) -> GroupingResult:
        options = options or DiffOptions()
        regions = self._scan(flag_map, options.group_merge_max_gap_size)
        logger.debug(f"Scan found {len(regions)} raw region(s)")

        if options.group_padding_size:
            regions = [
                fit_box(flag_map.width, flag_map.height, region, options.group_padding_size)
                for region in regions
            ]
        regions = self._merge_overlapping(regions)

        pixel_count = self._paint(flag_map, regions, options.group_border_size)
        logger.info(f"Grouped diff pixels into {len(regions)} region(s) covering {pixel_count} pixels")
        return GroupingResult(regions=regions, group_pixel_count=pixel_count)

    # ─── Internal helpers ─────────────────────────────────────────────
    @staticmethod
    def _scan(flag_map: FlagMap, max_gap: int) -> List[Box]:
        regions: List[Box] = []
        # nonzero() on a C-ordered 2D mask yields coordinates in row-major order.
        ys, xs = np.nonzero(flag_map.has_state(DiffState.DIFFERENT))
        for y, x in zip(ys.tolist(), xs.tolist()):
            for index, region in enumerate(regions):
                if region.expanded(max_gap).contains(x, y):
                    regions[index] = region.extended_to(x, y)
                    break
            else:
                regions.append(Box.point(x, y))
        return regions

    @staticmethod
    def _merge_overlapping(regions: List[Box]) -> List[Box]:
        # Single pass, not iterated to a fixed point: two kept regions can
        # still overlap if a later union grew one of them into the other.
        merged: List[Box] = []
        for region in regions:
            for index, kept in enumerate(merged):
                if box_intersect(region, kept):
                    merged[index] = kept.union(region)
                    break
            else:
                merged.append(region)
        return merged

    @staticmethod
    def _paint(flag_map: FlagMap, regions: List[Box], border_size: int) -> int:
        pixel_count = 0
        for region in regions:
            pixel_count += region.area
            # Whole box gets GROUP, then the inner part is excluded from BORDER.
            box_slice = (slice(region.top, region.bottom + 1), slice(region.left, region.right + 1))
            border = np.ones((region.height, region.width), dtype=bool)
            inner_top, inner_bottom = border_size, region.height - border_size
            inner_left, inner_right = border_size, region.width - border_size
            if inner_top < inner_bottom and inner_left < inner_right:
                border[inner_top:inner_bottom, inner_left:inner_right] = False
            flag_map.add_state(box_slice, DiffState.GROUP)
            region_state = flag_map.state[box_slice]
            region_state[border] |= np.uint8(DiffState.BORDER)
        return pixel_count
