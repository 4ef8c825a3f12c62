from __future__ import annotations
from typing import Sequence
import logging
import time

from ..models.diff_options import DiffOptions
from ..models.diff_result import (
    DiffResult,
    DiffStatus,
    PixelCounts,
    PixelPercentages,
    Timings,
)
from ..models.flag_map import FlagMap
from ..models.raster import Raster
from .classifier_service import ClassifierService
from .color_service import ColorService
from .grouping_service import GroupingService
from .render_service import RenderService

logger = logging.getLogger(__name__)


class DiffService:
    """
    Runs one comparison end to end:
    validate -> YIQ -> classify -> group -> stats/status -> (render).

    *   Options default to `DiffOptions.from_env()` (dotenv + DIFFMAP_* vars).
    *   Every call builds its own flag map and region list.
    """

    def __init__(
        self,
        options: DiffOptions | None = None,
        color_service: ColorService | None = None,
        classifier_service: ClassifierService | None = None,
        grouping_service: GroupingService | None = None,
        render_service: RenderService | None = None,
    ):
        self.options = options or DiffOptions.from_env()
        self.color_service = color_service or ColorService()
        self.classifier_service = classifier_service or ClassifierService(self.color_service)
        self.grouping_service = grouping_service or GroupingService()
        self.render_service = render_service or RenderService()

    # ─── Public API ───────────────────────────────────────────────────
    def diff(self, images: Sequence[Raster], options: DiffOptions | None = None) -> DiffResult:
        options = options or self.options
        started = time.perf_counter()
        timings = Timings()

        height, width = self.classifier_service.check_images(images)
        logger.info(f"Comparing {len(images)} images of {width}x{height}")

        mark = time.perf_counter()
        yiq_images = [self.color_service.to_yiq(image) for image in images]
        timings.convert = time.perf_counter() - mark

        flag_map = FlagMap.create(width, height)
        mark = time.perf_counter()
        classification = self.classifier_service.classify(yiq_images, flag_map, options)
        timings.classify = time.perf_counter() - mark

        mark = time.perf_counter()
        grouping = self.grouping_service.group(flag_map, options)
        timings.group = time.perf_counter() - mark

        counts: PixelCounts = classification.pixel_counts
        counts.group = grouping.group_pixel_count
        percentages = self.percentages(counts)
        status = self.status(counts, percentages, options)

        outputs = {}
        mark = time.perf_counter()
        if status in options.output_when_status and options.output:
            seed_map = {
                "flags": flag_map.encode(),
                "original": images[0],
                "changed": images[-1],
            }
            outputs = self.render_service.render_outputs(
                options.output,
                seed_map,
                catalog=options.output_programs,
                output_options=options.output_options,
            )
        else:
            logger.debug(f"Skipping render for status '{status.value}'")
        timings.render = time.perf_counter() - mark
        timings.total = time.perf_counter() - started

        logger.info(
            f"Diff status: {status.value} | diff {counts.diff}/{counts.all} px "
            f"({percentages.diff:.2f}%) | {len(grouping.regions)} region(s) | "
            f"{timings.total * 1000:.1f} ms"
        )
        return DiffResult(
            status=status,
            pixel_counts=counts,
            pixel_percentages=percentages,
            regions=grouping.regions,
            outputs=outputs,
            timings=timings,
            flag_map=flag_map,
        )

    # ─── Stats ────────────────────────────────────────────────────────
    @staticmethod
    def percentages(counts: PixelCounts) -> PixelPercentages:
        def percent(part: int, whole: int) -> float:
            return 100.0 * part / whole if whole else 0.0

        return PixelPercentages(
            compared=percent(counts.compared, counts.all),
            diff=percent(counts.diff, counts.all),
            group=percent(counts.group, counts.all),
            diff_compared=percent(counts.diff, counts.compared),
        )

    @staticmethod
    def status(counts: PixelCounts, percentages: PixelPercentages, options: DiffOptions) -> DiffStatus:
        if counts.diff:
            if percentages.diff >= options.mismatch_min_percent:
                return DiffStatus.MISMATCH
            return DiffStatus.DIFFERENT
        if counts.similarity["similar"]["all"]:
            return DiffStatus.SIMILAR
        return DiffStatus.IDENTICAL


def diff(images: Sequence[Raster], options: DiffOptions | None = None, **overrides) -> DiffResult:
    """
    Compare two or more same-sized RGB/RGBA rasters.

    Keyword overrides are applied on top of `options` (or the environment
    defaults), e.g. `diff([a, b], group_padding_size=0)`.
    """
    options = (options or DiffOptions.from_env()).with_overrides(**overrides)
    return DiffService(options).diff(images)
