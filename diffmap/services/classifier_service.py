from __future__ import annotations
from dataclasses import dataclass, field
from itertools import combinations
from typing import Dict, List, Optional, Sequence, Union
import logging

import numpy as np

from ..exceptions import InvalidInputError
from ..models.diff_options import DiffOptions
from ..models.diff_result import PixelCounts
from ..models.flag_map import DiffState, FlagMap, Significance, Similarity
from ..models.raster import Raster, diagonal_slices
from .color_service import ColorService

logger = logging.getLogger(__name__)

ImageLike = Union[Raster, np.ndarray]


@dataclass
class NeighbourhoodStats:
    """What one image says about one pixel, from its diagonal neighbours."""
    max_distance: float
    max_contrast: float
    identical_count: int
    significance: Significance


@dataclass
class PixelInspection:
    x: int
    y: int
    max_distance: float                      # across images, drives similarity
    similarity: Similarity
    significance: Significance               # reconciled across images
    compared: bool
    different: bool
    per_image: List[NeighbourhoodStats] = field(default_factory=list)  # images actually inspected


@dataclass
class ClassificationResult:
    pixel_counts: PixelCounts

    @property
    def similarity_counts(self) -> Dict[str, Dict[str, int]]:
        return self.pixel_counts.similarity

    @property
    def significance_counts(self) -> Dict[str, int]:
        return self.pixel_counts.significance

    @property
    def compared(self) -> int:
        return self.pixel_counts.compared

    @property
    def diff(self) -> int:
        return self.pixel_counts.diff


class ClassifierService:
    """
    Per-pixel similarity and significance classification.

    *   Similarity: max pairwise colour distance across all images.
    *   Significance: texture of the diagonal neighbourhood in each image,
        reconciled across images with a bias towards foreground.
    Works on YIQ arrays; RGB(A) rasters are converted on the way in.
    """

    def __init__(self, color_service: ColorService | None = None):
        self.color_service = color_service or ColorService()

    # ─── Validation ───────────────────────────────────────────────────
    @staticmethod
    def check_images(images: Sequence) -> tuple:
        """Return the shared (height, width) or raise InvalidInputError."""
        if len(images) < 2:
            raise InvalidInputError(f"diff requires at least 2 images, got {len(images)}")
        shapes = [(img.height, img.width) if isinstance(img, Raster) else tuple(img.shape[:2])
                  for img in images]
        height, width = shapes[0]
        for other_height, other_width in shapes[1:]:
            if (other_height, other_width) != (height, width):
                raise InvalidInputError(
                    "diff requires all images to have the same dimensions, "
                    f"got {width}x{height} and {other_width}x{other_height}"
                )
        return height, width

    def _as_yiq(self, image: ImageLike) -> np.ndarray:
        if isinstance(image, Raster):
            return self.color_service.to_yiq(image)
        return image

    # ─── Public API ───────────────────────────────────────────────────
    def classify(
        self,
        images: Sequence[ImageLike],
        flag_map: FlagMap,
        options: DiffOptions | None = None,
        *,
        distance_map: Optional[np.ndarray] = None,
        contrast_map: Optional[np.ndarray] = None,
    ) -> ClassificationResult:
        """
        Fill the similarity/significance planes of `flag_map` and OR in the
        DIFFERENT bit for compared, changed pixels.

        distance_map / contrast_map, if given, are (H, W) float arrays that
        receive the neighbourhood max distance / contrast of the last image
        inspected for each pixel.
        """
        options = options or DiffOptions()
        height, width = self.check_images(images)
        if (flag_map.height, flag_map.width) != (height, width):
            raise InvalidInputError(
                f"flag map is {flag_map.width}x{flag_map.height}, images are {width}x{height}"
            )
        yiq_images = [self._as_yiq(image) for image in images]

        similarity = self._similarity(yiq_images, options)
        significance = self._reconciled_significance(
            yiq_images, options, distance_map, contrast_map
        )

        compared = np.zeros((height, width), dtype=bool)
        if options.diff_include_foreground:
            compared |= significance == Significance.FOREGROUND
        if options.diff_include_background:
            compared |= significance == Significance.BACKGROUND
        if options.diff_include_antialias:
            compared |= significance == Significance.ANTIALIAS
        different = compared & (similarity == Similarity.CHANGED)

        flag_map.similarity[...] = similarity
        flag_map.significance[...] = significance
        flag_map.add_state(different, DiffState.DIFFERENT)

        counts = self._count(similarity, significance, compared, different)
        logger.info(
            f"Classified {counts.all} pixels: {counts.compared} compared, {counts.diff} different"
        )
        logger.debug(f"Similarity breakdown: {counts.similarity}")
        return ClassificationResult(pixel_counts=counts)

    def inspect_pixel(
        self,
        images: Sequence[Raster],
        x: int,
        y: int,
        options: DiffOptions | None = None,
    ) -> PixelInspection:
        """
        Classify a single pixel one neighbour at a time.

        Reference path for `classify`, and the backing of the CLI's
        `--inspect` flag.
        """
        options = options or DiffOptions()
        height, width = self.check_images(images)
        if not (0 <= x < width and 0 <= y < height):
            raise InvalidInputError(f"pixel ({x}, {y}) is outside the {width}x{height} image")
        cs = self.color_service
        pixels = [cs.yiq_of(image.pixel(x, y)) for image in images]

        max_distance = 0.0
        for a, b in combinations(pixels, 2):
            max_distance = max(max_distance, abs(cs.color_distance(a, b)))

        per_image: List[NeighbourhoodStats] = []
        significance: Optional[Significance] = None
        for image, source in zip(images, pixels):
            stats = self._neighbourhood(image, source, x, y, options)
            per_image.append(stats)
            if stats.significance == Significance.FOREGROUND or (
                significance is not None and stats.significance != significance
            ):
                significance = Significance.FOREGROUND
                break
            if significance is None:
                significance = stats.significance

        similarity = self._similarity_of(max_distance, options)
        compared = self._is_compared(significance, options)
        return PixelInspection(
            x=x,
            y=y,
            max_distance=max_distance,
            similarity=similarity,
            significance=significance,
            compared=compared,
            different=compared and similarity == Similarity.CHANGED,
            per_image=per_image,
        )

    # ─── Internal helpers (vectorised) ────────────────────────────────
    def _similarity(self, yiq_images: List[np.ndarray], options: DiffOptions) -> np.ndarray:
        max_distance = np.zeros(yiq_images[0].shape[:2], dtype=np.float64)
        for a, b in combinations(yiq_images, 2):
            np.maximum(max_distance, self.color_service.distance_magnitude(a, b), out=max_distance)
        similarity = np.full(max_distance.shape, Similarity.CHANGED, dtype=np.uint8)
        similarity[max_distance < options.changed_min_distance] = Similarity.SIMILAR
        similarity[max_distance == 0] = Similarity.IDENTICAL
        return similarity

    def _significance(self, yiq: np.ndarray, options: DiffOptions):
        height, width = yiq.shape[:2]
        max_distance = np.zeros((height, width), dtype=np.float64)
        max_contrast = np.zeros((height, width), dtype=np.float64)
        identical_count = np.zeros((height, width), dtype=np.uint8)
        for centre, neighbour in diagonal_slices(height, width):
            distance = self.color_service.distance_magnitude(yiq[centre], yiq[neighbour])
            same = distance == 0
            contrast = np.where(same, 0.0, self.color_service.contrast_magnitude(yiq[centre], yiq[neighbour]))
            identical_count[centre] += same.astype(np.uint8)
            max_distance[centre] = np.maximum(max_distance[centre], distance)
            max_contrast[centre] = np.maximum(max_contrast[centre], contrast)

        antialias = (
            (identical_count < 3)
            & (max_distance >= options.antialias_min_distance)
            & (max_distance <= options.antialias_max_distance)
            & (max_contrast >= options.antialias_min_distance)
            & (max_contrast <= options.antialias_max_distance)
        )
        significance = np.full((height, width), Significance.FOREGROUND, dtype=np.uint8)
        significance[max_contrast <= options.background_max_contrast] = Significance.BACKGROUND
        significance[antialias] = Significance.ANTIALIAS
        return significance, max_distance, max_contrast

    def _reconciled_significance(self, yiq_images, options, distance_map, contrast_map) -> np.ndarray:
        # Images are visited in input order; once a pixel is forced to
        # foreground later images are no longer inspected for it.
        overall = None
        decided = None
        for yiq in yiq_images:
            significance, max_distance, max_contrast = self._significance(yiq, options)
            if overall is None:
                inspected = np.ones(significance.shape, dtype=bool)
                overall = significance.copy()
                forced = significance == Significance.FOREGROUND
                decided = forced
            else:
                inspected = ~decided
                forced = inspected & (
                    (significance == Significance.FOREGROUND) | (significance != overall)
                )
                overall[forced] = Significance.FOREGROUND
                decided = decided | forced
            if distance_map is not None:
                distance_map[inspected] = max_distance[inspected]
            if contrast_map is not None:
                contrast_map[inspected] = max_contrast[inspected]
            if decided.all():
                break
        return overall

    @staticmethod
    def _count(similarity, significance, compared, different) -> PixelCounts:
        counts = PixelCounts(
            all=int(similarity.size),
            diff=int(np.count_nonzero(different)),
            compared=int(np.count_nonzero(compared)),
        )
        for sig in Significance:
            sig_mask = significance == sig
            sig_name = sig.name.lower()
            counts.significance[sig_name] = int(np.count_nonzero(sig_mask))
            for sim in Similarity:
                sim_name = sim.name.lower()
                counts.similarity[sim_name][sig_name] = int(
                    np.count_nonzero(sig_mask & (similarity == sim))
                )
        for sim in Similarity:
            sim_name = sim.name.lower()
            counts.similarity[sim_name]["all"] = int(np.count_nonzero(similarity == sim))
        return counts

    # ─── Internal helpers (single pixel) ──────────────────────────────
    def _neighbourhood(self, image: Raster, source, x: int, y: int, options: DiffOptions) -> NeighbourhoodStats:
        cs = self.color_service
        max_distance = 0.0
        max_contrast = 0.0
        identical_count = 0
        for adj_x, adj_y in image.iterate_adjacent(x, y):
            adjacent = cs.yiq_of(image.pixel(adj_x, adj_y))
            distance = abs(cs.color_distance(source, adjacent))
            if not distance:
                identical_count += 1
                continue
            max_distance = max(max_distance, distance)
            max_contrast = max(max_contrast, abs(cs.contrast(source, adjacent)))

        if (
            identical_count < 3
            and options.antialias_min_distance <= max_distance <= options.antialias_max_distance
            and options.antialias_min_distance <= max_contrast <= options.antialias_max_distance
        ):
            significance = Significance.ANTIALIAS
        elif max_contrast <= options.background_max_contrast:
            significance = Significance.BACKGROUND
        else:
            significance = Significance.FOREGROUND
        return NeighbourhoodStats(max_distance, max_contrast, identical_count, significance)

    @staticmethod
    def _similarity_of(max_distance: float, options: DiffOptions) -> Similarity:
        if not max_distance:
            return Similarity.IDENTICAL
        if max_distance < options.changed_min_distance:
            return Similarity.SIMILAR
        return Similarity.CHANGED

    @staticmethod
    def _is_compared(significance: Significance, options: DiffOptions) -> bool:
        return (
            (options.diff_include_foreground and significance == Significance.FOREGROUND)
            or (options.diff_include_background and significance == Significance.BACKGROUND)
            or (options.diff_include_antialias and significance == Significance.ANTIALIAS)
        )
