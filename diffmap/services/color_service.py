from __future__ import annotations
from typing import NamedTuple, Sequence
import numpy as np

from ..exceptions import UnsupportedOperandError
from ..models.raster import Raster

# Weights of the YIQ distance metric; the divisor maps the result onto 0-255.
DISTANCE_WEIGHT_Y = 0.5053
DISTANCE_WEIGHT_I = 0.299
DISTANCE_WEIGHT_Q = 0.1957
DISTANCE_SCALE = 138.09803921568627


class YiqPixel(NamedTuple):
    y: float
    i: float
    q: float


class ColorService:
    """
    Perceptual colour maths: RGB -> YIQ, colour distance and contrast.

    Scalar helpers work on single pixels; `to_yiq` and `distance_magnitude`
    are the numpy equivalents used for whole images. Both use the same
    formulas in the same order so results agree bit for bit.
    """

    # ─── Single pixels ────────────────────────────────────────────────
    @staticmethod
    def yiq_of(pixel: Sequence[float]) -> YiqPixel:
        """RGB(A) pixel -> YIQ. Alpha is ignored."""
        r, g, b = float(pixel[0]), float(pixel[1]), float(pixel[2])
        return YiqPixel(
            y=0.29889531 * r + 0.58662247 * g + 0.11448223 * b,
            i=0.59597799 * r - 0.27417610 * g - 0.32180189 * b,
            q=0.21147017 * r - 0.52261711 * g + 0.31114694 * b,
        )

    @staticmethod
    def rgba_of(pixel: YiqPixel) -> tuple:
        """YIQ -> RGBA floats, fully opaque."""
        y, i, q = pixel
        return (
            y + 0.95629572 * i + 0.62102416 * q,
            y - 0.27212210 * i - 0.64738053 * q,
            y - 1.10797103 * i + 1.70461523 * q,
            255.0,
        )

    @staticmethod
    def color_distance(from_pixel: YiqPixel, to_pixel: YiqPixel) -> float:
        """
        Signed perceptual distance between two YIQ pixels.

        0 means identical. The magnitude grows with visible difference; the
        sign is negative when `to_pixel` is darker than `from_pixel`.
        """
        diff_y = from_pixel.y - to_pixel.y
        diff_i = from_pixel.i - to_pixel.i
        diff_q = from_pixel.q - to_pixel.q
        if diff_y == 0 and diff_i == 0 and diff_q == 0:
            return 0.0
        distance = (
            DISTANCE_WEIGHT_Y * diff_y * diff_y
            + DISTANCE_WEIGHT_I * diff_i * diff_i
            + DISTANCE_WEIGHT_Q * diff_q * diff_q
        ) / DISTANCE_SCALE
        if from_pixel.y > to_pixel.y:
            distance = -distance
        return distance

    @staticmethod
    def contrast(from_pixel: YiqPixel, to_pixel: YiqPixel) -> float:
        """Luminance-only difference (Y channel)."""
        return from_pixel.y - to_pixel.y

    # ─── Whole images ─────────────────────────────────────────────────
    @staticmethod
    def to_yiq(raster: Raster) -> np.ndarray:
        """RGB/RGBA raster -> float64 (H, W, 3) array of y, i, q."""
        if not raster.is_rgb:
            raise UnsupportedOperandError(
                f"YIQ conversion needs an RGB/RGBA raster, got {raster.channels} channel(s)"
            )
        rgb = raster.pixels[..., :3].astype(np.float64)
        r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
        return np.stack(
            (
                0.29889531 * r + 0.58662247 * g + 0.11448223 * b,
                0.59597799 * r - 0.27417610 * g - 0.32180189 * b,
                0.21147017 * r - 0.52261711 * g + 0.31114694 * b,
            ),
            axis=-1,
        )

    @staticmethod
    def distance_magnitude(from_yiq: np.ndarray, to_yiq: np.ndarray) -> np.ndarray:
        """Element-wise |color_distance| of two (..., 3) YIQ arrays."""
        diff = from_yiq - to_yiq
        diff_y, diff_i, diff_q = diff[..., 0], diff[..., 1], diff[..., 2]
        distance = (
            DISTANCE_WEIGHT_Y * diff_y * diff_y
            + DISTANCE_WEIGHT_I * diff_i * diff_i
            + DISTANCE_WEIGHT_Q * diff_q * diff_q
        ) / DISTANCE_SCALE
        identical = (diff_y == 0) & (diff_i == 0) & (diff_q == 0)
        return np.where(identical, 0.0, distance)

    @staticmethod
    def contrast_magnitude(from_yiq: np.ndarray, to_yiq: np.ndarray) -> np.ndarray:
        """Element-wise |contrast| of two (..., 3) YIQ arrays."""
        return np.abs(from_yiq[..., 0] - to_yiq[..., 0])
