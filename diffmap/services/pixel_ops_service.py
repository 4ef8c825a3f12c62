from __future__ import annotations
from typing import Any, Iterable, Mapping, Optional, Sequence, Union
import numpy as np

from ..exceptions import InvalidInputError, UnsupportedOperandError
from ..models.raster import Raster

Color = Union[Sequence[float], Mapping[str, float]]

BLEND_MODES = ("add", "average", "max")
CHANNEL_INDEX = {"r": 0, "g": 1, "b": 2}

DEFAULT_PALETTE = (
    {"gradient": {"from": (0, 0, 0, 255), "to": (255, 255, 255, 255)}},
)


def to_rgba(color: Color) -> tuple:
    """(r, g, b[, a]) sequence or {'r','g','b','a'} mapping -> 4-tuple."""
    if isinstance(color, Mapping):
        return (color["r"], color["g"], color["b"], color.get("a", 255))
    values = tuple(color)
    if len(values) == 3:
        return values + (255,)
    if len(values) != 4:
        raise InvalidInputError(f"Colour must have 3 or 4 components, got {color!r}")
    return values


def _to_uint8(values: np.ndarray) -> np.ndarray:
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def _require_rgb(raster: Raster, what: str) -> None:
    if not isinstance(raster, Raster) or not raster.is_rgb:
        raise UnsupportedOperandError(f"{what} needs an RGB/RGBA raster")


def _require_valuemap(raster: Raster, what: str) -> None:
    if not isinstance(raster, Raster) or not raster.is_valuemap:
        raise UnsupportedOperandError(f"{what} needs a single-channel value map")


class PixelOpsService:
    """
    Per-pixel arithmetic used to compose output rasters.
    No I/O here, and inputs are never modified.
    """

    # ─── Alpha handling ───────────────────────────────────────────────
    @staticmethod
    def _flatten_array(pixels: np.ndarray, alpha_ratio: float = 1.0) -> np.ndarray:
        """float (H, W, 3) of `pixels` composited onto white."""
        rgb = pixels[..., :3].astype(np.float64)
        if pixels.shape[-1] < 4:
            return rgb
        alpha = pixels[..., 3].astype(np.float64)
        weight = (alpha / 255.0 * alpha_ratio)[..., None]
        flattened = 255.0 + (rgb - 255.0) * weight
        # Fully opaque pixels pass through untouched.
        return np.where((alpha == 255)[..., None], rgb, flattened)

    def flatten(self, raster: Raster, alpha_ratio: float = 1.0) -> Raster:
        """Remove alpha by blending onto white; returns an RGB raster."""
        _require_rgb(raster, "flatten")
        return Raster(pixels=_to_uint8(self._flatten_array(raster.pixels, alpha_ratio)))

    # ─── Luminance ────────────────────────────────────────────────────
    @staticmethod
    def brightness(raster: Raster, alpha_ratio: float = 1.0) -> Raster:
        """
        Luminance (YIQ Y) as a uint8 value map, faded towards white by
        pixel alpha times `alpha_ratio`.
        """
        _require_rgb(raster, "brightness")
        rgb = raster.pixels[..., :3].astype(np.float64)
        luminance = 0.29889531 * rgb[..., 0] + 0.58662247 * rgb[..., 1] + 0.11448223 * rgb[..., 2]
        if raster.has_alpha:
            alpha = raster.pixels[..., 3].astype(np.float64) / 255.0
        else:
            alpha = 1.0
        return Raster(pixels=_to_uint8(255.0 + (luminance - 255.0) * alpha * alpha_ratio))

    def greyscale(self, raster: Raster, fade: float = 0.0) -> Raster:
        """Greyscale RGBA rendering; `fade` in [0, 1] lightens towards white."""
        return self.render(self.brightness(raster, alpha_ratio=1.0 - fade))

    # ─── Compositing ──────────────────────────────────────────────────
    def blend(
        self,
        source: Raster,
        overlay: Raster,
        mode: str = "average",
        channels: Iterable[str] = ("r", "g", "b"),
    ) -> Raster:
        """
        Blend `overlay` onto `source`, returning an RGB raster.

        Overlay alpha 0 keeps the source pixel, alpha 255 takes the overlay
        pixel; anything in between is mixed per `mode` on the selected
        channels after flattening the source onto white.
        """
        _require_rgb(source, "blend source")
        _require_rgb(overlay, "blend overlay")
        if not source.same_size(overlay):
            raise InvalidInputError(
                f"blend needs equal sizes, got {source.width}x{source.height} "
                f"and {overlay.width}x{overlay.height}"
            )
        if mode not in BLEND_MODES:
            raise InvalidInputError(f"Unknown blend mode: {mode}")

        src_rgb = source.pixels[..., :3].astype(np.float64)
        ovl_rgb = overlay.pixels[..., :3].astype(np.float64)
        if overlay.has_alpha:
            ovl_alpha = overlay.pixels[..., 3].astype(np.float64)
        else:
            ovl_alpha = np.full(src_rgb.shape[:2], 255.0)
        ratio = (ovl_alpha / 255.0)[..., None]

        base = self._flatten_array(source.pixels)
        mixed = base.copy()
        idx = [CHANNEL_INDEX[c] for c in channels]
        with np.errstate(divide="ignore", invalid="ignore"):
            if mode == "add":
                candidate = base + (ovl_rgb - base) * ratio
            elif mode == "average":
                candidate = (base / ratio + ovl_rgb * ratio) / 2.0
            else:
                candidate = np.maximum(base, ovl_rgb)
        mixed[..., idx] = candidate[..., idx]

        result = np.where((ovl_alpha == 0)[..., None], src_rgb, mixed)
        result = np.where((ovl_alpha == 255)[..., None], ovl_rgb, result)
        return Raster(pixels=_to_uint8(result))

    # ─── Palette rendering ────────────────────────────────────────────
    @staticmethod
    def _match(values: np.ndarray, match: Any) -> np.ndarray:
        if match is None:
            return np.ones(values.shape, dtype=bool)
        if not isinstance(match, (list, tuple)):
            match = [match]
        matched = np.zeros(values.shape, dtype=bool)
        for rule in match:
            if isinstance(rule, (int, float)) and not isinstance(rule, bool):
                matched |= values == rule
            elif "mask" in rule:
                if not np.issubdtype(values.dtype, np.integer):
                    raise UnsupportedOperandError("mask matching needs an integer value map")
                mask = int(rule["mask"])
                expected = int(rule.get("value", mask))
                matched |= (values & mask) == expected
            elif "value" in rule:
                wanted = rule["value"]
                if not isinstance(wanted, (list, tuple)):
                    wanted = [wanted]
                matched |= np.isin(values, wanted)
            elif "range" in rule:
                low, high = rule["range"]
                matched |= (values >= low) & (values <= high)
            else:
                matched[...] = True
        return matched

    def render(self, raster: Raster, palette: Optional[Sequence[Mapping]] = None) -> Raster:
        """
        Draw a value map as RGBA through a palette.

        Each palette entry is {"match": ..., "color": c} or
        {"match": ..., "gradient": {"from": c, "to": c}}; the first matching
        entry wins and unmatched pixels stay transparent. Match rules:
            5                          exact value
            {"value": [1, 2]}          any of the values
            {"mask": m, "value": v}    (pixel & m) == v   (v defaults to m)
            {"range": (lo, hi)}        lo <= pixel <= hi
            {} or no "match"           everything
        """
        _require_valuemap(raster, "render")
        palette = DEFAULT_PALETTE if palette is None else palette
        values = raster.pixels
        result = np.zeros((raster.height, raster.width, 4), dtype=np.uint8)
        unassigned = np.ones(values.shape, dtype=bool)
        for entry in palette:
            matched = self._match(values, entry.get("match")) & unassigned
            if not matched.any():
                continue
            gradient = entry.get("gradient")
            if gradient:
                start = np.asarray(to_rgba(gradient["from"]), dtype=np.float64)
                step = (np.asarray(to_rgba(gradient["to"]), dtype=np.float64) - start) / 255.0
                picked = values[matched].astype(np.float64)[:, None]
                result[matched] = _to_uint8(start + step * picked)
            else:
                result[matched] = to_rgba(entry.get("color", (0, 0, 0, 255)))
            unassigned &= ~matched
        return Raster(pixels=result)
