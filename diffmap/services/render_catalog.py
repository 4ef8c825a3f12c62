"""
Default render programs.

Seeds available to every program:
    flags     packed flag map (uint8 value map, see FlagMap.encode)
    original  first input image
    changed   last input image
"""
from __future__ import annotations
from typing import Dict

from ..models.flag_map import FLAG_BITS
from ..models.render_program import RenderProgram
from .pixel_ops_service import PixelOpsService

_ops = PixelOpsService()


def _bits(name: str) -> dict:
    value, mask = FLAG_BITS[name]
    return {"mask": int(mask), "value": int(value)}


def _changed_faded(maps, options):
    return _ops.greyscale(maps["changed"], fade=options["fade"])


def _flags_diff_pixels(maps, options):
    return _ops.render(maps["flags"], palette=[
        {"match": _bits("different"), "color": options["diffPixelColor"]},
    ])


def _flags_diff_groups(maps, options):
    return _ops.render(maps["flags"], palette=[
        {"match": _bits("group_border"), "color": options["groupBorderColor"]},
        {"match": _bits("group_fill"), "color": options["groupFillColor"]},
    ])


def _flags_similarity(maps, options):
    return _ops.render(maps["flags"], palette=[
        {"match": _bits("changed"), "color": options["changedColor"]},
        {"match": _bits("similar"), "color": options["similarColor"]},
        {"color": options["identicalColor"]},
    ])


def _flags_significance(maps, options):
    return _ops.render(maps["flags"], palette=[
        {"match": _bits("antialias"), "color": options["antialiasColor"]},
        {"match": _bits("background"), "color": options["backgroundColor"]},
        {"color": options["foregroundColor"]},
    ])


def _pixels(maps, options):
    return _ops.blend(maps["changedFaded"], maps["flagsDiffPixels"])


def _groups(maps, options):
    with_groups = _ops.blend(maps["changedFaded"], maps["flagsDiffGroups"])
    return _ops.blend(with_groups, maps["flagsDiffPixels"])


def _flags_rgb(maps, options):
    with_pixels = _ops.blend(maps["flagsSignificance"], maps["flagsDiffPixels"])
    return _ops.blend(with_pixels, maps["flagsDiffGroups"])


DEFAULT_PROGRAMS: Dict[str, RenderProgram] = {
    "changedFaded": RenderProgram(
        fn=_changed_faded,
        inputs=("changed",),
        options={"fade": 0.5},
    ),
    "flagsDiffPixels": RenderProgram(
        fn=_flags_diff_pixels,
        inputs=("flags",),
        options={"diffPixelColor": (255, 64, 0, 255)},
    ),
    "flagsDiffGroups": RenderProgram(
        fn=_flags_diff_groups,
        inputs=("flags",),
        options={
            "groupBorderColor": (255, 0, 0, 255),
            "groupFillColor": (255, 0, 255, 128),
        },
    ),
    "flagsSimilarity": RenderProgram(
        fn=_flags_similarity,
        inputs=("flags",),
        options={
            "identicalColor": (0, 0, 0, 255),
            "similarColor": (128, 128, 128, 255),
            "changedColor": (255, 255, 255, 255),
        },
    ),
    "flagsSignificance": RenderProgram(
        fn=_flags_significance,
        inputs=("flags",),
        options={
            "antialiasColor": (0, 0, 128, 255),
            "backgroundColor": (0, 0, 0, 255),
            "foregroundColor": (255, 255, 255, 255),
        },
    ),
    "pixels": RenderProgram(
        fn=_pixels,
        inputs=("changedFaded", "flagsDiffPixels"),
    ),
    "groups": RenderProgram(
        fn=_groups,
        inputs=("changedFaded", "flagsDiffGroups", "flagsDiffPixels"),
    ),
    "flagsrgb": RenderProgram(
        fn=_flags_rgb,
        inputs=("flagsDiffPixels", "flagsDiffGroups", "flagsSignificance"),
    ),
}
