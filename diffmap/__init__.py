"""
diffmap: perceptual image diffing.

    >>> from diffmap import diff
    >>> result = diff([before, after])      # Raster objects of equal size
    >>> result.status, result.regions
"""
from .exceptions import (
    DiffmapError,
    InvalidInputError,
    MissingOptionError,
    UnknownProgramError,
    UnsupportedOperandError,
)
from .models.box import Box
from .models.diff_options import DiffOptions
from .models.diff_result import DiffResult, DiffStatus
from .models.flag_map import FlagMap
from .models.raster import Raster
from .models.render_program import RenderProgram
from .services.diff_service import DiffService, diff

__version__ = "1.0.0"

__all__ = [
    "Box",
    "DiffOptions",
    "DiffResult",
    "DiffService",
    "DiffStatus",
    "DiffmapError",
    "FlagMap",
    "InvalidInputError",
    "MissingOptionError",
    "Raster",
    "RenderProgram",
    "UnknownProgramError",
    "UnsupportedOperandError",
    "diff",
]
