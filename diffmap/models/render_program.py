from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Tuple

from .raster import Raster

RenderFn = Callable[[Mapping[str, Raster], Dict[str, Any]], Raster]

# Option values starting with this prefix are resolved against the
# caller's output options when the program runs, e.g. {"fade": "@@fade"}.
OPTION_TEMPLATE_PREFIX = "@@"


@dataclass(frozen=True)
class RenderProgram:
    """
    Declarative recipe for one named output raster.

    inputs:  names of the rasters that must be resolved before `fn` runs
    options: declared defaults; the caller's output options are merged over them
    fn:      fn(resolved_maps, merged_options) -> Raster
    """
    fn: RenderFn
    inputs: Tuple[str, ...] = ()
    options: Mapping[str, Any] = field(default_factory=dict)
