from __future__ import annotations
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional
import logging

from ..exceptions import MissingOptionError, UnknownProgramError
from ..models.raster import Raster
from ..models.render_program import OPTION_TEMPLATE_PREFIX, RenderProgram
from .render_catalog import DEFAULT_PROGRAMS

logger = logging.getLogger(__name__)


class RenderService:
    """
    Resolves named output rasters through a catalog of RenderPrograms.

    *   Dependencies are resolved depth-first and memoized, so each program
        runs at most once per `render_outputs` call.
    *   The seed map is copied; callers' rasters are never replaced.
    *   Cyclic catalogs are not detected (they end in RecursionError).
    """

    def __init__(self, catalog: Optional[Mapping[str, RenderProgram]] = None):
        self.catalog = DEFAULT_PROGRAMS if catalog is None else catalog

    def render_outputs(
        self,
        names: Iterable[str],
        seed_map: Mapping[str, Raster],
        catalog: Optional[Mapping[str, RenderProgram]] = None,
        output_options: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Raster]:
        catalog = self.catalog if catalog is None else catalog
        output_options = dict(output_options or {})
        resolved: Dict[str, Raster] = dict(seed_map)
        view = MappingProxyType(resolved)

        def resolve(name: str) -> Raster:
            if name in resolved:
                return resolved[name]
            program = catalog.get(name)
            if program is None:
                raise UnknownProgramError(name)
            for dependency in program.inputs:
                resolve(dependency)
            options = self.merge_options(program.options, output_options)
            logger.debug(f"Rendering '{name}' from {list(program.inputs)}")
            result = program.fn(view, options)
            resolved[name] = result
            return result

        return {name: resolve(name) for name in names}

    @staticmethod
    def merge_options(defaults: Mapping[str, Any], outer: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Outer options over program defaults, then '@@name' templates are
        replaced by outer[name].
        """
        merged = {**defaults, **outer}
        for key, value in merged.items():
            if isinstance(value, str) and value.startswith(OPTION_TEMPLATE_PREFIX):
                reference = value[len(OPTION_TEMPLATE_PREFIX):]
                if reference not in outer:
                    raise MissingOptionError(reference)
                merged[key] = outer[reference]
        return merged
