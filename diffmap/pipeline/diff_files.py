"""
Diff Files Pipeline
Loads images from disk, diffs them, and writes the requested output rasters.
"""

from pathlib import Path
from typing import Mapping, Sequence, Union
import logging

from ..models.diff_options import DiffOptions
from ..models.diff_result import DiffResult
from ..models.raster import Raster
from ..services.diff_service import DiffService
from ..services.image_service import ImageService

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def diff_files(
    source_paths: Sequence[PathLike],
    output_paths: Mapping[str, PathLike] | None = None,
    options: DiffOptions | None = None,
    *,
    image_service: ImageService | None = None,
    diff_service: DiffService | None = None,
) -> DiffResult:
    """
    Diff two or more image files and save the produced outputs.

    Args:
        source_paths: images to compare; the first is `original`, the last `changed`
        output_paths: output name -> file path, e.g. {"groups": "out/groups.png"}
        options: diff options; `output` is replaced by the keys of `output_paths`

    Returns:
        DiffResult: outputs that were rendered are also written to disk. Nothing
        is written when the status is not in `options.output_when_status`.
    """
    image_service = image_service or ImageService()
    images = [image_service.load(path) for path in source_paths]
    return diff_rasters(
        images, output_paths, options, image_service=image_service, diff_service=diff_service
    )


def diff_rasters(
    images: Sequence[Raster],
    output_paths: Mapping[str, PathLike] | None = None,
    options: DiffOptions | None = None,
    *,
    image_service: ImageService | None = None,
    diff_service: DiffService | None = None,
) -> DiffResult:
    """Same as `diff_files` for images that are already loaded."""
    image_service = image_service or ImageService()
    options = options or DiffOptions.from_env()
    output_paths = dict(output_paths or {})
    options = options.with_overrides(output=tuple(output_paths))
    diff_service = diff_service or DiffService(options)

    result = diff_service.diff(images, options)

    for name, raster in result.outputs.items():
        written = image_service.save(raster, output_paths[name])
        logger.info(f"Wrote '{name}' to {written}")
    return result
