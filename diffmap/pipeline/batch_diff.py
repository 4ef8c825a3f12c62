"""
Batch Diff Pipeline
Pairs same-named images across a "before" and an "after" directory and diffs
each pair, writing `<stem>-<output>.png` files into the output directory.
"""

from pathlib import Path
from typing import Dict, Iterable, Sequence, Union
import logging

from tqdm import tqdm

from ..models.diff_options import DiffOptions
from ..models.diff_result import DiffResult
from ..services.diff_service import DiffService
from ..services.image_service import ImageService

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def _index_dir(folder: Path, exts: Iterable[str]) -> Dict[str, Path]:
    if not folder.is_dir():
        raise NotADirectoryError(folder)
    allowed = {e.lower() for e in exts}
    return {
        p.name: p
        for p in sorted(folder.iterdir())
        if p.is_file() and p.suffix.lower() in allowed
    }


def diff_directories(
    before_dir: PathLike,
    after_dir: PathLike,
    output_dir: PathLike,
    options: DiffOptions | None = None,
    outputs: Sequence[str] = ("groups",),
    *,
    image_service: ImageService | None = None,
    diff_service: DiffService | None = None,
) -> Dict[str, DiffResult]:
    """
    Diff every file name present in both directories.

    Returns:
        Dict[str, DiffResult]: keyed by file name, in sorted name order.
    """
    image_service = image_service or ImageService()
    options = (options or DiffOptions.from_env()).with_overrides(output=tuple(outputs))
    diff_service = diff_service or DiffService(options)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    exts = image_service.image_repository.VALID_EXTS
    before = _index_dir(Path(before_dir), exts)
    after = _index_dir(Path(after_dir), exts)

    for name in sorted(set(before) ^ set(after)):
        side = "after" if name in before else "before"
        logger.warning(f"Skipping {name}: missing from the {side} directory")

    results: Dict[str, DiffResult] = {}
    for name in tqdm(sorted(set(before) & set(after)), desc="diff", ncols=70):
        images = [image_service.load(before[name]), image_service.load(after[name])]
        result = diff_service.diff(images, options)
        stem = Path(name).stem
        for output_name, raster in result.outputs.items():
            image_service.save(raster, output_dir / f"{stem}-{output_name}.png")
        results[name] = result
        logger.debug(f"{name}: {result.status.value}")

    logger.info(f"Diffed {len(results)} image pair(s) into {output_dir}")
    return results
