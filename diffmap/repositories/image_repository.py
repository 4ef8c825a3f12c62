from pathlib import Path
from typing import Iterable, Iterator, Union
import logging
import os

import cv2
import numpy as np
from PIL import Image as PILImage
from dotenv import load_dotenv

from ..exceptions import InvalidInputError
from ..models.raster import Raster

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_EXTENSIONS = ".png,.jpg,.jpeg,.bmp,.tif,.tiff,.webp"


class ImageRepository:
    """
    Handles file I/O for Raster entities.
    Pixels are always RGB or RGBA in memory; OpenCV's BGR order stays in here.
    """
    def __init__(self):
        exts = os.getenv("DIFFMAP_IMAGE_EXTENSIONS") or DEFAULT_IMAGE_EXTENSIONS
        self.VALID_EXTS = {ext.strip().lower() for ext in exts.split(",") if ext.strip()}

    @staticmethod
    def load(path: Union[str, Path]) -> Raster:
        path = Path(path)
        arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise FileNotFoundError(f"Image not found or unreadable: {path}")

        if arr.dtype != np.uint8:
            # 16-bit PNG/TIFF: keep the high byte.
            arr = (arr >> 8).astype(np.uint8) if arr.dtype == np.uint16 else arr.astype(np.uint8)
        if arr.ndim == 2:
            arr = cv2.cvtColor(arr, cv2.COLOR_GRAY2RGB)
        elif arr.shape[2] == 4:
            arr = cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)
        else:
            arr = cv2.cvtColor(arr, cv2.COLOR_BGR2RGB)
        return Raster(pixels=np.ascontiguousarray(arr), path=path)

    @staticmethod
    def save(raster: Raster, path: Union[str, Path] = None) -> Path:
        path = path or raster.path
        if path is None:
            raise InvalidInputError("Cannot save a raster that has no path")
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        PILImage.fromarray(np.ascontiguousarray(raster.pixels)).save(path)
        return path

    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Raster]:
        """
        Yield Raster objects one at a time, sorted by path. Nothing accumulates in memory.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if not p.is_file():
                continue
            if p.suffix.lower() not in allowed:
                logger.debug(f"Skipping due to extension: {p}")
                continue
            try:
                yield self.load(p)
            except FileNotFoundError as err:
                logger.warning(f"Skipping {p.name}: {err}")
