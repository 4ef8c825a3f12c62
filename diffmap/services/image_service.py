from pathlib import Path
from typing import Iterable, Iterator, Union

from ..exceptions import UnsupportedOperandError
from ..models.raster import Raster
from ..repositories.image_repository import ImageRepository


class ImageService:
    """I/O helpers.  No diff logic here."""
    def __init__(self, image_repository: ImageRepository | None = None):
        self.image_repository = image_repository or ImageRepository()

    def load(self, path: Union[str, Path]) -> Raster:
        """Load a single image from disk into an RGB/RGBA Raster."""
        return self.image_repository.load(path)

    def stream_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Raster]:
        """
        Yield rasters lazily instead of returning a gigantic list.
        """
        return self.image_repository.iter_dir(folder, recursive=recursive, exts=exts)

    def save(self, raster: Raster, path: Union[str, Path] = None) -> Path:
        """
        Save an RGB/RGBA raster as an image file. Value maps (e.g. the packed
        flag map) have no colour interpretation and are refused.
        """
        if not raster.is_rgb:
            raise UnsupportedOperandError(
                f"Only RGB/RGBA rasters can be written as images, got {raster.channels} channel(s)"
            )
        return self.image_repository.save(raster, path)
