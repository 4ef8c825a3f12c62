import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from diffmap.models.flag_map import DiffState, FlagMap  # noqa: E402
from diffmap.models.raster import Raster  # noqa: E402

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)


def solid(width, height, color=BLACK):
    pixels = np.zeros((height, width, len(color)), dtype=np.uint8)
    pixels[...] = color
    return Raster(pixels)


def with_pixels(raster, points, color=WHITE):
    changed = raster.copy()
    for x, y in points:
        changed.set_pixel(x, y, color)
    return changed


def diff_flag_map(width, height, points):
    flag_map = FlagMap.create(width, height)
    for x, y in points:
        flag_map.state[y, x] |= int(DiffState.DIFFERENT)
    return flag_map


@pytest.fixture
def black_4x4():
    return solid(4, 4)


@pytest.fixture
def one_pixel_pair(black_4x4):
    """4x4 black, and the same image with (1, 1) turned white."""
    return black_4x4, with_pixels(black_4x4, [(1, 1)])


@pytest.fixture
def grey_centre_pair():
    """3x3 black with a dim grey centre (100 vs 110): an antialias-looking dot."""
    before = with_pixels(solid(3, 3), [(1, 1)], (100, 100, 100))
    after = with_pixels(solid(3, 3), [(1, 1)], (110, 110, 110))
    return before, after


@pytest.fixture
def striped_pair():
    """4x4 black vs white odd columns: half of the pixels changed."""
    after = solid(4, 4)
    after.pixels[:, 1::2] = WHITE
    return solid(4, 4), after


@pytest.fixture
def random_images():
    rng = np.random.default_rng(7)
    palette = np.array([[0, 0, 0], [255, 255, 255], [120, 120, 120], [200, 40, 40], [90, 90, 110]],
                       dtype=np.uint8)
    return [Raster(palette[rng.integers(0, len(palette), size=(5, 6))]) for _ in range(3)]
