"""Shared pytest fixtures for tile store tests."""

import os
import sys

import numpy as np
import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(project_root)

from common import grid
from common.raster import write_png

# BGRA
RED = (0, 0, 255, 255)
GREEN = (0, 255, 0, 255)
BLUE = (255, 0, 0, 255)
WHITE = (255, 255, 255, 255)


@pytest.fixture
def tile_dir(tmp_path):
    """Empty tile store root."""
    d = tmp_path / "tiles"
    d.mkdir()
    return d


@pytest.fixture
def solid_image():
    """Factory for an opaque single-colour BGRA image."""
    def _make(color, width=256, height=256):
        img = np.zeros((height, width, 4), dtype=np.uint8)
        img[:, :] = color
        return img
    return _make


@pytest.fixture
def quadrant_tile():
    """256x256 tile: red top-left, green top-right, blue bottom-left, white bottom-right."""
    img = np.zeros((256, 256, 4), dtype=np.uint8)
    img[:128, :128] = RED
    img[:128, 128:] = GREEN
    img[128:, :128] = BLUE
    img[128:, 128:] = WHITE
    return img


@pytest.fixture
def write_tile(tile_dir):
    """Write a tile PNG into the store, returning its path."""
    def _write(layer, zoom, row, col, img):
        path = grid.tile_path(tile_dir, layer, zoom, row, col)
        path.parent.mkdir(parents=True, exist_ok=True)
        write_png(path, img)
        return path
    return _write


@pytest.fixture
def write_source(tmp_path):
    """
    Write `<name>.png` plus `<name>.pgw` whose upper-left pixel corner is
    (corner_x, corner_y). Returns the PNG path.
    """
    src_dir = tmp_path / "sources"
    src_dir.mkdir(exist_ok=True)

    def _write(name, img, corner_x, corner_y, pixel_size=0.5):
        png = src_dir / f"{name}.png"
        write_png(png, img)
        center_x = corner_x + pixel_size / 2
        center_y = corner_y - pixel_size / 2
        (src_dir / f"{name}.pgw").write_text(
            f"{pixel_size}\n0.0\n0.0\n{-pixel_size}\n{center_x}\n{center_y}\n"
        )
        return png
    return _write

