from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Iterator

import cv2
import numpy as np

from common import grid
from common.grid import TILE_SIZE, TileCoordinate
from common.raster import draw_scaled, is_fully_transparent, new_canvas
from tile_import.world_file import WorldFileData

# Source pixel positions are snapped to this many decimals before floor/ceil
# so inverse-transform noise does not widen a window by a pixel.
_PIXEL_DECIMALS = 6


@dataclass(frozen=True)
class ExtractedTile:
    coordinate: TileCoordinate
    image: np.ndarray  # (256, 256, 4) BGRA


def _round_half_up(v: float) -> int:
    return math.floor(v + 0.5)


def iter_tiles(source: np.ndarray, zoom: int, world: WorldFileData) -> Iterator[ExtractedTile]:
    """
    Yield every non-empty tile at `zoom` that the BGRA `source` raster touches.

    Tiles are produced one at a time, rows north to south, columns west to east.
    """
    height, width = source.shape[:2]
    west, north, east, south = world.bounds(width, height)
    inverse = ~world.transform

    for r in range(grid.row(north, zoom), grid.row(south, zoom) + 1):
        for c in range(grid.column(west, zoom), grid.column(east, zoom) + 1):
            b = grid.tile_bounds(zoom, r, c)
            sx0, sy0 = (round(v, _PIXEL_DECIMALS) for v in inverse * (b.west, b.north))
            sx1, sy1 = (round(v, _PIXEL_DECIMALS) for v in inverse * (b.east, b.south))

            cx0, cy0 = max(math.floor(sx0), 0), max(math.floor(sy0), 0)
            cx1, cy1 = min(math.ceil(sx1), width), min(math.ceil(sy1), height)
            if cx1 <= cx0 or cy1 <= cy0:
                continue

            # Canvas pixels per source pixel (1.0 when the raster matches the zoom)
            sx = TILE_SIZE / (sx1 - sx0)
            sy = TILE_SIZE / (sy1 - sy0)
            dx0, dx1 = _round_half_up((cx0 - sx0) * sx), _round_half_up((cx1 - sx0) * sx)
            dy0, dy1 = _round_half_up((cy0 - sy0) * sy), _round_half_up((cy1 - sy0) * sy)

            canvas = new_canvas()
            draw_scaled(
                canvas,
                source[cy0:cy1, cx0:cx1],
                (dx0, dy0, dx1 - dx0, dy1 - dy0),
                interpolation=cv2.INTER_NEAREST,
            )
            if is_fully_transparent(canvas):
                continue
            yield ExtractedTile(TileCoordinate(zoom, r, c), canvas)


def extract(
    source: np.ndarray,
    zoom: int,
    world: WorldFileData,
    sink: Callable[[TileCoordinate, np.ndarray], None],
) -> int:
    """Pass each extracted tile to `sink`; returns how many were emitted."""
    count = 0
    for tile in iter_tiles(source, zoom, world):
        sink(tile.coordinate, tile.image)
        count += 1
    return count
