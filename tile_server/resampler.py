from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from common import grid
from common.grid import TILE_SIZE
from common.raster import draw_scaled, new_canvas, read_png
from tile_server.layers import TileLayer

log = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3


class TileResampler:
    """
    Synthesizes a missing tile by magnifying a quadrant of the nearest coarser
    pre-rendered tile. Results are never written to disk.
    """

    def __init__(self, tile_dir: Union[str, Path], max_depth: int = DEFAULT_MAX_DEPTH):
        self.tile_dir = Path(tile_dir)
        self.max_depth = int(max_depth)

    @staticmethod
    def find_source_zoom(layer: TileLayer, zoom: int) -> Optional[int]:
        """Greatest available zoom strictly below `zoom`, or None."""
        return layer.nearest_available_zoom(zoom - 1)

    def resample(self, layer: TileLayer, zoom: int, row: int, col: int) -> Optional[np.ndarray]:
        """
        Returns a 256x256 BGRA tile, or None when no source is usable: no
        coarser zoom, a gap above `max_depth`, or no source tile on disk.
        A source file that exists but cannot be decoded raises.
        """
        source_zoom = self.find_source_zoom(layer, zoom)
        if source_zoom is None:
            return None
        diff = zoom - source_zoom
        if diff > self.max_depth:
            log.debug(
                "Zoom gap too large for resampling",
                extra={"extra": {"layer": layer.name, "zoom": zoom, "source_zoom": source_zoom}},
            )
            return None

        src_path = grid.tile_path(self.tile_dir, layer.name, source_zoom, row >> diff, col >> diff)
        try:
            source = read_png(src_path)
        except FileNotFoundError:
            return None

        mask = (1 << diff) - 1
        size = TILE_SIZE >> diff
        y = (row & mask) * size
        x = (col & mask) * size
        region = source[y:y + size, x:x + size]

        canvas = new_canvas()
        draw_scaled(canvas, region, (0, 0, TILE_SIZE, TILE_SIZE), interpolation=cv2.INTER_LINEAR)
        log.debug(
            "Resampled tile",
            extra={"extra": {"layer": layer.name, "tile": [zoom, row, col], "source_zoom": source_zoom}},
        )
        return canvas
