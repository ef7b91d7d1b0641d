from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np

from common import grid
from common.grid import TileCoordinate
from common.raster import draw_scaled, encode_png, new_canvas, read_png


class TileWriter:
    """Persists tiles under `<base_dir>/<layer>/ETRS-TM35FIN/...`."""

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)

    def layer_directory(self, layer: str) -> Path:
        return self.base_dir / layer

    def write(self, layer: str, coordinate: TileCoordinate, image: np.ndarray) -> Path:
        """
        Write one tile. An existing tile at the same coordinate is kept
        underneath: the new image is composited over it with source-over.
        """
        path = grid.tile_path(self.base_dir, layer, coordinate.zoom, coordinate.row, coordinate.col)
        path.parent.mkdir(parents=True, exist_ok=True)

        if path.exists():
            old = read_png(path)
            merged = new_canvas()
            draw_scaled(merged, old, (0, 0, old.shape[1], old.shape[0]))
            draw_scaled(merged, image, (0, 0, image.shape[1], image.shape[0]))
            image = merged

        path.write_bytes(encode_png(image))
        return path
