from __future__ import annotations

import logging
import shutil
import time
from pathlib import Path
from typing import Iterable, Optional, Union

from common import grid
from common.raster import read_png
from tile_import import world_file
from tile_import.extractor import extract
from tile_import.world_file import WorldFileError
from tile_import.writer import TileWriter

log = logging.getLogger(__name__)


class RasterTileImporter:
    """
    Imports georeferenced PNG rasters into one tile layer.

    Each source needs a world file beside it with the same base name and a
    `.pgw` suffix. A bad source is logged and skipped; the batch carries on.
    """

    def __init__(self, tile_dir: Union[str, Path], layer: str, writer: Optional[TileWriter] = None):
        self.tile_dir = Path(tile_dir)
        self.layer = layer
        self.writer = writer or TileWriter(self.tile_dir)

    @staticmethod
    def derive_world_file_path(image_path: Union[str, Path]) -> Path:
        """L3311F.PNG -> L3311F.pgw"""
        return Path(image_path).with_suffix(".pgw")

    def import_file(self, image_path: Union[str, Path]) -> int:
        """Import one raster; returns tiles written (0 on any per-file failure)."""
        image_path = Path(image_path)
        wf_path = self.derive_world_file_path(image_path)
        ctx = {"file": str(image_path), "layer": self.layer}

        if not wf_path.is_file():
            log.warning("World file missing, skipping", extra={"extra": {**ctx, "world_file": str(wf_path)}})
            return 0
        try:
            world = world_file.parse(wf_path)
        except (WorldFileError, OSError) as e:
            log.warning("Invalid world file, skipping", extra={"extra": {**ctx, "world_file": str(wf_path), "error": str(e)}})
            return 0

        try:
            zoom = grid.zoom_level(world.pixel_width)
        except ValueError as e:
            log.warning("No zoom level for pixel size, skipping", extra={"extra": {**ctx, "error": str(e)}})
            return 0

        try:
            source = read_png(image_path)
        except OSError as e:
            log.warning("Cannot read image, skipping", extra={"extra": {**ctx, "error": str(e)}})
            return 0

        height, width = source.shape[:2]
        west, north, east, south = world.bounds(width, height)
        cols = grid.column(east, zoom) - grid.column(west, zoom) + 1
        rows = grid.row(south, zoom) - grid.row(north, zoom) + 1
        log.info(
            "Importing raster",
            extra={"extra": {
                **ctx,
                "size": f"{width}x{height}",
                "bounds": [west, north, east, south],
                "zoom": zoom,
                "tile_grid": f"{cols}x{rows}",
            }},
        )

        t0 = time.perf_counter()
        try:
            written = extract(source, zoom, world, lambda coord, img: self.writer.write(self.layer, coord, img))
        except OSError as e:
            log.error("Writing tiles failed", extra={"extra": {**ctx, "error": str(e)}})
            return 0
        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        log.info(
            "Wrote %d tiles from %s in %dms", written, image_path.name, elapsed_ms,
            extra={"extra": {**ctx, "tiles": written, "elapsed_ms": elapsed_ms}},
        )
        return written

    def import_files(self, paths: Iterable[Union[str, Path]]) -> int:
        total = 0
        for p in paths:
            total += self.import_file(p)
        return total

    def truncate_layer(self) -> None:
        """Delete every tile of this layer. No-op when the layer does not exist."""
        layer_dir = self.writer.layer_directory(self.layer)
        if not layer_dir.exists():
            return
        log.info("Truncating layer", extra={"extra": {"layer": self.layer, "dir": str(layer_dir)}})
        shutil.rmtree(layer_dir)
