from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Union

from common import grid
from common.raster import encode_png
from tile_server.cache import CacheKey, TileCache
from tile_server.layers import TileLayer
from tile_server.resampler import TileResampler

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class PreRendered:
    """Tile read as-is from the on-disk store."""
    data: bytes
    kind = "pre-rendered"


@dataclass(frozen=True)
class Resampled:
    """Tile synthesized from a coarser zoom."""
    data: bytes
    kind = "resampled"


TileResult = Union[PreRendered, Resampled]


class TileLookupError(LookupError):
    pass


class UnknownLayerError(TileLookupError):
    def __init__(self, layer: str):
        super().__init__(f"unknown layer: {layer}")
        self.layer = layer


class TileNotFoundError(TileLookupError):
    def __init__(self, layer: str, zoom: int, row: int, col: int):
        super().__init__(f"tile not found: {layer}/{zoom}/{row}/{col}")
        self.layer = layer
        self.zoom = zoom
        self.row = row
        self.col = col


class TileService:
    """Tile lookup: cache, then the pre-rendered file, then resampling."""

    def __init__(
        self,
        tile_dir: Union[str, Path],
        layers: Mapping[str, TileLayer],
        resampler: TileResampler,
        cache: TileCache,
    ):
        self.tile_dir = Path(tile_dir)
        self._layers = MappingProxyType(dict(layers))
        self.resampler = resampler
        self.cache = cache

    def get_layers(self) -> Mapping[str, TileLayer]:
        return self._layers

    def get_tile(self, layer: str, zoom: int, row: int, col: int) -> TileResult:
        tile_layer = self._layers.get(layer)
        if tile_layer is None:
            raise UnknownLayerError(layer)

        key = CacheKey(layer, zoom, row, col)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        path = grid.tile_path(self.tile_dir, layer, zoom, row, col)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            data = None
        if data is not None:
            result: TileResult = PreRendered(data)
            self.cache.put(key, result)
            return result

        image = self.resampler.resample(tile_layer, zoom, row, col)
        if image is None:
            raise TileNotFoundError(layer, zoom, row, col)
        result = Resampled(encode_png(image))
        self.cache.put(key, result)
        return result
