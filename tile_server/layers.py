from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Union

from common.grid import IDENTIFIER, MAX_ZOOM, MIN_ZOOM

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileLayer:
    """A layer and the zoom levels that have tiles on disk."""
    name: str
    zoom_levels: FrozenSet[int]

    @property
    def min_zoom(self) -> int:
        return min(self.zoom_levels)

    @property
    def max_zoom(self) -> int:
        return max(self.zoom_levels)

    def has_zoom_level(self, zoom: int) -> bool:
        return zoom in self.zoom_levels

    def nearest_available_zoom(self, max_zoom: int) -> Optional[int]:
        """Greatest available zoom <= max_zoom, or None."""
        candidates = [z for z in self.zoom_levels if z <= max_zoom]
        return max(candidates) if candidates else None


class LayerDiscovery:
    """Scans `<tile_dir>/<layer>/ETRS-TM35FIN/<zoom>/` once at startup."""

    def __init__(self, tile_dir: Union[str, Path]):
        self.tile_dir = Path(tile_dir)

    def discover_layers(self) -> Mapping[str, TileLayer]:
        if not self.tile_dir.is_dir():
            log.warning("Tile directory not found", extra={"extra": {"tile_dir": str(self.tile_dir)}})
            return MappingProxyType({})

        found = {}
        for layer_dir in sorted(p for p in self.tile_dir.iterdir() if p.is_dir()):
            matrix_dir = layer_dir / IDENTIFIER
            if not matrix_dir.is_dir():
                log.debug("Skipping directory without tile matrix set", extra={"extra": {"dir": str(layer_dir)}})
                continue
            zooms = self._zoom_levels(matrix_dir)
            if not zooms:
                log.debug("Skipping layer without tiles", extra={"extra": {"layer": layer_dir.name}})
                continue
            found[layer_dir.name] = TileLayer(layer_dir.name, frozenset(zooms))
            log.info("Discovered layer", extra={"extra": {"layer": layer_dir.name, "zooms": sorted(zooms)}})

        log.info("Layer discovery done", extra={"extra": {"tile_dir": str(self.tile_dir), "layers": len(found)}})
        return MappingProxyType(found)

    @staticmethod
    def _zoom_levels(matrix_dir: Path) -> set:
        zooms = set()
        for zoom_dir in matrix_dir.iterdir():
            if not zoom_dir.is_dir():
                continue
            try:
                z = int(zoom_dir.name)
            except ValueError:
                continue
            if not MIN_ZOOM <= z <= MAX_ZOOM:
                continue
            # A zoom counts only if it holds at least one <row>/<col>.png
            if any(zoom_dir.glob("*/*.png")):
                zooms.add(z)
        return zooms
