"""
ETRS-TM35FIN tile matrix set (EPSG:3067).

Zoom 0 has 8192 m pixels, each further zoom halves the pixel size. Tiles are
256x256 pixels, rows grow southwards and columns eastwards from a fixed
top-left origin.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Union

IDENTIFIER = "ETRS-TM35FIN"
TILE_SIZE = 256
ORIGIN_X = -548576.0
ORIGIN_Y = 8388608.0
MIN_ZOOM = 0
MAX_ZOOM = 15

_ZOOM0_PIXEL_SIZE = 8192.0
_PIXEL_SIZE_TOLERANCE = 0.001


@dataclass(frozen=True)
class TileCoordinate:
    zoom: int
    row: int
    col: int


@dataclass(frozen=True)
class TileBounds:
    """Projected extent of a tile in metres."""
    west: float
    north: float
    east: float
    south: float


def _check_zoom(zoom: int) -> None:
    if not MIN_ZOOM <= zoom <= MAX_ZOOM:
        raise ValueError(f"zoom {zoom} outside [{MIN_ZOOM}, {MAX_ZOOM}]")


def pixel_size(zoom: int) -> float:
    _check_zoom(zoom)
    return _ZOOM0_PIXEL_SIZE / (1 << zoom)


def tile_span(zoom: int) -> float:
    """Ground width (and height) of one tile, metres."""
    return pixel_size(zoom) * TILE_SIZE


def matrix_dimension(zoom: int) -> int:
    """Number of tile rows (and columns) in the matrix at `zoom`."""
    _check_zoom(zoom)
    return 1 << zoom


def column(easting: float, zoom: int) -> int:
    return math.floor((easting - ORIGIN_X) / tile_span(zoom))


def row(northing: float, zoom: int) -> int:
    return math.floor((ORIGIN_Y - northing) / tile_span(zoom))


def tile_bounds(zoom: int, row: int, col: int) -> TileBounds:
    span = tile_span(zoom)
    west = ORIGIN_X + col * span
    north = ORIGIN_Y - row * span
    return TileBounds(west=west, north=north, east=west + span, south=north - span)


def zoom_level(pixel_width: float) -> int:
    """
    Zoom whose pixel size matches `pixel_width` (metres).

    Raises ValueError when the nearest zoom is out of range or the width is
    not within 0.001 m of that zoom's pixel size.
    """
    if not pixel_width > 0:
        raise ValueError(f"pixel width must be positive, got {pixel_width}")
    exact = math.log2(_ZOOM0_PIXEL_SIZE / pixel_width)
    zoom = math.floor(exact + 0.5)
    if not MIN_ZOOM <= zoom <= MAX_ZOOM:
        raise ValueError(f"pixel width {pixel_width} maps to zoom {zoom}, outside [{MIN_ZOOM}, {MAX_ZOOM}]")
    expected = pixel_size(zoom)
    if abs(pixel_width - expected) > _PIXEL_SIZE_TOLERANCE:
        raise ValueError(
            f"pixel width {pixel_width} does not match zoom {zoom} pixel size {expected}"
        )
    return zoom


def validate_tile(zoom: int, row: int, col: int) -> TileCoordinate:
    """Return the coordinate if it lies inside the tile matrix, else raise ValueError."""
    dim = matrix_dimension(zoom)
    if not 0 <= row < dim:
        raise ValueError(f"row {row} outside [0, {dim}) at zoom {zoom}")
    if not 0 <= col < dim:
        raise ValueError(f"col {col} outside [0, {dim}) at zoom {zoom}")
    return TileCoordinate(zoom, row, col)


def tile_path(base_dir: Union[str, Path], layer: str, zoom: int, row: int, col: int) -> Path:
    """`<base>/<layer>/ETRS-TM35FIN/<zoom>/<row>/<col>.png`"""
    return Path(base_dir) / layer / IDENTIFIER / str(zoom) / str(row) / f"{col}.png"
