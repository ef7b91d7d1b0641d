"""
ESRI world file (.pgw) reader for north-up ETRS-TM35FIN rasters.

Line order: pixel width, rotation Y, rotation X, pixel height, centre X and
centre Y of the upper-left pixel.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

from rasterio.transform import Affine

# National extent of ETRS-TM35FIN, metres
MIN_EASTING = 43547.79
MAX_EASTING = 764796.72
MIN_NORTHING = 6522236.87
MAX_NORTHING = 7795461.19

_FIELDS = ("pixel width", "rotation Y", "rotation X", "pixel height", "centre X", "centre Y")


class WorldFileError(ValueError):
    """World file content is malformed or not usable for tiling."""


@dataclass(frozen=True)
class WorldFileData:
    pixel_width: float
    pixel_height: float
    ul_corner_x: float
    ul_corner_y: float

    @property
    def transform(self) -> Affine:
        """Pixel (col, row) -> projected (x, y), anchored at the outer corner."""
        return Affine(self.pixel_width, 0.0, self.ul_corner_x, 0.0, self.pixel_height, self.ul_corner_y)

    def bounds(self, width: int, height: int) -> Tuple[float, float, float, float]:
        """(west, north, east, south) of a width x height raster."""
        east = self.ul_corner_x + width * self.pixel_width
        south = self.ul_corner_y + height * self.pixel_height
        return self.ul_corner_x, self.ul_corner_y, east, south


def parse_text(text: str) -> WorldFileData:
    lines = text.splitlines()
    if len(lines) < 6:
        raise WorldFileError(f"expected 6 lines, got {len(lines)}")

    values = []
    for i, name in enumerate(_FIELDS):
        raw = lines[i].strip()
        try:
            values.append(float(raw))
        except ValueError:
            raise WorldFileError(f"line {i + 1} ({name}) is not a number: {raw!r}") from None
    pw, rot_y, rot_x, ph, cx, cy = values

    if rot_y != 0.0 or rot_x != 0.0:
        raise WorldFileError(f"rotated rasters are not supported (rotation {rot_y}, {rot_x})")
    if not pw > 0:
        raise WorldFileError(f"pixel width must be positive, got {pw}")
    if not ph < 0:
        raise WorldFileError(f"pixel height must be negative, got {ph}")
    if pw != abs(ph):
        raise WorldFileError(f"pixels are not square: {pw} x {abs(ph)}")

    ul_x = cx - pw / 2.0
    ul_y = cy - ph / 2.0
    if not MIN_EASTING <= ul_x <= MAX_EASTING:
        raise WorldFileError(f"corner easting {ul_x} outside [{MIN_EASTING}, {MAX_EASTING}]")
    if not MIN_NORTHING <= ul_y <= MAX_NORTHING:
        raise WorldFileError(f"corner northing {ul_y} outside [{MIN_NORTHING}, {MAX_NORTHING}]")

    return WorldFileData(pixel_width=pw, pixel_height=ph, ul_corner_x=ul_x, ul_corner_y=ul_y)


def parse(path: Union[str, Path]) -> WorldFileData:
    """Read and validate a world file. OSError propagates if it cannot be read."""
    return parse_text(Path(path).read_text(encoding="ascii", errors="replace"))
