"""
Tile import: georeferenced PNG sources into the ETRS-TM35FIN tile store

- Reads `<name>.png` with its `<name>.pgw` world file
- Cuts the raster into 256x256 tiles at the zoom matching its pixel size
- Writes `<tile_dir>/<layer>/ETRS-TM35FIN/{z}/{row}/{col}.png`, compositing over existing tiles
"""
