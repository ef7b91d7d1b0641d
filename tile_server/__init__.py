"""
Tile server: WMTS tiles from the on-disk ETRS-TM35FIN store

- Discovers layers and zoom levels under the tile directory at startup
- Serves pre-rendered tiles, falling back to upscaling a coarser zoom
- Bounded in-memory LRU cache of encoded tiles
- Endpoints: WMTS GetCapabilities, tiles, /health, /stats
"""
