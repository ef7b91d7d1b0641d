"""
Tile store test suite

Structure:
- unit/: grid math, world files, extraction, writing, cache, resampling, service
- integration/: import CLI -> discovery -> serving, and the HTTP API
- conftest.py: shared tile-store fixtures
"""
