"""
Unit tests for RasterTileImporter
"""

import logging
import os
import sys
from pathlib import Path
from unittest.mock import Mock

from PIL import Image

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common import grid
from common.raster import read_png
from tile_import.importer import RasterTileImporter
from tile_import.writer import TileWriter

RED = (0, 0, 255, 255)


class TestDeriveWorldFilePath:
    def test_lowercase_pgw(self):
        assert RasterTileImporter.derive_world_file_path(Path("maps/L3311F.PNG")) == Path("maps/L3311F.pgw")

    def test_keeps_dotted_base_name(self):
        assert RasterTileImporter.derive_world_file_path("a.b/sheet.v2.png") == Path("a.b/sheet.v2.pgw")


class TestImportFile:
    """Per-file import and error containment"""

    def test_imports_unaligned_source(self, tile_dir, write_source, solid_image):
        png = write_source("L3311F", solid_image(RED), 224000.0, 6678000.0)
        n = RasterTileImporter(tile_dir, "terrain").import_file(png)
        assert n == 4
        path = grid.tile_path(tile_dir, "terrain", 14, 13364, 6035)
        assert path.exists()
        assert tuple(read_png(path)[255, 255]) == RED

    def test_missing_world_file(self, tile_dir, write_source, solid_image, caplog):
        png = write_source("sheet", solid_image(RED), 224000.0, 6678000.0)
        png.with_suffix(".pgw").unlink()
        with caplog.at_level(logging.WARNING):
            assert RasterTileImporter(tile_dir, "terrain").import_file(png) == 0
        assert "World file missing" in caplog.text
        assert not (tile_dir / "terrain").exists()

    def test_invalid_world_file(self, tile_dir, write_source, solid_image):
        png = write_source("sheet", solid_image(RED), 224000.0, 6678000.0)
        png.with_suffix(".pgw").write_text("0.5\n0.1\n0.0\n-0.5\n224000.25\n6677999.75\n")
        assert RasterTileImporter(tile_dir, "terrain").import_file(png) == 0

    def test_unsupported_pixel_size(self, tile_dir, write_source, solid_image):
        png = write_source("sheet", solid_image(RED), 224000.0, 6678000.0, pixel_size=0.3)
        assert RasterTileImporter(tile_dir, "terrain").import_file(png) == 0

    def test_unreadable_image(self, tile_dir, write_source, solid_image):
        png = write_source("sheet", solid_image(RED), 224000.0, 6678000.0)
        png.write_bytes(b"\x89PNG garbage")
        assert RasterTileImporter(tile_dir, "terrain").import_file(png) == 0

    def test_indexed_color_source(self, tile_dir, write_source, solid_image):
        png = write_source("sheet", solid_image(RED), 223904.0, 6678016.0)
        Image.new("RGB", (256, 256), (255, 0, 0)).convert("P").save(png)
        assert RasterTileImporter(tile_dir, "terrain").import_file(png) == 1
        tile = read_png(grid.tile_path(tile_dir, "terrain", 14, 13364, 6035))
        assert tuple(tile[100, 100]) == RED

    def test_write_failure_contained(self, tile_dir, write_source, solid_image, caplog):
        png = write_source("sheet", solid_image(RED), 224000.0, 6678000.0)
        writer = Mock(spec=TileWriter)
        writer.write.side_effect = PermissionError("read-only store")
        with caplog.at_level(logging.ERROR):
            assert RasterTileImporter(tile_dir, "terrain", writer=writer).import_file(png) == 0
        assert "Writing tiles failed" in caplog.text


class TestImportFiles:
    def test_sums_and_skips_bad_files(self, tile_dir, write_source, solid_image):
        a = write_source("a", solid_image(RED), 224000.0, 6678000.0)
        bad = write_source("bad", solid_image(RED), 224000.0, 6678000.0)
        bad.with_suffix(".pgw").unlink()
        c = write_source("c", solid_image(RED), 223904.0, 6678016.0 - 1280.0)
        total = RasterTileImporter(tile_dir, "terrain").import_files([a, bad, c])
        assert total == 4 + 1


class TestTruncateLayer:
    def test_removes_layer_tree(self, tile_dir, write_source, solid_image):
        png = write_source("a", solid_image(RED), 224000.0, 6678000.0)
        importer = RasterTileImporter(tile_dir, "terrain")
        importer.import_file(png)
        other = tile_dir / "orto" / "ETRS-TM35FIN"
        other.mkdir(parents=True)

        importer.truncate_layer()
        assert not (tile_dir / "terrain").exists()
        assert other.exists()

    def test_missing_layer_is_noop(self, tile_dir):
        RasterTileImporter(tile_dir, "nothing-here").truncate_layer()
        assert list(tile_dir.iterdir()) == []
