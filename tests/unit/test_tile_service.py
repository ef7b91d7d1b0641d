"""
Unit tests for TileService lookup order
"""

import os
import sys
from unittest.mock import Mock

import pytest

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.append(project_root)

from common.raster import decode_png
from tile_server.cache import TileCache
from tile_server.layers import LayerDiscovery
from tile_server.resampler import TileResampler
from tile_server.service import (
    PreRendered,
    Resampled,
    TileLookupError,
    TileNotFoundError,
    TileService,
    UnknownLayerError,
)

RED = (0, 0, 255, 255)


@pytest.fixture
def make_service(tile_dir):
    def _make(cache_size=100):
        layers = LayerDiscovery(tile_dir).discover_layers()
        return TileService(tile_dir, layers, TileResampler(tile_dir), TileCache(cache_size))
    return _make


class TestGetTile:
    """Cache -> disk -> resample"""

    def test_pre_rendered_returns_file_bytes(self, write_tile, solid_image, make_service):
        path = write_tile("terrain", 10, 100, 200, solid_image(RED))
        result = make_service().get_tile("terrain", 10, 100, 200)
        assert isinstance(result, PreRendered)
        assert result.data == path.read_bytes()
        assert result.kind == "pre-rendered"

    def test_resampled_from_lower_zoom(self, write_tile, solid_image, make_service):
        write_tile("terrain", 10, 50, 100, solid_image(RED))
        service = make_service()

        first = service.get_tile("terrain", 11, 100, 200)
        assert isinstance(first, Resampled)
        assert decode_png(first.data).shape == (256, 256, 4)
        hits, misses = service.cache.hits, service.cache.misses

        second = service.get_tile("terrain", 11, 100, 200)
        assert second.data == first.data
        assert isinstance(second, Resampled)
        assert service.cache.hits == hits + 1
        assert service.cache.misses == misses

    def test_cached_pre_rendered_survives_file_removal(self, write_tile, solid_image, make_service):
        path = write_tile("terrain", 10, 100, 200, solid_image(RED))
        service = make_service()
        first = service.get_tile("terrain", 10, 100, 200)
        path.unlink()
        assert service.get_tile("terrain", 10, 100, 200) == first

    def test_unknown_layer(self, write_tile, solid_image, make_service):
        write_tile("terrain", 10, 100, 200, solid_image(RED))
        service = make_service()
        with pytest.raises(UnknownLayerError):
            service.get_tile("roads", 10, 100, 200)
        assert service.cache.misses == 0

    def test_not_found(self, write_tile, solid_image, make_service):
        write_tile("terrain", 10, 100, 200, solid_image(RED))
        with pytest.raises(TileNotFoundError):
            make_service().get_tile("terrain", 10, 0, 0)

    def test_errors_are_distinct_lookup_errors(self):
        assert issubclass(UnknownLayerError, TileLookupError)
        assert issubclass(TileNotFoundError, TileLookupError)
        assert not issubclass(UnknownLayerError, TileNotFoundError)

    def test_disk_error_propagates(self, write_tile, solid_image, make_service):
        path = write_tile("terrain", 10, 100, 200, solid_image(RED))
        service = make_service()
        path.unlink()
        path.mkdir()  # reading a directory fails with an OSError other than not-found
        with pytest.raises(OSError):
            service.get_tile("terrain", 10, 100, 200)

    def test_resampler_not_called_for_pre_rendered(self, tile_dir, write_tile, solid_image):
        write_tile("terrain", 10, 100, 200, solid_image(RED))
        resampler = Mock(spec=TileResampler)
        service = TileService(tile_dir, LayerDiscovery(tile_dir).discover_layers(), resampler, TileCache(10))
        service.get_tile("terrain", 10, 100, 200)
        resampler.resample.assert_not_called()


class TestGetLayers:
    def test_read_only(self, write_tile, solid_image, make_service):
        write_tile("terrain", 10, 100, 200, solid_image(RED))
        layers = make_service().get_layers()
        assert list(layers) == ["terrain"]
        with pytest.raises(TypeError):
            layers["x"] = None
