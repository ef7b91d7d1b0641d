from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Dict, Optional

import uvicorn
from fastapi import FastAPI, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from common import grid
from common.config import load_config
from common.grid import IDENTIFIER
from common.logging_setup import get_logger, setup_logging
from tile_server.cache import TileCache
from tile_server.capabilities import CapabilitiesGenerator
from tile_server.layers import LayerDiscovery
from tile_server.resampler import TileResampler
from tile_server.service import PreRendered, TileNotFoundError, TileService, UnknownLayerError

PRE_RENDERED_CACHE_CONTROL = "public, max-age=86400"
RESAMPLED_CACHE_CONTROL = "public, max-age=3600"

log = get_logger(__name__)


def build_service(cfg: Dict) -> TileService:
    """Discover layers under the configured tile dir and wire the service."""
    tiles_cfg = cfg.get("tiles", {})
    tile_dir = Path(tiles_cfg.get("tile_dir", "data/tiles"))
    layers = LayerDiscovery(tile_dir).discover_layers()
    return TileService(
        tile_dir,
        layers,
        TileResampler(tile_dir, int(tiles_cfg.get("max_resample_depth", 3))),
        TileCache(int(tiles_cfg.get("cache_size", 1000))),
    )


def _etag(data: bytes) -> str:
    return '"' + hashlib.sha256(data).hexdigest() + '"'


def _etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    if not if_none_match:
        return False
    tags = [t.strip() for t in if_none_match.split(",")]
    return "*" in tags or etag in tags or f"W/{etag}" in tags


def _bad_request(detail: str) -> JSONResponse:
    return JSONResponse({"error": "bad_request", "detail": detail}, status_code=400)


def create_app(service: TileService, capabilities: Optional[CapabilitiesGenerator] = None) -> FastAPI:
    capabilities = capabilities or CapabilitiesGenerator(service.get_layers())

    app = FastAPI(title="ETRS-TM35FIN Tile API", version="1.0.0")

    # (Optional) CORS for map clients served from other origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
        expose_headers=["ETag"],
    )

    @app.get("/health")
    def health():
        return {
            "status": "ok",
            "layers": {name: sorted(layer.zoom_levels) for name, layer in service.get_layers().items()},
            "cache": service.cache.stats(),
        }

    @app.get("/stats")
    def stats():
        return {"cache": service.cache.stats()}

    @app.get("/wmts/1.0.0/WMTSCapabilities.xml")
    def get_capabilities():
        return Response(content=capabilities.xml, media_type="application/xml")

    @app.get(f"/wmts/{{layer}}/{IDENTIFIER}/{{zoom}}/{{row}}/{{col_file}}")
    def get_tile(
        layer: str,
        zoom: str,
        row: str,
        col_file: str,
        if_none_match: Optional[str] = Header(default=None),
    ):
        """
        PNG tile bytes.

        400 on malformed or out-of-matrix coordinates, 404 on an unknown layer,
        204 when no tile exists or can be resampled.
        """
        if not col_file.endswith(".png"):
            return _bad_request("tile column must end with .png")
        try:
            z, r, c = int(zoom), int(row), int(col_file[: -len(".png")])
        except ValueError:
            return _bad_request("zoom, row and column must be integers")
        try:
            grid.validate_tile(z, r, c)
        except ValueError as e:
            return _bad_request(str(e))

        try:
            result = service.get_tile(layer, z, r, c)
        except UnknownLayerError:
            return JSONResponse({"error": "unknown_layer", "layer": layer}, status_code=404)
        except TileNotFoundError:
            return Response(status_code=204)

        if isinstance(result, PreRendered):
            etag = _etag(result.data)
            headers = {"ETag": etag, "Cache-Control": PRE_RENDERED_CACHE_CONTROL}
            if _etag_matches(if_none_match, etag):
                return Response(status_code=304, headers=headers)
            return Response(content=result.data, media_type="image/png", headers=headers)

        return Response(
            content=result.data,
            media_type="image/png",
            headers={"Cache-Control": RESAMPLED_CACHE_CONTROL, "X-Tile-Source": result.kind},
        )

    return app


P = load_config()
setup_logging(P.get("logging", {}).get("level"))
app = create_app(build_service(P))


def main() -> None:
    server_cfg = P.get("server", {})
    log.info("Starting tile server", extra={"extra": {"tile_dir": P["tiles"]["tile_dir"], **server_cfg}})
    uvicorn.run(app, host=server_cfg.get("host", "0.0.0.0"), port=int(server_cfg.get("port", 8080)))


# -------- local dev entrypoint --------
if __name__ == "__main__":
    main()
