#!/usr/bin/env python3
"""
Import georeferenced PNG rasters into the tile store.

Examples:
  python -m tile_import.cli --tile-layer taustakartta --tiles maps/L3311F.png maps/L3311R.png
  python -m tile_import.cli --tile-layer taustakartta --tile-input-dir maps/ --truncate
  python -m tile_import.cli --tile-layer orto --tile-input-dir orto/ --tile-dir /srv/tiles
"""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Sequence

from common.config import load_config
from common.logging_setup import get_logger, setup_logging
from tile_import.importer import RasterTileImporter


def _collect_inputs(args: argparse.Namespace) -> List[Path]:
    paths = [Path(p) for p in (args.tiles or [])]
    if args.tile_input_dir:
        d = Path(args.tile_input_dir)
        if not d.is_dir():
            raise SystemExit(f"--tile-input-dir is not a directory: {d}")
        paths.extend(sorted(p for p in d.glob("*.png") if p.is_file()))
    return paths


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Cut georeferenced PNG rasters into ETRS-TM35FIN tiles")
    ap.add_argument("--tiles", nargs="+", metavar="PNG", help="Source PNG files (world file beside each)")
    ap.add_argument("--tile-input-dir", help="Import every *.png in this directory (non-recursive)")
    ap.add_argument("--tile-dir", help="Tile store root (default: tiles.tile_dir from config)")
    ap.add_argument("--tile-layer", required=True, help="Target layer name")
    ap.add_argument("--truncate", action="store_true", help="Delete the layer's existing tiles first")
    ap.add_argument("--config", default=None, help="YAML params file (default: config/params.yaml)")
    ap.add_argument("--log-level", default=None, help="DEBUG/INFO/WARNING/ERROR")
    args = ap.parse_args(argv)

    cfg = load_config(args.config)
    setup_logging(args.log_level or cfg["logging"].get("level"))
    log = get_logger("tile_import")

    inputs = _collect_inputs(args)
    if not inputs and not args.truncate:
        ap.error("nothing to do: give --tiles and/or --tile-input-dir")

    tile_dir = Path(args.tile_dir or cfg["tiles"]["tile_dir"])
    importer = RasterTileImporter(tile_dir, args.tile_layer)
    if args.truncate:
        importer.truncate_layer()

    total = importer.import_files(inputs)
    log.info(
        "Import finished",
        extra={"extra": {"layer": args.tile_layer, "tile_dir": str(tile_dir), "files": len(inputs), "tiles": total}},
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
