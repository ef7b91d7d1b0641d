from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = "config/params.yaml"

DEFAULTS: Dict[str, Any] = {
    "tiles": {
        "tile_dir": "data/tiles",
        "cache_size": 1000,
        "max_resample_depth": 3,
    },
    "server": {"host": "0.0.0.0", "port": 8080},
    "logging": {"level": "INFO"},
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load YAML params over the built-in defaults.

    Path precedence: `path` arg, env GIS_CONFIG, config/params.yaml. A missing
    file yields the defaults. GIS_TILE_DIR, GIS_TILE_CACHE_SIZE and
    GIS_SERVER_PORT override the file.
    """
    cfg_path = Path(path or os.environ.get("GIS_CONFIG") or DEFAULT_CONFIG_PATH)
    loaded: Dict[str, Any] = {}
    if cfg_path.exists():
        with cfg_path.open("r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{cfg_path}: top level must be a mapping")

    cfg = _merge(DEFAULTS, loaded)

    if os.environ.get("GIS_TILE_DIR"):
        cfg["tiles"]["tile_dir"] = os.environ["GIS_TILE_DIR"]
    if os.environ.get("GIS_TILE_CACHE_SIZE"):
        cfg["tiles"]["cache_size"] = int(os.environ["GIS_TILE_CACHE_SIZE"])
    if os.environ.get("GIS_SERVER_PORT"):
        cfg["server"]["port"] = int(os.environ["GIS_SERVER_PORT"])
    return cfg
