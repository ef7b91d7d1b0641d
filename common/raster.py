"""
Raster primitives shared by the importer and the tile server.

Images are numpy uint8 arrays shaped (H, W, 4) in OpenCV's BGRA order.
"""
from __future__ import annotations

from pathlib import Path
from typing import Tuple, Union

import cv2
import numpy as np

from common.grid import TILE_SIZE


class ImageCodecError(OSError):
    """PNG data could not be decoded or encoded."""


def decode_png(data: bytes) -> np.ndarray:
    if not data:
        raise ImageCodecError("empty image data")
    buf = np.frombuffer(data, dtype=np.uint8)
    try:
        img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        raise ImageCodecError(f"cannot decode image: {e}") from e
    if img is None:
        raise ImageCodecError("unsupported or corrupt image data")
    return to_bgra(img)


def read_png(path: Union[str, Path]) -> np.ndarray:
    """Read and decode an image file. FileNotFoundError when it is missing."""
    return decode_png(Path(path).read_bytes())


def encode_png(img: np.ndarray) -> bytes:
    ok, buf = cv2.imencode(".png", img)
    if not ok:
        raise ImageCodecError("PNG encoding failed")
    return buf.tobytes()


def write_png(path: Union[str, Path], img: np.ndarray) -> None:
    Path(path).write_bytes(encode_png(img))


def to_bgra(img: np.ndarray) -> np.ndarray:
    """Normalize grey, BGR, 16-bit or BGRA input to 8-bit BGRA."""
    if img.dtype == np.uint16:
        img = (img >> 8).astype(np.uint8)
    elif img.dtype != np.uint8:
        raise ImageCodecError(f"unsupported pixel type {img.dtype}")

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2BGRA)
    channels = img.shape[2]
    if channels == 1:
        return cv2.cvtColor(img[:, :, 0], cv2.COLOR_GRAY2BGRA)
    if channels == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2BGRA)
    if channels == 4:
        return img
    raise ImageCodecError(f"unsupported channel count {channels}")


def new_canvas(size: int = TILE_SIZE) -> np.ndarray:
    """Fully transparent square tile."""
    return np.zeros((size, size, 4), dtype=np.uint8)


def is_fully_transparent(img: np.ndarray) -> bool:
    return not img[:, :, 3].any()


def alpha_over(dst: np.ndarray, src: np.ndarray) -> None:
    """Porter-Duff source-over of `src` onto `dst` in place (straight alpha)."""
    sa = src[:, :, 3:4].astype(np.float64) / 255.0
    da = dst[:, :, 3:4].astype(np.float64) / 255.0
    out_a = sa + da * (1.0 - sa)
    num = src[:, :, :3] * sa + dst[:, :, :3] * da * (1.0 - sa)
    out_c = np.divide(num, out_a, out=np.zeros_like(num), where=out_a > 0)
    dst[:, :, :3] = np.clip(np.rint(out_c), 0, 255).astype(np.uint8)
    dst[:, :, 3:4] = np.clip(np.rint(out_a * 255.0), 0, 255).astype(np.uint8)


def draw_scaled(
    canvas: np.ndarray,
    region: np.ndarray,
    dest: Tuple[int, int, int, int],
    interpolation: int = cv2.INTER_NEAREST,
) -> None:
    """
    Draw `region` scaled into the rectangle dest=(x, y, w, h) of `canvas`,
    compositing over what is already there. Parts outside the canvas are dropped.
    """
    x, y, w, h = dest
    if w <= 0 or h <= 0 or region.size == 0:
        return
    if region.shape[1] != w or region.shape[0] != h:
        region = cv2.resize(region, (w, h), interpolation=interpolation)

    ch, cw = canvas.shape[:2]
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + w, cw), min(y + h, ch)
    if x0 >= x1 or y0 >= y1:
        return
    alpha_over(canvas[y0:y1, x0:x1], region[y0 - y:y1 - y, x0 - x:x1 - x])
