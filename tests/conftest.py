"""Shared fixtures: synthetic rack images and a deterministic square decoder."""

import threading
from typing import Dict, List, Tuple

import numpy as np
import pytest
from PIL import Image

from rack_reader.contracts import DecodedSymbol, RawDetection, Rect
from rack_reader.detection.decoder import ORIGIN_TOP_LEFT, ORIGIN_BOTTOM_LEFT, SymbolDecoder


def det(value: str, cx: float, cy: float, size: float = 20.0) -> RawDetection:
    """RawDetection centered at (cx, cy)."""
    return RawDetection(value=value, bounding_rect=Rect(cx - size / 2, cy - size / 2, size, size))


def palette_color(i: int) -> Tuple[int, int, int]:
    return (10 + (i * 37) % 200, 20 + (i * 53) % 180, 30 + (i * 19) % 160)


def draw_rack(
    size: Tuple[int, int],
    centers: List[Tuple[float, float]],
    side: int,
) -> Tuple[Image.Image, Dict[str, Tuple[int, int, int]]]:
    """White image with one solid square per center; returns image and value->color."""
    img = Image.new("RGB", size, (255, 255, 255))
    palette = {}
    for i, (cx, cy) in enumerate(centers):
        color = palette_color(i)
        left, top = int(cx - side / 2), int(cy - side / 2)
        img.paste(color, (left, top, left + side, top + side))
        palette[f"VIAL-{i:03d}"] = color
    return img, palette


class SquareDecoder(SymbolDecoder):
    """
    Finds solid-color squares standing in for DataMatrix codes.

    A square is reported only when it lies completely inside the region and
    its side is at least `min_fraction` of the region width, mimicking a
    real decoder's minimum relative symbol size.
    """

    def __init__(self, palette, side: int, min_fraction: float = 0.08, origin: str = ORIGIN_TOP_LEFT):
        self.palette = palette
        self.side = side
        self.min_fraction = min_fraction
        self.origin = origin
        self._lock = threading.Lock()
        self.region_sizes = []

    def decode(self, region: Image.Image) -> List[DecodedSymbol]:
        with self._lock:
            self.region_sizes.append(region.size)
        w, h = region.size
        if self.side < self.min_fraction * w:
            return []
        arr = np.asarray(region.convert("RGB"))
        found = []
        for value, color in self.palette.items():
            mask = np.all(arr == np.array(color, dtype=arr.dtype), axis=-1)
            if not mask.any():
                continue
            ys, xs = np.nonzero(mask)
            bw = int(xs.max() - xs.min() + 1)
            bh = int(ys.max() - ys.min() + 1)
            if bw != self.side or bh != self.side:
                continue
            x0 = float(xs.min())
            if self.origin == ORIGIN_BOTTOM_LEFT:
                y0 = float(h - (ys.max() + 1))
            else:
                y0 = float(ys.min())
            found.append(DecodedSymbol(value=value, bbox=(x0 / w, y0 / h, bw / w, bh / h)))
        return found


@pytest.fixture
def small_code_rack():
    """1200x900 frame with a 3x4 grid of 28px codes, only decodable in fine tiles."""
    centers = [(x, y) for y in (150, 450, 750) for x in (150, 450, 750, 1050)]
    img, palette = draw_rack((1200, 900), centers, side=28)
    return img, palette, centers
