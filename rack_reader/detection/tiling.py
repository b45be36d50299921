"""Tile planning for the tiled decoding passes."""

import math
from typing import List, Tuple

from ..config import default_config
from ..contracts import Tile


def adaptive_grid(
    width: float,
    height: float,
    target_tile_size: float,
    min_grid: int = default_config.min_grid,
    max_cols: int = default_config.max_grid_cols,
    max_rows: int = default_config.max_grid_rows,
) -> Tuple[int, int]:
    """
    Grid dimensions targeting tiles of roughly target_tile_size pixels.

    The lower bound guarantees the frame is actually subdivided; the upper
    bounds cap the number of decoder calls on large frames.

    Returns:
        (cols, rows)
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Frame size must be positive, got {width}x{height}")
    if target_tile_size <= 0:
        raise ValueError(f"target_tile_size must be positive, got {target_tile_size}")

    cols = max(min_grid, min(max_cols, math.ceil(width / target_tile_size)))
    rows = max(min_grid, min(max_rows, math.ceil(height / target_tile_size)))
    return cols, rows


def plan_tiles(
    width: int,
    height: int,
    cols: int,
    rows: int,
    overlap: float,
) -> List[Tile]:
    """
    Compute overlapping tile rectangles covering the frame, row-major.

    Each nominal cell of size (width/cols, height/rows) is grown by
    `overlap` of its size on every side, then clamped to the frame. The
    float rectangle is snapped outward to whole pixels.

    Args:
        width: Frame width in pixels
        height: Frame height in pixels
        cols: Grid columns
        rows: Grid rows
        overlap: Fraction of the nominal tile size added per side, in [0, 1)

    Returns:
        List of Tile, one per grid cell
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Frame size must be positive, got {width}x{height}")
    if cols < 1 or rows < 1:
        raise ValueError(f"Grid must have at least one cell, got {cols}x{rows}")
    if not 0.0 <= overlap < 1.0:
        raise ValueError(f"overlap must be in [0, 1), got {overlap}")

    tile_w = width / cols
    tile_h = height / rows
    pad_w = tile_w * overlap
    pad_h = tile_h * overlap

    tiles = []
    for row in range(rows):
        for col in range(cols):
            x = max(0.0, col * tile_w - pad_w)
            y = max(0.0, row * tile_h - pad_h)
            w = min(width - x, tile_w + 2 * pad_w)
            h = min(height - y, tile_h + 2 * pad_h)

            left = int(math.floor(x))
            top = int(math.floor(y))
            right = min(width, int(math.ceil(x + w)))
            lower = min(height, int(math.ceil(y + h)))
            if right <= left or lower <= top:
                continue
            tiles.append(Tile(left, top, right - left, lower - top, row=row, col=col))

    return tiles


def full_frame_tile(width: int, height: int) -> Tile:
    """Single tile spanning the whole frame."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Frame size must be positive, got {width}x{height}")
    return Tile(0, 0, int(width), int(height))
