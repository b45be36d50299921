"""DataMatrix detection: tiling, decoding, dispatch, dedup and escalation."""

from ..contracts import DecodedSymbol, RawDetection, Tile
from .decoder import (
    ORIGIN_BOTTOM_LEFT,
    ORIGIN_TOP_LEFT,
    DmtxDecoder,
    MockDecoder,
    SymbolDecoder,
)
from .dedup import deduplicate, is_duplicate, merge_detections
from .dispatcher import TileDispatcher, map_to_frame
from .escalation import (
    EscalationPolicy,
    MultiPassScanner,
    PassPolicy,
    ScanStage,
    next_stage,
)
from .tiling import adaptive_grid, full_frame_tile, plan_tiles

__all__ = [
    "DecodedSymbol",
    "RawDetection",
    "Tile",
    "ORIGIN_BOTTOM_LEFT",
    "ORIGIN_TOP_LEFT",
    "SymbolDecoder",
    "DmtxDecoder",
    "MockDecoder",
    "deduplicate",
    "is_duplicate",
    "merge_detections",
    "TileDispatcher",
    "map_to_frame",
    "EscalationPolicy",
    "MultiPassScanner",
    "PassPolicy",
    "ScanStage",
    "next_stage",
    "adaptive_grid",
    "full_frame_tile",
    "plan_tiles",
]
