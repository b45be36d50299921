"""Inter-stage data contracts for the scan pipeline.

All coordinates are in the normalized frame's pixel space (top-left origin)
unless a field says otherwise.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle. Width/height may be negative as reported by a decoder."""
    x: float
    y: float
    width: float
    height: float

    @property
    def mid_x(self) -> float:
        return self.x + self.width / 2

    @property
    def mid_y(self) -> float:
        return self.y + self.height / 2

    @property
    def center(self) -> Point:
        return Point(self.mid_x, self.mid_y)

    def normalized(self) -> "Rect":
        """Return an equivalent rect with non-negative width and height."""
        x, w = (self.x + self.width, -self.width) if self.width < 0 else (self.x, self.width)
        y, h = (self.y + self.height, -self.height) if self.height < 0 else (self.y, self.height)
        return Rect(x, y, w, h)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        return int(self.x), int(self.y), int(self.width), int(self.height)

    @classmethod
    def zero(cls) -> "Rect":
        return cls(0.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class DecodedSymbol:
    """Output from a symbol decoder, relative to the decoded region."""
    value: str
    bbox: Tuple[float, float, float, float]  # (x, y, w, h) in [0, 1], decoder's origin


@dataclass(frozen=True)
class RawDetection:
    """A decoded code mapped into full-frame pixel space."""
    value: str
    bounding_rect: Rect

    @property
    def center(self) -> Point:
        return self.bounding_rect.center


@dataclass(frozen=True)
class Tile:
    """Integer pixel region of the frame submitted to the decoder."""
    left: int
    top: int
    width: int
    height: int
    row: int = 0
    col: int = 0

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """PIL crop box (left, upper, right, lower)."""
        return self.left, self.top, self.left + self.width, self.top + self.height


@dataclass(frozen=True)
class VialRecord:
    """A single detected code mapped to its grid position."""
    value: str
    row: int  # 0-indexed, top-to-bottom
    col: int  # 0-indexed, left-to-right within the row
    center_x: float
    center_y: float
    bounding_rect: Rect = field(default_factory=Rect.zero)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "row": self.row,
            "col": self.col,
            "centerX": self.center_x,
            "centerY": self.center_y,
            "rect": list(self.bounding_rect.as_int_tuple()),
        }


@dataclass
class PassSummary:
    """Bookkeeping for one decoding pass."""
    stage: str
    grid: Tuple[int, int]  # (cols, rows)
    tile_count: int
    raw_count: int
    unique_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stage": self.stage,
            "grid": list(self.grid),
            "tileCount": self.tile_count,
            "rawCount": self.raw_count,
            "uniqueCount": self.unique_count,
        }


@dataclass
class ScanResult:
    """Result from a single scan run."""
    records: List[VialRecord] = field(default_factory=list)
    frame_size: Tuple[int, int] = (0, 0)
    passes: List[PassSummary] = field(default_factory=list)
    annotated_image: Optional[Any] = None  # PIL.Image

    @property
    def is_empty(self) -> bool:
        """True when the scan succeeded but no codes survived."""
        return not self.records

    @property
    def row_count(self) -> int:
        return len({r.row for r in self.records})

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-safe dict."""
        return {
            "frameSize": list(self.frame_size),
            "recordCount": len(self.records),
            "rowCount": self.row_count,
            "passes": [p.to_dict() for p in self.passes],
            "records": [r.to_dict() for r in self.records],
        }
