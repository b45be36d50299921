"""
Configuration for the rack reader.

All settings centralized here. Override by creating a Config instance
with custom values.

Usage:
    from rack_reader.config import Config, default_config

    # Use defaults
    print(default_config.row_tolerance)  # 100.0

    # Override for a run
    my_config = Config(row_tolerance=150, max_dimension=8000)
"""

from dataclasses import dataclass
from typing import Optional, Tuple


# Longest-side caps offered for the normalized frame
SUPPORTED_MAX_DIMENSIONS = (2000, 4000, 8000)

# Valid range for the row-band tolerance (pixels)
ROW_TOLERANCE_RANGE = (50.0, 300.0)


@dataclass
class Config:
    """
    Central configuration for the scan pipeline.

    Tile sizes are tuned so the smallest reliably-decodable code covers
    roughly 8% of a tile's width. Create a new instance to override any
    setting; values are validated on construction.
    """

    # === Grid inference ===
    row_tolerance: float = 100.0  # Max Y distance (px) from a row band's mean

    # === Image normalization ===
    max_dimension: int = 4000  # Longest side of the normalized frame

    # === Escalation passes ===
    coarse_tile_size: int = 300
    coarse_overlap: float = 0.25
    fine_tile_size: int = 200
    fine_overlap: float = 0.30
    coarse_trigger_count: int = 5   # Coarse pass runs if unique count is below this
    fine_trigger_count: int = 10    # Fine pass runs if unique count is below this

    # === Tiling bounds ===
    min_grid: int = 2
    max_grid_cols: int = 10
    max_grid_rows: int = 14

    # === Deduplication ===
    dedup_radius: float = 60.0  # Same value within this center distance = duplicate

    # === Decoding ===
    max_workers: int = 8                   # Thread pool size for tile decoding
    decode_timeout_ms: Optional[int] = None  # Passed through to pylibdmtx
    decode_shrink: int = 1

    # === Annotation overlay ===
    circle_color: Tuple[int, int, int] = (31, 149, 145)
    label_color: Tuple[int, int, int] = (166, 33, 59)
    circle_line_width: int = 3
    circle_padding: int = 8
    label_gap: int = 3

    # === Output Files ===
    records_output_file: str = "records.csv"
    annotated_output_file: str = "annotated.png"
    summary_output_file: str = "scan_summary.json"

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ValueError if any setting is outside its supported range."""
        low, high = ROW_TOLERANCE_RANGE
        if not low <= float(self.row_tolerance) <= high:
            raise ValueError(
                f"row_tolerance must be between {low:g} and {high:g} px, "
                f"got {self.row_tolerance}"
            )
        if self.max_dimension not in SUPPORTED_MAX_DIMENSIONS:
            raise ValueError(
                f"max_dimension must be one of {SUPPORTED_MAX_DIMENSIONS}, "
                f"got {self.max_dimension}"
            )
        for name in ("coarse_overlap", "fine_overlap"):
            value = getattr(self, name)
            if not 0.0 <= value < 1.0:
                raise ValueError(f"{name} must be in [0, 1), got {value}")
        for name in ("coarse_tile_size", "fine_tile_size", "max_workers", "dedup_radius"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.coarse_trigger_count > self.fine_trigger_count:
            raise ValueError(
                "coarse_trigger_count must not exceed fine_trigger_count "
                f"({self.coarse_trigger_count} > {self.fine_trigger_count})"
            )
        if not 1 <= self.min_grid <= min(self.max_grid_cols, self.max_grid_rows):
            raise ValueError(
                f"min_grid must be between 1 and the grid caps, got {self.min_grid}"
            )


# Default configuration instance
default_config = Config()
