"""Assign row/column grid positions to pixel-space detections.

Rows are found by sweeping detections top-to-bottom and grouping them into
bands around a running mean Y. Columns are the left-to-right order within a
band. No row/column count or pitch is assumed.
"""

from typing import List, Optional, Sequence

from ..config import default_config
from ..contracts import RawDetection, VialRecord


def _y_key(d: RawDetection):
    c = d.center
    return c.y, c.x, d.value


def _x_key(d: RawDetection):
    c = d.center
    return c.x, c.y, d.value


def cluster_rows(
    detections: Sequence[RawDetection],
    tolerance: float,
) -> List[List[RawDetection]]:
    """
    Partition detections into row bands, top to bottom.

    A detection joins the open band if its Y is within `tolerance` of the
    band's mean Y; otherwise the band is closed and a new one opened.
    """
    if tolerance <= 0:
        raise ValueError(f"tolerance must be positive, got {tolerance}")

    rows: List[List[RawDetection]] = []
    current: List[RawDetection] = []
    row_avg_y = 0.0

    for det in sorted(detections, key=_y_key):
        y = det.center.y
        if not current:
            current = [det]
            row_avg_y = y
        elif abs(y - row_avg_y) <= tolerance:
            current.append(det)
            row_avg_y = sum(d.center.y for d in current) / len(current)
        else:
            rows.append(current)
            current = [det]
            row_avg_y = y

    if current:
        rows.append(current)
    return rows


def infer_grid(
    detections: Sequence[RawDetection],
    tolerance: Optional[float] = None,
) -> List[VialRecord]:
    """
    Convert unordered detections into row/column-indexed records.

    Args:
        detections: Deduplicated detections in frame pixel space
        tolerance: Max Y distance (px) from a band's mean (default from config)

    Returns:
        VialRecords ordered by row, then column. Empty input gives [].
    """
    if tolerance is None:
        tolerance = default_config.row_tolerance
    if not detections:
        return []

    records = []
    for row_idx, band in enumerate(cluster_rows(detections, tolerance)):
        for col_idx, det in enumerate(sorted(band, key=_x_key)):
            records.append(VialRecord(
                value=det.value,
                row=row_idx,
                col=col_idx,
                center_x=det.center.x,
                center_y=det.center.y,
                bounding_rect=det.bounding_rect,
            ))
    return records
