"""Merge detections from multiple passes and tiles into a unique set."""

import math
from typing import List, Optional, Sequence

from ..config import default_config
from ..contracts import RawDetection


def is_duplicate(a: RawDetection, b: RawDetection, radius: float) -> bool:
    """Same payload and centers closer than `radius` pixels."""
    if a.value != b.value:
        return False
    ca, cb = a.center, b.center
    return math.hypot(ca.x - cb.x, ca.y - cb.y) < radius


def deduplicate(
    detections: Sequence[RawDetection],
    radius: Optional[float] = None,
) -> List[RawDetection]:
    """
    Drop detections that duplicate an earlier one.

    The first-encountered detection is kept, so callers that concatenate
    passes in order (full frame, coarse, fine) keep the earliest pass's
    geometry. Quadratic in the number of detections.

    Args:
        detections: Detections in encounter order
        radius: Center-distance threshold in pixels (default from config)

    Returns:
        New list of survivors in encounter order
    """
    if radius is None:
        radius = default_config.dedup_radius

    unique: List[RawDetection] = []
    for candidate in detections:
        if not any(is_duplicate(kept, candidate, radius) for kept in unique):
            unique.append(candidate)
    return unique


def merge_detections(
    existing: Sequence[RawDetection],
    incoming: Sequence[RawDetection],
    radius: Optional[float] = None,
) -> List[RawDetection]:
    """Merge a new pass into the running set; existing entries win ties."""
    return deduplicate(list(existing) + list(incoming), radius=radius)
