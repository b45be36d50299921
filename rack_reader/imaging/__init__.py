"""Image loading and normalization."""

from .normalizer import NormalizedFrame, compute_scale, load_image, normalize_image

__all__ = [
    "NormalizedFrame",
    "compute_scale",
    "load_image",
    "normalize_image",
]
