"""Grid inference."""

from .inference import cluster_rows, infer_grid

__all__ = ["cluster_rows", "infer_grid"]
