"""Pipeline orchestration."""

from .scan_pipeline import ScanPipeline, main

__all__ = ["ScanPipeline", "main"]
