"""Record export and visual overlay."""

from .annotation import circle_geometry, render_annotations
from .csv_export import (
    CSV_HEADER,
    export_csv,
    export_csv_file,
    format_rect,
    parse_csv,
    parse_rect,
)

__all__ = [
    "CSV_HEADER",
    "circle_geometry",
    "export_csv",
    "export_csv_file",
    "format_rect",
    "parse_csv",
    "parse_rect",
    "render_annotations",
]
