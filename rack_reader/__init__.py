"""
Rack Reader v1.0

Reads DataMatrix codes from a photograph of a grid-organized rack
(e.g. a vial storage box) and assigns each code a row/column slot.

Stages:
- Normalize: bake EXIF orientation, cap the longest side
- Detect: full-frame decode, escalating to coarse (~300px) and fine
  (~200px) tiled passes when too few codes are found
- Deduplicate: same value within 60px is one code
- Grid: row bands by running-average Y, columns by X
- Report: CSV records and a circle/label overlay
"""

__version__ = "1.0.0"


def __getattr__(name):
    """Lazy imports so submodules like grid or report load without PIL-heavy stages."""

    _pipeline_names = {"ScanPipeline"}
    _detection_names = {"MultiPassScanner", "DmtxDecoder", "MockDecoder", "SymbolDecoder"}
    _contract_names = {"VialRecord", "RawDetection", "ScanResult", "Rect", "Point"}
    _error_names = {"ScanError", "InvalidImage", "DecodeError"}

    if name in _pipeline_names:
        from . import pipeline
        return getattr(pipeline, name)
    elif name in _detection_names:
        from . import detection
        return getattr(detection, name)
    elif name in _contract_names:
        from . import contracts
        return getattr(contracts, name)
    elif name in _error_names:
        from . import errors
        return getattr(errors, name)
    elif name == "infer_grid":
        from .grid import infer_grid
        return infer_grid

    raise AttributeError(f"module 'rack_reader' has no attribute {name!r}")
